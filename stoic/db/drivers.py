# =============================================================================
# File:        stoic/db/drivers.py
# Purpose:     Tabela drajvera (DSN prefiks, ključ, navodnici), otvaranje
#              DB-API konekcija i prevođenje :name placeholder-a
# Author:      Aleksandar Popović
# Created:     2025-08-07
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
import importlib
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from stoic.db.query import UnsupportedDriverError
from stoic.utilities.enum_base import EnumBase


class PdoDrivers(EnumBase):
    PDO_UNKNOWN = 0
    PDO_4D = 1
    PDO_CUBRID = 2
    PDO_FIREBIRD = 3
    PDO_FREETDS = 4
    PDO_IBM = 5
    PDO_INFORMIX = 6
    PDO_MSSQL = 7
    PDO_MYSQL = 8
    PDO_ODBC = 9
    PDO_ORACLE = 10
    PDO_PGSQL = 11
    PDO_SQLITE = 12
    PDO_SQLSRV = 13
    PDO_SYBASE = 14


@dataclass(frozen=True)
class DriverInfo:
    prefix: str
    driver: PdoDrivers
    key: str
    quotes: Tuple[str, str] = ("", "")
    module: Optional[str] = None              # DB-API modul koji otvara konekciju
    paramstyle: Optional[str] = None          # override za module.paramstyle
    reliable_select_rowcount: bool = False    # rowcount posle SELECT-a ima smisla
    begin_sql: Optional[str] = None           # eksplicitni BEGIN (inače implicitne transakcije)
    last_insert_id_sql: Optional[str] = None

    @property
    def open_quote(self) -> str:
        return self.quotes[0]

    @property
    def close_quote(self) -> str:
        return self.quotes[1]


_BACKTICK = ("`", "`")
_BRACKETS = ("[", "]")
_DOUBLE = ('"', '"')

DRIVERS: Tuple[DriverInfo, ...] = (
    DriverInfo("4D", PdoDrivers.PDO_4D, "4d"),
    DriverInfo("cubrid", PdoDrivers.PDO_CUBRID, "cubrid"),
    DriverInfo("firebird", PdoDrivers.PDO_FIREBIRD, "firebird"),
    DriverInfo("dblib", PdoDrivers.PDO_FREETDS, "freetds", module="pymssql"),
    DriverInfo("ibm", PdoDrivers.PDO_IBM, "ibm", _DOUBLE),
    DriverInfo("informix", PdoDrivers.PDO_INFORMIX, "informix"),
    DriverInfo("mssql", PdoDrivers.PDO_MSSQL, "mssql", _BRACKETS, module="pymssql"),
    DriverInfo("mysql", PdoDrivers.PDO_MYSQL, "mysql", _BACKTICK, module="pymysql",
               reliable_select_rowcount=True),
    DriverInfo("odbc", PdoDrivers.PDO_ODBC, "odbc", module="pyodbc"),
    DriverInfo("oci", PdoDrivers.PDO_ORACLE, "oracle", _DOUBLE, module="oracledb"),
    DriverInfo("pgsql", PdoDrivers.PDO_PGSQL, "postgresql", _DOUBLE, module="psycopg",
               reliable_select_rowcount=True, last_insert_id_sql="SELECT LASTVAL()"),
    DriverInfo("sqlite", PdoDrivers.PDO_SQLITE, "sqlite", _DOUBLE, module="sqlite3",
               paramstyle="named", begin_sql="BEGIN"),
    DriverInfo("sqlsrv", PdoDrivers.PDO_SQLSRV, "azure", _BRACKETS, module="pymssql"),
    DriverInfo("sybase", PdoDrivers.PDO_SYBASE, "sybase", _BRACKETS, module="pymssql"),
)

UNKNOWN_DRIVER = DriverInfo("", PdoDrivers.PDO_UNKNOWN, "unknown")

# root ime modula konekcije -> DSN prefiks
_CONNECTION_MODULES = {
    "sqlite3": "sqlite",
    "pymysql": "mysql",
    "MySQLdb": "mysql",
    "mysql": "mysql",
    "psycopg": "pgsql",
    "psycopg2": "pgsql",
    "pg8000": "pgsql",
    "pymssql": "mssql",
    "pyodbc": "odbc",
    "oracledb": "oci",
    "cx_Oracle": "oci",
    "ibm_db_dbi": "ibm",
    "ibm_db": "ibm",
}


# --------------------------------------------------------------------- #
# Lookup
# --------------------------------------------------------------------- #

def detect_driver(dsn: str) -> Optional[DriverInfo]:
    """Najduži prefiks ("prefix:") koji se poklapa sa DSN-om, bez obzira na velika slova."""
    lowered = (dsn or "").lower()
    best = None
    for info in DRIVERS:
        if lowered.startswith(info.prefix.lower() + ":"):
            if best is None or len(info.prefix) > len(best.prefix):
                best = info
    return best


def lookup_driver(driver: Any) -> Optional[DriverInfo]:
    """Po enum članu, int vrednosti, ključu ("postgresql") ili prefiksu ("pgsql")."""
    if isinstance(driver, DriverInfo):
        return driver
    if isinstance(driver, PdoDrivers) or (isinstance(driver, int) and not isinstance(driver, bool)):
        for info in DRIVERS:
            if int(info.driver) == int(driver):
                return info
        return None
    if isinstance(driver, str):
        wanted = driver.strip().lower().rstrip(":")
        for info in DRIVERS:
            if wanted in (info.key, info.prefix.lower()):
                return info
    return None


def connection_module(conn: Any) -> str:
    return type(conn).__module__.split(".")[0]


def driver_from_connection(conn: Any) -> Optional[DriverInfo]:
    """Drajver postojeće DB-API konekcije, iz modula kome konekcija pripada."""
    prefix = _CONNECTION_MODULES.get(connection_module(conn))
    return detect_driver(prefix + ":") if prefix else None


def error_types_for(module_name: Optional[str]) -> Tuple[type, ...]:
    """DB-API Error hijerarhija modula (PEP 249 zahteva module.Error)."""
    if not module_name:
        return (Exception,)
    module = importlib.import_module(module_name)
    err = getattr(module, "Error", None)
    return (err,) if isinstance(err, type) else (Exception,)


def paramstyle_for(info: DriverInfo, module_name: Optional[str] = None) -> str:
    if info.paramstyle:
        return info.paramstyle
    name = module_name or info.module
    if not name:
        return "named"
    return getattr(importlib.import_module(name), "paramstyle", "named")


# --------------------------------------------------------------------- #
# Otvaranje konekcija
# --------------------------------------------------------------------- #

def parse_dsn_pairs(body: str) -> Dict[str, str]:
    """'host=localhost;dbname=test' -> {'host': 'localhost', 'dbname': 'test'}"""
    pairs: Dict[str, str] = {}
    for chunk in (body or "").split(";"):
        if not chunk.strip() or "=" not in chunk:
            continue
        k, v = chunk.split("=", 1)
        pairs[k.strip().lower()] = v.strip()
    return pairs


def _connect_sqlite(module, body, username, password, options):
    return module.connect(body or ":memory:", **options)


def _connect_mysql(module, body, username, password, options):
    p = parse_dsn_pairs(body)
    kwargs: Dict[str, Any] = {"host": p.get("host", "localhost"), "database": p.get("dbname")}
    if "port" in p:
        kwargs["port"] = int(p["port"])
    if "unix_socket" in p:
        kwargs["unix_socket"] = p["unix_socket"]
    if "charset" in p:
        kwargs["charset"] = p["charset"]
    kwargs["user"] = username or p.get("user")
    kwargs["password"] = password or p.get("password", "")
    kwargs.update(options)
    return module.connect(**kwargs)


def _connect_pgsql(module, body, username, password, options):
    p = parse_dsn_pairs(body)
    kwargs: Dict[str, Any] = {k: v for k, v in p.items() if k in ("host", "port", "dbname", "sslmode")}
    if username or p.get("user"):
        kwargs["user"] = username or p.get("user")
    if password or p.get("password"):
        kwargs["password"] = password or p.get("password")
    kwargs.update(options)
    return module.connect(**kwargs)


def _connect_mssql(module, body, username, password, options):
    p = parse_dsn_pairs(body)
    host = p.get("host") or p.get("server") or "localhost"
    kwargs: Dict[str, Any] = {"server": host, "database": p.get("dbname") or p.get("database")}
    if "port" in p:
        kwargs["port"] = p["port"]
    if "charset" in p:
        kwargs["charset"] = p["charset"]
    kwargs["user"] = username
    kwargs["password"] = password
    kwargs.update(options)
    return module.connect(**kwargs)


def _connect_oracle(module, body, username, password, options):
    p = parse_dsn_pairs(body)
    return module.connect(user=username, password=password, dsn=p.get("dbname", body), **options)


def _connect_odbc(module, body, username, password, options):
    conn_str = body
    if username:
        conn_str += f";UID={username}"
    if password:
        conn_str += f";PWD={password}"
    return module.connect(conn_str, **options)


CONNECTORS: Dict[str, Callable[..., Any]] = {
    "sqlite": _connect_sqlite,
    "mysql": _connect_mysql,
    "postgresql": _connect_pgsql,
    "mssql": _connect_mssql,
    "azure": _connect_mssql,
    "freetds": _connect_mssql,
    "sybase": _connect_mssql,
    "oracle": _connect_oracle,
    "odbc": _connect_odbc,
}


def connect(info: DriverInfo, dsn: str, username: Optional[str] = None, password: Optional[str] = None,
            options: Optional[Dict[str, Any]] = None):
    """Otvara nativnu konekciju za dati drajver; modul se učitava tek ovde."""
    connector = CONNECTORS.get(info.key)
    if connector is None or not info.module:
        raise UnsupportedDriverError(f"No Python DB-API driver available for '{info.key}'")
    module = importlib.import_module(info.module)
    body = dsn[len(info.prefix) + 1:]
    return connector(module, body, username, password, dict(options or {}))


# --------------------------------------------------------------------- #
# Placeholder-i
# --------------------------------------------------------------------- #

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _render(paramstyle: str, name: str, index: int) -> str:
    if paramstyle == "pyformat":
        return f"%({name})s"
    if paramstyle == "qmark":
        return "?"
    if paramstyle == "format":
        return "%s"
    if paramstyle == "numeric":
        return f":{index}"
    return f":{name}"


def compile_placeholders(sql: str, paramstyle: str) -> Tuple[str, List[str]]:
    """
    Prepisuje :name placeholder-e u paramstyle drajvera.
    Preskače literale pod navodnicima i '::' cast-ove; vraća (sql, imena po redu).
    """
    names: List[str] = []
    out: List[str] = []
    quote = None
    percent = "%%" if paramstyle in ("pyformat", "format") else "%"
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if quote:
            out.append(percent if ch == "%" else ch)
            if ch == quote:
                quote = None
            i += 1
            continue
        if ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
            i += 1
            continue
        if ch == ":" and i + 1 < n and sql[i + 1] == ":":
            out.append("::")
            i += 2
            continue
        if ch == ":":
            match = _NAME.match(sql, i + 1)
            if match:
                names.append(match.group(0))
                out.append(_render(paramstyle, match.group(0), len(names)))
                i = match.end()
                continue
        out.append(percent if ch == "%" else ch)
        i += 1
    return "".join(out), names


def build_params(paramstyle: str, names: List[str], values: Dict[str, Any]):
    """Vrednosti (ključ bez ':') u oblik koji traži paramstyle."""
    if paramstyle in ("named", "pyformat"):
        return {name: values[name] for name in names if name in values}
    return [values.get(name) for name in names]
