# =============================================================================
# File:        stoic/db/pdo_helper.py
# Purpose:     Omotač oko nativne DB-API konekcije: meta podaci o drajveru,
#              evidencija upita/grešaka i sačuvani upiti
# Author:      Aleksandar Popović
# Created:     2025-08-07
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
import re
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from stoic.config.env import EnvLoader
from stoic.db.catalog import QueryCatalog
from stoic.db.drivers import (
    UNKNOWN_DRIVER,
    DriverInfo,
    PdoDrivers,
    connect,
    connection_module,
    detect_driver,
    driver_from_connection,
    error_types_for,
    paramstyle_for,
)
from stoic.db.query import (
    DBError,
    FetchMode,
    ParamType,
    PdoError,
    PdoQuery,
    UnsupportedDriverError,
)
from stoic.db.statement import PdoStatement


_INSERT_SQL = re.compile(r"\s*(INSERT|REPLACE)\b", re.IGNORECASE)


class PdoHelper:
    """
    Proxy oko jedne nativne konekcije. Sve primitivne operacije su zaštićene:
    ako konekcija nije aktivna vraća se "nulta" vrednost umesto poziva.

    Nije thread-safe: evidencija upita/grešaka i katalog se menjaju bez
    zaključavanja. Jedan helper po radniku/niti.
    """

    def __init__(
        self,
        dsn: str = "",
        username: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
        instance: Any = None,
        catalog: Optional[QueryCatalog] = None,
    ):
        self.dsn = dsn
        self.options: Dict[str, Any] = dict(options or {})
        self.catalog = catalog if catalog is not None else QueryCatalog()
        self.auto_commit = True

        self._active = False
        self._driver: DriverInfo = UNKNOWN_DRIVER
        self._errors: List[PdoError] = []
        self._queries: List[PdoQuery] = []
        self._query_count = 0
        self._native = None
        self._last_row_id = None
        self._in_transaction = False
        self.error_types: tuple = (DBError,)
        self.paramstyle = "named"

        if instance is not None:
            info = driver_from_connection(instance)
            if info is None:
                raise UnsupportedDriverError(f"Unrecognized connection type: {type(instance).__module__}")
            self._native = instance
            self._configure(info, connection_module(instance))
            self._active = True
            return

        info = detect_driver(dsn)
        if info is None:
            ex = UnsupportedDriverError(f"Invalid driver provided: {dsn!r}")
            self._errors.append(PdoError(ex, PdoQuery("connect")))
            raise ex

        try:
            self._configure(info, info.module)
        except ImportError as ex:
            self._errors.append(PdoError(ex, PdoQuery("connect")))
            return

        try:
            self._native = connect(info, dsn, username, password, self.options)
        except (DBError,) + self.error_types as ex:
            self._errors.append(PdoError(ex, PdoQuery("connect")))
            return

        self._active = True

    @classmethod
    def from_env(cls, catalog: Optional[QueryCatalog] = None) -> "PdoHelper":
        """DB_DSN / DB_USERNAME / DB_PASSWORD iz .env (ili os.environ)."""
        EnvLoader.load()
        return cls(
            EnvLoader.get("DB_DSN", "sqlite::memory:"),
            EnvLoader.get("DB_USERNAME", None),
            EnvLoader.get("DB_PASSWORD", None),
            catalog=catalog,
        )

    def _configure(self, info: DriverInfo, module_name: Optional[str]) -> None:
        self._driver = info
        self.error_types = (DBError,) + error_types_for(module_name or info.module)
        self.paramstyle = paramstyle_for(info, module_name)

    def _try_active(self, command: Callable[[], Any], default: Any = None) -> Any:
        if self._active:
            return command()
        return default

    # --------------------------------------------------------------------- #
    # Evidencija
    # --------------------------------------------------------------------- #

    def record_query(self, query: str, arguments: Optional[List[List[Any]]] = None) -> None:
        self._query_count += 1
        self._queries.append(PdoQuery(query, list(arguments or [])))

    def record_error(self, exception: BaseException, query: str, arguments: Optional[List[List[Any]]] = None) -> None:
        self._errors.append(PdoError(exception, PdoQuery(query, list(arguments or []))))

    def after_execute(self, cursor, query: Optional[str] = None) -> None:
        """Pamti lastrowid posle INSERT-a; van eksplicitne transakcije potvrđuje izmene (DML)."""
        if query is not None and _INSERT_SQL.match(query):
            # svaki INSERT postavlja novu vrednost, i kada je 0 ili None
            self._last_row_id = getattr(cursor, "lastrowid", None)
        if self.auto_commit and not self._in_transaction and cursor.description is None:
            self._native.commit()

    def get_errors(self) -> List[PdoError]:
        return list(self._errors)

    def get_queries(self) -> List[PdoQuery]:
        return list(self._queries)

    def get_query_count(self) -> int:
        return self._query_count

    # --------------------------------------------------------------------- #
    # Meta
    # --------------------------------------------------------------------- #

    @property
    def native(self):
        return self._native

    def is_active(self) -> bool:
        return self._active

    def get_driver(self) -> PdoDrivers:
        return self._driver.driver

    def get_driver_info(self) -> DriverInfo:
        return self._driver

    def get_driver_key(self) -> Optional[str]:
        return self._driver.key if self._driver is not UNKNOWN_DRIVER else None

    def close(self) -> None:
        if self._native is not None and self._active:
            self._native.close()
        self._active = False

    # --------------------------------------------------------------------- #
    # Transakcije (passthrough)
    # --------------------------------------------------------------------- #

    def begin_transaction(self) -> bool:
        def _begin():
            if self._driver.begin_sql and not getattr(self._native, "in_transaction", False):
                cursor = self._native.cursor()
                try:
                    cursor.execute(self._driver.begin_sql)
                finally:
                    cursor.close()
            self._in_transaction = True
            return True

        return self._try_active(_begin, False)

    def commit(self) -> bool:
        def _commit():
            self._native.commit()
            self._in_transaction = False
            return True

        return self._try_active(_commit, False)

    def rollback(self) -> bool:
        def _rollback():
            self._native.rollback()
            self._in_transaction = False
            return True

        return self._try_active(_rollback, False)

    def in_transaction(self) -> bool:
        def _check():
            native_flag = getattr(self._native, "in_transaction", None)
            if isinstance(native_flag, bool):
                return native_flag or self._in_transaction
            return self._in_transaction

        return self._try_active(_check, False)

    @contextmanager
    def transaction(self):
        self.begin_transaction()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        self.commit()

    # --------------------------------------------------------------------- #
    # Greške konekcije
    # --------------------------------------------------------------------- #

    def error_code(self) -> str:
        """SQLSTATE poslednje greške ('00000' ako je nije bilo)."""
        def _code():
            if not self._errors:
                return "00000"
            return str(getattr(self._errors[-1].exception, "sqlstate", None) or "HY000")

        return self._try_active(_code, "")

    def error_info(self) -> list:
        def _info():
            if not self._errors:
                return ["00000", None, None]
            ex = self._errors[-1].exception
            driver_code = ex.args[0] if ex.args and isinstance(ex.args[0], int) else None
            return [self.error_code(), driver_code, str(ex)]

        return self._try_active(_info, [])

    # --------------------------------------------------------------------- #
    # Atributi
    # --------------------------------------------------------------------- #

    def get_attribute(self, attribute: str) -> Any:
        return self._try_active(lambda: getattr(self._native, attribute, None), None)

    def set_attribute(self, attribute: str, value: Any) -> bool:
        def _set():
            try:
                setattr(self._native, attribute, value)
            except (AttributeError, TypeError, ValueError):
                return False
            return True

        return self._try_active(_set, False)

    def set_attributes(self, attributes: Optional[Dict[str, Any]] = None) -> None:
        if not self._active or attributes is None:
            return
        for attribute, value in attributes.items():
            self.set_attribute(attribute, value)

    # --------------------------------------------------------------------- #
    # Upiti
    # --------------------------------------------------------------------- #

    def exec(self, query: str) -> int:
        """Izvršava SQL bez rezultata; vraća broj izmenjenih redova."""
        def _exec():
            cursor = self._native.cursor()
            try:
                cursor.execute(query)
                affected = cursor.rowcount
                self.after_execute(cursor, query)
            except self.error_types as ex:
                self.record_error(ex, query)
                raise
            finally:
                cursor.close()
            self.record_query(query)
            return max(affected or 0, 0)

        return self._try_active(_exec, 0)

    def prepare(self, statement: str, options: Optional[Dict[str, Any]] = None) -> Optional[PdoStatement]:
        def _prepare():
            fetch_mode = (options or {}).get("fetch_mode", FetchMode.ASSOC)
            stmt = PdoStatement(self, statement, fetch_mode)
            self.record_query(statement)
            return stmt

        return self._try_active(_prepare, None)

    def query(self, statement: str, fetch_mode: FetchMode = FetchMode.ASSOC) -> Optional[PdoStatement]:
        """Izvršava SQL i vraća statement sa rezultatima."""
        def _query():
            stmt = PdoStatement(self, statement, fetch_mode)
            stmt.execute()
            self.record_query(statement)
            return stmt

        return self._try_active(_query, None)

    def last_insert_id(self, seqname: Optional[str] = None) -> Any:
        def _last():
            if self._driver.last_insert_id_sql:
                if seqname:
                    stmt = PdoStatement(self, "SELECT currval(:seq)", FetchMode.NUM)
                    stmt.bind_value("seq", seqname)
                else:
                    stmt = PdoStatement(self, self._driver.last_insert_id_sql, FetchMode.NUM)
                stmt.execute()
                row = stmt.fetch()
                stmt.close()
                return row[0] if row else ""
            return self._last_row_id if self._last_row_id is not None else ""

        return self._try_active(_last, "")

    def quote(self, value: Any, param_type: Optional[int] = None) -> str:
        def _quote():
            if param_type is not None and int(param_type) > -1:
                return self._quote_native(value, int(param_type))
            return self._quote_native(value)

        return self._try_active(_quote, "")

    def _quote_native(self, value: Any, param_type: Optional[int] = None) -> str:
        escape = getattr(self._native, "escape", None) or getattr(self._native, "literal", None)
        if callable(escape):
            return str(escape(value))
        if param_type == ParamType.NULL or value is None:
            return "NULL"
        if param_type in (ParamType.INT, ParamType.BOOL):
            try:
                return str(int(value))
            except (TypeError, ValueError):
                pass
        return "'" + str(value).replace("'", "''") + "'"

    # --------------------------------------------------------------------- #
    # Sačuvani upiti
    # --------------------------------------------------------------------- #

    def store_query(self, driver: Any, key: str, query: str, arguments: Optional[Dict[str, int]] = None) -> bool:
        return self.catalog.store_query(driver, key, query, arguments)

    def store_queries(self, driver: Any, queries: Optional[Iterable[Sequence[Any]]] = None) -> None:
        self.catalog.store_queries(driver, queries)

    def _stored(self, key: str):
        return self.catalog.get(self._driver.key, key)

    def exec_stored(self, key: str) -> int:
        def _exec():
            stored = self._stored(key)
            if stored is None or len(stored.arguments) > 0:
                return 0
            return self.exec(stored.query)

        return self._try_active(_exec, 0)

    def prepare_stored(self, key: str, arguments: Optional[Dict[str, Any]] = None,
                       options: Optional[Dict[str, Any]] = None) -> Optional[PdoStatement]:
        """None ako ključ ne postoji ili se argumenti ne poklapaju sa deklarisanim."""
        def _prepare():
            stored = self._stored(key)
            given = arguments or {}
            if stored is None or len(stored.arguments) != len(given):
                return None

            args = []
            for name, value in given.items():
                declared = stored.arguments.get(name)
                if declared is None:
                    return None
                args.append([name, value, declared.type])

            fetch_mode = (options or {}).get("fetch_mode", FetchMode.ASSOC)
            stmt = PdoStatement(self, stored.query, fetch_mode)
            for name, value, ptype in args:
                stmt.bind_value(name, value, ptype if ptype > -1 else None)
            self.record_query(stored.query, args)
            return stmt

        return self._try_active(_prepare, None)

    def query_stored(self, key: str) -> Optional[PdoStatement]:
        def _query():
            stored = self._stored(key)
            if stored is None or len(stored.arguments) > 0:
                return None
            return self.query(stored.query)

        return self._try_active(_query, None)
