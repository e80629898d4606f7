import pytest

from stoic.db.drivers import (
    PdoDrivers,
    build_params,
    compile_placeholders,
    detect_driver,
    lookup_driver,
    parse_dsn_pairs,
)


@pytest.mark.parametrize("dsn,key,quotes", [
    ("mysql:host=localhost;dbname=app", "mysql", ("`", "`")),
    ("pgsql:host=db;dbname=app", "postgresql", ('"', '"')),
    ("sqlite::memory:", "sqlite", ('"', '"')),
    ("sqlsrv:Server=x", "azure", ("[", "]")),
    ("mssql:host=x", "mssql", ("[", "]")),
    ("oci:dbname=//h/XE", "oracle", ('"', '"')),
    ("odbc:DSN=x", "odbc", ("", "")),
    ("4D:host=x", "4d", ("", "")),
    ("SQLITE:/tmp/x.db", "sqlite", ('"', '"')),
])
def test_detect_driver_by_prefix(dsn, key, quotes):
    info = detect_driver(dsn)
    assert info is not None
    assert info.key == key
    assert info.quotes == quotes


def test_detect_driver_unknown_prefix():
    assert detect_driver("bogus:whatever") is None
    assert detect_driver("") is None
    # prefiks bez ':' nije prepoznat
    assert detect_driver("mysqlx") is None


def test_lookup_driver_variants():
    assert lookup_driver(PdoDrivers.PDO_PGSQL).key == "postgresql"
    assert lookup_driver(12).key == "sqlite"
    assert lookup_driver("pgsql").driver is PdoDrivers.PDO_PGSQL
    assert lookup_driver("postgresql").driver is PdoDrivers.PDO_PGSQL
    assert lookup_driver(PdoDrivers.PDO_UNKNOWN) is None
    assert lookup_driver("nope") is None


def test_parse_dsn_pairs():
    assert parse_dsn_pairs("host=localhost; dbname=test;port=3306") == {
        "host": "localhost", "dbname": "test", "port": "3306",
    }


def test_compile_placeholders_named_is_unchanged():
    sql, names = compile_placeholders("SELECT * FROM t WHERE a = :a AND b = :b", "named")
    assert sql == "SELECT * FROM t WHERE a = :a AND b = :b"
    assert names == ["a", "b"]


def test_compile_placeholders_pyformat_escapes_percent():
    sql, names = compile_placeholders("SELECT '50%' , x FROM t WHERE name LIKE 'a%' AND id = :id", "pyformat")
    # '%' se duplira i unutar literala, placeholder-i u literalima se ne diraju
    assert "'50%%'" in sql and "'a%%'" in sql
    assert sql.endswith("id = %(id)s")
    assert names == ["id"]

    sql, _ = compile_placeholders("SELECT x % 2 FROM t", "format")
    assert sql == "SELECT x %% 2 FROM t"


def test_compile_placeholders_skips_quotes_and_casts():
    sql, names = compile_placeholders("SELECT ':skip', \"col:x\", v::text FROM t WHERE id = :id", "qmark")
    assert sql == "SELECT ':skip', \"col:x\", v::text FROM t WHERE id = ?"
    assert names == ["id"]


def test_compile_placeholders_numeric_and_repeated_names():
    sql, names = compile_placeholders("a = :x OR b = :x", "numeric")
    assert sql == "a = :1 OR b = :2"
    assert names == ["x", "x"]


def test_build_params():
    assert build_params("named", ["a", "b"], {"a": 1, "b": 2, "c": 3}) == {"a": 1, "b": 2}
    assert build_params("qmark", ["a", "b", "a"], {"a": 1, "b": 2}) == [1, 2, 1]
