from stoic.db.catalog import QueryCatalog
from stoic.db.drivers import PdoDrivers
from stoic.db.pdo_helper import PdoHelper
from stoic.db.query import ParamType


def _prepare_table(db):
    db.exec("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT)")
    db.exec("INSERT INTO t (v) VALUES ('a')")
    db.exec("INSERT INTO t (v) VALUES ('b')")


def test_store_query_first_wins(db):
    assert db.store_query(PdoDrivers.PDO_SQLITE, "all", "SELECT * FROM t")
    assert not db.store_query(PdoDrivers.PDO_SQLITE, "all", "SELECT 1")
    assert db.catalog.get("sqlite", "all").query == "SELECT * FROM t"


def test_store_query_unknown_driver_is_rejected(db):
    assert not db.store_query(PdoDrivers.PDO_UNKNOWN, "k", "SELECT 1")
    assert not db.store_query("nope", "k", "SELECT 1")


def test_store_queries_batch(db):
    db.store_queries(PdoDrivers.PDO_SQLITE, [
        ("count", "SELECT COUNT(*) AS n FROM t"),
        ("by_id", "SELECT v FROM t WHERE id = :id", {":id": ParamType.INT}),
    ])
    assert db.catalog.keys("sqlite") == ["count", "by_id"]
    assert db.catalog.get("sqlite", "by_id").arguments[":id"].type == int(ParamType.INT)


def test_exec_and_query_stored_without_arguments(db):
    _prepare_table(db)
    db.store_query(PdoDrivers.PDO_SQLITE, "count", "SELECT COUNT(*) AS n FROM t")
    db.store_query(PdoDrivers.PDO_SQLITE, "wipe", "DELETE FROM t")
    db.store_query(PdoDrivers.PDO_SQLITE, "by_id", "SELECT v FROM t WHERE id = :id", {":id": ParamType.INT})

    assert db.query_stored("count").fetch()["n"] == 2
    # upit sa deklarisanim argumentima se ne izvršava bez njih
    assert db.query_stored("by_id") is None
    assert db.exec_stored("by_id") == 0
    assert db.query_stored("missing") is None

    assert db.exec_stored("wipe") == 2
    assert db.query_stored("count").fetch()["n"] == 0


def test_prepare_stored_binds_declared_types(db):
    _prepare_table(db)
    db.store_query(PdoDrivers.PDO_SQLITE, "by_id", "SELECT v FROM t WHERE id = :id", {":id": ParamType.INT})

    stmt = db.prepare_stored("by_id", {":id": "2"})
    assert stmt is not None
    stmt.execute()
    assert stmt.fetch() == {"v": "b"}
    assert db.get_queries()[-1].arguments == [[":id", "2", int(ParamType.INT)]]


def test_prepare_stored_argument_mismatch(db):
    db.store_query(PdoDrivers.PDO_SQLITE, "by_id", "SELECT v FROM t WHERE id = :id", {":id": ParamType.INT})
    before = db.get_query_count()

    assert db.prepare_stored("missing") is None
    assert db.prepare_stored("by_id") is None
    assert db.prepare_stored("by_id", {":id": 1, ":extra": 2}) is None
    assert db.prepare_stored("by_id", {":other": 1}) is None
    assert db.get_query_count() == before


def test_stored_queries_are_per_driver(db):
    db.store_query(PdoDrivers.PDO_MYSQL, "count", "SELECT COUNT(*) FROM t")
    assert db.query_stored("count") is None


def test_shared_catalog_between_helpers():
    catalog = QueryCatalog()
    first = PdoHelper("sqlite::memory:", catalog=catalog)
    second = PdoHelper("sqlite::memory:", catalog=catalog)

    first.store_query("sqlite", "one", "SELECT 1 AS one")
    assert second.query_stored("one").fetch() == {"one": 1}

    # helper bez eksplicitnog kataloga ima svoj
    assert not PdoHelper("sqlite::memory:").catalog.has("sqlite", "one")
    first.close()
    second.close()
