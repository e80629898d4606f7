import dataclasses
from datetime import datetime, timezone

from app.models.user import User, UserRole
from stoic.db.drivers import lookup_driver
from stoic.db.model import BaseDbColumnFlags, BaseDbModel, BaseDbTypes
from stoic.db.pdo_helper import PdoHelper
from stoic.utilities.return_helper import ReturnHelper


class Note(BaseDbModel):
    """Model bez ključnih polja."""
    def _setup_model(self):
        self.set_table_name("notes")
        self.set_column("label", "label", BaseDbTypes.STRING, False, True, True)


class Flagged(BaseDbModel):
    """Svojstvo is_active nad kolonom active."""
    def _setup_model(self):
        self.set_table_name("flags")
        self.set_column("id", "id", BaseDbTypes.INTEGER, True, True)
        self.set_column("is_active", "active", BaseDbTypes.BOOLEAN, False, True, True)


class Counter(BaseDbModel):
    """Samo auto-increment ključ, ništa za INSERT."""
    def _setup_model(self):
        self.set_table_name("counters")
        self.set_column("id", "id", BaseDbTypes.INTEGER, BaseDbColumnFlags.IS_KEY | BaseDbColumnFlags.AUTO_INCREMENT)


class Archived(BaseDbModel):
    """Ključ i polje koje se samo upisuje, ništa za UPDATE."""
    def _setup_model(self):
        self.set_table_name("archive")
        self.set_column("id", "id", BaseDbTypes.INTEGER, True, True)
        self.set_column("body", "body", BaseDbTypes.STRING, False, True, False)


class Empty(BaseDbModel):
    pass


class LockedUser(User):
    def _can_delete(self):
        return False

    def _can_update(self):
        ret = ReturnHelper()
        ret.make_bad()
        ret.add_message("Locked users can't be updated")
        return ret


def _count_users(db):
    return db.query("SELECT COUNT(*) AS n FROM users").fetch()["n"]


# ---------- create ----------

def test_create_populates_auto_increment(users_db, log):
    user = User(users_db, log)
    user.name = "Ana"
    user.email = "ana@example.com"

    ret = user.create()
    assert ret.is_good(), ret.get_messages()
    assert user.id == 1
    assert _count_users(users_db) == 1

    infos = log.messages("INFO")
    assert any(m.startswith("Attempting to create app.models.user.User automatically with...") for m in infos)
    assert any('INSERT INTO "users"' in m for m in infos)


def test_create_after_seeded_row_gets_next_id(users_db, seed_user):
    assert seed_user(id=41) == 41

    user = User(users_db)
    user.name = "Boris"
    user.email = "boris@example.com"
    assert user.create().is_good()
    assert user.id == 42


def test_create_rejected_by_hook_runs_no_sql(users_db, log):
    before = users_db.get_query_count()
    user = User(users_db, log)
    user.name = "Bez emaila"

    ret = user.create()
    assert ret.is_bad()
    assert ret.get_messages() == ["User email is required"]
    assert users_db.get_query_count() == before
    assert _count_users(users_db) == 0
    assert "User email is required" in log.messages("ERROR")


def test_create_without_fields(db, log):
    ret = Empty(db, log).create()
    assert ret.is_bad()
    assert "without registered fields" in ret.get_messages()[0]
    assert db.get_query_count() == 0


def test_create_without_insert_fields(db, log):
    ret = Counter(db, log).create()
    assert ret.is_bad()
    assert ret.get_messages() == ["Can't perform generated 'create', no fields available for insertion"]
    assert db.get_query_count() == 0


def test_create_stores_string_boolean_from_payload(db):
    db.exec("CREATE TABLE flags (id INTEGER PRIMARY KEY, active INTEGER)")

    flagged = Flagged.from_array({"id": 1, "is_active": "0"}, db)
    assert flagged.is_active is False
    assert flagged.create().is_good()
    assert db.query("SELECT active FROM flags WHERE id = 1").fetch() == {"active": 0}

    other = Flagged.from_array({"id": 2, "is_active": "true"}, db)
    assert other.create().is_good()
    assert db.query("SELECT active FROM flags WHERE id = 2").fetch() == {"active": 1}


def test_create_driver_error_is_captured(db, log):
    # tabela users ne postoji
    user = User(db, log)
    user.email = "x@example.com"

    ret = user.create()
    assert ret.is_bad()
    assert ret.get_messages()[0].startswith("Failed to create app.models.user.User: ")
    assert "no such table" in ret.get_messages()[0]
    assert len(db.get_errors()) == 1
    assert any(m.startswith("BaseDbModel error log originating from ") for m in log.messages("ERROR"))


def test_create_on_inactive_connection(log):
    helper = PdoHelper("4D:host=localhost")
    user = User(helper, log)
    user.email = "x@example.com"

    ret = user.create()
    assert ret.is_bad()
    assert "database connection is not active" in ret.get_messages()[0]


# ---------- read ----------

def test_read_by_key(users_db, seed_user):
    user_id = seed_user(name="Ana", role="ADMIN", active=0, created="2025-03-04 05:06:07")

    user = User(users_db)
    user.id = user_id
    ret = user.read()

    assert ret.is_good(), ret.get_messages()
    assert user.name == "Ana"
    assert user.email == "ana@example.com"
    assert user.role is UserRole.ADMIN
    assert user.active is False
    assert user.created == datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)


def test_read_missing_row(users_db):
    user = User(users_db)
    user.id = 999
    ret = user.read()
    assert ret.is_bad()
    assert ret.get_messages() == ["No results returned for generated 'read' query, read aborted"]


def test_read_missing_row_with_reliable_rowcount(monkeypatch, users_db):
    # drajver koji prijavljuje rowcount i za SELECT
    info = dataclasses.replace(lookup_driver("sqlite"), reliable_select_rowcount=True)
    monkeypatch.setattr(users_db, "_driver", info)

    user = User(users_db)
    user.id = 999
    ret = user.read()
    assert ret.is_bad()
    assert ret.get_messages() == ["No results found for generated 'read' query, read aborted"]


def test_read_unknown_enum_value_returns_bad_result(users_db, seed_user, log):
    user = User(users_db, log)
    user.id = seed_user(name="Ana", role="SUPERUSER")

    ret = user.read()
    assert ret.is_bad()
    assert ret.get_messages()[0].startswith("Failed to read app.models.user.User: ")
    assert "SUPERUSER" in ret.get_messages()[0]
    # nijedno polje nije delimično popunjeno
    assert user.name is None
    assert user.email is None
    assert user.role is UserRole.MEMBER


def test_read_closes_its_statement(monkeypatch, users_db, seed_user):
    user_id = seed_user()
    prepared = []
    original = users_db.prepare

    def _prepare(sql, options=None):
        stmt = original(sql, options)
        prepared.append(stmt)
        return stmt

    monkeypatch.setattr(users_db, "prepare", _prepare)

    found = User(users_db)
    found.id = user_id
    assert found.read().is_good()

    missing = User(users_db)
    missing.id = 999
    assert missing.read().is_bad()

    assert len(prepared) == 2
    assert all(stmt._cursor is None for stmt in prepared)


def test_read_without_key_fields(db):
    ret = Note(db).read()
    assert ret.is_bad()
    assert ret.get_messages() == ["Can't perform generated 'read', no fields available for query"]


# ---------- update ----------

def test_update_round_trip(users_db, seed_user):
    user_id = seed_user()

    user = User(users_db)
    user.id = user_id
    assert user.read().is_good()

    user.name = "Bojana"
    user.role = UserRole.GUEST
    user.active = False
    assert user.update().is_good()

    fresh = User(users_db)
    fresh.id = user_id
    assert fresh.read().is_good()
    assert fresh.name == "Bojana"
    assert fresh.role is UserRole.GUEST
    assert fresh.active is False
    # created nije u UPDATE skupu
    assert fresh.created == datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_update_without_key_fields(db):
    ret = Note(db).update()
    assert ret.is_bad()
    assert ret.get_messages() == ["Can't perform generated 'update' on class without primary fields"]
    assert db.get_query_count() == 0


def test_update_without_update_fields(db):
    archived = Archived(db)
    archived.id = 1
    ret = archived.update()
    assert ret.is_bad()
    assert ret.get_messages() == ["Can't perform generated 'update', no fields available for update"]
    assert db.get_query_count() == 0


def test_update_rejected_by_hook(users_db, seed_user, log):
    user = LockedUser(users_db, log)
    user.id = seed_user()
    ret = user.update()
    assert ret.is_bad()
    assert ret.get_messages() == ["Locked users can't be updated"]
    assert "Not allowed to update." in log.messages("ERROR")


# ---------- delete ----------

def test_delete_removes_row(users_db, seed_user):
    user = User(users_db)
    user.id = seed_user()
    assert user.delete().is_good()
    assert _count_users(users_db) == 0
    assert user.read().is_bad()


def test_delete_without_key_fields(db):
    ret = Note(db).delete()
    assert ret.is_bad()
    assert ret.get_messages() == ["Can't perform generated 'delete', no fields available for query"]


def test_delete_rejected_by_false_hook(users_db, seed_user):
    before = users_db.get_query_count()
    user = LockedUser(users_db)
    user.id = 1
    ret = user.delete()
    assert ret.is_bad()
    assert "returned false" in ret.get_messages()[0]
    assert users_db.get_query_count() == before
