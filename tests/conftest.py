import sys
from pathlib import Path
import pytest

# Omogući import projekta kad se testovi pokreću iz bilo kog radnog dir-a
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stoic.db.pdo_helper import PdoHelper
from stoic.db.query import ParamType
from stoic.managers.log_manager import LogManager
from app.models.user import USERS_TABLE_SQL


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch):
    """Testovi ne pišu log fajlove niti echo na stdout."""
    monkeypatch.delenv("LOG_FILE_PATH", raising=False)
    monkeypatch.setenv("LOG_ECHO", "0")


@pytest.fixture
def db():
    helper = PdoHelper("sqlite::memory:")
    assert helper.is_active()
    yield helper
    helper.close()


@pytest.fixture
def log():
    return LogManager()


@pytest.fixture
def users_db(db):
    """In-memory SQLite sa kreiranom users tabelom."""
    db.exec(USERS_TABLE_SQL)
    return db


@pytest.fixture
def seed_user(users_db):
    """Direktan INSERT mimo modela (priprema stanja); vraća last_insert_id."""
    def _seed(name="Ana", email="ana@example.com", role="MEMBER", active=1,
              created="2025-01-01 10:00:00", id=None):
        columns = ["name", "email", "role", "active", "created_at"]
        placeholders = [":name", ":email", ":role", ":active", ":created"]
        if id is not None:
            columns.insert(0, "id")
            placeholders.insert(0, ":id")
        stmt = users_db.prepare(
            f"INSERT INTO users ({', '.join(columns)}) VALUES ({', '.join(placeholders)})"
        )
        if id is not None:
            stmt.bind_value(":id", id, ParamType.INT)
        stmt.bind_value(":name", name)
        stmt.bind_value(":email", email)
        stmt.bind_value(":role", role)
        stmt.bind_value(":active", active, ParamType.INT)
        stmt.bind_value(":created", created)
        stmt.execute()
        return users_db.last_insert_id()
    return _seed
