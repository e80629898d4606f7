from stoic.db.model import BaseDbColumnFlags, BaseDbModel, BaseDbTypes
from stoic.utilities.enum_base import EnumBase
from stoic.utilities.return_helper import ReturnHelper


class UserRole(EnumBase):
    GUEST = 0
    MEMBER = 1
    ADMIN = 2


class User(BaseDbModel):
    """Primer modela nad tabelom users."""

    def _setup_model(self) -> None:
        self.set_table_name("users")
        self.set_column("id", "id", BaseDbTypes.INTEGER,
                        BaseDbColumnFlags.IS_KEY | BaseDbColumnFlags.AUTO_INCREMENT)
        self.set_column("name", "name", BaseDbTypes.STRING, False, True, True)
        self.set_column("email", "email", BaseDbTypes.STRING, False, True, True)
        self.set_column("role", "role", BaseDbTypes.STRING, False, True, True,
                        enum_class=UserRole, default=UserRole.MEMBER)
        self.set_column("active", "active", BaseDbTypes.BOOLEAN, False, True, True, default=True)
        self.set_column("created", "created_at", BaseDbTypes.DATETIME,
                        BaseDbColumnFlags.SHOULD_INSERT | BaseDbColumnFlags.ALLOWS_NULLS)

    def _can_create(self):
        ret = ReturnHelper()
        if not (self.email or "").strip():
            ret.add_message("User email is required")
            return ret
        ret.make_good()
        return ret


USERS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT,
    email TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'MEMBER',
    active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT
)
"""
