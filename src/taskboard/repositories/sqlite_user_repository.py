# Rev 0.1.0
# taskboard – SQLiteUserRepository (Rev 0.1.0)
# Read side of the account service: enough to resolve assignees and fill pickers.

from __future__ import annotations
import sqlite3
import uuid
from typing import Any, List, Optional, Union

from ..models.entities import User
from ..models.types import Role
from ..utils.timeutil import to_iso, utc_now
from ._conn import resolve_conn


class SQLiteUserRepository:
    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    def _conn(self) -> sqlite3.Connection:
        return resolve_conn(self._db_or_conn, "SQLiteUserRepository")

    # --- public API ---------------------------------------------------------

    def create_user(self, *, email: str, role: Role = Role.MEMBER, name: Optional[str] = None,
                    user_id: Optional[str] = None) -> User:
        uid = user_id or uuid.uuid4().hex
        now = to_iso(utc_now())
        con = self._conn()
        con.execute(
            """
            INSERT INTO users(id, email, role, name, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (uid, email.strip().lower(), Role.parse(role).value, (name or "").strip() or None, now, now),
        )
        con.commit()
        return User(id=uid, email=email.strip().lower(), role=Role.parse(role), name=(name or "").strip() or None)

    def get_user(self, user_id: str) -> Optional[User]:
        row = self._conn().execute(
            "SELECT id, email, role, name FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return User.from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._conn().execute(
            "SELECT id, email, role, name FROM users WHERE email = ?", (email.strip().lower(),)
        ).fetchone()
        return User.from_row(row) if row else None

    def list_users(self) -> List[User]:
        rows = self._conn().execute(
            "SELECT id, email, role, name FROM users ORDER BY created_at DESC, rowid DESC"
        ).fetchall()
        return [User.from_row(r) for r in rows]
