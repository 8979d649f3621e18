# Rev 0.1.0
from __future__ import annotations

import sqlite3
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from ..models.entities import Task
from ..utils.timeutil import to_iso, utc_now
from ._conn import resolve_conn

# entity field -> column
_COLUMNS: Dict[str, str] = {
    "title": "title",
    "desc": '"desc"',
    "note": "note",
    "start_date": "start_date",
    "assign_date": "assign_date",
    "expected_delivery_date": "expected_delivery_date",
    "actual_delivery_date": "actual_delivery_date",
    "assignee": "assignee_id",
    "status": "status",
    "priority": "priority",
}

_SELECT = """
    SELECT t.id, t.title, t."desc", t.note,
           t.start_date, t.assign_date, t.expected_delivery_date, t.actual_delivery_date,
           t.assignee_id, u.name AS assignee_name, u.email AS assignee_email,
           t.status, t.priority, t.created_at, t.updated_at
    FROM tasks t
    LEFT JOIN users u ON u.id = t.assignee_id
"""


def _to_db(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return to_iso(value)
    return value


class SQLiteTaskRepository:
    """
    Task record store: find-all, find-by-id, create, update-by-id, delete-by-id.
    Rows come back as Task entities with the assignee resolved to {id, name, email}.
    Updates write only the named columns, so concurrent writers to disjoint
    fields do not clobber each other; overlapping keys are last-write-wins.
    """

    def __init__(self, db_or_conn: Union[sqlite3.Connection, Any]):
        self._db_or_conn = db_or_conn

    def _conn(self) -> sqlite3.Connection:
        return resolve_conn(self._db_or_conn, "SQLiteTaskRepository")

    # -------------------------
    # Queries
    # -------------------------
    def find_all(self, *, assignee_id: Optional[str] = None) -> List[Task]:
        """Newest first."""
        where, params = "", []
        if assignee_id is not None:
            where = "WHERE t.assignee_id = ?"
            params.append(assignee_id)
        rows = self._conn().execute(
            f"{_SELECT} {where} ORDER BY t.created_at DESC, t.rowid DESC", params
        ).fetchall()
        return [Task.from_row(r) for r in rows]

    def find_by_id(self, task_id: str) -> Optional[Task]:
        row = self._conn().execute(f"{_SELECT} WHERE t.id = ?", (task_id,)).fetchone()
        return Task.from_row(row) if row else None

    # -------------------------
    # Commands
    # -------------------------
    def create(self, fields: Mapping[str, Any], *, now: Optional[datetime] = None) -> Task:
        """Insert a validated field set; returns the stored record."""
        task_id = uuid.uuid4().hex
        stamp = to_iso(now or utc_now())
        cols = ["id"] + [_COLUMNS[k] for k in fields] + ["created_at", "updated_at"]
        params = [task_id] + [_to_db(v) for v in fields.values()] + [stamp, stamp]
        con = self._conn()
        con.execute(
            f"INSERT INTO tasks({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})",
            params,
        )
        con.commit()
        return self.find_by_id(task_id)

    def update_by_id(self, task_id: str, changes: Mapping[str, Any], *, now: Optional[datetime] = None) -> Optional[Task]:
        """Write ``changes``; None when the id is unknown. Empty changes are a read."""
        if not changes:
            return self.find_by_id(task_id)
        sets = [f"{_COLUMNS[k]} = ?" for k in changes]
        params = [_to_db(v) for v in changes.values()]
        sets.append("updated_at = ?")
        params.append(to_iso(now or utc_now()))
        params.append(task_id)

        con = self._conn()
        cur = con.execute(f"UPDATE tasks SET {', '.join(sets)} WHERE id = ?", params)
        con.commit()
        if cur.rowcount == 0:
            return None
        return self.find_by_id(task_id)

    def delete_by_id(self, task_id: str) -> bool:
        con = self._conn()
        cur = con.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        con.commit()
        return cur.rowcount > 0
