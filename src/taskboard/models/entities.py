# Rev 0.1.0
"""Entities for the task board: tasks, their resolved assignee, users and caller sessions."""
from __future__ import annotations
import sqlite3
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from .types import Role, TaskPriority, TaskStatus
from ..utils.timeutil import parse_date, parse_timestamp, to_iso


@dataclass(frozen=True)
class AssigneeRef:
    """Assignee as resolved for display: {id, name, email}."""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    start_date: date
    assign_date: date
    expected_delivery_date: date
    assignee: AssigneeRef
    desc: Optional[str] = None
    note: Optional[str] = None
    actual_delivery_date: Optional[datetime] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row | Mapping[str, Any]) -> "Task":
        r = dict(row)
        return cls(
            id=r["id"],
            title=r["title"],
            desc=r.get("desc"),
            note=r.get("note"),
            start_date=parse_date(r["start_date"]),
            assign_date=parse_date(r["assign_date"]),
            expected_delivery_date=parse_date(r["expected_delivery_date"]),
            actual_delivery_date=(
                parse_timestamp(r["actual_delivery_date"]) if r.get("actual_delivery_date") else None
            ),
            assignee=AssigneeRef(
                id=r["assignee_id"],
                name=r.get("assignee_name"),
                email=r.get("assignee_email"),
            ),
            status=TaskStatus(r["status"]),
            priority=TaskPriority(r["priority"]),
            created_at=parse_timestamp(r["created_at"]) if r.get("created_at") else None,
            updated_at=parse_timestamp(r["updated_at"]) if r.get("updated_at") else None,
        )

    def with_changes(self, changes: Mapping[str, Any]) -> "Task":
        """Return a copy with already-coerced field values applied.

        A bare assignee id becomes an unresolved AssigneeRef until the store
        hands back the canonical record.
        """
        values = dict(changes)
        if "assignee" in values and not isinstance(values["assignee"], AssigneeRef):
            values["assignee"] = AssigneeRef(id=str(values["assignee"]))
        return replace(self, **values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "desc": self.desc,
            "note": self.note,
            "start_date": to_iso(self.start_date),
            "assign_date": to_iso(self.assign_date),
            "expected_delivery_date": to_iso(self.expected_delivery_date),
            "actual_delivery_date": to_iso(self.actual_delivery_date),
            "assignee": {"id": self.assignee.id, "name": self.assignee.name, "email": self.assignee.email},
            "status": self.status.value,
            "priority": self.priority.value,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }


@dataclass(frozen=True)
class User:
    id: str
    email: str
    role: Role = Role.MEMBER
    name: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row | Mapping[str, Any]) -> "User":
        r = dict(row)
        return cls(id=r["id"], email=r["email"], role=Role.parse(r["role"]), name=r.get("name"))


@dataclass(frozen=True)
class Session:
    """An authenticated caller. Issued elsewhere; the store only reads it."""
    user_id: str
    role: Role = field(default=Role.MEMBER)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
