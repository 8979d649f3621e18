# taskboard type definitions
# Rev 0.1.0

from __future__ import annotations
from enum import Enum
from typing import Literal


class TaskStatus(str, Enum):
    """Board stages, in column order. DONE is the terminal stage."""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    DONE = "done"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Role(str, Enum):
    """Closed set of caller roles. MEMBER is persisted as 'user'."""
    ADMIN = "admin"
    MEMBER = "user"

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        if isinstance(value, Role):
            return value
        v = str(value).strip().lower()
        if v == "member":
            return cls.MEMBER
        return cls(v)


_STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.IN_REVIEW: "In Review",
    TaskStatus.DONE: "Done",
}

STAGES: tuple[TaskStatus, ...] = tuple(TaskStatus)
TERMINAL_STAGE = TaskStatus.DONE

# Kinds of optimistic mutation the board client queues
MutationKind = Literal["move", "edit"]
