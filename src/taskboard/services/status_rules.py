# taskboard – status transition engine (Rev 0.1.0)
"""Stage transitions and derived fields for task mutations.

The default transition table lets any stage move to any stage. Reaching the
terminal stage stamps ``actual_delivery_date`` once; later re-submissions of
``done`` leave the stamp alone, and nothing here ever clears it.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Set

from ..models.entities import AssigneeRef, Task
from ..models.types import STAGES, TERMINAL_STAGE, TaskPriority, TaskStatus
from ..utils.timeutil import parse_date, parse_timestamp
from .errors import InvalidArgument, NotFound
from .permission_policy import MUTABLE_FIELDS

REQUIRED_ON_CREATE = ("title", "start_date", "assign_date", "expected_delivery_date", "assignee")
DATE_FIELDS = ("start_date", "assign_date", "expected_delivery_date")


class TransitionTable:
    """Allowed stage moves. ``None`` means every stage may reach every stage."""

    def __init__(self, transitions: Optional[Mapping[TaskStatus, Iterable[TaskStatus]]] = None):
        self._transitions = (
            None if transitions is None
            else {TaskStatus(k): {TaskStatus(t) for t in v} for k, v in transitions.items()}
        )

    def is_allowed(self, from_status: TaskStatus, to_status: TaskStatus) -> bool:
        if from_status == to_status or self._transitions is None:
            return True
        return to_status in self._transitions.get(from_status, set())

    def allowed_transitions(self, from_status: TaskStatus) -> Set[TaskStatus]:
        if self._transitions is None:
            return {s for s in STAGES if s != from_status}
        return set(self._transitions.get(from_status, set()))


PERMISSIVE = TransitionTable()


def parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise InvalidArgument(f"Invalid status: {value!r}") from None


def parse_priority(value: Any) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        raise InvalidArgument(f"Invalid priority: {value!r}") from None


def _text(name: str, value: Any, *, required: bool) -> Optional[str]:
    if value is None:
        if required:
            raise InvalidArgument(f"{name} is required")
        return None
    if not isinstance(value, str):
        raise InvalidArgument(f"{name} must be text")
    value = value.strip()
    if required and not value:
        raise InvalidArgument(f"{name} is required")
    return value


def coerce_fields(proposed: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate and convert raw field values into their entity types."""
    unknown = set(proposed) - MUTABLE_FIELDS
    if unknown:
        raise InvalidArgument(f"Unknown task fields: {', '.join(sorted(unknown))}")

    out: Dict[str, Any] = {}
    for name, value in proposed.items():
        if name == "title":
            out[name] = _text(name, value, required=True)
        elif name in ("desc", "note"):
            out[name] = _text(name, value, required=False)
        elif name in DATE_FIELDS:
            if value is None or value == "":
                raise InvalidArgument(f"{name} is required")
            try:
                out[name] = parse_date(value)
            except (TypeError, ValueError):
                raise InvalidArgument(f"Invalid date for {name}: {value!r}") from None
        elif name == "actual_delivery_date":
            if value is None or value == "":
                out[name] = None
                continue
            try:
                out[name] = parse_timestamp(value)
            except (TypeError, ValueError):
                raise InvalidArgument(f"Invalid date for {name}: {value!r}") from None
        elif name == "assignee":
            if isinstance(value, AssigneeRef):
                value = value.id
            if value is None or not str(value).strip():
                raise InvalidArgument("Assignee is required")
            out[name] = str(value).strip()
        elif name == "status":
            out[name] = parse_status(value)
        elif name == "priority":
            out[name] = parse_priority(value)
    return out


def _stamp_if_done(values: Dict[str, Any], status: TaskStatus, delivered: Optional[datetime], now: datetime) -> None:
    if status is TERMINAL_STAGE and delivered is None:
        values["actual_delivery_date"] = now


def apply(
    current: Optional[Task],
    proposed: Mapping[str, Any],
    *,
    now: datetime,
    table: TransitionTable = PERMISSIVE,
) -> Dict[str, Any]:
    """Compute the changes to persist for ``proposed`` against ``current``.

    Returns the coerced proposal plus derived fields. Fields not named in the
    proposal are left to the stored record.
    """
    if current is None:
        raise NotFound("Task not found")

    changes = coerce_fields(proposed)
    new_status = changes.get("status", current.status)
    if not table.is_allowed(current.status, new_status):
        raise InvalidArgument(
            f"Transition {current.status.value} -> {new_status.value} is not allowed"
        )

    # only a request naming status may stamp; a note edit stays a note edit
    if "status" in changes:
        delivered = changes["actual_delivery_date"] if "actual_delivery_date" in changes else current.actual_delivery_date
        _stamp_if_done(changes, new_status, delivered, now)
    return changes


def prepare_new(proposed: Mapping[str, Any], *, now: datetime) -> Dict[str, Any]:
    """Validate a creation payload and fill defaults."""
    missing = [f for f in REQUIRED_ON_CREATE if proposed.get(f) in (None, "")]
    if missing:
        raise InvalidArgument("Missing required fields", fields=missing)

    # blank status/priority fall back to the defaults
    values = coerce_fields({
        k: v for k, v in proposed.items()
        if not (k in ("status", "priority") and v in (None, ""))
    })
    values.setdefault("status", TaskStatus.TODO)
    values.setdefault("priority", TaskPriority.MEDIUM)
    _stamp_if_done(values, values["status"], values.get("actual_delivery_date"), now)
    return values
