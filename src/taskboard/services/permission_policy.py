# taskboard – permission policy (Rev 0.1.0)
"""Which task fields each role may write.

Pure checks, evaluated fresh on every request. Admins may write any mutable
task field; members may write ``note`` and nothing else. A member request that
touches any other field is rejected whole; fields are never silently dropped
on the store side.
"""
from __future__ import annotations
from typing import AbstractSet, Any, Dict, Iterable, Mapping

from ..models.types import Role
from .errors import Forbidden, InvalidArgument

MUTABLE_FIELDS: frozenset[str] = frozenset({
    "title",
    "desc",
    "note",
    "start_date",
    "assign_date",
    "expected_delivery_date",
    "actual_delivery_date",
    "assignee",
    "status",
    "priority",
})
SYSTEM_FIELDS: frozenset[str] = frozenset({"id", "created_at", "updated_at"})
MEMBER_FIELDS: frozenset[str] = frozenset({"note"})


def writable_fields(role: Role) -> frozenset[str]:
    return MUTABLE_FIELDS if Role.parse(role) is Role.ADMIN else MEMBER_FIELDS


def allowed_fields(role: Role, requested: Iterable[str]) -> frozenset[str]:
    """Return the requested field set if ``role`` may write all of it.

    Raises Forbidden for a member request naming anything besides ``note``
    (or naming nothing), InvalidArgument for an admin request naming a
    field outside the mutable task schema.
    """
    role = Role.parse(role)
    fields = frozenset(requested)

    if role is Role.MEMBER:
        extra = fields - MEMBER_FIELDS
        if extra or not fields:
            raise Forbidden(
                "You can only update the note field",
                role=role.value,
                fields=sorted(extra),
            )
        return fields

    immutable = fields & SYSTEM_FIELDS
    if immutable:
        raise InvalidArgument(f"Fields are not writable: {', '.join(sorted(immutable))}")
    unknown = fields - MUTABLE_FIELDS
    if unknown:
        raise InvalidArgument(f"Unknown task fields: {', '.join(sorted(unknown))}")
    return fields


def check_create(role: Role) -> None:
    if Role.parse(role) is not Role.ADMIN:
        raise Forbidden("Only admins can create tasks")


def check_delete(role: Role) -> None:
    if Role.parse(role) is not Role.ADMIN:
        raise Forbidden("Only admins can delete tasks")


def can_move(role: Role) -> bool:
    """Dragging a card rewrites ``status``."""
    return "status" in writable_fields(role)


def filter_for_role(role: Role, fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Client-side mirror of allowed_fields: drop what the role cannot write.

    Used before dispatch so a member's edit form only sends ``note``; the
    store still runs allowed_fields on whatever arrives.
    """
    keep: AbstractSet[str] = writable_fields(role)
    return {k: v for k, v in fields.items() if k in keep}
