# taskboard – task store boundary (Rev 0.1.0)
"""Task store boundary: session check, permission policy, transition engine, persistence.

Every mutation runs in the same order: session -> policy -> load -> engine ->
persist. Anything rejected before the persist step leaves the stored record
untouched. Unexpected SQLite errors surface as StoreFailure.
"""
from __future__ import annotations
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..models.entities import Session, Task, User
from ..utils.logging_setup import get_logger
from ..utils.timeutil import utc_now
from . import permission_policy as policy
from . import status_rules
from .errors import Forbidden, InvalidArgument, NotFound, StoreFailure, TaskboardError, Unauthenticated
from .status_rules import PERMISSIVE, TransitionTable

# camelCase keys from JSON clients
FIELD_ALIASES: Dict[str, str] = {
    "startDate": "start_date",
    "assignDate": "assign_date",
    "expectedDeliveryDate": "expected_delivery_date",
    "actualDeliveryDate": "actual_delivery_date",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "_id": "id",
}


def normalize_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {FIELD_ALIASES.get(k, k): v for k, v in fields.items()}


class TaskService:
    def __init__(
        self,
        tasks_repo,
        users_repo,
        *,
        transitions: TransitionTable = PERMISSIVE,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._tasks = tasks_repo
        self._users = users_repo
        self._transitions = transitions
        self._clock = clock
        self._log = get_logger("TaskService")

    # ---- queries
    def list_tasks(self, session: Optional[Session], *, assignee_id: Optional[str] = None) -> List[Task]:
        self._require_session(session)
        with self._store("list"):
            return self._tasks.find_all(assignee_id=assignee_id)

    def get_task(self, session: Optional[Session], task_id: str) -> Task:
        self._require_session(session)
        with self._store("get"):
            task = self._tasks.find_by_id(task_id)
        if task is None:
            raise NotFound("Task not found", task_id=task_id)
        return task

    def list_assignees(self, session: Optional[Session]) -> List[User]:
        session = self._require_session(session)
        if not session.is_admin:
            raise Forbidden("Only admins can list users")
        with self._store("list_users"):
            return self._users.list_users()

    # ---- commands
    def create_task(self, session: Optional[Session], fields: Mapping[str, Any]) -> Task:
        session = self._require_session(session)
        try:
            policy.check_create(session.role)
            values = status_rules.prepare_new(normalize_fields(fields), now=self._clock())
            self._require_assignee(values["assignee"])
            with self._store("create"):
                task = self._tasks.create(values, now=self._clock())
        except TaskboardError as e:
            self._rejected("create", session, None, e)
            raise
        self._log.info("Task %s created by %s (status=%s)", task.id, session.user_id, task.status.value)
        return task

    def update_task(self, session: Optional[Session], task_id: str, fields: Mapping[str, Any]) -> Task:
        """Apply a partial update; returns the canonical record."""
        session = self._require_session(session)
        fields = normalize_fields(fields)
        try:
            policy.allowed_fields(session.role, fields.keys())
            with self._store("load"):
                current = self._tasks.find_by_id(task_id)
            now = self._clock()
            changes = status_rules.apply(current, fields, now=now, table=self._transitions)
            if "assignee" in changes and changes["assignee"] != current.assignee.id:
                self._require_assignee(changes["assignee"])
            with self._store("update"):
                task = self._tasks.update_by_id(task_id, changes, now=now)
        except TaskboardError as e:
            self._rejected("update", session, task_id, e)
            raise
        if task is None:
            # removed between load and write
            raise NotFound("Task not found", task_id=task_id)
        self._log.info("Task %s updated by %s: %s", task_id, session.user_id, sorted(changes))
        return task

    def delete_task(self, session: Optional[Session], task_id: str) -> None:
        session = self._require_session(session)
        try:
            policy.check_delete(session.role)
            with self._store("delete"):
                deleted = self._tasks.delete_by_id(task_id)
            if not deleted:
                raise NotFound("Task not found", task_id=task_id)
        except TaskboardError as e:
            self._rejected("delete", session, task_id, e)
            raise
        self._log.info("Task %s deleted by %s", task_id, session.user_id)

    # ---- internals
    @staticmethod
    def _require_session(session: Optional[Session]) -> Session:
        if session is None:
            raise Unauthenticated("Unauthorized")
        return session

    def _require_assignee(self, user_id: str) -> None:
        with self._store("resolve_assignee"):
            user = self._users.get_user(user_id)
        if user is None:
            raise InvalidArgument("Assignee does not exist", assignee=user_id)

    def _rejected(self, op: str, session: Session, task_id: Optional[str], err: TaskboardError) -> None:
        if isinstance(err, StoreFailure):
            return  # already logged with traceback
        self._log.info("%s rejected (%s) for %s on %s: %s", op, err.code, session.user_id, task_id, err.message)

    @contextmanager
    def _store(self, op: str):
        """Re-raise SQLite errors as StoreFailure, logging the traceback once."""
        try:
            yield
        except sqlite3.Error as e:
            self._log.exception("Store failure during %s", op)
            raise StoreFailure(f"Store failure during {op}: {e}") from e
