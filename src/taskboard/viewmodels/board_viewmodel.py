# Rev 0.1.0 - optimistic board sync
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, List, Mapping, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from ..models.entities import Session, Task
from ..models.types import STAGES, MutationKind, TaskStatus
from ..services import permission_policy as policy
from ..services import status_rules
from ..services.errors import InvalidArgument, TaskboardError, code_for
from ..services.task_service import normalize_fields
from ..utils.config import load_settings
from ..utils.logging_setup import get_logger
from .drag_events import DragEnd, DragEvent, DragOver, DragStart


@dataclass
class PendingMutation:
    task_id: str
    fields: Dict[str, Any]      # sent to the store as-is
    kind: MutationKind
    before: Task                # local record before the optimistic rewrite
    overlay: Dict[str, Any]     # coerced values applied locally


@dataclass(frozen=True)
class MutationResult:
    task_id: str
    ok: bool
    code: str                   # "applied", "discarded" or an error code
    record: Optional[Task] = None
    message: str = ""


@dataclass
class DragState:
    task_id: str
    before: Task
    hover: Optional[TaskStatus] = None


class BoardViewModel(QObject):
    """
    Client-side shadow of the task collection for one session.

    Mutations are applied to the local snapshot first, then sent to the store
    one at a time. A success replaces the local record with the canonical one;
    any failure throws the snapshot away and reloads it in full.

    Emits:
      - boardChanged(tasks: list[Task])         visible tasks, store order
      - mutationSettled(result: MutationResult)
      - loadFailed(code: str)
    """

    boardChanged = Signal(object)
    mutationSettled = Signal(object)
    loadFailed = Signal(str)

    def __init__(self, service, session: Session, *, auto_dispatch: Optional[bool] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._service = service
        self._session = session
        if auto_dispatch is None:
            auto_dispatch = bool(load_settings()["board"]["auto_dispatch"])
        self._auto_dispatch = auto_dispatch

        self._tasks: Dict[str, Task] = {}
        self._pending: Deque[PendingMutation] = deque()
        self._in_flight: Optional[PendingMutation] = None
        self._drag: Optional[DragState] = None
        self._assignee_filter: Optional[str] = None
        self._timer: Optional[QTimer] = None
        self._log = get_logger("BoardViewModel")

    # ---- state
    @property
    def session(self) -> Session:
        return self._session

    @property
    def pending(self) -> tuple[PendingMutation, ...]:
        return tuple(self._pending)

    @property
    def in_flight(self) -> Optional[PendingMutation]:
        return self._in_flight

    @property
    def drag(self) -> Optional[DragState]:
        return self._drag

    def task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def tasks(self) -> List[Task]:
        rows = list(self._tasks.values())
        if self._assignee_filter is not None:
            rows = [t for t in rows if t.assignee.id == self._assignee_filter]
        return rows

    def columns(self) -> Dict[TaskStatus, List[Task]]:
        """Visible tasks grouped by stage, in board column order."""
        cols: Dict[TaskStatus, List[Task]] = {s: [] for s in STAGES}
        for t in self.tasks():
            cols[t.status].append(t)
        return cols

    def set_assignee_filter(self, user_id: Optional[str]) -> None:
        self._assignee_filter = user_id or None
        self._emit_board()

    # ---- queries
    def reload(self) -> bool:
        """Replace the snapshot with the store's collection."""
        try:
            rows = self._service.list_tasks(self._session)
        except TaskboardError as e:
            self._log.warning("Board reload failed (%s): %s", e.code, e.message)
            self.loadFailed.emit(e.code)
            return False
        except Exception as e:
            self._log.exception("Board reload failed")
            self.loadFailed.emit(code_for(e))
            return False

        self._tasks = {t.id: t for t in rows}
        # unconfirmed local changes stay visible over the fresh rows
        for m in self._unsettled():
            if m.task_id in self._tasks:
                self._tasks[m.task_id] = self._tasks[m.task_id].with_changes(m.overlay)
        self._emit_board()
        return True

    def start_auto_reload(self, interval_ms: Optional[int] = None) -> None:
        if interval_ms is None:
            interval_ms = load_settings()["board"]["reload_interval_ms"]
        if self._timer is None:
            self._timer = QTimer(self)
            self._timer.timeout.connect(self.reload)
        self._timer.start(int(interval_ms))

    def stop_auto_reload(self) -> None:
        if self._timer is not None:
            self._timer.stop()

    @property
    def auto_reload_active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    # ---- drag gesture
    def handle(self, event: DragEvent) -> Any:
        if isinstance(event, DragStart):
            return self.on_drag_start(event.task_id)
        if isinstance(event, DragOver):
            return self.on_drag_over(event.target)
        if isinstance(event, DragEnd):
            return self.on_drag_end(event.task_id, event.target)
        raise TypeError(f"unknown drag event: {event!r}")

    def on_drag_start(self, task_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None or not policy.can_move(self._session.role):
            self._drag = None
            return False
        self._drag = DragState(task_id=task_id, before=task)
        return True

    def on_drag_over(self, target: Any) -> Optional[TaskStatus]:
        if self._drag is None:
            return None
        self._drag.hover = self._stage_of(target)
        return self._drag.hover

    def on_drag_end(self, task_id: str, target: Any) -> bool:
        """Drop ``task_id`` on ``target``; True when a move was dispatched.

        Only ends the drag begun by on_drag_start for the same task.
        """
        drag, self._drag = self._drag, None
        if drag is None or drag.task_id != task_id:
            return False
        stage = self._stage_of(target)
        if stage is None or not policy.can_move(self._session.role):
            return False
        task = self._tasks.get(task_id)
        if task is None or task.status is stage:
            return False
        return self._submit(task, {"status": stage.value}, kind="move", before=drag.before)

    # ---- commands
    def submit_edit(self, task_id: str, fields: Mapping[str, Any]) -> bool:
        """Form edit; fields the role cannot write are dropped before sending."""
        task = self._tasks.get(task_id)
        if task is None:
            return False
        fields = policy.filter_for_role(self._session.role, normalize_fields(fields))
        if not fields:
            return False
        return self._submit(task, fields, kind="edit")

    def create_task(self, fields: Mapping[str, Any]) -> Optional[Task]:
        try:
            task = self._service.create_task(self._session, fields)
        except TaskboardError as e:
            self.mutationSettled.emit(MutationResult("", False, e.code, message=e.message))
            self.reload()
            return None
        except Exception as e:
            self._log.exception("Create failed in transport")
            self.mutationSettled.emit(MutationResult("", False, code_for(e), message=str(e)))
            self.reload()
            return None
        self.reload()
        self.mutationSettled.emit(MutationResult(task.id, True, "applied", task))
        return task

    def delete_task(self, task_id: str) -> bool:
        try:
            self._service.delete_task(self._session, task_id)
        except TaskboardError as e:
            self.mutationSettled.emit(MutationResult(task_id, False, e.code, message=e.message))
            self.reload()
            return False
        except Exception as e:
            self._log.exception("Delete of %s failed in transport", task_id)
            self.mutationSettled.emit(MutationResult(task_id, False, code_for(e), message=str(e)))
            self.reload()
            return False
        self.reload()
        self.mutationSettled.emit(MutationResult(task_id, True, "applied"))
        return True

    def dispatch_pending(self) -> int:
        """Send queued mutations in order, one at a time. Returns how many settled."""
        if self._in_flight is not None:
            return 0  # the running loop picks up anything queued meanwhile
        settled = 0
        while self._pending:
            m = self._pending.popleft()
            self._in_flight = m
            try:
                record = self._service.update_task(self._session, m.task_id, m.fields)
            except TaskboardError as e:
                self._in_flight = None
                self._rollback(m, e.code, e.message)
            except Exception as e:
                self._log.exception("Mutation on %s failed in transport", m.task_id)
                self._in_flight = None
                self._rollback(m, code_for(e), str(e))
            else:
                self._in_flight = None
                self._commit(m, record)
            settled += 1
        return settled

    # ---- internals
    @staticmethod
    def _stage_of(target: Any) -> Optional[TaskStatus]:
        if isinstance(target, TaskStatus):
            return target
        try:
            return TaskStatus(target)
        except (TypeError, ValueError):
            return None

    def _unsettled(self) -> List[PendingMutation]:
        head = [self._in_flight] if self._in_flight is not None else []
        return head + list(self._pending)

    def _submit(self, task: Task, fields: Dict[str, Any], *, kind: MutationKind, before: Optional[Task] = None) -> bool:
        try:
            overlay = status_rules.coerce_fields(fields)
        except InvalidArgument as e:
            self.mutationSettled.emit(MutationResult(task.id, False, e.code, message=e.message))
            return False

        if before is None:
            before = task
        self._pending.append(PendingMutation(task.id, dict(fields), kind, before=before, overlay=overlay))
        self._tasks[task.id] = task.with_changes(overlay)
        self._emit_board()
        if self._auto_dispatch:
            self.dispatch_pending()
        return True

    def _commit(self, m: PendingMutation, record: Task) -> None:
        for later in self._pending:
            if later.task_id == m.task_id:
                record = record.with_changes(later.overlay)
        self._tasks[m.task_id] = record
        self._emit_board()
        self.mutationSettled.emit(MutationResult(m.task_id, True, "applied", record))

    def _rollback(self, m: PendingMutation, code: str, message: str) -> None:
        self._log.warning("Mutation on %s rejected (%s): %s; reloading board", m.task_id, code, message)
        # later edits of the same task were built on the rejected state
        dropped = [p for p in self._pending if p.task_id == m.task_id]
        self._pending = deque(p for p in self._pending if p.task_id != m.task_id)

        if not self.reload():
            self._tasks[m.task_id] = m.before
            self._emit_board()
        self.mutationSettled.emit(MutationResult(m.task_id, False, code, message=message))
        for p in dropped:
            self.mutationSettled.emit(MutationResult(p.task_id, False, "discarded"))

    def _emit_board(self) -> None:
        self.boardChanged.emit(self.tasks())
