# File: src/taskboard/tools/manage.py
# Usage examples:
#   python -m taskboard.tools.manage migrate
#   python -m taskboard.tools.manage status
#   python -m taskboard.tools.manage add-user --email ada@example.com --role admin --name Ada
#   python -m taskboard.tools.manage add-task --as ada@example.com --title "Ship it" \
#       --start 2026-01-05 --assign 2026-01-05 --due 2026-01-20 --assignee bob@example.com
#   python -m taskboard.tools.manage board --as bob@example.com
#   python -m taskboard.tools.manage move <task_id> done --as ada@example.com
#   python -m taskboard.tools.manage note <task_id> "checked" --as bob@example.com
#
# Notes:
# - DB path defaults to env TASKBOARD_DB or $XDG_DATA_HOME/taskboard/taskboard.db
# - --as picks the acting user by email; unknown emails act without a session (401)

from __future__ import annotations

import argparse
import sqlite3
import sys
from typing import Optional, Sequence

from ..app_context import AppContext
from ..models.entities import Session
from ..models.types import STAGES, Role, TaskPriority, TaskStatus
from ..services.errors import TaskboardError
from ..utils.logging_setup import get_logger, setup_logging


def _session_for(ctx: AppContext, email: Optional[str]) -> Optional[Session]:
    if not email:
        return None
    user = ctx.users_repo.get_by_email(email)
    if user is None:
        return None
    return Session(user_id=user.id, role=user.role)


def _user_id_for(ctx: AppContext, email_or_id: str) -> str:
    user = ctx.users_repo.get_by_email(email_or_id) if "@" in email_or_id else None
    return user.id if user else email_or_id


def cmd_migrate(ctx: AppContext, args: argparse.Namespace) -> int:
    applied = ctx.db.run_migrations()
    if applied:
        for name in applied:
            print(f"✓ Applied {name}")
    else:
        print("No pending migrations.")
    return 0


def cmd_status(ctx: AppContext, args: argparse.Namespace) -> int:
    rows = ctx.db.applied_with_times()
    if not rows:
        print("No migrations applied.")
    for name, at in rows:
        print(f"{name}  {at}")
    for p in ctx.db.pending():
        print(f"{p.name}  pending")
    return 0


def cmd_add_user(ctx: AppContext, args: argparse.Namespace) -> int:
    try:
        user = ctx.users_repo.create_user(email=args.email, role=Role.parse(args.role), name=args.name)
    except sqlite3.IntegrityError:
        print(f"error 400: email already registered: {args.email}", file=sys.stderr)
        return 1
    print(f"{user.id}  {user.email}  {user.role.value}")
    return 0


def cmd_add_task(ctx: AppContext, args: argparse.Namespace) -> int:
    fields = {
        "title": args.title,
        "desc": args.desc,
        "start_date": args.start,
        "assign_date": args.assign,
        "expected_delivery_date": args.due,
        "assignee": _user_id_for(ctx, args.assignee),
        "status": args.status,
        "priority": args.priority,
    }
    task = ctx.task_service.create_task(_session_for(ctx, args.acting), fields)
    print(task.id)
    return 0


def cmd_board(ctx: AppContext, args: argparse.Namespace) -> int:
    assignee = _user_id_for(ctx, args.assignee) if args.assignee else None
    tasks = ctx.task_service.list_tasks(_session_for(ctx, args.acting), assignee_id=assignee)
    for stage in STAGES:
        column = [t for t in tasks if t.status is stage]
        print(f"== {stage.label} ({len(column)})")
        for t in column:
            who = t.assignee.name or t.assignee.email or t.assignee.id
            due = t.expected_delivery_date.isoformat()
            print(f"  {t.id}  [{t.priority.value}] {t.title}  @{who}  due {due}")
    return 0


def cmd_move(ctx: AppContext, args: argparse.Namespace) -> int:
    task = ctx.task_service.update_task(_session_for(ctx, args.acting), args.task_id, {"status": args.stage})
    delivered = task.actual_delivery_date.isoformat() if task.actual_delivery_date else "-"
    print(f"{task.id}  {task.status.value}  delivered {delivered}")
    return 0


def cmd_note(ctx: AppContext, args: argparse.Namespace) -> int:
    task = ctx.task_service.update_task(_session_for(ctx, args.acting), args.task_id, {"note": args.text})
    print(f"{task.id}  note: {task.note}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="taskboard-manage", description="taskboard maintenance and board CLI")
    p.add_argument("--db", default=None, help="SQLite file (default: TASKBOARD_DB or XDG data dir)")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("migrate", help="apply pending migrations").set_defaults(func=cmd_migrate)
    sub.add_parser("status", help="list applied migrations").set_defaults(func=cmd_status)

    u = sub.add_parser("add-user", help="register a user the board can assign")
    u.add_argument("--email", required=True)
    u.add_argument("--role", choices=[r.value for r in Role] + ["member"], default=Role.MEMBER.value)
    u.add_argument("--name")
    u.set_defaults(func=cmd_add_user)

    t = sub.add_parser("add-task", help="create a task (admin)")
    t.add_argument("--as", dest="acting", required=True)
    t.add_argument("--title", required=True)
    t.add_argument("--desc")
    t.add_argument("--start", required=True)
    t.add_argument("--assign", required=True)
    t.add_argument("--due", required=True)
    t.add_argument("--assignee", required=True, help="user email or id")
    t.add_argument("--status", choices=[s.value for s in TaskStatus])
    t.add_argument("--priority", choices=[s.value for s in TaskPriority])
    t.set_defaults(func=cmd_add_task)

    b = sub.add_parser("board", help="print the board")
    b.add_argument("--as", dest="acting", required=True)
    b.add_argument("--assignee", help="only this user's tasks (email or id)")
    b.set_defaults(func=cmd_board)

    m = sub.add_parser("move", help="move a task to a stage")
    m.add_argument("task_id")
    m.add_argument("stage", choices=[s.value for s in TaskStatus])
    m.add_argument("--as", dest="acting", required=True)
    m.set_defaults(func=cmd_move)

    n = sub.add_parser("note", help="set a task's note")
    n.add_argument("task_id")
    n.add_argument("text")
    n.add_argument("--as", dest="acting", required=True)
    n.set_defaults(func=cmd_note)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    ctx = AppContext.create(args.db, migrate=args.command not in ("migrate", "status"))
    try:
        return args.func(ctx, args)
    except TaskboardError as e:
        get_logger("manage").info("%s failed: %s", args.command, e.message)
        print(f"error {e.status}: {e.message}", file=sys.stderr)
        return 1
    finally:
        ctx.close()


def run() -> int:
    """Console-script entry: file logging only, stdout stays for command output."""
    setup_logging(console=False)
    return main()


if __name__ == "__main__":
    sys.exit(run())
