# Rev 0.1.0

"""Pytest fixtures for taskboard (Rev 0.1.0)"""
from __future__ import annotations
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from taskboard.models.entities import Session
from taskboard.models.types import Role
from taskboard.repositories.db import Database
from taskboard.repositories.sqlite_task_repository import SQLiteTaskRepository
from taskboard.repositories.sqlite_user_repository import SQLiteUserRepository
from taskboard.services.task_service import TaskService


class FixedClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kw) -> datetime:
        self.now = self.now + timedelta(**kw)
        return self.now


def task_fields(assignee_id: str, **overrides):
    base = {
        "title": "Write quarterly report",
        "desc": "Numbers for Q1",
        "start_date": "2026-01-05",
        "assign_date": "2026-01-05",
        "expected_delivery_date": "2026-01-20",
        "assignee": assignee_id,
    }
    base.update(overrides)
    return base


@pytest.fixture()
def db(tmp_path: Path):
    database = Database(path=tmp_path / "test.db")
    try:
        database.run_migrations()
        yield database
    finally:
        database.close()


@pytest.fixture()
def db_conn(db):
    return db.conn


@pytest.fixture()
def users_repo(db) -> SQLiteUserRepository:
    return SQLiteUserRepository(db)


@pytest.fixture()
def tasks_repo(db) -> SQLiteTaskRepository:
    return SQLiteTaskRepository(db)


@pytest.fixture()
def admin(users_repo):
    return users_repo.create_user(email="ada@example.com", role=Role.ADMIN, name="Ada")


@pytest.fixture()
def member(users_repo):
    return users_repo.create_user(email="bob@example.com", role=Role.MEMBER, name="Bob")


@pytest.fixture()
def other_member(users_repo):
    return users_repo.create_user(email="cy@example.com", role=Role.MEMBER, name="Cy")


@pytest.fixture()
def admin_session(admin) -> Session:
    return Session(user_id=admin.id, role=Role.ADMIN)


@pytest.fixture()
def member_session(member) -> Session:
    return Session(user_id=member.id, role=Role.MEMBER)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def service(tasks_repo, users_repo, clock) -> TaskService:
    return TaskService(tasks_repo, users_repo, clock=clock)


@pytest.fixture()
def make_task(service, admin_session, member, clock):
    """Create a task as the admin, assigned to ``member`` unless overridden."""
    def _make(**overrides):
        clock.advance(seconds=1)
        return service.create_task(admin_session, task_fields(member.id, **overrides))
    return _make


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep the developer's own settings.json out of the tests."""
    from taskboard.utils import config
    monkeypatch.setattr(config, "SETTINGS_FILE", tmp_path / "settings.json")
