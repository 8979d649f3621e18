# taskboard application context
# Rev 0.1.0

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from .utils.logging_setup import get_logger
from .repositories.db import Database
from .repositories.sqlite_task_repository import SQLiteTaskRepository
from .repositories.sqlite_user_repository import SQLiteUserRepository
from .services.task_service import TaskService


@dataclass
class AppContext:
    """Central container for shared app resources."""
    db_path: Path
    db: Database
    tasks_repo: SQLiteTaskRepository
    users_repo: SQLiteUserRepository
    task_service: TaskService

    @classmethod
    def create(cls, db_path: Optional[Path | str] = None, *, migrate: bool = True) -> "AppContext":
        """Open the DB, apply pending migrations, wire repositories and services."""
        log = get_logger("AppContext")
        db = Database(db_path)
        if migrate:
            db.run_migrations()
        tasks_repo = SQLiteTaskRepository(db)
        users_repo = SQLiteUserRepository(db)
        service = TaskService(tasks_repo, users_repo)
        log.info("AppContext initialized with DB=%s", db.path)
        return cls(db_path=db.path, db=db, tasks_repo=tasks_repo, users_repo=users_repo, task_service=service)

    def close(self) -> None:
        self.db.close()
