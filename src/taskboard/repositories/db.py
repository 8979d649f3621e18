# Rev 0.1.0

"""SQLite connection & migration runner (Rev 0.1.0)
- WAL mode, foreign_keys=ON, rows as sqlite3.Row
- Applies taskboard/migrations/*.sql in lexical order
- Tracks applied files in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
"""
from __future__ import annotations
import sqlite3
from pathlib import Path

from ..utils.logging_setup import get_logger
from ..utils.paths import MIGRATIONS_DIR, db_path
from ..utils.timeutil import to_iso, utc_now


class Database:
    def __init__(self, path: Path | str | None = None) -> None:
        self._log = get_logger("Database")
        self.path = Path(path) if path is not None else db_path()
        if str(self.path) != ":memory:":
            self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.path), isolation_level=None, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        self._log.info("SQLite open %s", self.path)

    def close(self) -> None:
        self.conn.close()

    def applied(self) -> set[str]:
        return {r[0] for r in self.conn.execute("SELECT filename FROM schema_migrations")}

    def applied_with_times(self) -> list[tuple[str, str]]:
        rows = self.conn.execute("SELECT filename, applied_at FROM schema_migrations ORDER BY filename")
        return [(r[0], r[1]) for r in rows]

    def pending(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[Path]:
        done = self.applied()
        return [p for p in sorted(Path(migrations_dir).glob("*.sql")) if p.name not in done]

    def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
        """Apply pending files; returns their names in the order applied."""
        names = []
        for p in self.pending(migrations_dir):
            self.conn.executescript(p.read_text(encoding="utf-8"))
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
                (p.name, to_iso(utc_now())),
            )
            self._log.info("Applied migration %s", p.name)
            names.append(p.name)
        return names
