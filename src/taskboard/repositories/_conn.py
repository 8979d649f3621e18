# taskboard – connection resolution shared by the SQLite repositories
from __future__ import annotations
import sqlite3
from typing import Any, Union


def resolve_conn(db_or_conn: Union[sqlite3.Connection, Any], owner: str) -> sqlite3.Connection:
    """Accept a raw Connection, a wrapper with ``.conn``, or one with ``.connect()``."""
    if isinstance(db_or_conn, sqlite3.Connection):
        return db_or_conn
    if hasattr(db_or_conn, "conn") and isinstance(db_or_conn.conn, sqlite3.Connection):
        return db_or_conn.conn
    if hasattr(db_or_conn, "connect"):
        maybe = db_or_conn.connect()
        if isinstance(maybe, sqlite3.Connection):
            return maybe
    raise RuntimeError(
        f"{owner}: could not obtain sqlite3.Connection "
        "(expected .conn or .connect() on wrapper, or a raw Connection)."
    )
