"""SQLite connection helpers."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from tiling_suite.paths import get_db_path


def get_connection(database_path: Path | str | None = None) -> sqlite3.Connection:
    """Open the local store; ``None`` means the per-user database file."""
    if database_path is None:
        database_path = get_db_path()
    connection = sqlite3.connect(database_path)
    connection.row_factory = sqlite3.Row
    return connection


@contextmanager
def transaction(connection: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Commit on success, roll back and re-raise on any error."""
    try:
        yield connection
    except Exception:
        connection.rollback()
        raise
    else:
        connection.commit()
