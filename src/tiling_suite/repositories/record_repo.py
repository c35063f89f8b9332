"""Base repository for entities stored as JSON blobs."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from tiling_suite.logging_config import get_logger

M = TypeVar("M")


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class JsonRecordRepo(Generic[M]):
    """CRUD over a ``(id, data, updated_at)`` table.

    Subclasses set ``table`` and the two mapper callables. Nothing here
    commits; callers own the transaction.
    """

    table: str = ""
    from_data: Callable[[Any], M]
    to_data: Callable[[M], dict[str, Any]]

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._logger = get_logger(self.__class__.__name__)

    def _row_to_entity(self, row: sqlite3.Row) -> M:
        return type(self).from_data(json.loads(row["data"]))

    def upsert(self, entity: M) -> M:
        entity_id = getattr(entity, "id")
        payload = json.dumps(type(self).to_data(entity), ensure_ascii=False)
        try:
            self._connection.execute(
                f"""
                INSERT INTO {self.table} (id, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (entity_id, payload, _now_iso()),
            )
        except Exception:
            self._logger.exception("Failed to save %s id=%s", self.table, entity_id)
            raise
        return entity

    def get_by_id(self, entity_id: str) -> Optional[M]:
        try:
            row = self._connection.execute(
                f"SELECT data FROM {self.table} WHERE id = ?", (entity_id,)
            ).fetchone()
        except Exception:
            self._logger.exception("Failed to fetch %s id=%s", self.table, entity_id)
            raise
        return self._row_to_entity(row) if row else None

    def list_all(self) -> list[M]:
        """Most recently created first."""
        try:
            rows = self._connection.execute(
                f"SELECT data FROM {self.table} ORDER BY rowid DESC"
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list %s", self.table)
            raise
        return [self._row_to_entity(row) for row in rows]

    def delete(self, entity_id: str) -> bool:
        try:
            cursor = self._connection.execute(
                f"DELETE FROM {self.table} WHERE id = ?", (entity_id,)
            )
        except Exception:
            self._logger.exception("Failed to delete %s id=%s", self.table, entity_id)
            raise
        return cursor.rowcount > 0

    def delete_many(self, entity_ids: Iterable[str]) -> int:
        ids = list(entity_ids)
        if not ids:
            return 0
        placeholders = ", ".join("?" for _ in ids)
        try:
            cursor = self._connection.execute(
                f"DELETE FROM {self.table} WHERE id IN ({placeholders})", ids
            )
        except Exception:
            self._logger.exception("Failed to delete %d %s", len(ids), self.table)
            raise
        return cursor.rowcount

    def clear(self) -> None:
        try:
            self._connection.execute(f"DELETE FROM {self.table}")
        except Exception:
            self._logger.exception("Failed to clear %s", self.table)
            raise

    def replace_all(self, entities: Iterable[M]) -> int:
        """Drop every stored row and write ``entities`` in their place.

        ``entities`` is given in listing order, so it is inserted back to front.
        """
        self.clear()
        count = 0
        for entity in reversed(list(entities)):
            self.upsert(entity)
            count += 1
        return count
