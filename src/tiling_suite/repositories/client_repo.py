"""Repository for client persistence."""

from __future__ import annotations

from tiling_suite.domain.models import Client
from tiling_suite.repositories.mappers import client_from_data, client_to_data
from tiling_suite.repositories.record_repo import JsonRecordRepo


class ClientRepo(JsonRecordRepo[Client]):
    table = "clients"
    from_data = staticmethod(client_from_data)
    to_data = staticmethod(client_to_data)

    def list_by_name(self) -> list[Client]:
        try:
            rows = self._connection.execute(
                """
                SELECT data
                FROM clients
                ORDER BY lower(json_extract(data, '$.name')), id
                """
            ).fetchall()
        except Exception:
            self._logger.exception("Failed to list clients")
            raise
        return [self._row_to_entity(row) for row in rows]
