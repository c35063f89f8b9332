"""Best-effort mirroring of local records to the hosted PostgREST backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from tiling_suite.config import RemoteConfig

logger = logging.getLogger(__name__)

QUOTATIONS = "quotations"
INVOICES = "invoices"
CLIENTS = "clients"
EXPENSES = "expenses"
SETTINGS = "settings"

COLLECTIONS: tuple[str, ...] = (QUOTATIONS, INVOICES, CLIENTS, EXPENSES)
SETTINGS_RECORD_ID = "user_settings"


@dataclass(frozen=True)
class Session:
    """An already-authenticated user session."""

    user_id: str
    access_token: str
    email: str = ""


@dataclass
class RemoteSnapshot:
    """Everything stored remotely for one user, as raw ``data`` blobs."""

    collections: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    settings: Optional[dict[str, Any]] = None

    def records(self, table: str) -> list[dict[str, Any]]:
        return self.collections.get(table, [])


class RemoteSync:
    """Upserts and deletes records keyed by ``(id, user_id)``.

    Every call is a no-op returning ``False``/``None`` while the backend is
    unconfigured or nobody is signed in. HTTP failures are logged and never
    raised; local state is the source of truth.
    """

    def __init__(
        self, config: RemoteConfig, client: Optional[httpx.Client] = None
    ) -> None:
        self._config = config
        self._client = client or httpx.Client(timeout=config.timeout)
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def enabled(self) -> bool:
        return self._config.is_configured and self._session is not None

    def start(self, session: Session) -> None:
        self._session = session

    def end(self) -> None:
        self._session = None

    def close(self) -> None:
        self._client.close()

    def _endpoint(self, table: str) -> str:
        return f"{self._config.url}/rest/v1/{table}"

    def _headers(self, session: Session) -> dict[str, str]:
        return {
            "apikey": self._config.anon_key,
            "Authorization": f"Bearer {session.access_token}",
            "Content-Type": "application/json",
        }

    def _select(self, table: str, session: Session) -> list[dict[str, Any]]:
        response = self._client.get(
            self._endpoint(table),
            params={"select": "*", "user_id": f"eq.{session.user_id}"},
            headers=self._headers(session),
        )
        response.raise_for_status()
        rows = response.json()
        if not isinstance(rows, list):
            return []
        return [row["data"] for row in rows if isinstance(row, dict) and row.get("data")]

    def load_all(self) -> Optional[RemoteSnapshot]:
        """Fetch every collection plus settings; ``None`` on any failure."""
        session = self._session
        if session is None or not self._config.is_configured:
            return None
        snapshot = RemoteSnapshot()
        try:
            for table in COLLECTIONS:
                snapshot.collections[table] = self._select(table, session)
            settings_rows = self._select(SETTINGS, session)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Error loading remote data: %s", exc)
            return None
        snapshot.settings = settings_rows[0] if settings_rows else None
        return snapshot

    def upsert(self, table: str, record_id: str, data: dict[str, Any]) -> bool:
        session = self._session
        if session is None or not self._config.is_configured:
            return False
        record = {
            "id": record_id,
            "user_id": session.user_id,
            "data": data,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        headers = self._headers(session)
        headers["Prefer"] = "resolution=merge-duplicates,return=minimal"
        try:
            response = self._client.post(
                self._endpoint(table), json=record, headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Error syncing %s id=%s: %s", table, record_id, exc)
            return False
        return True

    def delete(self, table: str, record_id: str) -> bool:
        session = self._session
        if session is None or not self._config.is_configured:
            return False
        try:
            response = self._client.delete(
                self._endpoint(table),
                params={
                    "id": f"eq.{record_id}",
                    "user_id": f"eq.{session.user_id}",
                },
                headers=self._headers(session),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Error deleting from %s id=%s: %s", table, record_id, exc)
            return False
        return True
