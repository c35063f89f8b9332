"""Shared fixtures: temporary store, default settings and a sample quotation."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import httpx
import pytest

from tiling_suite.config import RemoteConfig
from tiling_suite.db.connection import get_connection
from tiling_suite.db.migrations import apply_migrations
from tiling_suite.domain.models import (
    Adjustment,
    ChecklistItem,
    ClientDetails,
    Material,
    Quotation,
    Settings,
    Tile,
    TileType,
)
from tiling_suite.services.sync_service import RemoteSync, Session


@pytest.fixture
def connection(tmp_path: Path) -> sqlite3.Connection:
    """SQLite database with every migration applied."""
    conn = get_connection(tmp_path / "test.db")
    apply_migrations(conn)
    yield conn
    conn.close()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "config.json"


@pytest.fixture
def settings() -> Settings:
    return Settings(tax_percentage=0.0)


@pytest.fixture
def client_details() -> ClientDetails:
    return ClientDetails(
        client_name="Ada Obi",
        client_address="12 Marina Road, Lagos",
        client_phone="08031234567",
        project_name="Lekki Duplex",
    )


@pytest.fixture
def sample_quotation(client_details: ClientDetails) -> Quotation:
    """Tiles 50,000 + materials 20,000 + workmanship 15,000, 10% profit, 50% deposit."""
    return Quotation(
        id="q-1",
        date="2024-05-10T09:30:00",
        client_details=client_details,
        tiles=[
            Tile("Sitting room floor", 4, 6.0, 10000.0, TileType.FLOOR, "60x60", "Sitting Room"),
            Tile("Kitchen wall", 2, 4.0, 5000.0, TileType.WALL, "30x60", "Kitchen"),
        ],
        materials=[Material("Cement", 2, "bags", 10000.0)],
        workmanship_rate=1500.0,
        maintenance=0.0,
        profit_percentage=10.0,
        deposit_percentage=50.0,
        checklist=[ChecklistItem("Surface preparation", True)],
        terms_and_conditions="Valid for 14 days.",
    )


@pytest.fixture
def adjusted_quotation(sample_quotation: Quotation) -> Quotation:
    sample_quotation.adjustments = [Adjustment("Discount", -3500.0)]
    return sample_quotation


class FakeBackend:
    """In-memory PostgREST tables served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.rows: dict[str, list[dict]] = {}
        self.requests: list[httpx.Request] = []
        self.fail = False

    def _user(self, request: httpx.Request) -> str:
        return request.url.params.get("user_id", "").removeprefix("eq.")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(503, json={"message": "unavailable"})
        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.rows.setdefault(table, [])
        if request.method == "GET":
            user = self._user(request)
            return httpx.Response(200, json=[row for row in rows if row["user_id"] == user])
        if request.method == "POST":
            record = json.loads(request.content)
            rows[:] = [
                row
                for row in rows
                if (row["id"], row["user_id"]) != (record["id"], record["user_id"])
            ]
            rows.append(record)
            return httpx.Response(201)
        if request.method == "DELETE":
            record_id = request.url.params.get("id", "").removeprefix("eq.")
            user = self._user(request)
            rows[:] = [row for row in rows if (row["id"], row["user_id"]) != (record_id, user)]
            return httpx.Response(204)
        return httpx.Response(405)

    def add(self, table: str, user_id: str, record_id: str, data: dict) -> None:
        self.rows.setdefault(table, []).append(
            {"id": record_id, "user_id": user_id, "data": data, "updated_at": "2024-05-01T00:00:00+00:00"}
        )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def remote_config() -> RemoteConfig:
    return RemoteConfig(url="https://project.supabase.co", anon_key="anon-key")


@pytest.fixture
def remote_sync(backend: FakeBackend, remote_config: RemoteConfig) -> RemoteSync:
    sync = RemoteSync(remote_config, httpx.Client(transport=httpx.MockTransport(backend)))
    yield sync
    sync.close()


@pytest.fixture
def session() -> Session:
    return Session(user_id="user-1", access_token="token-1", email="ada@example.com")
