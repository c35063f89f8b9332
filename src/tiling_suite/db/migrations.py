"""Schema versioning for the local SQLite store."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from tiling_suite.db.connection import transaction

COLLECTION_TABLES: tuple[str, ...] = ("quotations", "invoices", "clients", "expenses")


@dataclass(frozen=True)
class Migration:
    version: int
    script: str


def _collection_table(name: str) -> str:
    return f"""
        CREATE TABLE IF NOT EXISTS {name} (
            id TEXT PRIMARY KEY,
            data TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_{name}_updated_at
            ON {name}(updated_at);
    """


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        script="".join(_collection_table(name) for name in COLLECTION_TABLES),
    ),
    Migration(
        version=2,
        script="""
        CREATE INDEX IF NOT EXISTS idx_expenses_date
            ON expenses(json_extract(data, '$.date'));
        CREATE INDEX IF NOT EXISTS idx_invoices_quotation_id
            ON invoices(json_extract(data, '$.quotationId'));
        """,
    ),
]


def _fetch_schema_version(connection: sqlite3.Connection) -> int:
    connection.execute(
        "CREATE TABLE IF NOT EXISTS app_meta (schema_version INTEGER NOT NULL)"
    )
    row = connection.execute("SELECT schema_version FROM app_meta LIMIT 1").fetchone()
    if row is None:
        connection.execute("INSERT INTO app_meta (schema_version) VALUES (0)")
        return 0
    return int(row[0])


def get_schema_version(connection: sqlite3.Connection) -> int:
    with transaction(connection):
        return _fetch_schema_version(connection)


def apply_migrations(connection: sqlite3.Connection) -> int:
    """Apply pending migrations and return the resulting schema version."""
    current_version = get_schema_version(connection)

    for migration in MIGRATIONS:
        if migration.version <= current_version:
            continue
        with transaction(connection):
            connection.executescript(migration.script)
            connection.execute(
                "UPDATE app_meta SET schema_version = ?", (migration.version,)
            )
        current_version = migration.version
    return current_version
