"""Service container for the command-line front-end."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import httpx

from tiling_suite.config import AiConfig, RemoteConfig, load_ai_config, load_remote_config
from tiling_suite.services.assistant import QuotationAssistant, build_assistant
from tiling_suite.services.client_service import ClientService
from tiling_suite.services.expense_service import ExpenseService
from tiling_suite.services.export_service import ExportService
from tiling_suite.services.invoice_service import InvoiceService
from tiling_suite.services.quotation_service import QuotationService
from tiling_suite.services.session_service import SessionService
from tiling_suite.services.settings_service import SettingsService
from tiling_suite.services.sync_service import RemoteSync


@dataclass(frozen=True)
class AppServices:
    """Shared services for dependency injection."""

    connection: sqlite3.Connection
    config_path: Path
    sync: RemoteSync
    assistant: QuotationAssistant
    settings_service: SettingsService
    quotation_service: QuotationService
    invoice_service: InvoiceService
    client_service: ClientService
    expense_service: ExpenseService
    session_service: SessionService
    export_service: ExportService

    def close(self) -> None:
        self.sync.close()
        self.connection.close()


def build_services(
    connection: sqlite3.Connection,
    config_path: Path,
    *,
    remote_config: Optional[RemoteConfig] = None,
    ai_config: Optional[AiConfig] = None,
    http_client: Optional[httpx.Client] = None,
    ai_client: Optional[Any] = None,
) -> AppServices:
    """Wire every service around one connection and one sync client."""
    sync = RemoteSync(remote_config or load_remote_config(), http_client)
    assistant = build_assistant(ai_config or load_ai_config(), ai_client)
    settings_service = SettingsService(config_path, sync)
    return AppServices(
        connection=connection,
        config_path=config_path,
        sync=sync,
        assistant=assistant,
        settings_service=settings_service,
        quotation_service=QuotationService(connection, assistant, sync),
        invoice_service=InvoiceService(connection, sync),
        client_service=ClientService(connection, sync),
        expense_service=ExpenseService(connection, sync),
        session_service=SessionService(connection, sync, settings_service),
        export_service=ExportService(),
    )
