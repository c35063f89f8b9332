"""Sign-in and sign-out against the hosted backend."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from tiling_suite.repositories import ClientRepo, ExpenseRepo, InvoiceRepo, QuotationRepo
from tiling_suite.repositories.mappers import (
    client_from_data,
    expense_from_data,
    invoice_from_data,
    quotation_from_data,
    settings_from_data,
)
from tiling_suite.services.settings_service import SettingsService
from tiling_suite.services.sync_service import (
    CLIENTS,
    EXPENSES,
    INVOICES,
    QUOTATIONS,
    RemoteSync,
    Session,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignInResult:
    restored: bool
    quotations: int = 0
    invoices: int = 0
    clients: int = 0
    expenses: int = 0
    settings_restored: bool = False


class SessionService:
    """Owns the current session and the local data tied to it."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        sync: RemoteSync,
        settings_service: SettingsService,
    ) -> None:
        self._connection = connection
        self._sync = sync
        self._settings_service = settings_service
        self._quotations = QuotationRepo(connection)
        self._invoices = InvoiceRepo(connection)
        self._clients = ClientRepo(connection)
        self._expenses = ExpenseRepo(connection)

    @property
    def session(self) -> Session | None:
        return self._sync.session

    @property
    def is_signed_in(self) -> bool:
        return self._sync.session is not None

    def sign_in(self, session: Session) -> SignInResult:
        """Start ``session`` and replace local data with the remote copy.

        Local data is left alone when the remote load fails.
        """
        self._sync.start(session)
        snapshot = self._sync.load_all()
        if snapshot is None:
            logger.info("Signed in without remote data for user %s", session.user_id)
            return SignInResult(restored=False)

        with self._connection:
            quotations = self._quotations.replace_all(
                quotation_from_data(data) for data in snapshot.records(QUOTATIONS)
            )
            invoices = self._invoices.replace_all(
                invoice_from_data(data) for data in snapshot.records(INVOICES)
            )
            clients = self._clients.replace_all(
                client_from_data(data) for data in snapshot.records(CLIENTS)
            )
            expenses = self._expenses.replace_all(
                expense_from_data(data) for data in snapshot.records(EXPENSES)
            )
        settings_restored = snapshot.settings is not None
        if settings_restored:
            self._settings_service.replace(settings_from_data(snapshot.settings), push=False)
        logger.info("Restored remote data for user %s", session.user_id)
        return SignInResult(
            restored=True,
            quotations=quotations,
            invoices=invoices,
            clients=clients,
            expenses=expenses,
            settings_restored=settings_restored,
        )

    def sign_out(self) -> bool:
        """End the session and clear local collections; settings are kept."""
        if self._sync.session is None:
            return False
        self._sync.end()
        with self._connection:
            for repo in (self._quotations, self._invoices, self._clients, self._expenses):
                repo.clear()
        logger.info("Signed out; local collections cleared.")
        return True
