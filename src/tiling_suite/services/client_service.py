"""Client directory."""

from __future__ import annotations

import sqlite3
import uuid
from collections import Counter
from typing import Iterable, Optional

from tiling_suite.domain.models import Client, ClientDetails, Quotation
from tiling_suite.repositories.client_repo import ClientRepo
from tiling_suite.repositories.mappers import client_to_data
from tiling_suite.services.errors import NotFoundError, ValidationError
from tiling_suite.services.sync_service import CLIENTS, RemoteSync


def matches_term(client: Client, term: str) -> bool:
    term = term.lower()
    return (
        term in client.name.lower()
        or term in client.address.lower()
        or term in client.phone.lower()
        or bool(client.email and term in client.email.lower())
    )


def count_quotes(quotations: Iterable[Quotation]) -> dict[str, int]:
    """Number of quotations per linked client id."""
    return dict(
        Counter(
            quotation.client_details.client_id
            for quotation in quotations
            if quotation.client_details.client_id
        )
    )


class ClientService:
    """Service for client operations."""

    def __init__(
        self, connection: sqlite3.Connection, sync: Optional[RemoteSync] = None
    ) -> None:
        self._connection = connection
        self._repo = ClientRepo(connection)
        self._sync = sync

    def list_clients(self) -> list[Client]:
        return self._repo.list_by_name()

    def get_client(self, client_id: str) -> Client:
        client = self._repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found.")
        return client

    def search_clients(self, term: str) -> list[Client]:
        """Case-insensitive match on name, address, phone or email."""
        term = term.strip()
        clients = self.list_clients()
        if not term:
            return clients
        return [client for client in clients if matches_term(client, term)]

    def quote_counts(self, quotations: Iterable[Quotation]) -> dict[str, int]:
        return count_quotes(quotations)

    def create_client(
        self,
        name: str,
        address: str = "",
        phone: str = "",
        email: Optional[str] = None,
    ) -> Client:
        client = Client(
            id=str(uuid.uuid4()),
            name=self._validate_name(name),
            address=address.strip(),
            phone=phone.strip(),
            email=(email or "").strip() or None,
        )
        return self._save(client)

    def update_client(
        self,
        client_id: str,
        name: str,
        address: str = "",
        phone: str = "",
        email: Optional[str] = None,
    ) -> Client:
        self.get_client(client_id)
        client = Client(
            id=client_id,
            name=self._validate_name(name),
            address=address.strip(),
            phone=phone.strip(),
            email=(email or "").strip() or None,
        )
        return self._save(client)

    def delete_client(self, client_id: str) -> bool:
        self.get_client(client_id)
        with self._connection:
            deleted = self._repo.delete(client_id)
        if self._sync is not None:
            self._sync.delete(CLIENTS, client_id)
        return deleted

    def save_from_details(self, details: ClientDetails) -> Client:
        """Store the client typed on a quotation, updating it when already linked."""
        if details.client_id and self._repo.get_by_id(details.client_id):
            return self.update_client(
                details.client_id,
                details.client_name,
                details.client_address,
                details.client_phone,
                details.client_email,
            )
        client = self.create_client(
            details.client_name,
            details.client_address,
            details.client_phone,
            details.client_email,
        )
        details.client_id = client.id
        return client

    def _save(self, client: Client) -> Client:
        with self._connection:
            self._repo.upsert(client)
        if self._sync is not None:
            self._sync.upsert(CLIENTS, client.id, client_to_data(client))
        return client

    def _validate_name(self, name: str) -> str:
        name = name.strip()
        if not name:
            raise ValidationError("Client name is required.")
        return name
