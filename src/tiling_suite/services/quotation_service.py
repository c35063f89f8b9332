"""Quotation lifecycle: AI-assisted drafting, edits, status and refinement."""

from __future__ import annotations

import copy
import dataclasses
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Iterable, Optional

from tiling_suite.domain.models import (
    Adjustment,
    ChecklistItem,
    ClientDetails,
    Material,
    Quotation,
    QuotationStatus,
    Settings,
    Tile,
)
from tiling_suite.repositories.mappers import encode, quotation_from_data, quotation_to_data
from tiling_suite.repositories.quotation_repo import QuotationRepo
from tiling_suite.services.assistant import ImageData, QuotationAssistant
from tiling_suite.services.calculation import calculate_totals, to_number
from tiling_suite.services.errors import NotFoundError, ValidationError
from tiling_suite.services.sync_service import QUOTATIONS, RemoteSync

logger = logging.getLogger(__name__)

# Fields kept from the stored quotation whatever the assistant returns.
_IDENTITY_FIELDS = ("id", "date", "status", "invoiceId", "invoiceNumber", "siteAnalysis")
_LOCKED_FIELDS = frozenset({"id", "invoice_id", "invoice_number"})
_FIELD_NAMES = frozenset(item.name for item in dataclasses.fields(Quotation))


def combined_prompt(client_name: str, notes: Iterable[str], site_vision: str) -> str:
    notes_text = "\n".join(notes)
    return f"Client: {client_name}\nNotes: {notes_text}\nSite Vision: {site_vision}"


def merge_client_details(generated: dict[str, Any], entered: ClientDetails) -> dict[str, Any]:
    """Fields typed by the user win over generated ones unless left empty."""
    merged = dict(generated or {})
    for key, value in encode(entered).items():
        if value == "":
            continue
        merged[key] = value
    return merged


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


class QuotationService:
    """Service for quotation operations."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        assistant: QuotationAssistant,
        sync: Optional[RemoteSync] = None,
    ) -> None:
        self._connection = connection
        self._repo = QuotationRepo(connection)
        self._assistant = assistant
        self._sync = sync

    def list_quotations(self) -> list[Quotation]:
        return self._repo.list_all()

    def get_quotation(self, quotation_id: str) -> Quotation:
        quotation = self._repo.get_by_id(quotation_id)
        if quotation is None:
            raise NotFoundError("Quotation not found.")
        return quotation

    def scan_notes(self, image: ImageData) -> str:
        return self._assistant.extract_text(image)

    def generate_quotation(
        self,
        notes: list[str],
        client_details: ClientDetails,
        settings: Settings,
        site_image: Optional[ImageData] = None,
    ) -> Quotation:
        """Draft and store a new Pending quotation from measurement notes."""
        if not notes:
            raise ValidationError("Please add measurements.")

        site_vision = ""
        if site_image is not None:
            site_vision = self._assistant.analyze_site(site_image)

        prompt = combined_prompt(client_details.client_name, notes, site_vision)
        payload = dict(self._assistant.generate_quotation(prompt, settings))
        payload.update(
            {
                "id": str(uuid.uuid4()),
                "date": _now_iso(),
                "status": QuotationStatus.PENDING.value,
                "clientDetails": merge_client_details(
                    payload.get("clientDetails", {}), client_details
                ),
                "showMaterials": settings.show_materials_default,
                "showAdjustments": settings.show_adjustments_default,
                "addCheckmate": settings.add_checkmate_default,
                "siteAnalysis": site_vision,
            }
        )
        quotation = quotation_from_data(payload)
        logger.info("Generated quotation %s", quotation.id)
        return self._save(quotation)

    def create_blank_quotation(
        self, client_details: ClientDetails, settings: Settings
    ) -> Quotation:
        quotation = Quotation(
            id=str(uuid.uuid4()),
            date=_now_iso(),
            client_details=copy.deepcopy(client_details),
            workmanship_rate=settings.workmanship_rate,
            deposit_percentage=settings.default_deposit_percentage,
            terms_and_conditions=settings.default_terms_and_conditions,
            add_checkmate=settings.add_checkmate_default,
            show_materials=settings.show_materials_default,
            show_adjustments=settings.show_adjustments_default,
        )
        return self._save(quotation)

    def update_quotation(self, quotation_id: str, **changes: Any) -> Quotation:
        unknown = sorted(set(changes) - _FIELD_NAMES)
        if unknown:
            raise ValidationError(f"Unknown quotation fields: {', '.join(unknown)}")
        locked = sorted(set(changes) & _LOCKED_FIELDS)
        if locked:
            raise ValidationError(f"Quotation fields cannot be edited: {', '.join(locked)}")
        quotation = self.get_quotation(quotation_id)
        for name, value in changes.items():
            setattr(quotation, name, value)
        return self._save(quotation)

    def set_tiles(self, quotation_id: str, tiles: list[Tile]) -> Quotation:
        cleaned = [
            dataclasses.replace(
                tile,
                category=(tile.category or "").strip(),
                cartons=to_number(tile.cartons),
                sqm=to_number(tile.sqm),
                unit_price=to_number(tile.unit_price),
            )
            for tile in tiles
            if (tile.category or "").strip()
        ]
        return self.update_quotation(quotation_id, tiles=cleaned)

    def set_materials(self, quotation_id: str, materials: list[Material]) -> Quotation:
        """Replace the materials list, dropping rows without an item name."""
        cleaned = [
            dataclasses.replace(
                material,
                item=(material.item or "").strip(),
                quantity=to_number(material.quantity),
                unit_price=to_number(material.unit_price),
            )
            for material in materials
            if (material.item or "").strip()
        ]
        return self.update_quotation(quotation_id, materials=cleaned)

    def set_adjustments(self, quotation_id: str, adjustments: list[Adjustment]) -> Quotation:
        cleaned = [
            Adjustment(adjustment.description.strip(), to_number(adjustment.amount))
            for adjustment in adjustments
            if adjustment.description.strip()
        ]
        return self.update_quotation(quotation_id, adjustments=cleaned)

    def set_checklist(self, quotation_id: str, checklist: list[ChecklistItem]) -> Quotation:
        cleaned = [
            ChecklistItem(entry.item.strip(), bool(entry.checked))
            for entry in checklist
            if entry.item.strip()
        ]
        return self.update_quotation(quotation_id, checklist=cleaned)

    def set_financials(
        self,
        quotation_id: str,
        *,
        workmanship_rate: Optional[float] = None,
        maintenance: Optional[float] = None,
        profit_percentage: Optional[float] = None,
        deposit_percentage: Optional[float] = None,
    ) -> Quotation:
        changes: dict[str, Any] = {}
        for name, value in (
            ("workmanship_rate", workmanship_rate),
            ("maintenance", maintenance),
            ("profit_percentage", profit_percentage),
            ("deposit_percentage", deposit_percentage),
        ):
            if value is None:
                continue
            if to_number(value) < 0:
                raise ValidationError("Financial values cannot be negative.")
            changes[name] = to_number(value)
        return self.update_quotation(quotation_id, **changes)

    def set_status(self, quotation_id: str, status: QuotationStatus) -> Quotation:
        status = QuotationStatus(status)
        if status == QuotationStatus.INVOICED:
            raise ValidationError("Convert the quotation to an invoice instead.")
        quotation = self.get_quotation(quotation_id)
        if quotation.status == QuotationStatus.INVOICED:
            raise ValidationError("Invoiced quotations cannot change status.")
        quotation.status = status
        return self._save(quotation)

    def bulk_update_status(
        self, quotation_ids: Iterable[str], status: QuotationStatus
    ) -> list[Quotation]:
        """Set ``status`` on every listed quotation that is not yet invoiced."""
        status = QuotationStatus(status)
        if status == QuotationStatus.INVOICED:
            raise ValidationError("Convert the quotation to an invoice instead.")
        updated: list[Quotation] = []
        with self._connection:
            for quotation_id in quotation_ids:
                quotation = self._repo.get_by_id(quotation_id)
                if quotation is None or quotation.status == QuotationStatus.INVOICED:
                    continue
                quotation.status = status
                self._repo.upsert(quotation)
                updated.append(quotation)
        for quotation in updated:
            self._push(quotation)
        return updated

    def duplicate_quotation(self, quotation_id: str) -> Quotation:
        source = self.get_quotation(quotation_id)
        duplicate = dataclasses.replace(
            copy.deepcopy(source),
            id=str(uuid.uuid4()),
            date=_now_iso(),
            status=QuotationStatus.PENDING,
            invoice_id=None,
            invoice_number=None,
            due_date=None,
            ai_refinement_history=[],
        )
        if duplicate.client_details.project_name:
            duplicate.client_details.project_name += " (Copy)"
        return self._save(duplicate)

    def refine_quotation(self, quotation_id: str, instruction: str) -> Quotation:
        """Let the assistant rework a quotation and remember the instruction."""
        instruction = instruction.strip()
        if not instruction:
            raise ValidationError("Please describe the change you want.")
        quotation = self.get_quotation(quotation_id)
        payload = quotation_to_data(quotation)
        refined = dict(self._assistant.refine_quotation(payload, instruction))
        for key in _IDENTITY_FIELDS:
            if key in payload:
                refined[key] = payload[key]
            else:
                refined.pop(key, None)
        result = quotation_from_data(refined)
        result.ai_refinement_history = quotation.ai_refinement_history + [instruction]
        return self._save(result)

    def summarize(self, quotation_id: str, settings: Settings) -> str:
        quotation = self.get_quotation(quotation_id)
        total = calculate_totals(quotation, settings).grand_total
        return self._assistant.summarize(quotation_to_data(quotation), total)

    def delete_quotation(self, quotation_id: str) -> bool:
        self.get_quotation(quotation_id)
        with self._connection:
            deleted = self._repo.delete(quotation_id)
        if self._sync is not None:
            self._sync.delete(QUOTATIONS, quotation_id)
        return deleted

    def bulk_delete(self, quotation_ids: Iterable[str]) -> int:
        ids = list(dict.fromkeys(quotation_ids))
        with self._connection:
            deleted = self._repo.delete_many(ids)
        if self._sync is not None:
            for quotation_id in ids:
                self._sync.delete(QUOTATIONS, quotation_id)
        return deleted

    def _save(self, quotation: Quotation) -> Quotation:
        with self._connection:
            self._repo.upsert(quotation)
        self._push(quotation)
        return quotation

    def _push(self, quotation: Quotation) -> None:
        if self._sync is not None:
            self._sync.upsert(QUOTATIONS, quotation.id, quotation_to_data(quotation))
