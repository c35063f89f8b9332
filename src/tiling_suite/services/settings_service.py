"""Settings are loaded once and replaced only through this service."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Optional

from tiling_suite.domain.models import Settings
from tiling_suite.repositories.mappers import settings_from_data, settings_to_data
from tiling_suite.services.errors import ValidationError
from tiling_suite.services.sync_service import SETTINGS, SETTINGS_RECORD_ID, RemoteSync
from tiling_suite.utils.config_store import load_config_data, update_config_section

logger = logging.getLogger(__name__)

_FIELD_NAMES = frozenset(item.name for item in dataclasses.fields(Settings))


def load_settings(config_path: Path) -> Settings:
    """Read settings from the config file; defaults fill anything missing."""
    data = load_config_data(config_path).get("settings")
    if not isinstance(data, dict):
        return Settings()
    return settings_from_data(data)


def save_settings(config_path: Path, settings: Settings) -> None:
    update_config_section(config_path, "settings", settings_to_data(settings))


class SettingsService:
    """Holds the current :class:`Settings` value."""

    def __init__(self, config_path: Path, sync: Optional[RemoteSync] = None) -> None:
        self._config_path = config_path
        self._sync = sync
        self._settings = load_settings(config_path)

    @property
    def settings(self) -> Settings:
        return self._settings

    def update(self, **changes: Any) -> Settings:
        """Apply field changes, persist, and push to the backend."""
        unknown = sorted(set(changes) - _FIELD_NAMES)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(unknown)}")
        if not changes:
            return self._settings
        if "invoice_prefix" in changes and not str(changes["invoice_prefix"]).strip():
            raise ValidationError("Invoice prefix cannot be empty.")
        if "tax_percentage" in changes:
            try:
                tax = float(changes["tax_percentage"])
            except (TypeError, ValueError):
                raise ValidationError("Tax percentage must be a number.") from None
            if tax < 0:
                raise ValidationError("Tax percentage cannot be negative.")
            changes["tax_percentage"] = tax
        updated = dataclasses.replace(self._settings, **changes)
        # Round trip normalises lists to tuples and strings to enums.
        return self.replace(settings_from_data(settings_to_data(updated)))

    def replace(self, settings: Settings, *, push: bool = True) -> Settings:
        self._settings = settings
        save_settings(self._config_path, settings)
        logger.info("Settings saved.")
        if push and self._sync is not None:
            self._sync.upsert(SETTINGS, SETTINGS_RECORD_ID, settings_to_data(settings))
        return settings

    def reset(self) -> Settings:
        return self.replace(Settings())
