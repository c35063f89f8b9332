"""Tests for settings persistence."""

from __future__ import annotations

import json

import pytest

from tiling_suite.domain.models import HeaderLayout, Settings
from tiling_suite.services.errors import ValidationError
from tiling_suite.services.settings_service import SettingsService, load_settings


class TestSettingsService:
    def test_defaults_when_no_file(self, config_path):
        assert SettingsService(config_path).settings == Settings()

    def test_update_persists(self, config_path):
        service = SettingsService(config_path)
        updated = service.update(company_name="Tile Pros", tax_percentage=5.0)

        assert updated.company_name == "Tile Pros"
        assert load_settings(config_path) == updated
        assert SettingsService(config_path).settings.tax_percentage == 5.0

    def test_update_normalises_values(self, config_path):
        service = SettingsService(config_path)
        updated = service.update(header_layout="classic", custom_material_units=["bags", "kg"])
        assert updated.header_layout == HeaderLayout.CLASSIC
        assert updated.custom_material_units == ("bags", "kg")

    @pytest.mark.parametrize(
        "changes",
        [{"colour": "red"}, {"invoice_prefix": "  "}, {"tax_percentage": -1}, {"tax_percentage": "abc"}],
    )
    def test_invalid_updates_change_nothing(self, config_path, changes):
        service = SettingsService(config_path)
        with pytest.raises(ValidationError):
            service.update(**changes)
        assert service.settings == Settings()
        assert not config_path.exists()

    def test_other_config_sections_are_kept(self, config_path):
        config_path.write_text(json.dumps({"theme": "dark"}), encoding="utf-8")
        SettingsService(config_path).update(company_name="Tile Pros")
        data = json.loads(config_path.read_text(encoding="utf-8"))
        assert data["theme"] == "dark"
        assert data["settings"]["companyName"] == "Tile Pros"

    def test_reset(self, config_path):
        service = SettingsService(config_path)
        service.update(company_name="Tile Pros")
        assert service.reset() == Settings()
        assert load_settings(config_path) == Settings()

    def test_corrupt_file_falls_back_to_defaults(self, config_path):
        config_path.write_text("{not json", encoding="utf-8")
        assert load_settings(config_path) == Settings()

    def test_numeric_text_is_accepted(self, config_path):
        service = SettingsService(config_path)
        assert service.update(tax_percentage="5").tax_percentage == 5.0
