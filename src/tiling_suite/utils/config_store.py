"""JSON config file shared by settings and theme preferences."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def load_config_data(config_path: Path) -> dict[str, Any]:
    """Read the config file, returning an empty mapping if it is absent or unreadable."""
    if not config_path.exists():
        return {}
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def update_config_section(config_path: Path, section: str, value: Any) -> None:
    """Replace one top-level section, keeping the others intact."""
    data = load_config_data(config_path)
    data[section] = value
    save_config_data(config_path, data)


def save_config_data(config_path: Path, data: dict[str, Any]) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = config_path.with_suffix(config_path.suffix + ".tmp")
    temp_path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    temp_path.replace(config_path)
