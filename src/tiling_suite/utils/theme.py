"""Light/dark theme preference."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from tiling_suite.logging_config import get_logger
from tiling_suite.utils.config_store import load_config_data, update_config_section

ThemeChoice = Literal["light", "dark", "system"]

THEME_CHOICES: tuple[str, ...] = ("light", "dark", "system")


@dataclass(frozen=True)
class ThemeSettings:
    """Persisted theme preference."""

    theme: ThemeChoice = "system"

    @property
    def resolved(self) -> str:
        return resolve_theme_choice(self.theme)

    @property
    def is_dark(self) -> bool:
        return self.resolved == "dark"


def load_theme_settings(config_path: Path) -> ThemeSettings:
    theme = load_config_data(config_path).get("theme", "system")
    if theme not in THEME_CHOICES:
        theme = "system"
    return ThemeSettings(theme=theme)


def save_theme_settings(config_path: Path, settings: ThemeSettings) -> None:
    update_config_section(config_path, "theme", settings.theme)


def set_theme(config_path: Path, choice: str) -> ThemeSettings:
    """Persist ``choice``; unknown values fall back to ``system``."""
    if choice not in THEME_CHOICES:
        choice = "system"
    settings = ThemeSettings(theme=choice)  # type: ignore[arg-type]
    try:
        save_theme_settings(config_path, settings)
    except OSError:
        get_logger(__name__).warning("Could not save theme preference.")
    return settings


def toggle_theme(config_path: Path) -> ThemeSettings:
    """Flip between light and dark based on what is currently shown."""
    current = load_theme_settings(config_path)
    return set_theme(config_path, "light" if current.is_dark else "dark")


def _detect_windows_dark_mode() -> bool | None:
    """Return True for dark mode, False for light, None if unknown."""
    if sys.platform != "win32":
        return None
    import winreg  # type: ignore[import-not-found]

    try:
        with winreg.OpenKey(
            winreg.HKEY_CURRENT_USER,
            r"Software\Microsoft\Windows\CurrentVersion\Themes\Personalize",
        ) as key:
            value, _ = winreg.QueryValueEx(key, "AppsUseLightTheme")
    except OSError:
        return None
    try:
        return int(value) == 0
    except (TypeError, ValueError):
        return None


def resolve_theme_choice(choice: str) -> str:
    """Resolve a theme choice to ``light`` or ``dark``."""
    if choice in ("light", "dark"):
        return choice
    detected = _detect_windows_dark_mode()
    return "dark" if detected else "light"
