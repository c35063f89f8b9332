"""Application configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from tiling_suite.version import __app_name__, __company__

load_dotenv()

APP_NAME = __app_name__
APP_DATA_DIRNAME = "TilingSuite"
DB_FILENAME = "tiling_suite.db"
LOGS_DIRNAME = "logs"
LOG_FILENAME = "app.log"
LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3
EXPORTS_DIRNAME = "exports"
CONFIG_FILENAME = "config.json"

REMOTE_TIMEOUT_SECONDS = 10.0
DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-5-20250929"


def clean_env_value(value: str | None) -> str:
    """Strip whitespace and surrounding quotes from an environment value."""
    if not value:
        return ""
    value = value.strip()
    if len(value) >= 2:
        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]
        elif value.startswith(('"', "'")):
            value = value[1:]
        elif value.endswith(('"', "'")):
            value = value[:-1]
    return value.strip()


@dataclass(frozen=True)
class RemoteConfig:
    """Connection details for the hosted backend."""

    url: str = ""
    anon_key: str = ""
    timeout: float = REMOTE_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key and self.url.startswith("https://"))


@dataclass(frozen=True)
class AiConfig:
    """Credentials for the generative AI provider."""

    api_key: str = ""
    model: str = DEFAULT_CLAUDE_MODEL

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and "PLACEHOLDER" not in self.api_key


@dataclass(frozen=True)
class AppConfig:
    """Static configuration values for Tiling Suite."""

    app_name: str = APP_NAME
    organization_name: str = __company__


def load_remote_config() -> RemoteConfig:
    """Read the backend connection settings from the environment."""
    return RemoteConfig(
        url=clean_env_value(os.getenv("SUPABASE_URL")).rstrip("/"),
        anon_key=clean_env_value(os.getenv("SUPABASE_ANON_KEY")),
    )


def load_ai_config() -> AiConfig:
    """Read the AI provider settings from the environment."""
    return AiConfig(
        api_key=clean_env_value(os.getenv("ANTHROPIC_API_KEY")),
        model=clean_env_value(os.getenv("CLAUDE_MODEL")) or DEFAULT_CLAUDE_MODEL,
    )
