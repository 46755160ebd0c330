"""Core configuration.

Centralises environment variables (pydantic-settings) so that the CLI and
the adapters read configuration the same way.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "bento-cli"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "bento-cli"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "bento-cli"
    return Path.home() / ".config" / "bento-cli"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Central application settings.

    Credentials set here (`BENTO_API_KEY` / `BENTO_SITE_ID`) take precedence
    over the active profile, which keeps CI usage free of a config file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BENTO_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_key: str | None = Field(
        default=None,
        description="Bento API key (overrides the active profile).",
    )
    site_id: str | None = Field(
        default=None,
        description="Bento site id (overrides the active profile).",
    )
    base_url: str = Field(
        default="https://app.bentonow.com/api/v1",
        min_length=8,
        description="Base URL of the Bento REST API.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="bento-cli/0.1",
        min_length=1,
        description="User-Agent sent with every API request.",
    )

    preview_size: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many formatted targets a confirmation prompt shows.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Log level for diagnostics written to stderr.",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log renderer: human console or JSON lines.",
    )

    config_dir: Path | None = Field(
        default=None,
        description="Override for the directory holding profiles.json.",
    )

    def resolved_config_dir(self) -> Path:
        return self.config_dir or get_user_config_dir()
