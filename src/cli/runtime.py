"""Per-invocation collaborators: settings, API client, confirmation gate.

Commands reach these through the module (`runtime.open_client(...)`) so tests
can replace them.
"""

from __future__ import annotations

import asyncio

from pydantic import ValidationError

from adapters.bento_client import BentoClient, resolve_credentials, validate_credentials
from adapters.profile_store import ProfileStore
from cli.output import output
from cli.prompts import TerminalConfirmation
from core.config import AppSettings
from core.domain.models import Profile
from core.errors import ConfigError
from core.interfaces.confirmation import ConfirmationGate


def get_settings() -> AppSettings:
    try:
        return AppSettings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def get_profile_store(settings: AppSettings | None = None) -> ProfileStore:
    settings = settings or get_settings()
    return ProfileStore(settings.resolved_config_dir())


def open_client(settings: AppSettings) -> BentoClient:
    """Client for the active credentials; raises `ConfigError` when there are none."""

    profile = resolve_credentials(settings, get_profile_store(settings))
    return BentoClient(profile, settings)


def confirmation_gate() -> ConfirmationGate:
    return TerminalConfirmation(output.err_console)


def check_credentials(profile: Profile, settings: AppSettings) -> bool:
    return asyncio.run(validate_credentials(profile, settings))
