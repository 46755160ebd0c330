"""Credential profiles persisted as JSON in the user config directory.

Layout of `profiles.json`:

    {"current": "work", "profiles": {"work": {"api_key": ..., "site_id": ..., "created_at": ...}}}
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import ValidationError

from core.domain.models import Profile, ProfileConfig
from core.errors import ConfigError

PROFILES_FILENAME = "profiles.json"


class ProfileStore:
    def __init__(self, config_dir: Path) -> None:
        self._path = config_dir / PROFILES_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ProfileConfig:
        if not self._path.exists():
            return ProfileConfig()
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {self._path}: {exc}") from exc
        try:
            return ProfileConfig.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ConfigError(f"Config file {self._path} is corrupted: {exc}") from exc

    def save(self, config: ProfileConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = config.model_dump(mode="json")
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        # Credentials: owner-only.
        try:
            os.chmod(tmp, 0o600)
        except OSError:
            pass
        tmp.replace(self._path)

    def has_profile(self, name: str) -> bool:
        return name in self.load().profiles

    def set_profile(self, name: str, profile: Profile) -> None:
        """Add or replace a profile; the first profile becomes current."""

        config = self.load()
        config.profiles[name] = profile
        if config.current is None:
            config.current = name
        self.save(config)

    def use_profile(self, name: str) -> None:
        config = self.load()
        if name not in config.profiles:
            raise ConfigError(f'Profile "{name}" not found.')
        config.current = name
        self.save(config)

    def remove_profile(self, name: str) -> bool:
        """Remove a profile; returns True when it was the current one."""

        config = self.load()
        if name not in config.profiles:
            raise ConfigError(f'Profile "{name}" not found.')
        del config.profiles[name]
        was_current = config.current == name
        if was_current:
            config.current = None
        self.save(config)
        return was_current

    def get_current_profile(self) -> Profile | None:
        config = self.load()
        if config.current is None:
            return None
        return config.profiles.get(config.current)
