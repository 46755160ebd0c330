"""
Pytest configuration and shared fixtures.
"""
from typing import Any, Sequence

import pytest

from cli import runtime
from cli.output import output
from core.config import AppSettings
from core.errors import ApiError, AuthenticationError
from core.logger import setup_logging


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """No real credentials, config dir or log handlers leak into a test."""
    for var in ("BENTO_API_KEY", "BENTO_SITE_ID", "BENTO_CONFIG_DIR", "BENTO_LOG_LEVEL", "BENTO_LOG_FORMAT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    setup_logging("WARNING")
    output.reset()
    yield
    output.reset()


@pytest.fixture
def settings(tmp_path):
    return AppSettings(config_dir=tmp_path / "config", api_key=None, site_id=None)


class FakeGate:
    """ConfirmationGate double with scripted answers."""

    def __init__(self, interactive: bool = False, answer: bool = False):
        self.interactive = interactive
        self.answer = answer
        self.prompts: list[dict[str, Any]] = []

    def is_interactive(self) -> bool:
        return self.interactive

    async def confirm(self, *, name: str, count: int, preview: Sequence[dict[str, Any]]) -> bool:
        self.prompts.append({"name": name, "count": count, "preview": list(preview)})
        return self.answer


class FakeBentoClient:
    """Records every call; emails in `fail_for` raise ApiError."""

    def __init__(self, fail_for: Sequence[str] = (), reject_auth_for: Sequence[str] = ()):
        self.calls: list[tuple] = []
        self.fail_for = set(fail_for)
        self.reject_auth_for = set(reject_auth_for)
        self.closed = False
        self.sequences: list[dict] = []
        self.subscriber: dict | None = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if args and args[0] in self.reject_auth_for:
            raise AuthenticationError("Authentication failed. Check your API key and site id.", status_code=401)
        if args and args[0] in self.fail_for:
            raise ApiError(f"HTTP 422: cannot {name} {args[0]}", status_code=422)
        return {}

    async def subscribe(self, email):
        return await self._record("subscribe", email)

    async def unsubscribe(self, email):
        return await self._record("unsubscribe", email)

    async def suppress(self, email):
        return await self._record("suppress", email)

    async def unsuppress(self, email):
        return await self._record("unsuppress", email)

    async def add_tag(self, email, tag):
        return await self._record("add_tag", email, tag)

    async def remove_tag(self, email, tag):
        return await self._record("remove_tag", email, tag)

    async def import_subscriber(self, email):
        return await self._record("import_subscriber", email)

    async def find_subscriber(self, email):
        self.calls.append(("find_subscriber", email))
        return self.subscriber

    async def get_sequences(self):
        self.calls.append(("get_sequences",))
        return self.sequences

    async def create_sequence_email(self, sequence_id, fields):
        self.calls.append(("create_sequence_email", sequence_id, fields))
        return {"id": "tmpl_1"}

    async def update_sequence_email(self, template_id, fields):
        self.calls.append(("update_sequence_email", template_id, fields))
        return {"id": template_id}


@pytest.fixture
def fake_client():
    return FakeBentoClient()


@pytest.fixture
def gate():
    return FakeGate()


@pytest.fixture
def cli_env(monkeypatch, settings, fake_client, gate):
    """Wire the CLI runtime to in-memory doubles."""
    monkeypatch.setattr(runtime, "get_settings", lambda: settings)
    monkeypatch.setattr(runtime, "open_client", lambda _settings: fake_client)
    monkeypatch.setattr(runtime, "confirmation_gate", lambda: gate)
    return {"settings": settings, "client": fake_client, "gate": gate}
