"""Async client for the Bento REST API.

Every method performs exactly one request and either returns the decoded
payload or raises:
- `AuthenticationError` on 401/403 (nothing else will work either),
- `ApiError` on any other non-2xx status or transport failure.

The bulk-operation guard treats each mutation as an opaque pass/fail call.
"""

from __future__ import annotations

from typing import Any

import httpx

from adapters.http_client import build_async_client
from adapters.profile_store import ProfileStore
from core.config import AppSettings
from core.domain.models import Profile
from core.errors import ApiError, AuthenticationError, ConfigError


def resolve_credentials(settings: AppSettings, store: ProfileStore | None = None) -> Profile:
    """Environment credentials win over the active profile."""

    if settings.api_key and settings.site_id:
        return Profile(api_key=settings.api_key, site_id=settings.site_id)

    store = store or ProfileStore(settings.resolved_config_dir())
    profile = store.get_current_profile()
    if profile is None:
        raise ConfigError(
            "Not authenticated. Run 'bento profile add <name>' or set BENTO_API_KEY and BENTO_SITE_ID."
        )
    return profile


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _data_dict(payload: Any) -> dict[str, Any] | None:
    if isinstance(payload, dict):
        data = payload.get("data")
        return data if isinstance(data, dict) else None
    return None


def _error_detail(response: httpx.Response) -> str:
    payload = _json_or_none(response)
    if isinstance(payload, dict):
        for key in ("error", "message", "errors"):
            value = payload.get(key)
            if value:
                return str(value)
    text = (response.text or "").strip()
    return text[:200] if text else response.reason_phrase


class BentoClient:
    """Thin async wrapper; use as `async with BentoClient(...) as client`."""

    def __init__(
        self,
        profile: Profile,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._profile = profile
        self._client = build_async_client(
            self._settings,
            extra_headers={"Authorization": f"Bearer {profile.api_key}"},
            transport=transport,
        )

    async def __aenter__(self) -> "BentoClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        query = {"site_uuid": self._profile.site_id}
        if params:
            query.update(params)

        try:
            response = await self._client.request(method, path, params=query, json=json)
        except httpx.HTTPError as exc:
            raise ApiError(f"Request to {path} failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Authentication failed. Check your API key and site id.",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise ApiError(
                f"HTTP {response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )
        return _json_or_none(response)

    async def _command(self, command: str, email: str, query: str | None = None) -> Any:
        item: dict[str, Any] = {"command": command, "email": email}
        if query is not None:
            item["query"] = query
        return await self._request("POST", "/fetch/commands", json={"command": [item]})

    async def subscribe(self, email: str) -> Any:
        return await self._command("subscribe", email)

    async def unsubscribe(self, email: str) -> Any:
        return await self._command("unsubscribe", email)

    async def suppress(self, email: str) -> Any:
        """Stop all delivery to `email`; the API records suppression as an unsubscribe."""

        return await self._command("unsubscribe", email)

    async def unsuppress(self, email: str) -> Any:
        return await self._command("subscribe", email)

    async def add_tag(self, email: str, tag: str) -> Any:
        return await self._command("add_tag", email, tag)

    async def remove_tag(self, email: str, tag: str) -> Any:
        return await self._command("remove_tag", email, tag)

    async def import_subscriber(self, email: str) -> Any:
        return await self._request("POST", "/fetch/subscribers", json={"subscriber": {"email": email}})

    async def find_subscriber(self, email: str) -> dict[str, Any] | None:
        payload = await self._request("GET", "/fetch/subscribers", params={"email": email})
        return _data_dict(payload)

    async def get_sequences(self) -> list[dict[str, Any]]:
        payload = await self._request("GET", "/fetch/sequences")
        if isinstance(payload, dict):
            data = payload.get("data")
            return data if isinstance(data, list) else []
        return payload if isinstance(payload, list) else []

    async def create_sequence_email(self, sequence_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        payload = await self._request(
            "POST",
            f"/fetch/sequences/{sequence_id}/emails/templates",
            json={"email_template": fields},
        )
        return _data_dict(payload)

    async def update_sequence_email(self, template_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        payload = await self._request(
            "PATCH",
            f"/fetch/emails/templates/{template_id}",
            json={"email_template": fields},
        )
        return _data_dict(payload)

    async def ping(self) -> None:
        """Cheap authenticated request used by `doctor`."""

        await self._request("GET", "/fetch/sequences")


async def validate_credentials(
    profile: Profile,
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """True when the API accepts the credentials; other API errors propagate."""

    async with BentoClient(profile, settings, transport=transport) as client:
        try:
            await client.ping()
        except AuthenticationError:
            return False
    return True
