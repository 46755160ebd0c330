"""Credential profile commands."""

from __future__ import annotations

from typing import Optional

import typer

from cli import runtime
from cli.errors import handle_cli_error
from cli.output import output
from core.domain.models import Profile
from core.errors import CLIError, ConfigError

app = typer.Typer(no_args_is_help=True, help="Manage credential profiles.")


@app.command()
def add(
    name: str = typer.Argument(..., help="Name for the new profile."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key (for non-interactive use)."),
    site_id: Optional[str] = typer.Option(None, "--site-id", help="Site ID (for non-interactive use)."),
) -> None:
    """Add a new profile."""

    try:
        settings = runtime.get_settings()
        store = runtime.get_profile_store(settings)
        if store.has_profile(name):
            raise ConfigError(f'Profile "{name}" already exists. Remove it first to replace it.')

        if not api_key or not site_id:
            if not runtime.confirmation_gate().is_interactive():
                raise ConfigError("Non-interactive mode requires --api-key and --site-id flags.")
            output.info(f'Creating profile "{name}"')
            output.log("Find your credentials at: https://app.bentonow.com/settings/api")
            if not api_key:
                api_key = typer.prompt("Enter your Bento API key", hide_input=True)
            if not site_id:
                site_id = typer.prompt("Enter your Bento Site ID")

        api_key = (api_key or "").strip()
        site_id = (site_id or "").strip()
        if not api_key:
            raise ConfigError("API key cannot be empty.")
        if not site_id:
            raise ConfigError("Site ID cannot be empty.")

        profile = Profile(api_key=api_key, site_id=site_id)
        with output.status("Validating credentials..."):
            valid = runtime.check_credentials(profile, settings)
        if not valid:
            raise ConfigError("Invalid credentials. Please check your API key and Site ID.")

        store.set_profile(name, profile)
    except CLIError as exc:
        handle_cli_error(exc)

    if output.is_json():
        output.emit(data={"profile": name, "site_id": site_id}, meta={"count": 1})
        return
    output.success(f'Profile "{name}" created')
    output.info(f"Switch to it with: bento profile use {name}")


@app.command(name="list")
def list_() -> None:
    """List all profiles."""

    try:
        config = runtime.get_profile_store().load()
    except CLIError as exc:
        handle_cli_error(exc)

    if not config.profiles:
        if output.is_json():
            output.emit(data=[], meta={"count": 0})
        else:
            output.info("No profiles configured. Run 'bento profile add <name>' to create one.")
        return

    rows = [
        {
            "current": name == config.current,
            "name": name,
            "site_id": profile.site_id,
            "created": profile.created_at.strftime("%b %d, %Y"),
        }
        for name, profile in config.profiles.items()
    ]

    if output.is_json():
        output.emit(data=rows, meta={"count": len(rows)})
        return

    output.table(
        [{**row, "current": "✓" if row["current"] else ""} for row in rows],
        columns=[("current", ""), ("name", "NAME"), ("site_id", "SITE ID"), ("created", "CREATED")],
    )


@app.command()
def use(name: str = typer.Argument(..., help="Name of the profile to switch to.")) -> None:
    """Switch to a profile."""

    try:
        runtime.get_profile_store().use_profile(name)
    except CLIError as exc:
        handle_cli_error(exc)

    if output.is_json():
        output.emit(data={"profile": name}, meta={"count": 1})
        return
    output.success(f'Switched to profile "{name}"')


@app.command()
def remove(
    name: str = typer.Argument(..., help="Name of the profile to remove."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt."),
) -> None:
    """Remove a profile."""

    try:
        store = runtime.get_profile_store()
        if not store.has_profile(name):
            raise ConfigError(f'Profile "{name}" not found.')

        if not yes:
            if not runtime.confirmation_gate().is_interactive():
                raise ConfigError("Non-interactive mode requires --yes flag to confirm deletion.")
            if not typer.confirm(f'Are you sure you want to remove profile "{name}"?', default=False):
                output.info("Aborted.")
                return

        was_current = store.remove_profile(name)
    except CLIError as exc:
        handle_cli_error(exc)

    if output.is_json():
        output.emit(data={"profile": name, "was_current_profile": was_current}, meta={"count": 1})
        return
    output.success(f'Profile "{name}" removed')
    if was_current:
        output.info("This was the active profile. Run 'bento profile use <name>' to pick another one.")
