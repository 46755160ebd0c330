"""Subscriber commands.

Every command that mutates several subscribers goes through the
bulk-operation guard (`cli.guarded.run_bulk`).
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from cli import runtime
from cli.errors import handle_cli_error
from cli.guarded import (
    CONFIRM_HELP,
    DRY_RUN_HELP,
    EMAIL_HELP,
    FILE_HELP,
    LIMIT_HELP,
    SAMPLE_HELP,
    BulkCommand,
    run_bulk,
)
from cli.output import output
from core.errors import CLIError, OptionsError, UsageError
from core.services.targets import is_valid_email, normalize_email

app = typer.Typer(no_args_is_help=True, help="Manage subscribers.")


@app.command()
def subscribe(
    email: Optional[str] = typer.Option(None, "--email", "-e", help=EMAIL_HELP),
    file: Optional[str] = typer.Option(None, "--file", "-f", help=FILE_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    limit: Optional[str] = typer.Option(None, "--limit", metavar="N", help=LIMIT_HELP),
    sample: Optional[str] = typer.Option(None, "--sample", metavar="N", help=SAMPLE_HELP),
    confirm: bool = typer.Option(False, "--confirm", help=CONFIRM_HELP),
) -> None:
    """Re-subscribe subscribers (resume email delivery)."""

    command = BulkCommand(
        name="Re-subscribe Subscribers",
        action="subscribe",
        done_message=lambda count: f"Re-subscribed {count} subscriber(s).",
        per_target=lambda client, target: client.subscribe(target),
        is_dangerous=True,
    )
    run_bulk(command, email=email, file=file, dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)


@app.command()
def unsubscribe(
    email: Optional[str] = typer.Option(None, "--email", "-e", help=EMAIL_HELP),
    file: Optional[str] = typer.Option(None, "--file", "-f", help=FILE_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    limit: Optional[str] = typer.Option(None, "--limit", metavar="N", help=LIMIT_HELP),
    sample: Optional[str] = typer.Option(None, "--sample", metavar="N", help=SAMPLE_HELP),
    confirm: bool = typer.Option(False, "--confirm", help=CONFIRM_HELP),
) -> None:
    """Unsubscribe subscribers (stop email delivery)."""

    command = BulkCommand(
        name="Unsubscribe Subscribers",
        action="unsubscribe",
        done_message=lambda count: f"Unsubscribed {count} subscriber(s).",
        per_target=lambda client, target: client.unsubscribe(target),
        is_dangerous=True,
    )
    run_bulk(command, email=email, file=file, dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)


@app.command()
def suppress(
    email: Optional[str] = typer.Option(None, "--email", "-e", help=EMAIL_HELP),
    file: Optional[str] = typer.Option(None, "--file", "-f", help=FILE_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    limit: Optional[str] = typer.Option(None, "--limit", metavar="N", help=LIMIT_HELP),
    sample: Optional[str] = typer.Option(None, "--sample", metavar="N", help=SAMPLE_HELP),
    confirm: bool = typer.Option(False, "--confirm", help=CONFIRM_HELP),
) -> None:
    """Suppress subscribers (block all email delivery)."""

    command = BulkCommand(
        name="Suppress Subscribers",
        action="suppress",
        done_message=lambda count: f"Suppressed {count} subscriber(s).",
        per_target=lambda client, target: client.suppress(target),
        is_dangerous=True,
    )
    run_bulk(command, email=email, file=file, dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)


@app.command()
def unsuppress(
    email: Optional[str] = typer.Option(None, "--email", "-e", help=EMAIL_HELP),
    file: Optional[str] = typer.Option(None, "--file", "-f", help=FILE_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    limit: Optional[str] = typer.Option(None, "--limit", metavar="N", help=LIMIT_HELP),
    sample: Optional[str] = typer.Option(None, "--sample", metavar="N", help=SAMPLE_HELP),
    confirm: bool = typer.Option(False, "--confirm", help=CONFIRM_HELP),
) -> None:
    """Lift a suppression so subscribers receive email again."""

    command = BulkCommand(
        name="Unsuppress Subscribers",
        action="unsuppress",
        done_message=lambda count: f"Unsuppressed {count} subscriber(s).",
        per_target=lambda client, target: client.unsuppress(target),
        is_dangerous=True,
    )
    run_bulk(command, email=email, file=file, dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)


@app.command()
def tag(
    tag_name: str = typer.Option(..., "--tag", "-t", help="Tag to add (or remove with --remove)."),
    remove: bool = typer.Option(False, "--remove", help="Remove the tag instead of adding it."),
    email: Optional[str] = typer.Option(None, "--email", "-e", help=EMAIL_HELP),
    file: Optional[str] = typer.Option(None, "--file", "-f", help=FILE_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    limit: Optional[str] = typer.Option(None, "--limit", metavar="N", help=LIMIT_HELP),
    sample: Optional[str] = typer.Option(None, "--sample", metavar="N", help=SAMPLE_HELP),
    confirm: bool = typer.Option(False, "--confirm", help=CONFIRM_HELP),
) -> None:
    """Add a tag to subscribers, or remove it with --remove."""

    name = tag_name.strip()
    if not name:
        handle_cli_error(OptionsError("--tag cannot be empty."))

    if remove:
        command = BulkCommand(
            name=f'Remove Tag "{name}"',
            action="remove_tag",
            done_message=lambda count: f'Removed tag "{name}" from {count} subscriber(s).',
            per_target=lambda client, target: client.remove_tag(target, name),
            is_dangerous=True,
        )
    else:
        command = BulkCommand(
            name=f'Add Tag "{name}"',
            action="add_tag",
            done_message=lambda count: f'Tagged {count} subscriber(s) with "{name}".',
            per_target=lambda client, target: client.add_tag(target, name),
        )
    run_bulk(command, email=email, file=file, dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)


@app.command(name="import")
def import_(
    file: Optional[str] = typer.Option(None, "--file", "-f", help=FILE_HELP),
    email: Optional[str] = typer.Option(None, "--email", "-e", help=EMAIL_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help=DRY_RUN_HELP),
    limit: Optional[str] = typer.Option(None, "--limit", metavar="N", help=LIMIT_HELP),
    sample: Optional[str] = typer.Option(None, "--sample", metavar="N", help=SAMPLE_HELP),
    confirm: bool = typer.Option(False, "--confirm", help=CONFIRM_HELP),
) -> None:
    """Import subscribers from a file."""

    command = BulkCommand(
        name="Import Subscribers",
        action="import",
        done_message=lambda count: f"Imported {count} subscriber(s).",
        per_target=lambda client, target: client.import_subscriber(target),
    )
    run_bulk(command, email=email, file=file, dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)


@app.command()
def search(
    email: str = typer.Option(..., "--email", "-e", help="Subscriber email to look up."),
) -> None:
    """Look up a single subscriber by email."""

    try:
        if not is_valid_email(email.strip()):
            raise UsageError(f"Invalid email address: {email}")
        settings = runtime.get_settings()

        async def _find():
            async with runtime.open_client(settings) as client:
                return await client.find_subscriber(normalize_email(email))

        with output.status("Searching..."):
            subscriber = asyncio.run(_find())
    except CLIError as exc:
        handle_cli_error(exc)

    if subscriber is None:
        if output.is_json():
            output.emit(data=None, meta={"count": 0})
        else:
            output.info(f"No subscriber found for {email}.")
        return

    if output.is_json():
        output.emit(data=subscriber, meta={"count": 1})
        return

    attributes = subscriber.get("attributes") if isinstance(subscriber.get("attributes"), dict) else {}
    rows = [
        {
            "id": subscriber.get("id", ""),
            "email": attributes.get("email", email),
            "tags": ", ".join(str(t) for t in attributes.get("cached_tag_ids") or []),
            "unsubscribed": "yes" if attributes.get("unsubscribed_at") else "no",
        }
    ]
    output.table(
        rows,
        columns=[("id", "ID"), ("email", "EMAIL"), ("tags", "TAGS"), ("unsubscribed", "UNSUBSCRIBED")],
    )
