"""Sequence commands: list sequences and create/update sequence emails."""

from __future__ import annotations

import asyncio
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer

from adapters.bento_client import BentoClient
from cli import runtime
from cli.errors import handle_cli_error
from cli.output import output
from core.errors import CLIError, OptionsError

app = typer.Typer(no_args_is_help=True, help="Manage email sequences.")

ALLOWED_DELAY_INTERVALS = ("minutes", "hours", "days", "months")
MAX_TEMPLATE_HTML_BYTES = 524_288
MAX_DELAY_COUNT = 999

_SEQUENCE_ID_RE = re.compile(r"^sequence_[a-zA-Z0-9_-]+$")


def validate_sequence_id(sequence_id: str) -> None:
    if not _SEQUENCE_ID_RE.match(sequence_id):
        raise OptionsError("Sequence ID must be a valid prefix_id (e.g. sequence_abc123).")


def validate_html_size(html: str) -> None:
    if len(html.encode("utf-8")) > MAX_TEMPLATE_HTML_BYTES:
        raise OptionsError(f"HTML content must be under {MAX_TEMPLATE_HTML_BYTES} bytes.")


def validate_delay_options(delay_interval: str | None, delay_count: str | None) -> int | None:
    """Returns the parsed delay count (or None)."""

    if bool(delay_interval) != bool(delay_count):
        raise OptionsError("--delay-interval and --delay-count must be provided together.")
    if not delay_interval or not delay_count:
        return None

    if delay_interval not in ALLOWED_DELAY_INTERVALS:
        raise OptionsError(f"--delay-interval must be one of: {', '.join(ALLOWED_DELAY_INTERVALS)}")

    text = delay_count.strip()
    if not (text.isascii() and text.isdigit()) or str(int(text)) != text or int(text) <= 0:
        raise OptionsError("--delay-count must be a positive integer.")
    parsed = int(text)
    if parsed > MAX_DELAY_COUNT:
        raise OptionsError(f"--delay-count must be less than or equal to {MAX_DELAY_COUNT}.")
    return parsed


def resolve_safe_html_path(input_path: str) -> Path:
    """The HTML file must live under the current working directory."""

    resolved = Path(input_path).resolve()
    root = Path.cwd().resolve()
    try:
        resolved.relative_to(root)
    except ValueError:
        raise OptionsError("HTML file path must be within the current working directory.") from None
    return resolved


def resolve_html_input(html: str | None, html_file: str | None) -> str:
    if bool(html) == bool(html_file):
        raise OptionsError("Provide exactly one of --html or --html-file.")

    if not html_file:
        body = html or ""
        validate_html_size(body)
        return body

    path = resolve_safe_html_path(html_file)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise OptionsError(f"HTML file not found: {html_file}") from None
    except PermissionError:
        raise OptionsError(f"Cannot read HTML file (permission denied): {html_file}") from None
    except (OSError, UnicodeDecodeError):
        raise OptionsError(f"Unable to read HTML file: {html_file}") from None
    validate_html_size(content)
    return content


def resolve_optional_html_input(html: str | None, html_file: str | None) -> str | None:
    if not html and not html_file:
        return None
    return resolve_html_input(html, html_file)


def format_date(iso_date: str | None) -> str:
    if not iso_date:
        return ""
    try:
        return datetime.fromisoformat(iso_date.replace("Z", "+00:00")).strftime("%b %d, %Y")
    except ValueError:
        return iso_date


def _run(coro_factory: Callable[[BentoClient], Awaitable[Any]]) -> Any:
    settings = runtime.get_settings()

    async def _call():
        async with runtime.open_client(settings) as client:
            return await coro_factory(client)

    return asyncio.run(_call())


@app.command(name="list")
def list_() -> None:
    """List sequences."""

    try:
        with output.status("Fetching sequences..."):
            sequences = _run(lambda client: client.get_sequences())
    except CLIError as exc:
        handle_cli_error(exc)

    if not sequences:
        if output.is_json():
            output.emit(data=[], meta={"count": 0})
        else:
            output.info("No sequences found.")
        return

    rows = []
    for sequence in sequences:
        attributes = sequence.get("attributes") or {}
        rows.append(
            {
                "id": sequence.get("id", ""),
                "name": attributes.get("name", ""),
                "emails": len(attributes.get("email_templates") or []),
                "created": format_date(attributes.get("created_at")),
            }
        )

    output.table(
        rows,
        columns=[("id", "ID"), ("name", "NAME"), ("emails", "EMAILS"), ("created", "CREATED")],
        meta={"total": len(rows)},
    )


@app.command(name="create-email")
def create_email(
    sequence_id: str = typer.Option(..., "--sequence-id", help="Sequence ID (e.g. sequence_abc123)."),
    subject: str = typer.Option(..., "--subject", help="Email subject line."),
    html: Optional[str] = typer.Option(None, "--html", help="Email HTML content."),
    html_file: Optional[str] = typer.Option(None, "--html-file", help="Path to an HTML file."),
    inbox_snippet: Optional[str] = typer.Option(None, "--inbox-snippet", help="Inbox preview/snippet text."),
    delay_interval: Optional[str] = typer.Option(
        None, "--delay-interval", help="Delay interval: minutes, hours, days, months."
    ),
    delay_count: Optional[str] = typer.Option(None, "--delay-count", help="Delay interval count (positive integer)."),
    editor_choice: Optional[str] = typer.Option(
        None, "--editor-choice", help="Editor choice, e.g. plain, fancy, or raw."
    ),
    cc: Optional[str] = typer.Option(None, "--cc", help="CC value (supports Liquid)."),
    bcc: Optional[str] = typer.Option(None, "--bcc", help="BCC value (supports Liquid)."),
    to: Optional[str] = typer.Option(None, "--to", help="Recipient value (supports Liquid)."),
) -> None:
    """Create an email template in a sequence."""

    try:
        validate_sequence_id(sequence_id)
        body = resolve_html_input(html, html_file)
        parsed_delay = validate_delay_options(delay_interval, delay_count)

        fields: dict[str, Any] = {"subject": subject, "html": body}
        optional = {
            "inbox_snippet": inbox_snippet,
            "delay_interval": delay_interval,
            "delay_interval_count": parsed_delay,
            "editor_choice": editor_choice,
            "cc": cc,
            "bcc": bcc,
            "to": to,
        }
        fields.update({key: value for key, value in optional.items() if value is not None})

        with output.status("Creating sequence email..."):
            result = _run(lambda client: client.create_sequence_email(sequence_id, fields))
    except CLIError as exc:
        handle_cli_error(exc)

    if output.is_json():
        output.emit(data=result, meta={"count": 1 if result else 0})
        return

    template_id = (result or {}).get("id")
    if template_id:
        output.success(f"Created email {template_id} in sequence {sequence_id}")
    else:
        output.success(f"Created email in sequence {sequence_id}")


@app.command(name="update-email")
def update_email(
    template_id: str = typer.Option(..., "--template-id", help="Email template ID (e.g. 12345)."),
    subject: Optional[str] = typer.Option(None, "--subject", help="New email subject line."),
    html: Optional[str] = typer.Option(None, "--html", help="New email HTML content."),
    html_file: Optional[str] = typer.Option(None, "--html-file", help="Path to an HTML file."),
) -> None:
    """Update an existing sequence email template by template ID."""

    try:
        body = resolve_optional_html_input(html, html_file)
        if not subject and not body:
            raise OptionsError("At least one of --subject, --html, or --html-file must be provided.")

        fields: dict[str, Any] = {}
        if subject:
            fields["subject"] = subject
        if body:
            fields["html"] = body

        with output.status("Updating sequence email..."):
            result = _run(lambda client: client.update_sequence_email(template_id, fields))
    except CLIError as exc:
        handle_cli_error(exc)

    if output.is_json():
        output.emit(data=result, meta={"count": 1 if result else 0})
        return

    output.success(f"Updated email template {template_id}")
