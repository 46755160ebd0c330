"""Shared flow of every bulk subscriber command.

    safety flags -> targets -> rejected rows? -> protect -> report -> exit code

Safety flags are parsed first so a bad combination fails before any file is
read. The API client is only opened inside `execute`, which means dry runs
and aborted runs never need credentials.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

import typer

from adapters.bento_client import BentoClient
from cli import runtime
from cli.errors import handle_cli_error
from cli.output import output
from cli.reporting import exit_code_for, report_outcome
from core.config import AppSettings
from core.domain.models import ExecutionResult, OperationSpec, Outcome, SafetyOptions
from core.errors import CLIError, InvalidRowsError, UsageError
from core.services.safety import parse_safety_options, protect, run_sequentially
from core.services.targets import resolve_email_targets

PerTarget = Callable[[BentoClient, str], Awaitable[Any]]

NO_TARGETS_MESSAGE = "Provide --email <email> or --file <path> to select subscribers."

EMAIL_HELP = "Single subscriber email."
FILE_HELP = "CSV (first column) or newline list of subscriber emails."
DRY_RUN_HELP = "Show what would change without changing anything."
LIMIT_HELP = "Only act on the first N targets."
SAMPLE_HELP = "Only act on N randomly chosen targets (a re-run may pick different ones)."
CONFIRM_HELP = "Skip the confirmation prompt (required in non-interactive mode)."


@dataclass
class BulkCommand:
    name: str
    action: str
    done_message: Callable[[int], str]
    per_target: PerTarget
    is_dangerous: bool = False


def format_email(email: str) -> dict[str, Any]:
    return {"email": email}


def build_spec(command: BulkCommand, targets: Sequence[str], settings: AppSettings) -> OperationSpec:
    async def execute(working_set: Sequence[str]) -> ExecutionResult:
        async with runtime.open_client(settings) as client:
            return await run_sequentially(
                working_set,
                lambda email: command.per_target(client, email),
            )

    return OperationSpec(
        name=command.name,
        action=command.action,
        items=list(targets),
        format_item=format_email,
        execute=execute,
        is_dangerous=command.is_dangerous,
    )


def run_bulk(
    command: BulkCommand,
    *,
    email: str | None,
    file: str | None,
    dry_run: bool,
    limit: str | None,
    sample: str | None,
    confirm: bool,
) -> None:
    try:
        options = parse_safety_options(dry_run=dry_run, limit=limit, sample=sample, confirm=confirm)
        target_set = resolve_email_targets(email=email, file=file)
        if target_set is None:
            raise UsageError(NO_TARGETS_MESSAGE)
        if target_set.rejected:
            raise InvalidRowsError(target_set.rejected)

        settings = runtime.get_settings()
        spec = build_spec(command, target_set.targets, settings)
        outcome = _protect(spec, options, settings)
    except CLIError as exc:
        handle_cli_error(exc, action=command.action)

    if options.sample is not None and not output.is_json():
        output.warn("Targets were sampled at random; re-running may act on different subscribers.")

    report_outcome(
        outcome,
        action=command.action,
        done_message=command.done_message,
        preview_size=settings.preview_size,
    )
    code = exit_code_for(outcome)
    if code:
        raise typer.Exit(code=code)


def _protect(spec: OperationSpec, options: SafetyOptions, settings: AppSettings) -> Outcome:
    return asyncio.run(
        protect(
            spec,
            options,
            gate=runtime.confirmation_gate(),
            preview_size=settings.preview_size,
        )
    )
