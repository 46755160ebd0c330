"""Rendering of bulk-operation results and their exit codes."""

from __future__ import annotations

from typing import Any, Callable, Sequence

from cli.output import Output, output as default_output
from cli.ui_components import (
    build_failures_table,
    build_preview_table,
    build_rejected_rows_table,
)
from core.domain.models import Envelope, ExecutionResult, Outcome, OutcomeStatus, RejectedRow
from core.errors import EXIT_ERROR, EXIT_OK


def exit_code_for(outcome: Outcome) -> int:
    """0 unless an executed batch had failed targets."""

    if outcome.status is OutcomeStatus.EXECUTED and outcome.result and not outcome.result.ok:
        return EXIT_ERROR
    return EXIT_OK


def result_data(action: str, result: ExecutionResult) -> dict[str, Any]:
    return {
        "action": action,
        "succeeded": result.success_count,
        "failed": result.failure_count,
        "failures": [f.model_dump(mode="json") for f in result.failures],
    }


def report_rejected_rows(rows: Sequence[RejectedRow], *, out: Output = default_output) -> None:
    """Every rejected row, never only the first."""

    message = f"Found {len(rows)} invalid row(s). Nothing was changed; fix the input and retry."
    if out.is_json():
        out.json(
            Envelope(
                success=False,
                error=message,
                data=[row.model_dump(mode="json") for row in rows],
                meta={"count": len(rows)},
            )
        )
        return
    out.console.print(build_rejected_rows_table(rows))
    out.error(message)


def report_partial(
    action: str,
    partial: ExecutionResult,
    message: str,
    *,
    meta: dict[str, Any] | None = None,
    out: Output = default_output,
) -> None:
    """A batch-fatal error stopped execution part-way."""

    if out.is_json():
        out.json(Envelope(success=False, error=message, data=result_data(action, partial), meta=meta or {}))
        return
    if partial.success_count:
        out.info(f"{partial.success_count} target(s) were processed before the batch stopped.")
    if partial.failures:
        out.console.print(build_failures_table(partial.failures))
    out.error(message)


def report_outcome(
    outcome: Outcome,
    *,
    action: str,
    done_message: Callable[[int], str],
    preview_size: int = 10,
    out: Output = default_output,
) -> None:
    """Render a terminal state of `protect`.

    `done_message` receives the number of successful targets.
    """

    meta = {"total": outcome.total, "working_set": outcome.count}

    if outcome.status is OutcomeStatus.EMPTY:
        if out.is_json():
            out.emit(data={"action": action, "succeeded": 0, "failed": 0, "failures": []}, meta=meta)
        else:
            out.info("No targets to process.")
        return

    if outcome.status is OutcomeStatus.PREVIEWED:
        if out.is_json():
            out.emit(
                data={
                    "action": action,
                    "dry_run": True,
                    "count": outcome.count,
                    "preview": outcome.preview,
                },
                meta=meta,
            )
            return
        out.console.print(build_preview_table(outcome.preview[:preview_size], total=outcome.count))
        out.info(f"Dry run: {outcome.name} would affect {outcome.count} record(s). No changes were made.")
        return

    if outcome.status is OutcomeStatus.ABORTED:
        if out.is_json():
            out.emit(data={"action": action, "aborted": True, "count": 0}, meta=meta)
        else:
            out.info("Aborted. No changes were made.")
        return

    result = outcome.result or ExecutionResult()
    if out.is_json():
        out.json(
            Envelope(
                success=result.ok,
                error=None if result.ok else f"{result.failure_count} target(s) failed.",
                data=result_data(action, result),
                meta=meta,
            )
        )
        return

    if result.success_count:
        out.success(done_message(result.success_count))
    if result.failures:
        out.console.print(build_failures_table(result.failures))
        out.error(
            f"{result.failure_count} of {outcome.count} target(s) failed; "
            f"{result.success_count} succeeded."
        )
