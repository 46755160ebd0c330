"""Bulk-operation guard.

Every command that can mutate many records goes through `protect`, a linear
state machine:

    reduce -> preview -> dry-run? -> confirmation gate -> execute

Terminal states are `Outcome` values (empty, previewed, aborted, executed);
the non-interactive refusal is raised as `ConfirmationRejected`.

Notes:
- `--sample` is random on purpose: two runs may act on different targets.
- Execution is strictly sequential; see `run_sequentially`.
"""

from __future__ import annotations

import random
from typing import Awaitable, Callable, Sequence

from pydantic import ValidationError

from core.domain.models import (
    ExecutionResult,
    OperationSpec,
    Outcome,
    OutcomeStatus,
    SafetyOptions,
    TargetFailure,
)
from core.errors import (
    ApiError,
    AuthenticationError,
    BatchInterrupted,
    ConfirmationRejected,
    OptionsError,
)
from core.interfaces.confirmation import ConfirmationGate
from core.logger import get_logger

DEFAULT_PREVIEW_SIZE = 10

logger = get_logger(__name__)


def _parse_count(flag: str, value: str | int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise OptionsError(f"{flag} must be a positive integer.")
    if isinstance(value, int):
        parsed = value
    else:
        text = value.strip()
        if not (text.isascii() and text.isdigit()) or str(int(text)) != text:
            raise OptionsError(f"{flag} must be a positive integer.")
        parsed = int(text)
    if parsed <= 0:
        raise OptionsError(f"{flag} must be a positive integer.")
    return parsed


def parse_safety_options(
    *,
    dry_run: bool = False,
    limit: str | int | None = None,
    sample: str | int | None = None,
    confirm: bool = False,
) -> SafetyOptions:
    """Turn raw safety flags into `SafetyOptions`. Pure: no I/O."""

    parsed_limit = _parse_count("--limit", limit)
    parsed_sample = _parse_count("--sample", sample)
    if parsed_limit is not None and parsed_sample is not None:
        raise OptionsError("Use either --limit or --sample, not both.")

    try:
        return SafetyOptions(
            dry_run=bool(dry_run),
            limit=parsed_limit,
            sample=parsed_sample,
            confirm=bool(confirm),
        )
    except ValidationError as exc:
        raise OptionsError(str(exc)) from exc


def reduce_targets(
    items: Sequence[str],
    options: SafetyOptions,
    *,
    rng: random.Random | None = None,
) -> list[str]:
    """Compute the working set.

    - limit: first N items, original order.
    - sample: N items uniformly at random, without replacement.
    - neither: everything.
    """

    if options.limit is not None:
        return list(items[: options.limit])
    if options.sample is not None:
        k = min(options.sample, len(items))
        return (rng or random).sample(list(items), k)
    return list(items)


async def protect(
    spec: OperationSpec,
    options: SafetyOptions,
    *,
    gate: ConfirmationGate,
    rng: random.Random | None = None,
    preview_size: int = DEFAULT_PREVIEW_SIZE,
) -> Outcome:
    """Govern one bulk operation and, when allowed, run it."""

    log = logger.bind(operation=spec.action)
    working_set = reduce_targets(spec.items, options, rng=rng)
    log.debug(
        "bulk_operation.reduced",
        total=len(spec.items),
        working_set=len(working_set),
        limit=options.limit,
        sample=options.sample,
    )

    if not working_set:
        return Outcome(status=OutcomeStatus.EMPTY, name=spec.name, total=len(spec.items))

    preview = [spec.format_item(item) for item in working_set]

    if options.dry_run:
        log.info("bulk_operation.previewed", count=len(working_set))
        return Outcome(
            status=OutcomeStatus.PREVIEWED,
            name=spec.name,
            total=len(spec.items),
            working_set=working_set,
            preview=preview,
        )

    if spec.is_dangerous and not options.confirm:
        if not gate.is_interactive():
            log.warning("bulk_operation.rejected", count=len(working_set))
            raise ConfirmationRejected(
                f"{spec.name} affects {len(working_set)} record(s) and cannot be undone. "
                "Re-run with --confirm to proceed in non-interactive mode."
            )

        confirmed = await gate.confirm(
            name=spec.name,
            count=len(working_set),
            preview=preview[:preview_size],
        )
        if not confirmed:
            log.info("bulk_operation.aborted", count=len(working_set))
            return Outcome(
                status=OutcomeStatus.ABORTED,
                name=spec.name,
                total=len(spec.items),
                working_set=working_set,
                preview=preview,
            )

    try:
        result = await spec.execute(working_set)
    except BatchInterrupted as exc:
        exc.meta = {"total": len(spec.items), "working_set": len(working_set)}
        log.info(
            "bulk_operation.interrupted",
            succeeded=exc.partial.success_count,
            failed=exc.partial.failure_count,
        )
        raise
    log.info(
        "bulk_operation.executed",
        succeeded=result.success_count,
        failed=result.failure_count,
    )
    return Outcome(
        status=OutcomeStatus.EXECUTED,
        name=spec.name,
        total=len(spec.items),
        working_set=working_set,
        preview=preview,
        result=result,
    )


async def run_sequentially(
    targets: Sequence[str],
    action: Callable[[str], Awaitable[object]],
) -> ExecutionResult:
    """Apply `action` to each target, one at a time, in order.

    A per-target `ApiError` is recorded and the batch moves on. An
    `AuthenticationError` stops the batch: it is re-raised as
    `BatchInterrupted` with everything processed so far.
    """

    result = ExecutionResult()
    for target in targets:
        try:
            await action(target)
        except AuthenticationError as exc:
            raise BatchInterrupted(exc, partial=result) from exc
        except ApiError as exc:
            logger.debug("bulk_operation.target_failed", target=target, error=exc.message)
            result.failures.append(TargetFailure(target=target, error=exc.message, code=exc.code))
            continue
        result.succeeded.append(target)
    return result
