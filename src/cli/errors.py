"""Single exit path for CLI errors."""

from __future__ import annotations

from typing import NoReturn

import typer

from cli.output import output
from cli.reporting import report_partial, report_rejected_rows
from core.errors import BatchInterrupted, CLIError, InvalidRowsError
from core.logger import get_logger

logger = get_logger(__name__)


def handle_cli_error(exc: CLIError, *, action: str | None = None) -> NoReturn:
    """Render `exc` (stderr, or an error envelope with --json) and exit."""

    logger.debug("cli.error", code=exc.code, exit_code=exc.exit_code, error=exc.message)

    if isinstance(exc, InvalidRowsError):
        report_rejected_rows(exc.rows)
    elif isinstance(exc, BatchInterrupted):
        report_partial(action or "unknown", exc.partial, exc.message, meta=exc.meta)
    else:
        output.error(exc.message)
    raise typer.Exit(code=exc.exit_code)
