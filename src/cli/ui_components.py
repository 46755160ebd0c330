"""UI components for the CLI (Rich).

Tables and panels reused by several commands, kept apart from the command
logic.
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.table import Table
from rich.text import Text

from core.domain.models import RejectedRow, TargetFailure


def build_preview_table(preview: Sequence[dict[str, Any]], *, total: int) -> Table:
    """Table of formatted targets; the caption says how many are not shown."""

    columns: list[str] = []
    for item in preview:
        for key in item:
            if key not in columns:
                columns.append(key)

    table = Table(title="Preview")
    for key in columns:
        table.add_column(key.upper(), style="cyan", overflow="fold")
    for item in preview:
        table.add_row(*(str(item.get(key, "")) for key in columns))

    hidden = total - len(preview)
    if hidden > 0:
        table.caption = f"... and {hidden} more"
    return table


def build_rejected_rows_table(rows: Sequence[RejectedRow]) -> Table:
    table = Table(title="Invalid rows")
    table.add_column("Row", style="bright_red", no_wrap=True, justify="right")
    table.add_column("Value", style="white", overflow="fold")
    table.add_column("Reason", style="dim")
    for row in rows:
        table.add_row(str(row.row) if row.row else "--email", row.value, row.reason)
    return table


def build_failures_table(failures: Sequence[TargetFailure]) -> Table:
    table = Table(title="Failed")
    table.add_column("Target", style="white", overflow="fold")
    table.add_column("Error", style="red", overflow="fold")
    for failure in failures:
        table.add_row(failure.target, Text(failure.error))
    return table
