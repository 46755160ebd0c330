"""Terminal implementation of `ConfirmationGate`."""

from __future__ import annotations

import asyncio
import sys
from typing import Any, Sequence

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from cli.ui_components import build_preview_table


class TerminalConfirmation:
    """Asks on the terminal; refuses to be interactive when stdin is not a TTY."""

    def __init__(self, console: Console) -> None:
        self._console = console

    def is_interactive(self) -> bool:
        try:
            return sys.stdin.isatty()
        except (AttributeError, ValueError):
            return False

    async def confirm(self, *, name: str, count: int, preview: Sequence[dict[str, Any]]) -> bool:
        body = Text.assemble(
            (name, "bold"),
            "\n",
            (f"{count} record(s) will be affected. This cannot be undone.", "yellow"),
        )
        self._console.print(Panel(body, border_style="red", title="Confirm"))
        if preview:
            self._console.print(build_preview_table(preview, total=count))

        # typer.confirm blocks on stdin.
        return await asyncio.to_thread(typer.confirm, "Proceed?", default=False, err=True)
