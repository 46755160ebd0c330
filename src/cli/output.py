"""Terminal output (Rich) and the machine-readable envelope.

One module-level `output` object is shared by every command; the root
callback switches it to JSON mode when `--json` is given.

Rules:
- stdout carries results only (tables, messages or one JSON envelope).
- Human-mode errors go to stderr.
"""

from __future__ import annotations

import json
from contextlib import nullcontext
from typing import Any, ContextManager, Sequence

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from core.domain.models import Envelope


class Output:
    def __init__(self) -> None:
        self._console = Console(highlight=False)
        self._err_console = Console(stderr=True, highlight=False)
        self.json_mode = False

    @property
    def console(self) -> Console:
        return self._console

    @property
    def err_console(self) -> Console:
        return self._err_console

    def is_json(self) -> bool:
        return self.json_mode

    def reset(self) -> None:
        self.json_mode = False

    def json(self, envelope: Envelope) -> None:
        typer.echo(json.dumps(envelope.model_dump(mode="json"), ensure_ascii=False, indent=2))

    def emit(self, *, data: Any = None, meta: dict[str, Any] | None = None) -> None:
        """Success envelope shortcut."""

        self.json(Envelope(success=True, error=None, data=data, meta=meta or {}))

    def success(self, message: str) -> None:
        self._console.print(Text(f"✓ {message}", style="green"), soft_wrap=True)

    def info(self, message: str) -> None:
        self._console.print(Text(message, style="cyan"), soft_wrap=True)

    def log(self, message: str) -> None:
        self._console.print(Text(message), soft_wrap=True)

    def warn(self, message: str) -> None:
        self._err_console.print(Text(f"! {message}", style="yellow"), soft_wrap=True)

    def error(self, message: str, *, data: Any = None) -> None:
        if self.json_mode:
            self.json(Envelope(success=False, error=message, data=data, meta={}))
            return
        self._err_console.print(Text(f"✗ {message}", style="bold red"), soft_wrap=True)

    def table(
        self,
        rows: Sequence[dict[str, Any]],
        *,
        columns: Sequence[tuple[str, str]],
        title: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        """Render `rows` as a table, or as an envelope in JSON mode.

        `columns` is a list of `(key, header)` pairs.
        """

        if self.json_mode:
            self.emit(data=list(rows), meta=meta or {"count": len(rows)})
            return

        table = Table(title=title)
        for _, header in columns:
            table.add_column(header, overflow="fold")
        for row in rows:
            table.add_row(*(str(row.get(key, "")) for key, _ in columns))
        self._console.print(table)

    def status(self, message: str) -> ContextManager[Any]:
        """Spinner while a request is in flight (silent in JSON mode)."""

        if self.json_mode or not self._console.is_terminal:
            return nullcontext()
        return self._console.status(message)


output = Output()
