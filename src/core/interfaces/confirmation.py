"""Confirmation capability used by the bulk-operation guard.

Why a Protocol:
- Whether stdin is a terminal is an environment query; injecting it lets
  tests simulate interactive and batch runs deterministically.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ConfirmationGate(Protocol):
    """Minimal contract for asking a human before a dangerous operation."""

    def is_interactive(self) -> bool:
        """True when a human can answer a prompt (stdin attached to a TTY)."""

        ...

    async def confirm(self, *, name: str, count: int, preview: Sequence[dict[str, Any]]) -> bool:
        """Show the operation and a bounded preview; return True on an explicit yes."""

        ...
