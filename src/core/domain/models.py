"""Domain models (Pydantic v2).

These models describe *what* a bulk operation is made of: the targets it
acts on, the safety options that govern it and the outcome it produced.
They know nothing about HTTP, files or the terminal.

Everything here lives for the duration of a single command invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Sequence

from pydantic import BaseModel, Field, PositiveInt, model_validator
from pydantic.config import ConfigDict


class RejectedRow(BaseModel):
    """An input row that failed validation."""

    model_config = ConfigDict(frozen=True)

    row: int = Field(
        ...,
        ge=0,
        description="1-based line number in the input file; 0 for the --email flag.",
    )
    value: str = Field(..., description="Raw value as found in the input.")
    reason: str = Field(..., min_length=1, description="Why the value was rejected.")


class TargetSet(BaseModel):
    """Resolved targets plus the rows that were rejected while resolving them.

    Invariant: a value appears in at most one of `targets` / `rejected`, and
    `targets` keeps first-seen order without duplicates.
    """

    targets: list[str] = Field(default_factory=list)
    rejected: list[RejectedRow] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.rejected)


class SafetyOptions(BaseModel):
    """Typed safety flags shared by every bulk command."""

    model_config = ConfigDict(frozen=True)

    dry_run: bool = Field(default=False, description="Preview only, never execute.")
    limit: PositiveInt | None = Field(
        default=None,
        description="Act on the first N targets only (stable prefix).",
    )
    sample: PositiveInt | None = Field(
        default=None,
        description="Act on N targets chosen at random (differs between runs).",
    )
    confirm: bool = Field(
        default=False,
        description="Skip the confirmation prompt for dangerous operations.",
    )

    @model_validator(mode="after")
    def _limit_xor_sample(self) -> "SafetyOptions":
        if self.limit is not None and self.sample is not None:
            raise ValueError("--limit and --sample cannot be used together")
        return self


class TargetFailure(BaseModel):
    target: str
    error: str
    code: str | None = None


class ExecutionResult(BaseModel):
    """Per-target accounting of an executed batch, in target order."""

    succeeded: list[str] = Field(default_factory=list)
    failures: list[TargetFailure] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


ExecuteFn = Callable[[Sequence[str]], Awaitable[ExecutionResult]]
FormatFn = Callable[[str], dict[str, Any]]


@dataclass
class OperationSpec:
    """One bulk action, built directly by each command.

    `execute` receives the reduced working set exactly once.
    """

    name: str
    action: str
    items: Sequence[str]
    format_item: FormatFn
    execute: ExecuteFn
    is_dangerous: bool = False


class OutcomeStatus(str, Enum):
    EMPTY = "empty"
    PREVIEWED = "previewed"
    ABORTED = "aborted"
    EXECUTED = "executed"


@dataclass
class Outcome:
    """Terminal state of `protect`."""

    status: OutcomeStatus
    name: str
    total: int
    working_set: list[str] = field(default_factory=list)
    preview: list[dict[str, Any]] = field(default_factory=list)
    result: ExecutionResult | None = None

    @property
    def count(self) -> int:
        return len(self.working_set)


class Envelope(BaseModel):
    """Machine-readable output shape used by `--json`."""

    success: bool
    error: str | None = None
    data: Any = None
    meta: dict[str, Any] = Field(default_factory=dict)


class Profile(BaseModel):
    """Stored credentials for one Bento site."""

    api_key: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProfileConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: str | None = None
    profiles: dict[str, Profile] = Field(default_factory=dict)
