"""Error types shared by the Core, the adapters and the CLI.

Every user-facing failure derives from `CLIError`, which carries a stable
machine code (used in the JSON envelope) and the process exit code the CLI
must terminate with.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.domain.models import ExecutionResult, RejectedRow


EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INVALID_ROWS = 6


class CLIError(Exception):
    """Base error: a message for humans plus a code and an exit code."""

    code = "CLI_ERROR"
    exit_code = EXIT_ERROR

    def __init__(self, message: str, *, code: str | None = None, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if exit_code is not None:
            self.exit_code = exit_code


class UsageError(CLIError):
    """No target selection (or a contradictory one) was given."""

    code = "USAGE_ERROR"
    exit_code = EXIT_USAGE


class InvalidRowsError(CLIError):
    """The target input contained malformed rows; nothing may run."""

    code = "VALIDATION_ERROR"
    exit_code = EXIT_INVALID_ROWS

    def __init__(self, rows: list[RejectedRow]) -> None:
        super().__init__(f"{len(rows)} invalid row(s) in input.")
        self.rows = rows


class OptionsError(CLIError):
    """Bad safety flag value or combination."""

    code = "VALIDATION_ERROR"


class TargetFileError(CLIError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.path = path


class TargetFileNotFound(TargetFileError):
    pass


class TargetFilePermissionDenied(TargetFileError):
    pass


class TargetFileUnreadable(TargetFileError):
    pass


class ConfirmationRejected(CLIError):
    """A dangerous operation was attempted non-interactively without --confirm."""

    code = "CONFIRMATION_REQUIRED"


class ConfigError(CLIError):
    code = "CONFIG_ERROR"


class ApiError(CLIError):
    """A remote call failed. Scoped to a single target unless a subclass says otherwise."""

    code = "API_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ApiError):
    """Credentials were refused: every following call would fail too."""

    code = "AUTH_ERROR"


class BatchInterrupted(CLIError):
    """A batch-fatal error stopped execution; `partial` holds what already ran."""

    code = "BATCH_INTERRUPTED"

    def __init__(self, cause: CLIError, *, partial: ExecutionResult) -> None:
        super().__init__(cause.message)
        self.cause = cause
        self.partial = partial
        self.meta: dict[str, Any] = {}
