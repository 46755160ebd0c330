"""Target resolution for bulk commands.

Turns `--email` or `--file` into a `TargetSet`: accepted targets in
first-seen order (deduplicated) plus every rejected row.

Rules:
- Neither flag meaningfully set -> `None` (the caller reports a usage error).
  An empty file is *not* the same thing: it yields an empty `TargetSet`.
- A line is a bare value unless it looks like CSV (comma or quote), in which
  case the first column is used.
- Blank lines are skipped and never count as rows.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path

from core.domain.models import RejectedRow, TargetSet
from core.errors import (
    TargetFileNotFound,
    TargetFilePermissionDenied,
    TargetFileUnreadable,
    UsageError,
)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_HEADER_VALUES = {"email", "email_address", "e-mail"}

INVALID_EMAIL_REASON = "Invalid email address"


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def normalize_email(value: str) -> str:
    return value.strip().lower()


def _first_column(line: str) -> str:
    if "," not in line and '"' not in line:
        return line
    try:
        row = next(csv.reader([line]))
    except csv.Error:
        return line
    return row[0] if row else ""


def parse_target_lines(text: str) -> TargetSet:
    """Parse file contents into a `TargetSet` (no I/O)."""

    targets: list[str] = []
    rejected: list[RejectedRow] = []
    seen: set[str] = set()
    first_row = True

    for line_no, raw_line in enumerate(text.split("\n"), start=1):
        raw_line = raw_line.rstrip("\r")
        if not raw_line.strip():
            continue

        raw_value = _first_column(raw_line.strip()).strip()
        is_first = first_row
        first_row = False

        if is_first and raw_value.lower() in _HEADER_VALUES:
            continue

        if not is_valid_email(raw_value):
            rejected.append(RejectedRow(row=line_no, value=raw_value, reason=INVALID_EMAIL_REASON))
            continue

        email = normalize_email(raw_value)
        if email in seen:
            continue
        seen.add(email)
        targets.append(email)

    return TargetSet(targets=targets, rejected=rejected)


def read_target_file(path: Path) -> str:
    """Read a target file as UTF-8, mapping failures to distinct error kinds."""

    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise TargetFileNotFound(f"File not found: {path}", path=str(path)) from exc
    except PermissionError as exc:
        raise TargetFilePermissionDenied(
            f"Cannot read file (permission denied): {path}", path=str(path)
        ) from exc
    except UnicodeDecodeError as exc:
        raise TargetFileUnreadable(f"File is not valid UTF-8 text: {path}", path=str(path)) from exc
    except OSError as exc:
        raise TargetFileUnreadable(f"Unable to read file: {path}", path=str(path)) from exc


def resolve_email_targets(*, email: str | None = None, file: str | Path | None = None) -> TargetSet | None:
    """Resolve the subscriber emails selected by `--email` / `--file`."""

    email = (email or "").strip()
    file_str = str(file).strip() if file is not None else ""

    if not email and not file_str:
        return None
    if email and file_str:
        raise UsageError("Provide only one of --email or --file.")

    if email:
        if not is_valid_email(email):
            return TargetSet(rejected=[RejectedRow(row=0, value=email, reason=INVALID_EMAIL_REASON)])
        return TargetSet(targets=[normalize_email(email)])

    return parse_target_lines(read_target_file(Path(file_str)))
