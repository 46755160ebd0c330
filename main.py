"""Run the CLI from a checkout: `python main.py subscribers unsubscribe --help`.

Puts `src/` on the import path so `cli`, `core` and `adapters` resolve
without `pip install -e .`; the installed entry point is `bento`.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    # cp1252 consoles cannot print the ✓/✗ markers.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
