"""Root Typer application.

Mounts the command groups and applies the global flags (`--json`,
`--verbose`) before any command runs.
"""

from __future__ import annotations

import typer

from cli import doctor, profile, runtime, sequences, subscribers
from cli.errors import handle_cli_error
from cli.output import output
from core.errors import CLIError
from core.logger import setup_logging

app = typer.Typer(
    name="bento",
    help="Bento marketing-automation command-line client.",
    no_args_is_help=True,
    add_completion=False,
)

app.add_typer(subscribers.app, name="subscribers")
app.add_typer(sequences.app, name="sequences")
app.add_typer(profile.app, name="profile")
app.add_typer(doctor.app, name="doctor")


@app.callback()
def main(
    json_output: bool = typer.Option(False, "--json", help="Machine-readable JSON output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr."),
) -> None:
    output.json_mode = json_output
    try:
        settings = runtime.get_settings()
    except CLIError as exc:
        handle_cli_error(exc)
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_format)


def run() -> None:
    app()
