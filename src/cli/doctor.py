"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.table import Table

from adapters.bento_client import BentoClient
from cli import runtime
from cli.output import output
from core.errors import CLIError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")


async def _check_api(client: BentoClient) -> tuple[bool, str]:
    try:
        async with client:
            await client.ping()
        return True, "Credentials accepted"
    except CLIError as exc:
        return False, exc.message


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = runtime.get_settings()
    checks: list[dict[str, str]] = []

    checks.append({"check": "API base URL", "status": "OK", "details": settings.base_url})
    config_dir = settings.resolved_config_dir()
    checks.append({"check": "Config dir", "status": "OK", "details": str(config_dir)})

    if settings.api_key and settings.site_id:
        checks.append({"check": "Credentials", "status": "OK", "details": "From BENTO_API_KEY / BENTO_SITE_ID"})
    else:
        try:
            config = runtime.get_profile_store(settings).load()
        except CLIError as exc:
            checks.append({"check": "Credentials", "status": "FAIL", "details": exc.message})
        else:
            if config.current and config.current in config.profiles:
                checks.append({"check": "Credentials", "status": "OK", "details": f'Profile "{config.current}"'})
            else:
                checks.append(
                    {"check": "Credentials", "status": "FAIL", "details": "Run 'bento profile add <name>'"}
                )

    try:
        client = runtime.open_client(settings)
    except CLIError as exc:
        checks.append({"check": "API connectivity", "status": "SKIPPED", "details": exc.message})
    else:
        ok_api, detail_api = asyncio.run(_check_api(client))
        checks.append({"check": "API connectivity", "status": "OK" if ok_api else "FAIL", "details": detail_api})

    failed = any(c["status"] == "FAIL" for c in checks)

    if output.is_json():
        output.emit(data=checks, meta={"count": len(checks), "failed": failed})
    else:
        table = Table(title="Bento CLI Doctor")
        table.add_column("Check", style="bright_green", no_wrap=True)
        table.add_column("Status", style="white")
        table.add_column("Details", style="dim")
        for c in checks:
            table.add_row(c["check"], c["status"], c["details"])
        output.console.print(table)

    if failed:
        raise typer.Exit(code=1)
