"""domainwatch CLI - domain subscription and reporting engine."""

import asyncio
import logging
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import settings
from .engine.exceptions import InvalidIntervalError
from .engine.models import ReportInterval, UserId, normalize_domain
from .utils.console import console
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _parse_user_id(value: str) -> UserId:
    """Chat ids are numeric on Telegram; keep anything else as a string."""
    value = value.strip()
    try:
        return int(value)
    except ValueError:
        return value


def _parse_watch(value: str) -> tuple[UserId, str]:
    """Parse a ``USER:DOMAIN`` pair.

    Raises:
        typer.BadParameter: If the value is not in USER:DOMAIN form
    """
    user, sep, domain = value.partition(":")
    if not sep or not user.strip() or not domain.strip():
        raise typer.BadParameter(f"Expected USER:DOMAIN, got '{value}'")
    return _parse_user_id(user), normalize_domain(domain)


app = typer.Typer(
    name="domainwatch",
    help="Domain subscription engine - watch domains, alert on events, send periodic reports",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]domainwatch[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """domainwatch - know when your domains move."""


@app.command("run")
def run(
    watch: Annotated[
        list[str] | None,
        typer.Option("--watch", "-w", help="Seed a subscription as USER:DOMAIN (repeatable)"),
    ] = None,
    interval: Annotated[
        str | None,
        typer.Option("--interval", "-i", help="Report interval for seeded users"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Log notifications instead of sending them"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log at DEBUG regardless of LOG_LEVEL"),
    ] = False,
) -> None:
    """Run the engine in the foreground until interrupted."""
    watches = [_parse_watch(value) for value in watch or []]
    if interval is not None:
        try:
            ReportInterval.parse(interval)
        except ValueError:
            console.print(f"[red]{InvalidIntervalError(interval)}[/red]")
            raise typer.Exit(code=1)

    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)

    from .engine.server import run_engine

    console.print(Panel("[bold]Starting domainwatch engine...[/bold]", style="blue"))
    console.print("[dim]Press Ctrl+C to stop[/dim]\n")
    try:
        asyncio.run(run_engine(watches, interval=interval, dry_run=dry_run))
    except KeyboardInterrupt:
        console.print("\n[dim]Engine stopped.[/dim]")


@app.command("check")
def check(
    domain: Annotated[str, typer.Argument(help="Domain to inspect")],
    threshold: Annotated[
        int,
        typer.Option("--threshold", "-t", min=0, max=100, help="Score threshold to flag"),
    ] = 80,
) -> None:
    """Fetch a domain once and show its report status."""
    from .engine.reports import build_domain_status
    from .providers import DomaClient

    async def _fetch():
        async with DomaClient() as client:
            snapshot = await client.fetch_snapshot(normalize_domain(domain))
        return build_domain_status(snapshot, threshold)

    status = asyncio.run(_fetch())

    table = Table(title=status.domain)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in status.to_dict().items():
        if key == "domain" or value is None:
            continue
        table.add_row(key, str(value))
    console.print(table)


@app.command("intervals")
def intervals() -> None:
    """List the supported report intervals."""
    table = Table(title="Report Intervals")
    table.add_column("Interval", style="cyan")
    table.add_column("Seconds", justify="right")
    table.add_column("Description")
    for option in ReportInterval:
        table.add_row(option.value, str(option.seconds), option.description)
    console.print(table)


if __name__ == "__main__":
    app()
