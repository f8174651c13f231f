"""Product Hunt sync CLI.

Usage:
    hunt-sync sync [posts|topics|collections|all] [OPTIONS]
    hunt-sync health
    hunt-sync cursors [--clear]

Consistent exit codes (0=success, 1=error, 2=rate_limit).
A rate-limited run has its progress saved; re-run the same command to continue.
"""

# Load .env file before any other imports
from pathlib import Path as _Path

from dotenv import load_dotenv

_env_path = _Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)

import asyncio
import logging
from dataclasses import dataclass
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from config import Settings, get_settings
from core.errors import FailureKind, StoreUnavailableError, SyncError
from core.types import AllSyncOptions, EntityType, SyncOptions, SyncStats
from observability import setup_logging
from resilience import HttpErrorClassifier, RateLimiter, RetryExecutor
from sources import ProductHuntClient, RequestExecutor
from storage import CompositeStorage, CSVStorage, CursorStore, SupabaseStorage
from storage.base import BaseStorage
from sync import SyncOrchestrator, build_entity_specs

# Create CLI app
app = typer.Typer(
    name="hunt-sync",
    help="Product Hunt Sync Pipeline CLI",
    add_completion=False,
)

console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_RATE_LIMIT = 2


def configure_logging(quiet: bool = False, verbose: bool = False, json_logs: bool = False) -> None:
    """Configure logging with rich handler (or JSON lines)."""
    level = logging.WARNING if quiet else (logging.DEBUG if verbose else logging.INFO)
    handler = None if json_logs else RichHandler(console=console, show_path=False)
    setup_logging(level=level, json_format=json_logs, handler=handler, force=True)


@dataclass
class SyncApp:
    """Wired-up components for one CLI invocation."""

    client: ProductHuntClient
    orchestrator: SyncOrchestrator
    cursor_store: CursorStore


def build_storage(settings: Settings, csv_only: bool = False) -> BaseStorage:
    """CSV always; Supabase too when configured and not disabled."""
    csv_storage = CSVStorage(data_dir=settings.data_dir)
    url, key = settings.supabase_url, settings.supabase_key
    if csv_only or not url or not key:
        return csv_storage

    supabase = SupabaseStorage(supabase_url=url, supabase_key=key)
    return CompositeStorage(storages=[csv_storage, supabase])


def build_client(settings: Settings) -> ProductHuntClient:
    """Build the API client with its shared request path."""
    executor = RequestExecutor(
        rate_limiter=RateLimiter.from_config(settings.rate_limit_config),
        retry=RetryExecutor(config=settings.retry_config),
        classifier=HttpErrorClassifier(),
    )
    return ProductHuntClient(
        api_token=settings.ph_api_token,
        executor=executor,
        endpoint=settings.ph_endpoint,
        user_agent=settings.user_agent,
        timeout=settings.request_timeout,
    )


def build_app(settings: Settings, csv_only: bool = False) -> SyncApp:
    """Build every component from Settings."""
    client = build_client(settings)
    cursor_store = CursorStore(settings.cursor_file)
    orchestrator = SyncOrchestrator.from_settings(
        specs=build_entity_specs(client),
        storage=build_storage(settings, csv_only=csv_only),
        cursor_store=cursor_store,
        settings=settings,
    )
    return SyncApp(client=client, orchestrator=orchestrator, cursor_store=cursor_store)


def exit_code_for(stats: SyncStats) -> int:
    """Map finished-run stats to a process exit code."""
    kinds = {s.failure_kind for s in stats.by_entity.values()} | {stats.failure_kind}
    if FailureKind.RATE_LIMITED.value in kinds:
        return EXIT_RATE_LIMIT
    if kinds - {None}:
        return EXIT_ERROR
    return EXIT_OK


def print_summary(stats: SyncStats) -> None:
    """Print a summary table of a sync run."""
    table = Table(title="Sync Summary")
    table.add_column("Entity", style="bold")
    table.add_column("Fetched", justify="right")
    table.add_column("Saved", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Status")
    table.add_column("Next Cursor")

    rows = list(stats.by_entity.values()) or [stats]
    for s in rows:
        if s.failure_kind:
            status = f"[red]failed ({s.failure_kind})[/red]"
        elif s.exhausted:
            status = "[green]complete[/green]"
        else:
            status = "[yellow]more available[/yellow]"
        table.add_row(
            s.entity,
            str(s.total_fetched),
            str(s.total_saved),
            str(s.errors),
            status,
            s.next_cursor or "-",
        )

    if stats.by_entity:
        table.add_section()
        table.add_row(
            "total",
            str(stats.total_fetched),
            str(stats.total_saved),
            str(stats.errors),
            "",
            "",
        )

    console.print(table)
    console.print(f"Duration: {stats.duration_seconds:.1f}s")


async def _run_sync(
    app_: SyncApp,
    target: str,
    max_items: int | None,
    batch_size: int | None,
    cursor: str | None,
    clear_cursors: bool,
) -> SyncStats:
    async with app_.client:
        if target == "all":
            return await app_.orchestrator.run_all_sync(
                AllSyncOptions(
                    batch_size=batch_size,
                    max_items=max_items,
                    clear_cursors=clear_cursors,
                )
            )

        entity = EntityType.parse(target)
        if clear_cursors:
            app_.cursor_store.update(entity.value, None)
        try:
            return await app_.orchestrator.run_entity_sync(
                entity,
                SyncOptions(batch_size=batch_size, max_items=max_items, cursor=cursor),
            )
        except SyncError as e:
            # Report what was done before the failure
            return e.stats


@app.command()
def sync(
    target: Annotated[
        str, typer.Argument(help="What to sync: posts, topics, collections, or all")
    ] = "all",
    max_items: Annotated[int | None, typer.Option("--max-items", "-n", help="Maximum items to fetch")] = None,
    batch_size: Annotated[int | None, typer.Option("--batch-size", "-b", help="Items per request")] = None,
    cursor: Annotated[str | None, typer.Option("--cursor", help="Start after this cursor (single entity only)")] = None,
    clear_cursors: Annotated[bool, typer.Option("--clear-cursors", help="Start from the beginning")] = False,
    csv_only: Annotated[bool, typer.Option("--csv-only", help="Only save to CSV (skip DB)")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Minimal output")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
    json_logs: Annotated[bool, typer.Option("--json-logs", help="Emit JSON log lines")] = False,
) -> None:
    """Synchronize Product Hunt data, resuming from saved cursors.

    Examples:
        hunt-sync sync all
        hunt-sync sync posts --max-items 20
        hunt-sync sync topics --clear-cursors --csv-only
    """
    configure_logging(quiet=quiet, verbose=verbose, json_logs=json_logs)

    target = target.lower()
    if target != "all":
        try:
            target = EntityType.parse(target).value
        except ValueError:
            console.print(f"[red]Invalid target: {target}. Use posts, topics, collections, or all.[/red]")
            raise typer.Exit(code=EXIT_ERROR)
    elif cursor:
        console.print("[red]--cursor applies to a single entity type, not 'all'.[/red]")
        raise typer.Exit(code=EXIT_ERROR)

    settings = get_settings()
    if not settings.has_api_token:
        console.print("[red]PH_API_TOKEN is not set.[/red]")
        raise typer.Exit(code=EXIT_ERROR)

    sync_app = build_app(settings, csv_only=csv_only)

    if not quiet:
        console.print("=" * 44)
        console.print("[bold]Product Hunt Sync[/bold]")
        console.print(f"Target: {target}")
        console.print(f"Max items: {max_items or settings.max_items}")
        console.print(f"Batch size: {batch_size or settings.batch_size}")
        console.print(f"Storage: {sync_app.orchestrator.storage.name}")
        console.print(f"Cursor file: {sync_app.cursor_store.path}")
        console.print("=" * 44)

    try:
        stats = asyncio.run(
            _run_sync(sync_app, target, max_items, batch_size, cursor, clear_cursors)
        )
    except StoreUnavailableError as e:
        console.print(f"[red]Cursor store unavailable: {e}[/red]")
        raise typer.Exit(code=EXIT_ERROR)

    if not quiet:
        print_summary(stats)

    code = exit_code_for(stats)
    if code == EXIT_RATE_LIMIT:
        console.print("[yellow]Rate limit hit. Progress saved; re-run to continue.[/yellow]")
    elif code == EXIT_ERROR:
        console.print("[red]Sync completed with failures.[/red]")
    elif not quiet:
        console.print("[green]Sync completed successfully![/green]")

    if code != EXIT_OK:
        raise typer.Exit(code=code)


@app.command()
def health(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """Check API connectivity and credentials."""
    configure_logging(verbose=verbose)
    settings = get_settings()
    if not settings.has_api_token:
        console.print("[red]PH_API_TOKEN is not set.[/red]")
        raise typer.Exit(code=EXIT_ERROR)

    client = build_client(settings)

    async def _check() -> bool:
        async with client:
            return await client.health_check()

    if asyncio.run(_check()):
        console.print("[green]Product Hunt API is reachable.[/green]")
    else:
        console.print("[red]Product Hunt API health check failed.[/red]")
        raise typer.Exit(code=EXIT_ERROR)


@app.command()
def cursors(
    clear: Annotated[bool, typer.Option("--clear", help="Delete all saved cursors")] = False,
) -> None:
    """Show (or clear) saved sync cursors."""
    configure_logging(quiet=True)
    store = CursorStore(get_settings().cursor_file)

    try:
        if clear:
            store.clear()
            console.print("[green]Cursors cleared.[/green]")
            return

        state = store.load()
    except StoreUnavailableError as e:
        console.print(f"[red]Cursor store unavailable: {e}[/red]")
        raise typer.Exit(code=EXIT_ERROR)

    if state is None or not state.cursors:
        console.print("No saved cursors.")
        return

    table = Table(title=f"Saved Cursors ({store.path})")
    table.add_column("Entity", style="bold")
    table.add_column("Cursor")
    for key, value in sorted(state.cursors.items()):
        table.add_row(key, value)
    console.print(table)
    console.print(f"Last updated: {state.last_updated.isoformat()}")


@app.command()
def version() -> None:
    """Show version information."""
    console.print("[bold]hunt-sync v0.1.0[/bold]")
    console.print("Resumable, rate-limited Product Hunt sync")


if __name__ == "__main__":
    app()
