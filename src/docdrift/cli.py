"""Main CLI dispatcher for docdrift."""

import logging
import signal
import sys
import threading
from pathlib import Path

import click

from docdrift.core.change_analyzer import ChangeAnalyzer
from docdrift.core.cost_tracker import CostTracker
from docdrift.core.database import TrackingStore
from docdrift.core.doc_generator import CommandGenerator, DocumentationGenerator, MarkdownSkeletonGenerator
from docdrift.core.errors import DocdriftError
from docdrift.core.git_tracker import GitTracker
from docdrift.core.lock import WatcherLock
from docdrift.core.migrations import MigrationRunner
from docdrift.core.models import PassReport
from docdrift.core.settings import settings
from docdrift.core.watcher import DocumentationWatcher
from docdrift.display.console import console
from docdrift.display.formatters import (
    create_file_entries_table,
    display_analysis,
    display_cost_estimate,
    display_cost_stats,
    display_pass_summary,
    display_tracking_stats,
)


def _open_store(ctx: click.Context) -> TrackingStore:
    return TrackingStore(db_path=ctx.obj["database"], project_root=Path.cwd())


def _build_generator(store: TrackingStore) -> DocumentationGenerator:
    if settings.generator_command:
        return CommandGenerator(settings.generator_command, settings.default_model, CostTracker(store))
    return MarkdownSkeletonGenerator(public_only=not settings.document_private_members)


def _build_watcher(store: TrackingStore) -> DocumentationWatcher:
    return DocumentationWatcher(
        store,
        git=GitTracker(store.project_root),
        generator=_build_generator(store),
        lock=WatcherLock(store.db_path),
    )


def _relative_path(path: str, root: Path) -> str:
    candidate = Path(path)
    if not candidate.is_absolute():
        return candidate.as_posix()
    try:
        return candidate.resolve().relative_to(root).as_posix()
    except ValueError:
        return candidate.as_posix()


def _fail(error: DocdriftError) -> None:
    console.print(f"[red]Error: {error}[/red]")
    sys.exit(1)


@click.group()
@click.option(
    "--database",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Tracking database (defaults to DOCDRIFT_DATABASE_PATH or the platform data dir)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging and per-file output")
@click.pass_context
def cli(ctx: click.Context, database: Path | None, verbose: bool) -> None:
    """docdrift - keeps generated code documentation in step with the source.

    Each pass diffs the commits since the last processed one, scores how much
    every changed file matters to its documentation, and regenerates only
    what is worth regenerating.
    """
    ctx.ensure_object(dict)
    ctx.obj["database"] = database or settings.resolved_database_path
    ctx.obj["verbose"] = verbose or settings.debug_mode
    logging.basicConfig(level=logging.DEBUG if ctx.obj["verbose"] else logging.WARNING)


@cli.command()
@click.option("--force", is_flag=True, help="Regenerate every selected file without scoring")
@click.option("--file", "files", multiple=True, help="Evaluate these files instead of the commit range")
@click.pass_context
def run(ctx: click.Context, force: bool, files: tuple[str, ...]) -> None:
    """Run one evaluation pass from the last processed commit to HEAD."""
    try:
        store = _open_store(ctx)
        watcher = _build_watcher(store)

        if files:
            selected = watcher.filter_files([_relative_path(file, store.project_root) for file in files])
            marker = store.get_last_processed_commit(watcher.repository)
            outcomes = watcher.evaluate_files(selected, from_commit=marker, force=force)
            report = PassReport(from_commit=marker, to_commit=watcher.git.current_commit_hash(), outcomes=outcomes)
        else:
            report = watcher.run_pass(force=force)
    except DocdriftError as e:
        _fail(e)
        return

    display_pass_summary(report, verbose=ctx.obj["verbose"])


@cli.command()
@click.option("--interval", type=float, default=None, help="Seconds between passes (default: DOCDRIFT_WATCH_INTERVAL)")
@click.pass_context
def watch(ctx: click.Context, interval: float | None) -> None:
    """Poll for new commits and run a pass whenever HEAD moves."""
    try:
        store = _open_store(ctx)
    except DocdriftError as e:
        _fail(e)
        return

    watcher = _build_watcher(store)
    stop_event = threading.Event()
    interval = settings.watch_interval if interval is None else interval

    def request_stop(signum, frame):
        stop_event.set()

    # Signals only set the event; watch() checks it between passes.
    previous_handlers = {sig: signal.signal(sig, request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}

    console.print(f"[cyan]Watching {store.project_root} every {interval:g}s (Ctrl+C to stop)[/cyan]")
    try:
        watcher.watch(
            stop_event,
            interval=interval,
            on_report=lambda report: display_pass_summary(report, verbose=ctx.obj["verbose"]),
        )
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    console.print("\n[yellow]Stopped watching[/yellow]")


@cli.command()
@click.argument("path")
@click.option("--from-ref", default=None, help="Compare against this ref (default: last processed commit, else HEAD)")
@click.pass_context
def analyze(ctx: click.Context, path: str, from_ref: str | None) -> None:
    """Score the change to PATH without regenerating anything."""
    try:
        store = _open_store(ctx)
        relative = _relative_path(path, store.project_root)
        full_path = store.project_root / relative
        try:
            new_text = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Cannot read {relative}: {e}[/red]")
            sys.exit(1)

        ref = from_ref or store.get_last_processed_commit() or "HEAD"
        old_text = GitTracker(store.project_root).read_file_at(relative, ref)
        documented = [symbol.symbol_name for symbol in store.get_documented_symbols(relative)]
        analysis = ChangeAnalyzer(settings.scoring).analyze(relative, old_text, new_text, documented)
    except DocdriftError as e:
        _fail(e)
        return

    console.print(f"[dim]Old version from {ref}[/dim]")
    display_analysis(relative, analysis)


@cli.command()
@click.option("--limit", default=20, type=int, help="Number of documented files to list")
@click.pass_context
def status(ctx: click.Context, limit: int) -> None:
    """Show configuration, commit marker and documented files."""
    try:
        store = _open_store(ctx)
        marker = store.get_commit_marker()
        entries = store.list_file_entries()
    except DocdriftError as e:
        _fail(e)
        return

    git = GitTracker(store.project_root)

    console.print("[bold]docdrift Status[/bold]\n")
    console.print(f"[cyan]Project root:[/cyan] {store.project_root}")
    console.print(f"[cyan]Database:[/cyan] {store.db_path}")
    console.print(f"[cyan]Docs path:[/cyan] {settings.docs_path}")
    console.print(f"[cyan]Extensions:[/cyan] {', '.join(settings.extensions)}")
    if settings.watch_paths:
        console.print(f"[cyan]Watch paths:[/cyan] {', '.join(settings.watch_paths)}")
    generator = settings.generator_command or "markdown skeleton"
    console.print(f"[cyan]Generator:[/cyan] {generator}\n")

    if not git.is_git_repo():
        console.print("[yellow]Not a git repository, passes will find nothing to evaluate[/yellow]")
    else:
        head = git.last_commit_info()
        if head:
            console.print(f"HEAD: {head.short_hash} {head.message} ({head.author})")

    if marker:
        console.print(f"Last processed commit: {marker.commit_hash[:8]} at {marker.updated_at:%Y-%m-%d %H:%M:%S}")
    else:
        console.print("[yellow]No commit processed yet. Run 'docdrift run' to start tracking.[/yellow]")

    if entries:
        console.print(create_file_entries_table(entries[:limit]))
        if len(entries) > limit:
            console.print(f"[dim]... and {len(entries) - limit} more[/dim]")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show tracking and change-analysis statistics."""
    try:
        store = _open_store(ctx)
        display_tracking_stats(store.get_stats(), store.get_commit_marker())
    except DocdriftError as e:
        _fail(e)


@cli.command()
@click.pass_context
def costs(ctx: click.Context) -> None:
    """Show recorded token usage and cost per model."""
    try:
        store = _open_store(ctx)
        display_cost_stats(store.get_cost_stats())
    except DocdriftError as e:
        _fail(e)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--model", default=None, help="Model to price (default: DOCDRIFT_DEFAULT_MODEL)")
@click.pass_context
def estimate(ctx: click.Context, path: Path, model: str | None) -> None:
    """Estimate the cost of generating documentation for PATH."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Cannot read {path}: {e}[/red]")
        sys.exit(1)

    try:
        store = _open_store(ctx)
    except DocdriftError as e:
        _fail(e)
        return

    display_cost_estimate(str(path), CostTracker(store).estimate_cost(model or settings.default_model, text))


@cli.command()
@click.pass_context
def cleanup(ctx: click.Context) -> None:
    """Forget documented files that no longer exist."""
    try:
        removed = _open_store(ctx).cleanup()
    except DocdriftError as e:
        _fail(e)
        return

    console.print(f"[green]Removed {removed} stale tracking entr{'y' if removed == 1 else 'ies'}[/green]")


@cli.command()
@click.pass_context
def migrations(ctx: click.Context) -> None:
    """Show database migration status."""
    try:
        store = _open_store(ctx)
    except DocdriftError as e:
        _fail(e)
        return

    migration_status = MigrationRunner(store.db_path).get_migration_status()

    console.print("[bold]Database Migration Status[/bold]\n")

    if migration_status["applied"]:
        console.print("[green]Applied Migrations:[/green]")
        for migration in migration_status["applied"]:
            console.print(f"  ✓ {migration['version']}: {migration['description']}")
            console.print(f"    Applied: {migration['applied_at']}")
        console.print()

    if migration_status["pending"]:
        console.print("[red]Pending Migrations:[/red]")
        for migration in migration_status["pending"]:
            console.print(f"  • {migration['version']}: {migration['description']}")
        console.print()
    else:
        console.print("[green]All migrations are up to date![/green]")

    console.print(f"Total migrations: {migration_status['total']}")


if __name__ == "__main__":
    cli()
