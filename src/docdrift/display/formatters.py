"""Rich formatting utilities for displaying docdrift data."""

from rich.table import Table

from docdrift.core.cost_tracker import CostEstimate
from docdrift.core.models import (
    ChangeAnalysis,
    CommitMarker,
    CostStats,
    FileHashEntry,
    Level,
    OutcomeStatus,
    PassReport,
    StructuralDelta,
    TrackingStats,
)
from docdrift.display.console import console


def _short(commit_hash: str | None) -> str:
    return commit_hash[:8] if commit_hash else "N/A"


def _get_status_color(status: OutcomeStatus) -> str:
    """Get color for a file outcome status."""
    match status:
        case OutcomeStatus.PROCESSED:
            return "green"
        case OutcomeStatus.SKIPPED:
            return "yellow"
        case OutcomeStatus.ERROR:
            return "red"


def _get_level_color(level: Level) -> str:
    match level:
        case Level.HIGH:
            return "red bold"
        case Level.MEDIUM:
            return "yellow"
        case Level.LOW:
            return "green"
        case Level.NONE:
            return "dim"


def _format_token_count(tokens: int) -> str:
    """Format token count for display (e.g., 150000 -> '~150K')."""
    if tokens >= 1_000_000:
        return f"~{tokens / 1_000_000:.1f}M"
    elif tokens >= 1_000:
        return f"~{tokens / 1_000:.0f}K"
    else:
        return f"~{tokens}"


def create_pass_report_table(report: PassReport) -> Table:
    """Create a Rich table listing every file outcome of a pass."""
    if report.from_commit:
        commit_range = f"{_short(report.from_commit)}..{_short(report.to_commit)}"
    else:
        commit_range = _short(report.to_commit)
    table = Table(title=f"Evaluated {commit_range}")
    table.add_column("File", style="cyan")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Detail", style="dim")

    for outcome in report.outcomes:
        color = _get_status_color(outcome.status)
        score = str(outcome.analysis.score) if outcome.analysis else "-"
        table.add_row(outcome.path, f"[{color}]{outcome.status.value}[/{color}]", score, outcome.detail)

    return table


def display_pass_summary(report: PassReport, verbose: bool = False) -> None:
    """Display the outcome tallies of a pass, and the per-file table when verbose."""
    if report.to_commit is None:
        console.print("[yellow]No commits found, nothing to evaluate[/yellow]")
        return

    if report.from_commit is None:
        console.print(f"[cyan]Started tracking at commit {_short(report.to_commit)}[/cyan]")

    if not report.marker_advanced and not report.outcomes:
        console.print(f"[dim]No new commits since {_short(report.to_commit)}[/dim]")
        return

    if verbose and report.outcomes:
        console.print(create_pass_report_table(report))

    console.print(
        f"Evaluated {report.files_evaluated} file(s): "
        f"[green]{report.count(OutcomeStatus.PROCESSED)} processed[/green], "
        f"[yellow]{report.count(OutcomeStatus.SKIPPED)} skipped[/yellow], "
        f"[red]{report.count(OutcomeStatus.ERROR)} errors[/red]"
    )


def create_file_entries_table(entries: list[FileHashEntry]) -> Table:
    """Create a Rich table for the documented files in the hash ledger."""
    table = Table(title="Documented Files")
    table.add_column("File", style="cyan")
    table.add_column("Hash", style="magenta")
    table.add_column("Documentation", style="green")
    table.add_column("Updated", style="dim")

    for entry in entries:
        table.add_row(
            entry.path,
            entry.last_hash[:12],
            entry.doc_path or "N/A",
            entry.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    return table


def display_tracking_stats(stats: TrackingStats, marker: CommitMarker | None = None) -> None:
    """Display tracking and analysis statistics."""
    table = Table(title="Tracking Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Files tracked", str(stats.total_files))
    table.add_row("Documented in last 7 days", str(stats.recent_updates))
    table.add_row("Documented symbols", str(stats.documented_symbols))
    table.add_row("Last processed commit", _short(stats.last_commit))
    if marker:
        table.add_row("  Marker updated", marker.updated_at.strftime("%Y-%m-%d %H:%M:%S"))

    table.add_row("[bold]Change Analysis[/bold]", "")
    table.add_row("  Analyses", str(stats.total_analyses))
    table.add_row("  Regenerations recommended", f"[green]{stats.recommended_regenerations}[/green]")
    table.add_row("  Regenerations skipped", f"[yellow]{stats.skipped_regenerations}[/yellow]")
    table.add_row("  Skip rate", f"{stats.skip_rate:.1f}%")
    table.add_row("  Average confidence", f"{stats.avg_confidence:.3f}")
    table.add_row("  Average score", f"{stats.avg_score:.1f}")

    console.print(table)


def display_cost_stats(stats: CostStats) -> None:
    """Display the usage ledger totals and the per-model breakdown."""
    if stats.total_calls == 0:
        console.print("[yellow]No token usage recorded[/yellow]")
        return

    console.print(
        f"\n[bold]Total:[/bold] {stats.total_calls} call(s), "
        f"{_format_token_count(stats.total_tokens)} tokens, ${stats.total_cost:.4f}"
    )

    table = Table(title="Cost by Model")
    table.add_column("Model", style="cyan")
    table.add_column("Calls", justify="right")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Cost (USD)", justify="right", style="green")

    for breakdown in stats.by_model:
        table.add_row(
            breakdown.model,
            str(breakdown.calls),
            _format_token_count(breakdown.input_tokens),
            _format_token_count(breakdown.output_tokens),
            f"${breakdown.cost:.4f}",
        )

    console.print(table)


def display_cost_estimate(path: str, estimate: CostEstimate) -> None:
    console.print(f"\n[bold]Cost estimate for {path}[/bold]")
    console.print(f"Model: [magenta]{estimate.model}[/magenta] (rates: {estimate.rates_source})")
    console.print(
        f"Tokens: {estimate.estimated_input_tokens} input + {estimate.estimated_output_tokens} output "
        f"= {estimate.estimated_total_tokens}"
    )
    console.print(f"Estimated cost: [green]${estimate.estimated_cost:.6f}[/green]")


def _delta_rows(delta: StructuralDelta) -> list[tuple[str, str]]:
    rows = []
    if delta.namespace_changed:
        rows.append(("Namespace", "changed"))
    for label, changes in (("Types", delta.types), ("Interfaces", delta.interfaces)):
        for name in changes.added:
            rows.append((label, f"+ {name}"))
        for name in changes.removed:
            rows.append((label, f"- {name}"))
        for name in changes.modified:
            rows.append((label, f"~ {name}"))
    for name in delta.functions.added:
        rows.append(("Functions", f"+ {name}"))
    for name in delta.functions.removed:
        rows.append(("Functions", f"- {name}"))
    for name in delta.functions.modified:
        rows.append(("Functions", f"~ {name}"))
    for name in delta.imports.added:
        rows.append(("Imports", f"+ {name}"))
    for name in delta.imports.removed:
        rows.append(("Imports", f"- {name}"))
    for name in delta.imports.modified:
        rows.append(("Imports", f"~ {name}"))
    if delta.imports_reordered:
        rows.append(("Imports", "reordered"))
    return rows


def display_analysis(path: str, analysis: ChangeAnalysis) -> None:
    """Display a single change analysis: diff flags, structural delta and recommendation."""
    result = analysis.result
    classification = result.classification
    recommendation = result.recommendation

    console.print(f"\n[bold]Change analysis: {path}[/bold]")

    if analysis.text_diff:
        diff = analysis.text_diff
        flags = [
            name
            for name, value in (
                ("whitespace only", diff.whitespace_only),
                ("comments only", diff.comments_only),
                ("structural", diff.structural_changes),
                ("semantic", diff.semantic_changes),
            )
            if value
        ]
        counts = diff.change_counts
        console.print(f"Text diff: {', '.join(flags) or 'no flags'}")
        console.print(
            f"Hunks: {counts.total} ({counts.additions} added, {counts.deletions} deleted, "
            f"{counts.modifications} modified)"
        )

    if analysis.parse_error:
        console.print(f"[yellow]Structural comparison skipped: {analysis.parse_error}[/yellow]")
    elif analysis.delta:
        rows = _delta_rows(analysis.delta)
        if rows:
            table = Table(title=f"Structural Changes (severity: {analysis.delta.severity.value})")
            table.add_column("Kind", style="cyan")
            table.add_column("Change")
            for kind, change in rows:
                table.add_row(kind, change)
            console.print(table)

    table = Table(title="Significance")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Score", str(result.score))
    table.add_row("Primary change", classification.primary_type.value)
    table.add_row("Categories", ", ".join(sorted(c.value for c in classification.categories)) or "-")
    impact_color = _get_level_color(classification.impact_level)
    table.add_row("Impact", f"[{impact_color}]{classification.impact_level.value}[/{impact_color}]")
    relevance_color = _get_level_color(classification.documentation_relevance)
    table.add_row(
        "Documentation relevance",
        f"[{relevance_color}]{classification.documentation_relevance.value}[/{relevance_color}]",
    )
    console.print(table)

    verdict = "[green]REGENERATE[/green]" if recommendation.should_regenerate else "[yellow]SKIP[/yellow]"
    console.print(
        f"\n[bold]Recommendation:[/bold] {verdict} "
        f"(confidence {recommendation.confidence:.2f}, priority {recommendation.priority.value})"
    )
    for reason in recommendation.reasons:
        console.print(f"  - {reason}")
