"""CLI entry point for the timetable conflict engine."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .audit import AuditReport, run_audit
from .candidates import candidate_from_dict
from .config import EngineSettings, Snapshot, SnapshotLoader, load_settings, load_snapshot_file
from .conflicts import AutoResolveOptions, ConflictResult, Severity
from .constants import DEFAULT_MAX_RELAXATION
from .constraints import ConstraintRegistry
from .detector import ConflictDetector, find_available_windows
from .exceptions import SchedulingError
from .exporters import JSONExporter
from .utils import get_day_name

app = typer.Typer(
    name="timetable-conflicts",
    help="Detect and resolve timetable conflicts",
    add_completion=False,
)
console = Console()

SEVERITY_STYLES = {
    "error": "red",
    "warning": "yellow",
    "high": "red",
    "medium": "yellow",
    "low": "blue",
}


class LogLevel(str, Enum):
    """Log level options."""

    debug = "DEBUG"
    info = "INFO"
    warning = "WARNING"
    error = "ERROR"


def _settings(ctx: typer.Context) -> EngineSettings:
    return ctx.obj if isinstance(ctx.obj, EngineSettings) else EngineSettings()


def _load_snapshot(path: Path) -> Snapshot:
    """Load a snapshot from a directory of tables or a single JSON file."""
    if path.is_file():
        return load_snapshot_file(path)
    return SnapshotLoader(path).load()


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(1)


def _export(report, output: Path) -> None:
    if not output.suffix:
        output = output.with_suffix(".json")

    with console.status("[bold green]Exporting to json..."):
        JSONExporter().export(report, output)
    console.print(f"\n[bold green]✓[/bold green] Exported to: {output}")


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", help="JSON file with engine setting overrides"),
    ] = None,
    log_level: Annotated[
        LogLevel,
        typer.Option("--log-level", help="Logging level", case_sensitive=False),
    ] = LogLevel.warning,
) -> None:
    """Detect and resolve timetable conflicts."""
    logging.basicConfig(
        level=log_level.value,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    try:
        ctx.obj = load_settings(config)
    except SchedulingError as e:
        _fail(str(e))


@app.command()
def check(
    ctx: typer.Context,
    candidate_file: Annotated[
        Path,
        typer.Argument(help="JSON file with the slot submission to check"),
    ],
    snapshot: Annotated[
        Path,
        typer.Option("--snapshot", "-s", help="Snapshot directory or JSON file"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Output JSON file path"),
    ] = None,
) -> None:
    """Check whether a submission can be added to the roster."""
    if not candidate_file.exists():
        _fail(f"File not found: {candidate_file}")

    try:
        with open(candidate_file, encoding="utf-8") as f:
            candidate = candidate_from_dict(json.load(f))
        data = _load_snapshot(snapshot)
        detector = ConflictDetector(
            data.slots, data.faculty, data.rooms, data.courses, _settings(ctx)
        )
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON in {candidate_file}: {e}")
    except SchedulingError as e:
        _fail(str(e))

    with console.status("[bold green]Checking conflicts..."):
        result = detector.detect(candidate)

    console.print(f"\n[bold]Conflict check for:[/bold] {candidate_file.name}")
    console.print(f"  Operation: {candidate.operation.value}")
    _show_conflict_result(result)

    if output:
        _export(result, output)

    if not result.can_proceed:
        raise typer.Exit(1)


def _show_conflict_result(result: ConflictResult) -> None:
    if result.conflicts:
        table = Table(title="Conflicts")
        table.add_column("Severity", style="bold")
        table.add_column("Type", style="cyan")
        table.add_column("Message")

        for conflict in result.conflicts:
            style = SEVERITY_STYLES[conflict.severity.value]
            table.add_row(
                f"[{style}]{conflict.severity.value}[/{style}]",
                conflict.type.value,
                conflict.message,
            )
        console.print(table)

    if result.suggestions:
        console.print("\n[bold]Suggestions:[/bold]")
        for suggestion in result.suggestions:
            console.print(f"  • {suggestion}")

    if result.can_proceed:
        console.print("\n[bold green]✓ Can proceed[/bold green]")
    else:
        errors = sum(1 for c in result.conflicts if c.severity == Severity.ERROR)
        console.print(f"\n[bold red]✗ Cannot proceed ({errors} errors)[/bold red]")


@app.command()
def audit(
    ctx: typer.Context,
    snapshot: Annotated[
        Path,
        typer.Option("--snapshot", "-s", help="Snapshot directory or JSON file"),
    ],
    resolve: Annotated[
        bool,
        typer.Option("--resolve", help="Try to resolve conflicts automatically"),
    ] = False,
    max_relaxation: Annotated[
        int,
        typer.Option("--max-relaxation", help="Maximum number of constraints to relax"),
    ] = DEFAULT_MAX_RELAXATION,
    partial: Annotated[
        bool,
        typer.Option("--partial", help="Keep resolving after a conflict cannot be resolved"),
    ] = False,
    relax_preferences: Annotated[
        bool,
        typer.Option("--relax-preferences", help="Allow relaxing faculty preferences"),
    ] = False,
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Output JSON file path"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Show conflict details and suggestions"),
    ] = False,
) -> None:
    """Audit a whole roster for conflicts."""
    options = AutoResolveOptions(
        max_relaxation=max_relaxation,
        preserve_preferences=not relax_preferences,
        allow_partial_resolution=partial,
    )

    try:
        data = _load_snapshot(snapshot)
        with console.status("[bold green]Auditing schedule..."):
            report = run_audit(data, settings=_settings(ctx), resolve=resolve, options=options)
    except SchedulingError as e:
        _fail(str(e))

    console.print(f"\n[bold]Audit Results for:[/bold] {snapshot}")
    console.print(f"  Active slots: {report.slot_count}")
    console.print(f"  Conflicts: {len(report.conflicts)}")
    score = "∞" if report.violation_score == float("inf") else f"{report.violation_score:g}"
    console.print(f"  Violation score: {score}")

    _show_audit(report, verbose)

    if output:
        _export(report, output)


def _show_audit(report: AuditReport, verbose: bool) -> None:
    if report.is_clean:
        console.print("\n[bold green]✓ No conflicts found[/bold green]")
    else:
        summary = Table(title="Conflicts by Type")
        summary.add_column("Type", style="cyan")
        summary.add_column("Count", style="green")
        for conflict_type, count in report.by_type.items():
            summary.add_row(conflict_type, str(count))
        console.print(summary)

        table = Table(title="Conflicts")
        table.add_column("Severity", style="bold")
        table.add_column("Score", style="magenta")
        table.add_column("Description", style="cyan", max_width=50)
        if verbose:
            table.add_column("Details")
            table.add_column("Best suggestion", style="green")

        for conflict in report.conflicts:
            style = SEVERITY_STYLES[conflict.severity.value]
            row = [
                f"[{style}]{conflict.severity.value}[/{style}]",
                str(conflict.conflict_score),
                conflict.description,
            ]
            if verbose:
                best = conflict.resolution_suggestions[:1]
                row.extend([conflict.details, best[0].description if best else "-"])
            table.add_row(*row)
        console.print(table)

    resolution = report.resolution
    if resolution is not None:
        console.print("\n[bold]Automatic resolution:[/bold]")
        console.print(f"  Success rate: {resolution.success_rate:.0%}")
        console.print(f"  Applied suggestions: {len(resolution.applied_suggestions)}")
        console.print(f"  Remaining conflicts: {len(resolution.remaining_conflicts)}")
        if resolution.relaxed_constraints:
            console.print(f"  Relaxed constraints: {', '.join(resolution.relaxed_constraints)}")
        if verbose:
            for suggestion in resolution.applied_suggestions:
                console.print(f"  [green]• {suggestion.description}[/green]")


@app.command()
def constraints(ctx: typer.Context) -> None:
    """List the default constraint catalog."""
    registry = ConstraintRegistry(_settings(ctx))

    table = Table(title="Constraints")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Category", style="blue")
    table.add_column("Importance", style="green")
    table.add_column("Penalty", style="yellow")
    table.add_column("Description")

    for constraint in registry.list():
        penalty = constraint.to_dict()["relaxationPenalty"]
        table.add_row(
            constraint.id,
            constraint.type.value,
            constraint.category.value,
            str(constraint.importance),
            "∞" if penalty is None else f"{penalty:g}",
            constraint.description,
        )

    console.print(table)


@app.command()
def free(
    ctx: typer.Context,
    snapshot: Annotated[
        Path,
        typer.Option("--snapshot", "-s", help="Snapshot directory or JSON file"),
    ],
    day: Annotated[
        int,
        typer.Option("--day", "-d", help="Day of week: 1 (Monday) to 7 (Sunday)"),
    ],
    year: Annotated[
        str,
        typer.Option("--year", "-y", help="Academic year, e.g. 2024-2025"),
    ],
    semester: Annotated[
        int,
        typer.Option("--semester", help="Semester number"),
    ],
    year_level: Annotated[
        Optional[int],
        typer.Option("--year-level", "-l", help="Only consider slots of this year level"),
    ] = None,
) -> None:
    """List free windows of a teaching day."""
    if not 1 <= day <= 7:
        _fail(f"Invalid day: {day}. Use 1 (Monday) to 7 (Sunday).")

    try:
        data = _load_snapshot(snapshot)
    except SchedulingError as e:
        _fail(str(e))

    windows = find_available_windows(
        day, data.slots, year, semester, year_level=year_level, settings=_settings(ctx)
    )

    console.print(
        f"\n[bold]Free windows on {get_day_name(day)}[/bold] ({year}, semester {semester})"
    )
    if not windows:
        console.print("  [yellow]No free windows[/yellow]")
        return

    table = Table(show_header=True)
    table.add_column("Start", style="cyan")
    table.add_column("End", style="green")
    for start, end in windows:
        table.add_row(start, end)
    console.print(table)


if __name__ == "__main__":
    app()
