"""Command-line interface for tmpo."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__, currency, log, settings, stats, tracking
from .errors import AlreadyRunningError, ConfigError, NoActiveMilestoneError, NoRunningEntryError, TmpoError
from .export import to_csv, to_json
from .formatting import Formatter, format_duration, resolve_timezone
from .models import TimeEntry
from .project import detect_configured_project, detect_configured_project_with_override, get_project_config, get_git_root
from .settings import GlobalConfig, GlobalProject
from .storage import Database

app = typer.Typer(help="Minimal time tracking for the command line", no_args_is_help=True)
milestone_app = typer.Typer(help="Group entries into time-boxed milestones")
projects_app = typer.Typer(help="Manage global projects")

console = Console()
err_console = Console(stderr=True)

EXPORT_FORMATS = ("csv", "json")
DEFAULT_LOG_LIMIT = 10


@dataclass
class Invocation:
    """Per-invocation state: the global config is read once and shared by every formatter call."""

    config: GlobalConfig
    formatter: Formatter


def _invocation(ctx: typer.Context) -> Invocation:
    if ctx.obj is None:
        config = settings.load_global_config()
        ctx.obj = Invocation(config, Formatter(config))
    return ctx.obj


def _success(message: str) -> None:
    console.print(f"[green]✔[/green] {message}")


def _error(message: str) -> None:
    err_console.print(f"[bold red]✖[/bold red] {escape(message)}", soft_wrap=True)


def _muted(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")


def _info(label: str, value: str, indent: int = 4) -> None:
    console.print(f"{' ' * indent}[bold]{label}:[/bold] {escape(value)}")


@contextmanager
def _guard() -> Iterator[None]:
    """Report tmpo errors as one red line and exit with status 1."""
    try:
        yield
    except AlreadyRunningError as exc:
        _error(str(exc))
        _muted("Use 'tmpo stop' to stop the current session first.")
        raise typer.Exit(code=1)
    except NoRunningEntryError as exc:
        _error(str(exc))
        _muted("Use 'tmpo start' to begin tracking.")
        raise typer.Exit(code=1)
    except NoActiveMilestoneError as exc:
        _error(str(exc))
        _muted("Use 'tmpo milestone start NAME' to begin one.")
        raise typer.Exit(code=1)
    except TmpoError as exc:
        _error(str(exc))
        raise typer.Exit(code=1)


@contextmanager
def _open_db() -> Iterator[Database]:
    db = Database.initialize()
    try:
        yield db
    finally:
        db.close()


def _parse_rate(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        rate = float(value)
    except ValueError as exc:
        raise typer.BadParameter("Hourly rate must be a valid number.") from exc
    if rate < 0:
        raise typer.BadParameter("Hourly rate cannot be negative.")
    return rate


def _parse_when(formatter: Formatter, value: str) -> datetime:
    try:
        return formatter.parse_datetime(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _period(formatter: Formatter, today: bool, week: bool) -> Tuple[Optional[Tuple[datetime, datetime]], str]:
    if today and week:
        raise typer.BadParameter("Use either --today or --week, not both.")
    if today:
        return stats.day_bounds(formatter.now()), "Today"
    if week:
        return stats.week_bounds(formatter.now()), "This Week"
    return None, "All Time"


def _select_entries(
    db: Database,
    project: Optional[str],
    milestone: Optional[str],
    bounds: Optional[Tuple[datetime, datetime]],
    limit: int = 0,
) -> List[TimeEntry]:
    if milestone:
        entries = db.get_entries_by_milestone(project or detect_configured_project(), milestone)
    elif project:
        entries = db.get_entries_by_project(project)
    elif bounds:
        entries = db.get_entries_by_date_range(*bounds)
    else:
        return db.get_entries(limit)
    if bounds:
        entries = [entry for entry in entries if bounds[0] <= entry.start_time <= bounds[1]]
    return entries[:limit] if limit > 0 else entries


def _describe_entry(invocation: Invocation, entry: TimeEntry) -> None:
    formatter = invocation.formatter
    _info("Started", formatter.format_datetime(entry.start_time))
    if entry.end_time is not None:
        _info("Ended", formatter.format_datetime(entry.end_time))
    _info("Duration", format_duration(entry.duration()))
    if entry.description:
        _info("Description", entry.description)
    if entry.milestone_name:
        _info("Milestone", entry.milestone_name)
    earned = entry.earnings(invocation.config.rounding_increment)
    if earned is not None and entry.end_time is not None:
        _info("Earnings", formatter.format_currency(earned))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs on stderr"),
) -> None:
    log.configure(verbose)


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------


@app.command("start")
def start(
    ctx: typer.Context,
    description: str = typer.Argument("", help="What you are working on"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Track a global project"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m", help="Milestone label for this entry"),
) -> None:
    """Start tracking time for the current project."""

    with _guard():
        _invocation(ctx)
        project_name = detect_configured_project_with_override(project)
        project_config = get_project_config(project_name)
        with _open_db() as db:
            entry = tracking.start_entry(db, project_name, description, project_config.hourly_rate, milestone)

    _success(f"Started tracking time for [bold]{entry.project_name}[/bold]")
    if entry.description:
        _info("Description", entry.description)
    if entry.milestone_name:
        _info("Milestone", entry.milestone_name)
    if entry.hourly_rate is not None:
        _info("Hourly Rate", f"{entry.hourly_rate:.2f}")


@app.command("stop")
def stop(ctx: typer.Context) -> None:
    """Stop the running entry."""

    with _guard():
        invocation = _invocation(ctx)
        with _open_db() as db:
            entry = tracking.stop_entry(db)

    _success(f"Stopped tracking time for [bold]{entry.project_name}[/bold]")
    _describe_entry(invocation, entry)


@app.command("pause")
def pause(ctx: typer.Context) -> None:
    """Pause the running entry; `tmpo resume` continues it as a new entry."""

    with _guard():
        _invocation(ctx)
        with _open_db() as db:
            entry = tracking.pause_entry(db)

    _success(f"Paused tracking time for [bold]{entry.project_name}[/bold]")
    _info("Session", format_duration(entry.duration()))
    _muted("Use 'tmpo resume' to continue.")


@app.command("resume")
def resume(
    ctx: typer.Context,
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Resume a global project"),
) -> None:
    """Start a new entry copying the last stopped session of the current project."""

    with _guard():
        _invocation(ctx)
        project_name = detect_configured_project_with_override(project)
        with _open_db() as db:
            entry = tracking.resume_entry(db, project_name)

    _success(f"Resumed tracking time for [bold]{entry.project_name}[/bold]")
    if entry.description:
        _info("Description", entry.description)
    if entry.milestone_name:
        _info("Milestone", entry.milestone_name)


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show the running entry, if any."""

    with _guard():
        invocation = _invocation(ctx)
        with _open_db() as db:
            running = db.get_running_entry()

    if running is None:
        _muted("Not tracking anything right now.")
        return
    console.print(f"[bold green]●[/bold green] Tracking [bold]{running.project_name}[/bold]")
    _describe_entry(invocation, running)


@app.command("manual")
def manual(
    ctx: typer.Context,
    start_at: str = typer.Option(..., "--start", "-s", help="Start, e.g. '2026-01-08 09:00'"),
    end_at: str = typer.Option(..., "--end", "-e", help="End, e.g. '2026-01-08 12:30'"),
    description: str = typer.Option("", "--description", "-d", help="What you worked on"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Record against a global project"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m", help="Milestone label"),
) -> None:
    """Record a completed entry with explicit start and end times."""

    with _guard():
        invocation = _invocation(ctx)
        start_time = _parse_when(invocation.formatter, start_at)
        end_time = _parse_when(invocation.formatter, end_at)
        project_name = detect_configured_project_with_override(project)
        project_config = get_project_config(project_name)
        with _open_db() as db:
            entry = tracking.add_manual_entry(
                db, project_name, start_time, end_time, description, project_config.hourly_rate, milestone
            )

    _success(f"Added entry {entry.id} for [bold]{entry.project_name}[/bold]")
    _describe_entry(invocation, entry)


@app.command("edit")
def edit(
    ctx: typer.Context,
    entry_id: int = typer.Argument(..., help="Entry id (see `tmpo log`)"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="New project name"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="New description"),
    start_at: Optional[str] = typer.Option(None, "--start", "-s", help="New start time"),
    end_at: Optional[str] = typer.Option(None, "--end", "-e", help="New end time"),
    rate: Optional[str] = typer.Option(None, "--rate", help="New hourly rate snapshot"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m", help="New milestone label"),
    clear_milestone: bool = typer.Option(False, "--clear-milestone", help="Remove the milestone label"),
) -> None:
    """Edit fields of an existing entry."""

    if milestone and clear_milestone:
        raise typer.BadParameter("Cannot specify both --milestone and --clear-milestone.")

    with _guard():
        invocation = _invocation(ctx)
        changes = {}
        if rate is not None:
            changes["hourly_rate"] = _parse_rate(rate)
        if milestone is not None:
            changes["milestone_name"] = milestone
        elif clear_milestone:
            changes["milestone_name"] = None
        with _open_db() as db:
            entry = tracking.edit_entry(
                db,
                entry_id,
                project_name=project,
                description=description,
                start_time=_parse_when(invocation.formatter, start_at) if start_at else None,
                end_time=_parse_when(invocation.formatter, end_at) if end_at else None,
                **changes,
            )

    _success(f"Updated entry {entry.id}")
    _describe_entry(invocation, entry)


@app.command("delete")
def delete(
    ctx: typer.Context,
    entry_id: int = typer.Argument(..., help="Entry id (see `tmpo log`)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete an entry permanently."""

    with _guard():
        invocation = _invocation(ctx)
        with _open_db() as db:
            entry = db.get_entry(entry_id)
            if entry is None:
                _error(f"Time entry {entry_id} not found.")
                raise typer.Exit(code=1)
            label = f"{entry.project_name} on {invocation.formatter.format_datetime(entry.start_time)}"
            if not yes and not typer.confirm(f"Delete entry {entry_id} ({label})?"):
                _muted("Nothing deleted.")
                raise typer.Exit(code=0)
            tracking.delete_entry(db, entry_id)

    _success(f"Deleted entry {entry_id}")


# ---------------------------------------------------------------------------
# History, stats, export
# ---------------------------------------------------------------------------


@app.command("log")
def log_entries(
    ctx: typer.Context,
    limit: int = typer.Option(DEFAULT_LOG_LIMIT, "--limit", "-l", help="Number of entries to show (0 for all)"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m", help="Only entries with this milestone"),
    today: bool = typer.Option(False, "--today", "-t", help="Only today's entries"),
    week: bool = typer.Option(False, "--week", "-w", help="Only this week's entries"),
) -> None:
    """Show recent time entries."""

    with _guard():
        invocation = _invocation(ctx)
        bounds, period = _period(invocation.formatter, today, week)
        with _open_db() as db:
            entries = _select_entries(db, project, milestone, bounds, limit)

    if not entries:
        _muted("No entries found.")
        return

    formatter = invocation.formatter
    table = Table(title=f"Time entries ({period})")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Project")
    table.add_column("Date")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Duration", justify="right")
    table.add_column("Milestone", style="magenta")
    table.add_column("Description")
    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.project_name,
            formatter.format_date(entry.start_time),
            formatter.format_time(entry.start_time),
            formatter.format_time(entry.end_time) if entry.end_time else "[green]running[/green]",
            format_duration(entry.duration()),
            entry.milestone_name or "",
            entry.description,
        )
    console.print(table)


@app.command("stats")
def show_stats(
    ctx: typer.Context,
    today: bool = typer.Option(False, "--today", "-t", help="Show today's stats"),
    week: bool = typer.Option(False, "--week", "-w", help="Show this week's stats"),
) -> None:
    """Show totals and estimated earnings per project."""

    with _guard():
        invocation = _invocation(ctx)
        bounds, period = _period(invocation.formatter, today, week)
        with _open_db() as db:
            entries = db.get_entries_by_date_range(*bounds) if bounds else db.get_entries()
            tracked_projects = len(db.get_all_projects())

    if not entries:
        _muted(f"No entries for {period}.")
        return

    formatter = invocation.formatter
    summary = stats.summarize(entries, invocation.config.rounding_increment)
    console.print(f"\n[bold]Stats for {period}[/bold]")
    _info("Total Time", f"{format_duration(summary.duration)} ({summary.hours:.2f} hours)")
    _info("Total Entries", str(summary.entry_count))
    if bounds is None:
        _info("Projects Tracked", str(tracked_projects))
    if summary.earnings is not None:
        _info("Total Estimated Earnings", formatter.format_currency(summary.earnings))

    table = Table(title="By Project")
    table.add_column("Project")
    table.add_column("Time", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Earnings", justify="right")
    for totals in summary.by_duration():
        table.add_row(
            totals.name,
            format_duration(totals.duration),
            f"{totals.share_of(summary.duration):.1f}%",
            formatter.format_currency(totals.earnings) if totals.earnings else "",
        )
    console.print(table)


@app.command("export")
def export(
    ctx: typer.Context,
    fmt: str = typer.Option("csv", "--format", "-f", help="csv or json"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Only this project"),
    milestone: Optional[str] = typer.Option(None, "--milestone", "-m", help="Only entries with this milestone"),
    today: bool = typer.Option(False, "--today", "-t", help="Only today's entries"),
    week: bool = typer.Option(False, "--week", "-w", help="Only this week's entries"),
) -> None:
    """Export entries to CSV or JSON."""

    fmt = fmt.strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise typer.BadParameter(f"Unsupported format '{fmt}'. Use csv or json.")

    with _guard():
        invocation = _invocation(ctx)
        bounds, _ = _period(invocation.formatter, today, week)
        with _open_db() as db:
            entries = _select_entries(db, project, milestone, bounds)
        if not entries:
            _muted("No entries to export.")
            return

        if output is None:
            export_dir = get_project_config(project or detect_configured_project()).export_path
            export_dir = export_dir or invocation.config.export_path
            stamp = invocation.formatter.now().strftime("%Y-%m-%d")
            output = settings.expand_export_path(export_dir) / f"tmpo-export-{stamp}.{fmt}"
        output = output.expanduser()
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            written = to_json(entries, output) if fmt == "json" else to_csv(entries, output)
        except OSError as exc:
            raise ConfigError(f"failed to write export to {output}: {exc}") from exc

    _success(f"Exported {len(entries)} entries to {written}")


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def _default_project_name() -> str:
    root = get_git_root()
    return root.name if root else Path.cwd().name


@app.command("init")
def init(
    global_project: bool = typer.Option(False, "--global", "-g", help="Create a project trackable from any directory"),
    accept_defaults: bool = typer.Option(False, "--accept-defaults", "-a", help="Skip prompts and use defaults"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name"),
    rate: Optional[str] = typer.Option(None, "--rate", "-r", help="Hourly rate"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Project description"),
    export_path: Optional[str] = typer.Option(None, "--export-path", help="Default export directory"),
) -> None:
    """Create a .tmporc in this directory, or a global project with --global."""

    if accept_defaults and global_project:
        raise typer.BadParameter("Cannot use --accept-defaults with --global. Global projects need an explicit name.")

    default_name = "" if global_project else _default_project_name()
    if name is None:
        name = default_name if accept_defaults else typer.prompt("Project name", default=default_name or None)
    if rate is None and not accept_defaults:
        rate = typer.prompt("Hourly rate (press Enter to skip)", default="", show_default=False)
    if description is None and not accept_defaults:
        description = typer.prompt("Description (press Enter to skip)", default="", show_default=False)
    if export_path is None and not accept_defaults:
        export_path = typer.prompt("Export path (press Enter to skip)", default="", show_default=False)

    hourly_rate = _parse_rate(rate)
    name = (name or "").strip()
    if not name:
        raise typer.BadParameter("Project name is required.")

    with _guard():
        if global_project:
            registry = settings.load_projects()
            registry.add_project(GlobalProject(name, hourly_rate, (description or "").strip(), (export_path or "").strip()))
            registry.save()
            _success(f"Created global project [bold]{name}[/bold]")
        else:
            path = settings.create_local_config(name, hourly_rate, description or "", export_path or "")
            _success(f"Created {path.name} for project [bold]{name}[/bold]")

    if hourly_rate:
        _info("Hourly Rate", f"{hourly_rate:.2f}")
    if description:
        _info("Description", description)
    if export_path:
        _info("Export path", export_path)
    if global_project:
        _muted(f"Track it from any directory with: tmpo start --project \"{name}\"")
    _muted("Use 'tmpo config' to set global preferences like currency and time formats.")


@app.command("config")
def config(
    ctx: typer.Context,
    currency_code: Optional[str] = typer.Option(None, "--currency", help="ISO 4217 code, e.g. USD, EUR"),
    date_format: Optional[str] = typer.Option(None, "--date-format", help=" | ".join(settings.DATE_FORMATS)),
    time_format: Optional[str] = typer.Option(None, "--time-format", help=" | ".join(settings.TIME_FORMATS)),
    timezone_name: Optional[str] = typer.Option(None, "--timezone", help="IANA name, e.g. Europe/Berlin"),
    export_path: Optional[str] = typer.Option(None, "--export-path", help="Default export directory"),
    rounding_increment: Optional[float] = typer.Option(None, "--rounding-increment", help="Billing increment in hours"),
) -> None:
    """Show or change global preferences."""

    with _guard():
        current = _invocation(ctx).config
        requested = (currency_code, date_format, time_format, timezone_name, export_path, rounding_increment)
        if all(value is None for value in requested):
            _info("Config file", str(settings.global_config_path()), indent=0)
            _info("Currency", f"{current.currency} ({currency.get_symbol(current.currency)})")
            _info("Date format", current.date_format or "MM/DD/YYYY (default)")
            _info("Time format", current.time_format or "12-hour (default)")
            _info("Timezone", current.timezone or "local")
            _info("Export path", current.export_path or "current directory")
            _info("Rounding increment", f"{current.rounding_increment:g}h")
            return

        if currency_code is not None:
            code = currency_code.strip().upper()
            if len(code) != 3 or not code.isalpha():
                raise typer.BadParameter("Currency code must be 3 letters (e.g., USD, EUR, GBP).")
            if not currency.is_supported(code):
                _muted(f"{code} has no known symbol; amounts will display with {currency.DEFAULT_CURRENCY}.")
            current.currency = code
        if date_format is not None:
            if date_format not in settings.DATE_FORMATS:
                raise typer.BadParameter(f"Date format must be one of: {', '.join(settings.DATE_FORMATS)}")
            current.date_format = date_format
        if time_format is not None:
            if time_format not in settings.TIME_FORMATS:
                raise typer.BadParameter(f"Time format must be one of: {', '.join(settings.TIME_FORMATS)}")
            current.time_format = time_format
        if timezone_name is not None:
            if timezone_name and resolve_timezone(timezone_name) is None:
                raise typer.BadParameter(f"Unknown timezone '{timezone_name}'.")
            current.timezone = timezone_name
        if export_path is not None:
            current.export_path = export_path.strip()
        if rounding_increment is not None:
            if rounding_increment <= 0:
                raise typer.BadParameter("Rounding increment must be positive.")
            current.rounding_increment = rounding_increment
        path = current.save()

    _success(f"Saved configuration to {path}")


@projects_app.command("list")
def projects_list() -> None:
    """List global projects."""

    with _guard():
        registry = settings.load_projects()

    projects = registry.list_projects()
    if not projects:
        _muted("No global projects. Create one with 'tmpo init --global'.")
        return
    table = Table(title="Global projects")
    table.add_column("Name", style="cyan")
    table.add_column("Rate", justify="right")
    table.add_column("Description")
    table.add_column("Export path")
    for item in projects:
        rate = f"{item.hourly_rate:.2f}" if item.hourly_rate is not None else ""
        table.add_row(item.name, rate, item.description, item.export_path)
    console.print(table)


@projects_app.command("remove")
def projects_remove(name: str = typer.Argument(..., help="Project name")) -> None:
    """Remove a global project. Its time entries are kept."""

    with _guard():
        registry = settings.load_projects()
        removed = registry.get_project(name).name
        registry.delete_project(name)
        registry.save()

    _success(f"Removed global project [bold]{removed}[/bold]")


@app.command("version")
def version() -> None:
    """Print the tmpo version."""

    typer.echo(f"tmpo {__version__}")


# ---------------------------------------------------------------------------
# Milestones
# ---------------------------------------------------------------------------


@milestone_app.command("start")
def milestone_start(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Milestone name, e.g. 'Sprint 1'"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Global project"),
) -> None:
    """Start a milestone; new entries for the project are tagged with it."""

    with _guard():
        _invocation(ctx)
        project_name = detect_configured_project_with_override(project)
        with _open_db() as db:
            created = tracking.start_milestone(db, project_name, name)

    _success(f"Started milestone [bold]{created.name}[/bold] for {created.project_name}")


@milestone_app.command("finish")
def milestone_finish(
    ctx: typer.Context,
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Global project"),
) -> None:
    """Finish the active milestone."""

    with _guard():
        _invocation(ctx)
        project_name = detect_configured_project_with_override(project)
        with _open_db() as db:
            finished = tracking.finish_milestone(db, project_name)
            report = tracking.milestone_status(db, finished)

    _success(f"Finished milestone [bold]{finished.name}[/bold]")
    _info("Duration", format_duration(finished.duration()))
    _info("Entries", str(len(report.entries)))
    _info("Tracked", f"{report.tracked_hours:.2f} hours")


@milestone_app.command("status")
def milestone_status(
    ctx: typer.Context,
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Global project"),
) -> None:
    """Show the active milestone for the project."""

    with _guard():
        invocation = _invocation(ctx)
        project_name = detect_configured_project_with_override(project)
        with _open_db() as db:
            active = db.get_active_milestone_for_project(project_name)
            report = tracking.milestone_status(db, active) if active else None

    if report is None:
        _muted(f"No active milestone for {project_name}.")
        return
    console.print(f"[bold magenta]◆[/bold magenta] {report.milestone.name} ({project_name})")
    _info("Started", invocation.formatter.format_datetime_long(report.milestone.start_time))
    _info("Duration", format_duration(report.milestone.duration()))
    _info("Entries", str(len(report.entries)))
    _info("Tracked", f"{report.tracked_hours:.2f} hours")


@milestone_app.command("list")
def milestone_list(
    ctx: typer.Context,
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Global project"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Milestones of every project"),
) -> None:
    """List milestones."""

    with _guard():
        invocation = _invocation(ctx)
        with _open_db() as db:
            if show_all:
                milestones = db.get_all_milestones()
            else:
                milestones = db.get_milestones_by_project(detect_configured_project_with_override(project))

    if not milestones:
        _muted("No milestones found.")
        return
    formatter = invocation.formatter
    table = Table(title="Milestones")
    table.add_column("Project")
    table.add_column("Name", style="cyan")
    table.add_column("Started")
    table.add_column("Finished")
    table.add_column("Duration", justify="right")
    for item in milestones:
        finished = formatter.format_datetime(item.end_time) if item.end_time else "[magenta]active[/magenta]"
        table.add_row(
            item.project_name,
            item.name,
            formatter.format_datetime(item.start_time),
            finished,
            format_duration(item.duration()),
        )
    console.print(table)


app.add_typer(milestone_app, name="milestone")
app.add_typer(projects_app, name="projects")


if __name__ == "__main__":
    app()
