"""
Command-line interface for SHIFTLENS.

Provides report commands over the Frigate database, a live event watcher,
and configuration / log management.
"""

import asyncio
import glob
import json
import logging
import sys

from collections.abc import Awaitable, Callable
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from typing import Any, TypeVar

import click

from pydantic import BaseModel

from shiftlens.analysis.performance import DIMENSIONS
from shiftlens.analysis.service import AnalyticsService
from shiftlens.config import (
    Settings,
    get_config_path,
    load_config,
    load_settings,
    set_config_value,
    unset_config_value,
)
from shiftlens.constants import (
    DEFAULT_EVENT_LIMIT,
    DEFAULT_LOG_FILE,
    MEBIBYTE,
    ZONE_CATEGORY_WORKSTATION,
    EventCategory,
    Granularity,
    TrendMetric,
)
from shiftlens.database import FrigateEventSource
from shiftlens.database.source import EventSource
from shiftlens.exceptions import ShiftlensError
from shiftlens.logging_config import get_log_path, setup_logging
from shiftlens.realtime import RealtimePoller
from shiftlens.utils.timezones import common_timezones, timezone_info, to_readable

logger = logging.getLogger(__name__)

T = TypeVar("T")

try:
    __version__ = get_version("shiftlens")
except PackageNotFoundError:
    __version__ = "dev"


def build_source(settings: Settings) -> EventSource:
    """Open a read-only event source for the configured database."""
    return FrigateEventSource.from_settings(settings.database)


def run_with_service(
    call: Callable[[AnalyticsService], Awaitable[T]],
) -> T:
    """
    Run one service call on a fresh event loop and close the source.

    Raises:
        click.ClickException: On invalid input or database errors
    """
    settings = load_settings()

    async def runner() -> T:
        source = build_source(settings)
        try:
            return await call(AnalyticsService(source, settings))
        finally:
            await source.close()

    try:
        return asyncio.run(runner())
    except (ShiftlensError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        raise click.ClickException(str(e)) from e


def window_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Shared time window and camera options."""
    options = [
        click.option("--start-date", help="Start (YYYY-MM-DD or ISO 8601)"),
        click.option("--end-date", help="End (YYYY-MM-DD or ISO 8601)"),
        click.option("--hours", type=float, help="Look back N hours from now"),
        click.option("--timezone", "-z", help="IANA name or abbreviation (default: config)"),
        click.option("--camera", help="Restrict to one camera"),
        click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def echo_json(report: BaseModel) -> None:
    click.echo(report.model_dump_json(indent=2))


def fmt_time(timestamp: float | None, tz: str) -> str:
    return to_readable(timestamp, tz) if timestamp is not None else "-"


def version_callback(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Show version."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"shiftlens, version {__version__}")
    ctx.exit()


@click.group()
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """SHIFTLENS: Workplace analytics over Frigate NVR detections"""
    setup_logging(verbose=verbose, console_format="%(levelname)s: %(message)s")


# ============================================================================
# Employee reports
# ============================================================================


@cli.command("work-hours")
@window_options
@click.option("--employee", help="Restrict to one employee")
def work_hours(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
) -> None:
    """Work hours and breaks per employee."""
    report = run_with_service(
        lambda service: service.work_hours(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        )
    )
    if as_json:
        echo_json(report)
        return

    tz = report.period.timezone
    click.echo(
        f"\nWork hours {fmt_time(report.period.start, tz)} → {fmt_time(report.period.end, tz)} ({tz})\n"
    )
    if not report.employees:
        click.echo("No employee activity found")
        return

    click.echo(
        f"{'Employee':<20} {'Work':>7} {'Break':>7} {'Total':>7} {'Status':<12} "
        f"{'Arrival':<22} {'Departure':<22}"
    )
    click.echo("=" * 103)
    for summary in report.employees:
        departure = fmt_time(summary.departure, tz)
        if summary.has_open_session:
            departure += " *"
        click.echo(
            f"{summary.employee:<20} {summary.work_hours:>6.2f}h {summary.break_hours:>6.2f}h "
            f"{summary.total_hours:>6.2f}h {summary.attendance_status:<12} "
            f"{fmt_time(summary.arrival, tz):<22} {departure:<22}"
        )
        if summary.unaccounted_hours:
            click.echo(f"  ⚠ {summary.unaccounted_hours:.6f}h unaccounted", err=True)

    click.echo(
        f"\n{report.total_employees} employees, {report.total_work_hours:.2f}h total, "
        f"{report.average_work_hours:.2f}h average"
    )
    if any(s.has_open_session for s in report.employees):
        click.echo("* still present; departure is the end of the window")


@cli.command("breaks")
@window_options
@click.option("--employee", help="Restrict to one employee")
def breaks(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
) -> None:
    """Break statistics per employee."""
    report = run_with_service(
        lambda service: service.break_time(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.employees:
        click.echo("No employee activity found")
        return

    click.echo(
        f"\n{'Employee':<20} {'Breaks':>6} {'Total':>7} {'Average':>8} {'Longest':>8} {'Efficiency':>10}"
    )
    click.echo("=" * 64)
    for summary in report.employees:
        click.echo(
            f"{summary.employee:<20} {summary.total_breaks:>6} "
            f"{summary.total_break_hours:>6.2f}h {summary.average_break_hours:>7.2f}h "
            f"{summary.longest_break_hours:>7.2f}h {summary.break_efficiency:>9.0f}%"
        )


@cli.command("attendance")
@window_options
@click.option("--employee", help="Restrict to one employee")
def attendance(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
) -> None:
    """Daily attendance per employee."""
    report = run_with_service(
        lambda service: service.attendance(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.employees:
        click.echo("No employee activity found")
        return

    click.echo(f"\nAttendance over {report.period_days} day(s)\n")
    for record in report.employees:
        perfect = " (perfect)" if record.perfect_attendance else ""
        click.echo(
            f"{record.employee}: {record.total_days} day(s), "
            f"{record.attendance_rate:.0f}% attendance{perfect}, "
            f"{record.average_daily_hours:.2f}h/day, consistency {record.consistency_rating:.0f}"
        )
        for day in record.records:
            click.echo(f"  {day.date}  {day.work_hours:>5.2f}h  {day.status}")
    click.echo(f"\nOverall attendance rate: {report.overall_attendance_rate:.1f}%")


# ============================================================================
# Zone reports
# ============================================================================


@cli.command("desks")
@window_options
@click.option("--zone", help="Restrict to one zone")
@click.option(
    "--category",
    default=ZONE_CATEGORY_WORKSTATION,
    show_default=True,
    help="Zone category to report on",
)
def desks(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    zone: str | None,
    category: str,
) -> None:
    """Desk occupancy and utilization."""
    report = run_with_service(
        lambda service: service.desk_occupancy(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            zone=zone,
            category=category,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.desks:
        click.echo(f"No {category} zones occupied in this window")
        return

    click.echo(
        f"\n{'Camera':<16} {'Zone':<16} {'Hours':>7} {'Util':>6} {'Sessions':>8} "
        f"{'Occupants':>9} {'Top occupant':<16} {'Trend':<10}"
    )
    click.echo("=" * 96)
    for desk in report.desks:
        click.echo(
            f"{desk.camera:<16} {desk.zone:<16} {desk.total_occupancy_hours:>6.2f}h "
            f"{desk.utilization_rate:>5.1f}% {desk.session_count:>8} {len(desk.unique_occupants):>9} "
            f"{desk.most_frequent_occupant or '-':<16} {desk.occupancy_trend:<10}"
        )
    click.echo(
        f"\n{report.total_desks} desks, {report.total_occupancy_hours:.2f}h occupied, "
        f"{report.average_utilization:.1f}% average utilization"
    )


@cli.command("zones")
@window_options
def zones(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
) -> None:
    """Zone utilization ranking."""
    report = run_with_service(
        lambda service: service.zone_utilization(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.zones:
        click.echo("No zone activity found")
        return

    click.echo(
        f"\n{'#':>3} {'Camera':<16} {'Zone':<16} {'Type':<13} {'In':>5} {'Out':>5} "
        f"{'People':>6} {'Score':>6}"
    )
    click.echo("=" * 76)
    for item in report.zones:
        click.echo(
            f"{item.popularity_rank:>3} {item.camera:<16} {item.zone:<16} {item.zone_type:<13} "
            f"{item.total_entries:>5} {item.total_exits:>5} {len(item.unique_employees):>6} "
            f"{item.utilization_score:>6.0f}"
        )


@cli.command("zone-preferences")
@window_options
@click.option("--employee", help="Restrict to one employee")
def zone_preferences(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
) -> None:
    """Preferred zones per employee."""
    report = run_with_service(
        lambda service: service.zone_preferences(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.employees:
        click.echo("No zone visits found")
        return

    for prefs in report.employees:
        click.echo(
            f"\n{prefs.employee}: {prefs.total_zone_visits} visits, "
            f"{prefs.zone_diversity} zones, mobility {prefs.mobility_score:.0f}, "
            f"loyalty {prefs.zone_loyalty:.0f}%"
        )
        for pref in prefs.preferred_zones:
            click.echo(
                f"  {pref.camera}/{pref.zone:<20} {pref.visits:>4} visits  "
                f"score {pref.preference_score:.0f}"
            )


@cli.command("patterns")
@window_options
@click.option("--employee", help="Restrict to one employee")
def patterns(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
) -> None:
    """Hour-of-day and weekday activity patterns."""
    report = run_with_service(
        lambda service: service.activity_patterns(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.employees:
        click.echo("No employee activity found")
        return

    for pattern in report.employees:
        peaks = ", ".join(f"{p.hour:02d}:00" for p in pattern.peak_hours) or "-"
        click.echo(
            f"{pattern.subject:<20} {pattern.total_activity:>6} events  "
            f"peaks {peaks:<19} {pattern.period_preference:<17} {pattern.work_style}"
        )


# ============================================================================
# Trends and dashboard
# ============================================================================


@cli.command("trend")
@window_options
@click.option(
    "--metric",
    type=click.Choice([m.value for m in TrendMetric]),
    default=TrendMetric.ACTIVITY.value,
    show_default=True,
)
@click.option(
    "--granularity",
    type=click.Choice([g.value for g in Granularity]),
    default=Granularity.HOURLY.value,
    show_default=True,
)
def trend(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    metric: str,
    granularity: str,
) -> None:
    """Bucketed trend compared with the previous period."""
    report = run_with_service(
        lambda service: service.trend_analysis(
            metric=metric,
            granularity=granularity,
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
        )
    )
    if as_json:
        echo_json(report)
        return

    for series in report.metrics:
        stats = series.statistics
        click.echo(f"\n{series.metric.value} ({report.granularity.value})")
        click.echo("-" * 40)
        for bucket in series.buckets:
            click.echo(f"  {bucket.period_label:<12} {bucket.count:>6}")
        click.echo(
            f"  total {stats.total:.0f}, mean {stats.mean}, trend {stats.trend}, "
            f"volatility {stats.volatility}%"
        )
        if series.comparison:
            c = series.comparison
            click.echo(
                f"  vs previous period: {c.previous:.0f} → {c.current:.0f} "
                f"({c.change_percent:+.2f}%, {c.direction})"
            )
        for insight in series.insights:
            click.echo(f"  • {insight}")


@cli.command("dashboard")
@window_options
def dashboard(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
) -> None:
    """Headline numbers for the window."""
    report = run_with_service(
        lambda service: service.dashboard(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
        )
    )
    if as_json:
        echo_json(report)
        return

    tz = report.period.timezone
    click.echo(
        f"\nDashboard {fmt_time(report.period.start, tz)} → {fmt_time(report.period.end, tz)} ({tz})\n"
    )
    click.echo(
        f"Activity:   {report.activity.total_events} events "
        f"({report.activity_trend.change_percent:+.2f}% {report.activity_trend.direction})"
    )
    click.echo(f"Employees:  {report.activity.unique_employees}")
    click.echo(f"Cameras:    {report.activity.unique_cameras}")
    click.echo(
        f"Violations: {report.violations.total_violations} "
        f"({report.violation_trend.change_percent:+.2f}% {report.violation_trend.direction})"
    )
    if report.top_employees:
        click.echo("\nMost active employees:")
        for item in report.top_employees:
            click.echo(f"  {item.employee:<20} {item.events:>6} events  {item.violations} violations")


@cli.command("violations")
@window_options
@click.option("--employee", help="Restrict to one employee")
@click.option("--limit", type=click.IntRange(min=1), default=DEFAULT_EVENT_LIMIT, show_default=True)
def violations(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
    limit: int,
) -> None:
    """Cell-phone violations per employee and camera."""
    report = run_with_service(
        lambda service: service.violations(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
            limit=limit,
        )
    )
    if as_json:
        echo_json(report)
        return

    if not report.violations:
        click.echo("No violations found")
        return

    tz = report.period.timezone
    click.echo(f"\n{'Time':<22} {'Camera':<16} {'Employee':<20} {'Confidence':>10}")
    click.echo("=" * 71)
    for item in report.violations:
        confidence = f"{item.confidence:.0%}" if item.confidence is not None else "-"
        click.echo(
            f"{fmt_time(item.timestamp, tz):<22} {item.camera:<16} "
            f"{item.employee or 'unidentified':<20} {confidence:>10}"
        )

    click.echo(
        f"\n{report.total_violations} violations, {report.unidentified_violations} unidentified"
    )
    for summary in report.employees:
        click.echo(f"  {summary.employee:<20} {summary.total_violations:>4}")
    for summary in report.cameras:
        click.echo(f"  camera {summary.camera:<13} {summary.total_violations:>4}")


@cli.command("performance")
@window_options
@click.option("--employee", help="Restrict to one employee")
def performance(
    start_date: str | None,
    end_date: str | None,
    hours: float | None,
    timezone: str | None,
    camera: str | None,
    as_json: bool,
    employee: str | None,
) -> None:
    """Heuristic performance scores compared with the previous period."""
    report = run_with_service(
        lambda service: service.performance_metrics(
            start_date=start_date,
            end_date=end_date,
            hours=hours,
            timezone=timezone,
            camera=camera,
            employee=employee,
        )
    )
    if as_json:
        echo_json(report)
        return

    click.echo(f"\nOverall: {report.overall_score:.0f}/100 ({report.employees_analyzed} employees)\n")
    for name in DIMENSIONS:
        dimension = getattr(report, name)
        click.echo(
            f"{name.capitalize():<14} {dimension.score:>6.1f}  "
            f"(previous {dimension.previous_score:.1f}, {dimension.trend})"
        )
    for insight in report.insights:
        click.echo(f"  • {insight}")


@cli.command("camera-status")
@click.option("--camera", help="Check one camera")
@click.option("--timezone", "-z", help="IANA name or abbreviation (default: config)")
@click.option("--json", "as_json", is_flag=True, help="Print the full report as JSON")
def camera_status(camera: str | None, timezone: str | None, as_json: bool) -> None:
    """Detection and recording health per camera."""
    report = run_with_service(
        lambda service: service.camera_status(camera=camera, timezone=timezone)
    )
    if as_json:
        echo_json(report)
        return

    if not report.cameras:
        click.echo("No cameras found")
        return

    click.echo(f"\n{'Camera':<20} {'Status':<16} {'Detections':>10} {'Recordings':>10}")
    click.echo("=" * 59)
    for status in report.cameras:
        click.echo(
            f"{status.camera:<20} {status.status:<16} {status.recent_detections:>10} "
            f"{status.recent_recordings:>10}"
        )
    click.echo(f"\n{report.active_cameras}/{report.total_cameras} cameras active")


# ============================================================================
# Realtime
# ============================================================================


@cli.command("watch")
@click.option(
    "--category",
    "categories",
    multiple=True,
    type=click.Choice([c.value for c in EventCategory]),
    help="Categories to follow (default: all)",
)
@click.option("--camera", help="Only events from this camera")
@click.option("--employee", help="Only events for this employee")
@click.option("--duration", type=float, help="Stop after N seconds")
def watch(
    categories: tuple[str, ...],
    camera: str | None,
    employee: str | None,
    duration: float | None,
) -> None:
    """Stream live events as JSON lines."""
    settings = load_settings()
    filters = {k: v for k, v in (("camera", camera), ("employee", employee)) if v}
    selected = list(categories) or [c.value for c in EventCategory]

    def emit(client_id: str, payload: dict[str, Any]) -> None:
        click.echo(json.dumps(payload, default=str))

    async def runner() -> None:
        source = build_source(settings)
        poller = RealtimePoller(source, settings.realtime)
        try:
            for category in selected:
                poller.subscribe("cli", category, filters)
            poller.initialize(emit)
            if duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(duration)
        finally:
            await poller.stop()
            await source.close()
            stats = poller.get_stats()
            logger.info(f"Watch finished: {stats.tick_count} ticks, {stats.failed_ticks} failed")

    click.echo(
        f"Watching {', '.join(selected)} every {settings.realtime.poll_interval_seconds}s "
        "(Ctrl-C to stop)",
        err=True,
    )
    try:
        asyncio.run(runner())
    except KeyboardInterrupt:
        pass


# ============================================================================
# Timezones
# ============================================================================


@cli.command("timezones")
@click.argument("name", required=False)
def timezones(name: str | None) -> None:
    """List supported timezone abbreviations, or describe one zone."""
    if name:
        info = timezone_info(name)
        for key, value in info.items():
            click.echo(f"{key}: {value}")
        return

    for item in common_timezones():
        click.echo(
            f"{item['abbreviation']:<6} {item['iana']:<22} {item['offset']:>7}  {item['current_time']}"
        )


# ============================================================================
# Configuration
# ============================================================================


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
def show_config_cmd() -> None:
    """Show all configuration settings."""
    config_path = get_config_path()
    if not config_path.exists():
        click.echo(f"No config file: {config_path}")
        return

    click.echo(f"Config file: {config_path}\n")
    config_data = load_config()
    if not config_data:
        click.echo("Configuration is empty.")
        return

    click.echo("Settings:")
    for section, values in config_data.items():
        click.echo(f"  [{section}]")
        if not isinstance(values, dict):
            click.echo(f"    {values!r}")
            continue
        for key, value in values.items():
            click.echo(f"    {key} = {json.dumps(value)}")


@config.command("set")
@click.argument("key")
@click.argument("value")
def set_config_cmd(key: str, value: str) -> None:
    """Set a value, e.g. `shiftlens config set realtime.window_seconds 15`."""
    try:
        stored = set_config_value(key, value)
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"✓ {key} = {json.dumps(stored)}")
    click.echo(f"  Config: {get_config_path()}")


@config.command("unset")
@click.argument("key")
def unset_config_cmd(key: str) -> None:
    """Remove a value from the config file."""
    if unset_config_value(key):
        click.echo(f"✓ Removed {key}")
    else:
        click.echo(f"{key} was not set.")


# ============================================================================
# Logs
# ============================================================================


@cli.group()
def logs() -> None:
    """Log file management commands."""
    pass


@logs.command("path")
def logs_path() -> None:
    """Show log file location."""
    log_path = get_log_path()
    click.echo(f"Log file: {log_path}")

    if log_path.exists():
        size_mb = log_path.stat().st_size / MEBIBYTE
        click.echo(f"Size: {size_mb:.2f} MB")

        backup_files = sorted(glob.glob(str(log_path.parent / f"{DEFAULT_LOG_FILE}.*")))
        if backup_files:
            click.echo(f"Backup files: {len(backup_files)}")
    else:
        click.echo("(File does not exist yet)")


@logs.command("show")
@click.option("--lines", "-n", type=int, default=50, help="Number of lines to show")
def logs_show(lines: int) -> None:
    """Show recent log entries."""
    log_path = get_log_path()

    if not log_path.exists():
        click.echo("No log file found", err=True)
        sys.exit(1)

    try:
        with open(log_path, encoding="utf-8") as f:
            all_lines = f.readlines()
    except OSError as e:
        click.echo(f"Error reading log file: {e}", err=True)
        sys.exit(1)

    for line in all_lines[-lines:]:
        click.echo(line.rstrip())


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
