# ==============================================================================
# Analytics Commands
# ==============================================================================
"""
Analytics commands for the sitestats CLI.

Displays the analytics summary and the real-time window of a project.
"""

from datetime import datetime
from typing import Annotated, Optional

import typer

from sitestats.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    get_context,
    parse_date_range,
    to_json,
)

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]


def _rows(title: str, rows: list[dict], label: str, value: str, suffix: str = "") -> list[str]:
    """Format a ranked table section; empty sections show a placeholder."""
    lines = [f"  {C.BOLD}{title}{C.RESET}"]
    if not rows:
        lines.append(f"    {C.DIM}no data{C.RESET}")
    for row in rows[:5]:
        lines.append(f"    {str(row[label]):<40}{row[value]:>12,}{suffix}")
    return lines


# ==============================================================================
# Commands
# ==============================================================================


def show_analytics(
    project_id: Annotated[str, typer.Argument(help="Project to summarize")],
    since: Annotated[
        Optional[datetime], typer.Option("--since", formats=DATE_FORMATS, help="Range start (UTC)")
    ] = None,
    until: Annotated[
        Optional[datetime], typer.Option("--until", formats=DATE_FORMATS, help="Range end (UTC)")
    ] = None,
    days: Annotated[
        Optional[int], typer.Option("--days", "-d", min=1, help="Only the last N days")
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show the analytics summary of a project.

    Without a range all recorded history is summarized. The real-time block
    always covers the last few minutes, whatever the range.

    Examples:
        sitestats analytics my-site                 # Formatted output
        sitestats analytics my-site --days 7        # Last week
        sitestats analytics my-site --since 2024-01-01 --until 2024-01-31
        sitestats analytics my-site --json          # JSON output for scripting
    """
    date_range = parse_date_range(since, until, days)
    summary = get_context().engine.generate_analytics_summary(project_id, date_range)

    if json_output:
        print(to_json(summary))
        return

    W = BOX_WIDTH
    overview = summary["overview"]
    behavior = summary["behavior"]
    performance = summary["performance"]
    conversions = summary["conversions"]

    print()
    print(_box_header(f"SITE ANALYTICS: {project_id}", W))
    print(_empty_line(W))

    print(_section_header("Overview", I.CHART, W))
    print(_box_line(f"  {'Visitors':<40}{overview['totalVisitors']:>12,}", W))
    print(_box_line(f"  {'Page Views':<40}{overview['totalPageViews']:>12,}", W))
    print(_box_line(f"  {'Avg Session Duration':<40}{overview['averageSessionDuration']:>11.1f}s", W))
    print(_box_line(f"  {'Bounce Rate':<40}{overview['bounceRate']:>11.1f}%", W))
    print(_box_line(f"  {'Conversion Rate':<40}{overview['conversionRate']:>11.1f}%", W))
    print(_empty_line(W))

    print(_section_header("Behavior", I.ARROW, W))
    for line in _rows("Top Pages", behavior["topPages"], "page", "views"):
        print(_box_line(line, W))
    for line in _rows("Top Referrers", behavior["topReferrers"], "referrer", "visitors"):
        print(_box_line(line, W))
    print(_empty_line(W))

    print(_section_header("Audience", I.GLOBE, W))
    demographics = summary["demographics"]
    for line in _rows("Countries", demographics["countries"], "country", "percentage", "%"):
        print(_box_line(line, W))
    for line in _rows("Devices", demographics["devices"], "device", "percentage", "%"):
        print(_box_line(line, W))
    print(_empty_line(W))

    print(_section_header("Performance", I.CLOCK, W))
    print(_box_line(f"  {'Avg Load Time':<40}{performance['averageLoadTime']:>10,}ms", W))
    print(
        _box_line(
            f"  {'Avg Largest Contentful Paint':<40}"
            f"{performance['averageLargestContentfulPaint']:>10,}ms",
            W,
        )
    )
    print(_box_line(f"  {'Cumulative Layout Shift':<40}{performance['cumulativeLayoutShift']:>12.3f}", W))
    print(_empty_line(W))

    print(_section_header("Conversions", I.CHECK, W))
    for step in conversions["conversionFunnel"]:
        row = f"  {step['step']:<28}{step['visitors']:>12,}{step['conversionRate']:>11}%"
        print(_box_line(row, W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()


def show_realtime(
    project_id: Annotated[str, typer.Argument(help="Project to watch")],
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show active visitors and recent events of a project.

    Examples:
        sitestats realtime my-site
        sitestats realtime my-site --json
    """
    metrics = get_context().engine.real_time_metrics(project_id)

    if json_output:
        print(to_json(metrics))
        return

    W = BOX_WIDTH
    print()
    print(_box_header(f"REAL-TIME: {project_id}", W))
    print(_empty_line(W))
    print(_box_line(f"  {C.BRIGHT_GREEN}{I.CIRCLE}{C.RESET} Active visitors: {C.WHITE}{metrics['activeVisitors']}{C.RESET}", W))
    print(_empty_line(W))

    for line in _rows("Current Pages", metrics["currentPageViews"], "page", "viewers"):
        print(_box_line(line, W))
    print(_empty_line(W))

    print(_box_line(f"  {C.BOLD}Recent Events{C.RESET}", W))
    if not metrics["recentEvents"]:
        print(_box_line(f"    {C.DIM}no events{C.RESET}", W))
    for event in metrics["recentEvents"][:10]:
        stamp = event["timestamp"].strftime("%H:%M:%S")
        print(_box_line(f"    {C.DIM}{stamp}{C.RESET}  {event['details'][:50]}", W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()
