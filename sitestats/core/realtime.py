# ==============================================================================
# Real-Time Window
# ==============================================================================
"""
Live view over the last few minutes of a project's events.

The window is always ``[now - window, now]`` regardless of any date range the
dashboard is showing.
"""

from datetime import datetime, timedelta

from sitestats.core.models import DateRange, EventSnapshot

DEFAULT_WINDOW = timedelta(minutes=5)
CURRENT_PAGES_LIMIT = 5
RECENT_EVENTS_LIMIT = 20


def real_time_metrics(
    snapshot: EventSnapshot,
    now: datetime,
    window: timedelta = DEFAULT_WINDOW,
) -> dict:
    """
    Compute the real-time block of the analytics summary.

    Args:
        snapshot: All events of the project (unfiltered)
        now: Upper bound of the window, aware UTC
        window: Window length

    Returns:
        ``{"activeVisitors", "currentPageViews", "recentEvents"}``
    """
    window_start = now - window
    recent = snapshot.within(DateRange(start=window_start, end=now))

    active_visitors = sum(
        1
        for s in recent.sessions
        if s.session_end is None or s.session_end > window_start
    )

    viewers: dict[str, int] = {}
    for pv in recent.page_views:
        viewers[pv.page] = viewers.get(pv.page, 0) + 1
    current_pages = sorted(viewers.items(), key=lambda item: item[1], reverse=True)

    events = [
        {"type": "pageview", "timestamp": pv.timestamp, "details": f"Page view: {pv.page}"}
        for pv in recent.page_views
    ]
    events += [
        {
            "type": "interaction",
            "timestamp": i.timestamp,
            "details": f"{i.type.value}: {i.element}",
        }
        for i in recent.interactions
    ]
    events += [
        {
            "type": "conversion",
            "timestamp": c.timestamp,
            "details": f"Conversion: {c.type.value}",
        }
        for c in recent.conversions
    ]
    events.sort(key=lambda e: e["timestamp"], reverse=True)

    return {
        "activeVisitors": active_visitors,
        "currentPageViews": [
            {"page": page, "viewers": count}
            for page, count in current_pages[:CURRENT_PAGES_LIMIT]
        ],
        "recentEvents": events[:RECENT_EVENTS_LIMIT],
    }
