# ==============================================================================
# Aggregation Engine - Pure Statistics
# ==============================================================================
"""
Pure aggregation functions over already-filtered event slices.

Every function takes plain lists of domain models and returns JSON-ready
dicts/lists whose camelCase keys are the dashboard wire contract. None of them
touch the store, and every one of them has a defined zero/empty result for
empty input (no division by zero, no NaN).

Percentages shown as whole numbers use half-up rounding, and grouped
percentages are rounded row by row: a 1/1/1 split reports 33/33/33, which
does not add up to 100. That approximation is accepted, not corrected.
"""

import math
from collections import Counter, defaultdict
from collections.abc import Callable, Hashable, Iterable
from datetime import datetime, timedelta
from typing import Any, Optional, TypeVar

from sitestats.core.models import (
    ConversionEvent,
    PageViewEvent,
    PerformanceSample,
    VisitorSession,
)

T = TypeVar("T")

TOP_LIMIT = 10
DIRECT_REFERRER = "Direct"


# ==============================================================================
# Helpers
# ==============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def percent(part: float, total: float) -> int:
    """Whole-number percentage of ``part`` in ``total``; 0 when total is 0."""
    if not total:
        return 0
    return round_half_up(part / total * 100)


def ratio_percent(part: float, total: float) -> float:
    """Unrounded percentage of ``part`` in ``total``; 0.0 when total is 0."""
    if not total:
        return 0.0
    return part / total * 100


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for no values."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def _ranked(counts: dict[Any, int], limit: Optional[int]) -> list[tuple[Any, int]]:
    """Sort by count descending; ties keep first-seen order."""
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit] if limit is not None else ranked


def group_by_and_percent(
    items: list[T],
    key_fn: Callable[[T], Hashable],
    label: str,
    limit: Optional[int] = None,
) -> list[dict]:
    """
    Group items by a key and report each group's count and share.

    Args:
        items: Items to group (typically sessions)
        key_fn: Extracts the grouping key from an item
        label: Name of the key field in each output row
        limit: Keep only the first ``limit`` rows after sorting

    Returns:
        Rows ``{label: key, "visitors": count, "percentage": int}`` sorted by
        count descending
    """
    counts: dict[Hashable, int] = {}
    for item in items:
        key = key_fn(item)
        counts[key] = counts.get(key, 0) + 1

    total = len(items)
    return [
        {label: key, "visitors": count, "percentage": percent(count, total)}
        for key, count in _ranked(counts, limit)
    ]


# ==============================================================================
# Time buckets
# ==============================================================================


def _bucket_views(
    page_views: list[PageViewEvent],
    key_fn: Callable[[datetime], str],
    label: str,
) -> list[dict]:
    views: dict[str, int] = defaultdict(int)
    visitors: dict[str, set[str]] = defaultdict(set)
    for pv in page_views:
        key = key_fn(pv.timestamp)
        views[key] += 1
        visitors[key].add(pv.session_id)

    return [
        {label: key, "views": views[key], "visitors": len(visitors[key])}
        for key in sorted(views)
    ]


def week_start(timestamp: datetime) -> datetime:
    """The Sunday starting the week of ``timestamp`` (same time of day)."""
    days_since_sunday = (timestamp.weekday() + 1) % 7
    return timestamp - timedelta(days=days_since_sunday)


def hourly_views(page_views: list[PageViewEvent]) -> list[dict]:
    """
    Page views per hour of day (UTC).

    Always returns 24 rows, hours 0-23, with zeros for hours without views.
    """
    views = [0] * 24
    visitors: list[set[str]] = [set() for _ in range(24)]
    for pv in page_views:
        hour = pv.timestamp.hour
        views[hour] += 1
        visitors[hour].add(pv.session_id)

    return [
        {"hour": hour, "views": views[hour], "visitors": len(visitors[hour])}
        for hour in range(24)
    ]


def daily_views(page_views: list[PageViewEvent]) -> list[dict]:
    """Page views per calendar day (``YYYY-MM-DD``), days with views only."""
    return _bucket_views(page_views, lambda ts: ts.date().isoformat(), "date")


def weekly_views(page_views: list[PageViewEvent]) -> list[dict]:
    """Page views per week, keyed by the week's Sunday (``YYYY-MM-DD``)."""
    return _bucket_views(page_views, lambda ts: week_start(ts).date().isoformat(), "week")


def monthly_views(page_views: list[PageViewEvent]) -> list[dict]:
    """Page views per month (``YYYY-MM``), months with views only."""
    return _bucket_views(page_views, lambda ts: f"{ts.year}-{ts.month:02d}", "month")


def traffic(page_views: list[PageViewEvent]) -> dict:
    return {
        "hourlyViews": hourly_views(page_views),
        "dailyViews": daily_views(page_views),
        "weeklyViews": weekly_views(page_views),
        "monthlyViews": monthly_views(page_views),
    }


# ==============================================================================
# Demographics
# ==============================================================================


def demographics(sessions: list[VisitorSession]) -> dict:
    """Visitor breakdowns by location, device, browser and OS."""
    return {
        "countries": group_by_and_percent(
            sessions, lambda s: s.country, "country", limit=TOP_LIMIT
        ),
        "cities": group_by_and_percent(
            sessions, lambda s: f"{s.city}, {s.country}", "city", limit=TOP_LIMIT
        ),
        "devices": group_by_and_percent(sessions, lambda s: s.device.value, "device"),
        "browsers": group_by_and_percent(sessions, lambda s: s.browser, "browser"),
        "operatingSystems": group_by_and_percent(sessions, lambda s: s.os, "os"),
    }


# ==============================================================================
# Behavior
# ==============================================================================


def top_pages(page_views: list[PageViewEvent], limit: int = TOP_LIMIT) -> list[dict]:
    """Most viewed pages with their mean time on page (rounded seconds)."""
    views: dict[str, int] = {}
    total_time: dict[str, int] = defaultdict(int)
    for pv in page_views:
        views[pv.page] = views.get(pv.page, 0) + 1
        total_time[pv.page] += pv.time_on_page

    return [
        {
            "page": page,
            "views": count,
            "avgTimeOnPage": round_half_up(total_time[page] / count),
        }
        for page, count in _ranked(views, limit)
    ]


def normalize_referrer(referrer: Optional[str]) -> str:
    return referrer if referrer else DIRECT_REFERRER


def top_referrers(sessions: list[VisitorSession], limit: int = TOP_LIMIT) -> list[dict]:
    """Referrers by session count; an empty referrer counts as "Direct"."""
    return group_by_and_percent(
        sessions, lambda s: normalize_referrer(s.referrer), "referrer", limit=limit
    )


def _pages_by_session(page_views: list[PageViewEvent]) -> dict[str, list[PageViewEvent]]:
    by_session: dict[str, list[PageViewEvent]] = defaultdict(list)
    for pv in sorted(page_views, key=lambda pv: pv.timestamp):
        by_session[pv.session_id].append(pv)
    return by_session


def user_flow(page_views: list[PageViewEvent], limit: int = TOP_LIMIT) -> list[dict]:
    """Most common page-to-page transitions within a session."""
    flows: dict[tuple[str, str], int] = {}
    for views in _pages_by_session(page_views).values():
        for current, following in zip(views, views[1:]):
            edge = (current.page, following.page)
            flows[edge] = flows.get(edge, 0) + 1

    return [
        {"from": source, "to": target, "count": count}
        for (source, target), count in _ranked(flows, limit)
    ]


def exit_pages(page_views: list[PageViewEvent], limit: int = TOP_LIMIT) -> list[dict]:
    """
    Pages visitors left the site from.

    The last page view of each session is that session's exit; ``exitRate``
    is exits over views of the page, as a whole-number percentage.
    """
    views: dict[str, int] = {}
    exits: dict[str, int] = {}
    for pv in page_views:
        views[pv.page] = views.get(pv.page, 0) + 1
        exits.setdefault(pv.page, 0)
    for session_views in _pages_by_session(page_views).values():
        exits[session_views[-1].page] += 1

    return [
        {"page": page, "exits": count, "exitRate": percent(count, views[page])}
        for page, count in _ranked(exits, limit)
    ]


def behavior(sessions: list[VisitorSession], page_views: list[PageViewEvent]) -> dict:
    return {
        "topPages": top_pages(page_views),
        "topReferrers": top_referrers(sessions),
        "userFlow": user_flow(page_views),
        "exitPages": exit_pages(page_views),
    }


# ==============================================================================
# Performance
# ==============================================================================


def performance_averages(samples: list[PerformanceSample]) -> dict:
    """
    Mean of each performance field across samples.

    Millisecond timings are rounded to whole milliseconds; layout shift and
    cache hit rate are unitless ratios and stay unrounded. All fields are 0
    when there are no samples.
    """
    return {
        "averageLoadTime": round_half_up(mean(s.load_time for s in samples)),
        "averageDOMContentLoaded": round_half_up(mean(s.dom_content_loaded for s in samples)),
        "averageFirstContentfulPaint": round_half_up(
            mean(s.first_contentful_paint for s in samples)
        ),
        "averageLargestContentfulPaint": round_half_up(
            mean(s.largest_contentful_paint for s in samples)
        ),
        "cumulativeLayoutShift": mean(s.cumulative_layout_shift for s in samples),
        "firstInputDelay": round_half_up(mean(s.first_input_delay for s in samples)),
        "averageResourceCount": mean(s.resource_count for s in samples),
        "averageResourceSize": mean(s.resource_size for s in samples),
        "averageCacheHitRate": mean(s.cache_hit_rate for s in samples),
    }


# ==============================================================================
# Conversions
# ==============================================================================


def converted_session_ids(
    sessions: list[VisitorSession], conversions: list[ConversionEvent]
) -> set[str]:
    """Ids of the given sessions with at least one conversion."""
    session_ids = {s.id for s in sessions}
    return {c.session_id for c in conversions if c.session_id in session_ids}


def conversions_by_type(conversions: list[ConversionEvent]) -> list[dict]:
    """Count and summed value per conversion type, most frequent first."""
    counts: dict[str, int] = {}
    values: dict[str, float] = defaultdict(float)
    for conversion in conversions:
        key = conversion.type.value
        counts[key] = counts.get(key, 0) + 1
        values[key] += conversion.value or 0

    return [
        {"type": key, "count": count, "value": values[key]}
        for key, count in _ranked(counts, None)
    ]


def conversion_funnel(
    sessions: list[VisitorSession], conversions: list[ConversionEvent]
) -> list[dict]:
    """
    Three-stage funnel: Visitors -> Engaged -> Converted.

    Engaged sessions are those not bounced; converted sessions are distinct
    sessions of the same set with at least one conversion, so no stage can
    exceed Visitors. Rates are relative to all visitors.
    """
    total = len(sessions)
    engaged = sum(1 for s in sessions if not s.bounced)
    converted = len(converted_session_ids(sessions, conversions))

    return [
        {"step": "Visitors", "visitors": total, "conversionRate": 100},
        {"step": "Engaged", "visitors": engaged, "conversionRate": percent(engaged, total)},
        {
            "step": "Converted",
            "visitors": converted,
            "conversionRate": percent(converted, total),
        },
    ]


def conversion_summary(
    sessions: list[VisitorSession], conversions: list[ConversionEvent]
) -> dict:
    return {
        "totalConversions": len(conversions),
        "conversionsByType": conversions_by_type(conversions),
        "conversionFunnel": conversion_funnel(sessions, conversions),
    }


# ==============================================================================
# Overview
# ==============================================================================


def overview(
    sessions: list[VisitorSession],
    page_views: list[PageViewEvent],
    conversions: list[ConversionEvent],
) -> dict:
    """
    Headline figures.

    ``uniqueVisitors`` counts distinct session ids, so it always equals
    ``totalVisitors``; there is no cross-session visitor identity to count.
    """
    total = len(sessions)
    bounced = sum(1 for s in sessions if s.bounced)
    converted = len(converted_session_ids(sessions, conversions))

    return {
        "totalVisitors": total,
        "uniqueVisitors": len(Counter(s.id for s in sessions)),
        "totalPageViews": len(page_views),
        "averageSessionDuration": mean(s.duration for s in sessions),
        "bounceRate": ratio_percent(bounced, total),
        "conversionRate": ratio_percent(converted, total),
    }
