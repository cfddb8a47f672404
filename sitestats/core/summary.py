# ==============================================================================
# Analytics Engine - Query Facade
# ==============================================================================
"""
Composes the dashboard's analytics summary for one project.

The project's collections are read exactly once per call; the date-filtered
statistics and the real-time block are both derived from that one snapshot
using a single captured ``now``, so every figure in a summary describes the
same state of the store.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Optional

from sitestats.base import EventStore
from sitestats.core import aggregations
from sitestats.core.models import DateRange, EventSnapshot, utc_now
from sitestats.core.realtime import real_time_metrics

logger = logging.getLogger(__name__)


class AnalyticsEngine:
    """Read side of the analytics store."""

    def __init__(
        self,
        store: EventStore,
        clock: Callable[[], datetime] = utc_now,
        realtime_window_minutes: int = 5,
    ):
        """
        Initialize the engine.

        Args:
            store: Event store to read from
            clock: Returns the current aware UTC time
            realtime_window_minutes: Length of the real-time window
        """
        self._store = store
        self._clock = clock
        self._window = timedelta(minutes=realtime_window_minutes)

    def get_project_analytics(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> EventSnapshot:
        """Raw events of a project, optionally restricted to a date range."""
        return self._store.get_project_analytics(project_id, date_range)

    def real_time_metrics(self, project_id: str) -> dict:
        """Real-time block alone, over the last few minutes."""
        snapshot = self._store.get_project_analytics(project_id)
        return real_time_metrics(snapshot, self._clock(), self._window)

    def generate_analytics_summary(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> dict:
        """
        Build the full analytics summary.

        Args:
            project_id: Project to summarize
            date_range: Inclusive range for every block except ``realTime``;
                None means all recorded history

        Returns:
            Nested dict with ``overview``, ``traffic``, ``demographics``,
            ``behavior``, ``performance``, ``conversions`` and ``realTime``
        """
        now = self._clock()
        snapshot = self._store.get_project_analytics(project_id)
        selected = snapshot.within(date_range)

        logger.debug(
            "Summarizing %s: %d sessions, %d page views in range",
            project_id,
            len(selected.sessions),
            len(selected.page_views),
        )

        return {
            "overview": aggregations.overview(
                selected.sessions, selected.page_views, selected.conversions
            ),
            "traffic": aggregations.traffic(selected.page_views),
            "demographics": aggregations.demographics(selected.sessions),
            "behavior": aggregations.behavior(selected.sessions, selected.page_views),
            "performance": aggregations.performance_averages(selected.performance),
            "conversions": aggregations.conversion_summary(
                selected.sessions, selected.conversions
            ),
            "realTime": real_time_metrics(snapshot, now, self._window),
        }
