# ==============================================================================
# Analytics Context
# ==============================================================================
"""
Wiring of the analytics components.

An AnalyticsContext holds one event store, one location resolver and one
AnalyticsEngine built from the same settings. Callers create it explicitly
and pass it around; there are no module-level instances.
"""

from dataclasses import dataclass
from typing import Optional

import redis

from sitestats.base import EventStore, LocationResolver
from sitestats.core.models import VisitorContext
from sitestats.core.session_manager import SessionManager
from sitestats.core.summary import AnalyticsEngine
from sitestats.infrastructure import (
    ValkeyCache,
    ValkeyEventStore,
    build_location_resolver,
)
from sitestats.instrumentation import PageInstrumentation
from sitestats.utils.config import Settings, get_settings


@dataclass
class AnalyticsContext:
    """The configured analytics components of one process."""

    settings: Settings
    store: EventStore
    location_resolver: LocationResolver
    engine: AnalyticsEngine

    def session_manager(
        self,
        visitor_id: Optional[str] = None,
        context: Optional[VisitorContext] = None,
    ) -> SessionManager:
        """Create a SessionManager for one visitor (one browser tab)."""
        return SessionManager(
            self.store,
            self.location_resolver,
            context=context,
            visitor_id=visitor_id,
            bounce_threshold_seconds=self.settings.analytics.bounce_threshold_seconds,
        )

    def instrument(
        self,
        project_id: str,
        visitor_id: Optional[str] = None,
        context: Optional[VisitorContext] = None,
    ) -> PageInstrumentation:
        """Create page hooks for a visitor of a published project."""
        return PageInstrumentation(self.session_manager(visitor_id, context), project_id)


def create_context(
    settings: Optional[Settings] = None,
    client: Optional[redis.Redis] = None,
    location_resolver: Optional[LocationResolver] = None,
) -> AnalyticsContext:
    """
    Build an AnalyticsContext.

    Args:
        settings: Application settings (default: environment)
        client: Ready-made Redis client, e.g. a fakeredis instance
        location_resolver: Overrides the resolver selected in settings

    Returns:
        Configured AnalyticsContext
    """
    settings = settings or get_settings()
    cache = ValkeyCache(
        url=settings.valkey.url,
        socket_timeout=settings.valkey.socket_timeout,
        retries=settings.valkey.retries,
        client=client,
    )
    store = ValkeyEventStore(cache, key_prefix=settings.analytics.key_prefix)
    engine = AnalyticsEngine(
        store, realtime_window_minutes=settings.analytics.realtime_window_minutes
    )
    return AnalyticsContext(
        settings=settings,
        store=store,
        location_resolver=location_resolver or build_location_resolver(settings.analytics),
        engine=engine,
    )
