# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Domain logic for visitor analytics.

This module contains:
- Domain models (VisitorSession, PageViewEvent, ConversionEvent, ...)
- User agent classification
- Pure aggregations and the real-time window
- SessionManager (write side) and AnalyticsEngine (read side)

Only the models and errors are re-exported here; SessionManager and
AnalyticsEngine depend on the ports in ``sitestats.base``, which in turn
depend on the models, so import them from their own modules.
"""

from sitestats.core.errors import AnalyticsError, StoreReadError, StoreWriteError
from sitestats.core.models import (
    ConversionEvent,
    ConversionType,
    DateRange,
    DeviceType,
    ElementPosition,
    EventSnapshot,
    InteractionEvent,
    InteractionType,
    Location,
    PageViewEvent,
    PerformanceSample,
    VisitorContext,
    VisitorSession,
)

__all__ = [
    "AnalyticsError",
    "ConversionEvent",
    "ConversionType",
    "DateRange",
    "DeviceType",
    "ElementPosition",
    "EventSnapshot",
    "InteractionEvent",
    "InteractionType",
    "Location",
    "PageViewEvent",
    "PerformanceSample",
    "StoreReadError",
    "StoreWriteError",
    "VisitorContext",
    "VisitorSession",
]
