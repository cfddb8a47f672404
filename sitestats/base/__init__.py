# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports of the ports-and-adapters architecture.

Concrete adapters live in sitestats.infrastructure.
"""

from sitestats.base.cache import KeyValueStore
from sitestats.base.event_store import AppendableEvent, EventStore
from sitestats.base.geolocation import LocationResolver

__all__ = [
    "AppendableEvent",
    "EventStore",
    "KeyValueStore",
    "LocationResolver",
]
