# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

This module contains concrete implementations of the base ports:
- cache/ - Key-value store adapters (Valkey/Redis)
- event_store.py - Analytics event persistence on a key-value store
- geolocation.py - Location resolvers (static, sample, ip-api)
"""

from sitestats.infrastructure.cache import ValkeyCache
from sitestats.infrastructure.event_store import EventKind, ValkeyEventStore
from sitestats.infrastructure.geolocation import (
    IpApiLocationResolver,
    SampleLocationResolver,
    StaticLocationResolver,
    build_location_resolver,
)

__all__ = [
    # Key-value store
    "ValkeyCache",
    # Event store
    "EventKind",
    "ValkeyEventStore",
    # Geolocation
    "IpApiLocationResolver",
    "SampleLocationResolver",
    "StaticLocationResolver",
    "build_location_resolver",
]
