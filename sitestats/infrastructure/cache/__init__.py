# ==============================================================================
# Key-Value Store Infrastructure
# ==============================================================================
"""
Key-value store implementations for the ports-and-adapters architecture.

Available implementations:
- ValkeyCache: Valkey/Redis-based store with hash-backed record collections
"""

from sitestats.infrastructure.cache.valkey import ValkeyCache

__all__ = [
    "ValkeyCache",
]
