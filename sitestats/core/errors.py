# ==============================================================================
# Analytics Errors
# ==============================================================================
"""
Exception hierarchy for the analytics event store.

- StoreReadError: persisted data could not be read or decoded. The event
  store catches it, logs it and serves an empty collection instead.
- StoreWriteError: a write did not reach the store. Raised to the caller so
  lost writes never corrupt session counters silently.
"""


class AnalyticsError(Exception):
    """Base class for analytics failures."""


class StoreReadError(AnalyticsError):
    """Persisted analytics data is unreadable or corrupt."""

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(f"Cannot read {collection}: {reason}")


class StoreWriteError(AnalyticsError):
    """An analytics record could not be written."""

    def __init__(self, collection: str, record_id: str, reason: str):
        self.collection = collection
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Cannot write {collection}/{record_id}: {reason}")
