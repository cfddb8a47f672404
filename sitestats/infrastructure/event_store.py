# ==============================================================================
# Event Store Implementation (Valkey/Redis)
# ==============================================================================
"""
Valkey/Redis implementation of the EventStore interface.

Layout (one logical collection per event kind, spanning all projects):

    {prefix}:sessions       hash  session id    -> VisitorSession JSON
    {prefix}:pageviews      hash  page view id  -> PageViewEvent JSON
    {prefix}:interactions   hash  event id      -> InteractionEvent JSON
    {prefix}:conversions    hash  event id      -> ConversionEvent JSON
    {prefix}:performance    hash  sample id     -> PerformanceSample JSON
    {prefix}:visitor:{project_id}:{visitor_id}  string, ISO-8601 first visit

Records are JSON documents with camelCase field names and ISO-8601
timestamps. Project and date filtering happen in memory at read time.
"""

import logging
from enum import Enum
from typing import Optional, TypeVar

from pydantic import ValidationError
from redis.exceptions import RedisError

from sitestats.base import AppendableEvent, EventStore, KeyValueStore
from sitestats.core.errors import StoreReadError, StoreWriteError
from sitestats.core.models import (
    AnalyticsModel,
    ConversionEvent,
    DateRange,
    InteractionEvent,
    PageViewEvent,
    PerformanceSample,
    VisitorSession,
    utc_now,
)
from sitestats.utils.retry import REDIS_RETRY_EXCEPTIONS, retry_standard, retry_tracking

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=AnalyticsModel)


class EventKind(str, Enum):
    """Event collections and their key suffixes."""

    SESSIONS = "sessions"
    PAGE_VIEWS = "pageviews"
    INTERACTIONS = "interactions"
    CONVERSIONS = "conversions"
    PERFORMANCE = "performance"


_EVENT_KINDS: dict[type, EventKind] = {
    PageViewEvent: EventKind.PAGE_VIEWS,
    InteractionEvent: EventKind.INTERACTIONS,
    ConversionEvent: EventKind.CONVERSIONS,
    PerformanceSample: EventKind.PERFORMANCE,
}


class ValkeyEventStore(EventStore):
    """
    Event store over a KeyValueStore (Valkey/Redis hashes).

    Every write touches exactly one record, so independent writers (two
    browser tabs, two server processes) never lose each other's events.
    """

    def __init__(self, cache: KeyValueStore, key_prefix: str = "sitestats"):
        """
        Initialize the event store.

        Args:
            cache: Key-value store holding the collections
            key_prefix: Prefix for every key written by this store
        """
        self._cache = cache
        self._prefix = key_prefix

    @property
    def cache(self) -> KeyValueStore:
        """Get the underlying key-value store."""
        return self._cache

    def collection_key(self, kind: EventKind) -> str:
        """Key of the hash holding one event kind."""
        return f"{self._prefix}:{kind.value}"

    def _visitor_key(self, project_id: str, visitor_id: str) -> str:
        return f"{self._prefix}:visitor:{project_id}:{visitor_id}"

    # ==========================================================================
    # Writes
    # ==========================================================================

    def _put(self, kind: EventKind, record_id: str, value: str, only_new: bool) -> bool:
        @retry_tracking(REDIS_RETRY_EXCEPTIONS, logger)
        def _execute() -> bool:
            return self._cache.put_record(self.collection_key(kind), record_id, value, only_new)

        try:
            return _execute()
        except RedisError as e:
            logger.error("Failed to write %s/%s: %s", kind.value, record_id, e)
            raise StoreWriteError(kind.value, record_id, str(e)) from e

    def save_session(self, session: VisitorSession) -> None:
        self._put(EventKind.SESSIONS, session.id, session.to_record(), only_new=False)

    def append(self, event: AppendableEvent) -> None:
        kind = _EVENT_KINDS.get(type(event))
        if kind is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")
        if not self._put(kind, event.id, event.to_record(), only_new=True):
            # Appends never replace history; a colliding id keeps the first record
            logger.warning("Duplicate %s id %s ignored", kind.value, event.id)

    def update_page_view(
        self,
        page_view_id: str,
        time_on_page: Optional[int] = None,
        scroll_depth: Optional[int] = None,
    ) -> Optional[PageViewEvent]:
        patch = {}
        if time_on_page is not None:
            patch["time_on_page"] = max(0, int(time_on_page))
        if scroll_depth is not None:
            patch["scroll_depth"] = min(100, max(0, int(scroll_depth)))

        def _patch(current: str) -> str:
            page_view = PageViewEvent.from_record(current)
            return page_view.model_copy(update=patch).to_record()

        key = self.collection_key(EventKind.PAGE_VIEWS)
        try:
            updated = self._cache.update_record(key, page_view_id, _patch)
        except (RedisError, ValidationError) as e:
            logger.error("Failed to update page view %s: %s", page_view_id, e)
            raise StoreWriteError(EventKind.PAGE_VIEWS.value, page_view_id, str(e)) from e

        if updated is None:
            logger.warning("Page view %s not found, nothing to update", page_view_id)
            return None
        return PageViewEvent.from_record(updated)

    def mark_visited(self, project_id: str, visitor_id: str) -> None:
        key = self._visitor_key(project_id, visitor_id)
        try:
            self._cache.set(key, utc_now().isoformat(), only_new=True)
        except RedisError as e:
            logger.warning("Cannot write visitor marker for %s: %s", visitor_id, e)

    # ==========================================================================
    # Reads
    # ==========================================================================

    def _read_collection(self, kind: EventKind) -> dict[str, str]:
        """
        Fetch a raw collection.

        Raises:
            StoreReadError: If the backend cannot serve the collection
        """
        try:
            return self._cache.get_records(self.collection_key(kind))
        except RedisError as e:
            raise StoreReadError(kind.value, str(e)) from e

    def _load(
        self,
        kind: EventKind,
        model: type[RecordT],
        project_id: str,
        date_range: Optional[DateRange],
    ) -> list[RecordT]:
        """
        Load, decode and filter one collection.

        Unreadable collections degrade to an empty list; individual corrupt
        records are skipped.
        """
        try:
            raw = self._read_collection(kind)
        except StoreReadError as e:
            logger.error("Error loading %s, serving empty collection: %s", kind.value, e)
            return []

        records: list[RecordT] = []
        corrupt = 0
        for record_id, data in raw.items():
            try:
                record = model.from_record(data)
            except ValidationError:
                corrupt += 1
                continue
            if record.project_id != project_id:
                continue
            if date_range is not None and not date_range.contains(record.timestamp):
                continue
            records.append(record)

        if corrupt:
            logger.warning("Skipped %d corrupt %s records", corrupt, kind.value)

        records.sort(key=lambda r: r.timestamp)
        return records

    def get_sessions(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[VisitorSession]:
        return self._load(EventKind.SESSIONS, VisitorSession, project_id, date_range)

    def get_page_views(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[PageViewEvent]:
        return self._load(EventKind.PAGE_VIEWS, PageViewEvent, project_id, date_range)

    def get_interactions(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[InteractionEvent]:
        return self._load(EventKind.INTERACTIONS, InteractionEvent, project_id, date_range)

    def get_conversions(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[ConversionEvent]:
        return self._load(EventKind.CONVERSIONS, ConversionEvent, project_id, date_range)

    def get_performance(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[PerformanceSample]:
        return self._load(EventKind.PERFORMANCE, PerformanceSample, project_id, date_range)

    def has_visited(self, project_id: str, visitor_id: str) -> bool:
        try:
            return self._cache.get(self._visitor_key(project_id, visitor_id)) is not None
        except RedisError as e:
            logger.warning("Cannot read visitor marker, treating as new visitor: %s", e)
            return False

    # ==========================================================================
    # Maintenance
    # ==========================================================================

    def clear_all(self) -> int:
        @retry_standard(REDIS_RETRY_EXCEPTIONS, logger)
        def _execute() -> int:
            return self._cache.delete_pattern(f"{self._prefix}:*")

        deleted = _execute()
        logger.info("All analytics data cleared (%d keys)", deleted)
        return deleted

    def storage_size(self) -> int:
        return self._cache.size_of(f"{self._prefix}:*")
