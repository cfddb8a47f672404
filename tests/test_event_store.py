# ==============================================================================
# Tests for ValkeyEventStore
# ==============================================================================
"""
Unit tests for the Valkey-backed event store.

Tests cover:
- Storage layout (one hash per event kind, one field per record)
- Append-only events, upserted sessions and page view patches
- Project and date range filtering, chronological ordering
- Degradation on corrupt records and unreadable collections
- StoreWriteError on failed writes
- Visitor markers, clear_all and storage_size

All tests use fakeredis via the fixtures from conftest.py, so no real
Valkey/Redis server is needed.
"""

import json
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from sitestats.core.errors import StoreWriteError
from sitestats.core.models import (
    ConversionEvent,
    ConversionType,
    DateRange,
    InteractionEvent,
    InteractionType,
    PageViewEvent,
    PerformanceSample,
    VisitorSession,
)
from sitestats.infrastructure import EventKind, ValkeyEventStore

T0 = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def _page_view(id="pv1", project_id="p1", session_id="s1", timestamp=T0, page="/"):
    return PageViewEvent(
        id=id, project_id=project_id, session_id=session_id, timestamp=timestamp, page=page
    )


def _session(id="s1", project_id="p1", start=T0, **kwargs):
    return VisitorSession(id=id, project_id=project_id, session_start=start, **kwargs)


# ==============================================================================
# Layout
# ==============================================================================


class TestLayout:
    """Tests for the key layout in Valkey."""

    def test_collection_keys_use_prefix(self, fake_cache):
        store = ValkeyEventStore(fake_cache, key_prefix="custom")
        assert store.collection_key(EventKind.PAGE_VIEWS) == "custom:pageviews"
        assert store.collection_key(EventKind.SESSIONS) == "custom:sessions"

    def test_each_event_is_one_hash_field(self, event_store, fake_redis):
        event_store.append(_page_view(id="a"))
        event_store.append(_page_view(id="b"))

        assert fake_redis.hlen("sitestats:pageviews") == 2
        record = json.loads(fake_redis.hget("sitestats:pageviews", "a"))
        assert record["sessionId"] == "s1"
        assert record["timestamp"] == "2024-03-10T12:00:00Z"

    def test_events_routed_by_type(self, event_store, fake_redis):
        event_store.append(
            InteractionEvent(
                id="i1", project_id="p1", session_id="s1", timestamp=T0, type=InteractionType.CLICK
            )
        )
        event_store.append(
            ConversionEvent(
                id="c1",
                project_id="p1",
                session_id="s1",
                timestamp=T0,
                type=ConversionType.DOWNLOAD,
            )
        )
        event_store.append(PerformanceSample(id="perf1", project_id="p1", timestamp=T0))

        assert fake_redis.hexists("sitestats:interactions", "i1")
        assert fake_redis.hexists("sitestats:conversions", "c1")
        assert fake_redis.hexists("sitestats:performance", "perf1")

    def test_append_rejects_sessions(self, event_store):
        with pytest.raises(TypeError):
            event_store.append(_session())


# ==============================================================================
# Writes
# ==============================================================================


class TestWrites:
    """Tests for save_session(), append() and update_page_view()."""

    def test_save_session_upserts(self, event_store):
        session = _session()
        event_store.save_session(session)
        session.page_views = 2
        event_store.save_session(session)

        sessions = event_store.get_sessions("p1")
        assert len(sessions) == 1
        assert sessions[0].page_views == 2

    def test_append_never_replaces(self, event_store):
        event_store.append(_page_view(id="a", page="/first"))
        event_store.append(_page_view(id="a", page="/second"))

        assert [pv.page for pv in event_store.get_page_views("p1")] == ["/first"]

    def test_update_page_view_patches_fields(self, event_store):
        event_store.append(_page_view(id="a"))

        updated = event_store.update_page_view("a", time_on_page=42, scroll_depth=75)

        assert updated.time_on_page == 42
        assert updated.scroll_depth == 75
        stored = event_store.get_page_views("p1")[0]
        assert (stored.time_on_page, stored.scroll_depth) == (42, 75)
        assert stored.page == "/"

    def test_update_page_view_clamps(self, event_store):
        event_store.append(_page_view(id="a"))

        updated = event_store.update_page_view("a", time_on_page=-5, scroll_depth=140)

        assert updated.time_on_page == 0
        assert updated.scroll_depth == 100

    def test_update_page_view_partial(self, event_store):
        event_store.append(_page_view(id="a"))
        event_store.update_page_view("a", time_on_page=10, scroll_depth=20)

        updated = event_store.update_page_view("a", scroll_depth=60)

        assert updated.time_on_page == 10
        assert updated.scroll_depth == 60

    def test_update_missing_page_view(self, event_store):
        assert event_store.update_page_view("missing", time_on_page=3) is None

    def test_failed_write_raises_store_write_error(self, event_store, fake_cache):
        """Non-retryable server errors (e.g. out of memory) surface as StoreWriteError."""
        with patch.object(
            fake_cache, "put_record", side_effect=ResponseError("OOM command not allowed")
        ):
            with pytest.raises(StoreWriteError) as exc_info:
                event_store.append(_page_view(id="a"))

        assert exc_info.value.collection == "pageviews"
        assert exc_info.value.record_id == "a"
        assert event_store.get_page_views("p1") == []

    def test_dropped_connection_is_retried_once_without_waiting(self, event_store, fake_cache):
        with patch.object(
            fake_cache,
            "put_record",
            side_effect=[RedisConnectionError("reset by peer"), True],
        ) as put:
            started = time.monotonic()
            event_store.append(_page_view(id="a"))

        assert put.call_count == 2
        assert time.monotonic() - started < 0.5

    def test_store_down_fails_fast(self, event_store, fake_cache):
        with patch.object(
            fake_cache, "put_record", side_effect=RedisConnectionError("connection refused")
        ) as put:
            started = time.monotonic()
            with pytest.raises(StoreWriteError):
                event_store.append(_page_view(id="a"))

        assert put.call_count == 2
        assert time.monotonic() - started < 0.5


# ==============================================================================
# Reads
# ==============================================================================


class TestReads:
    """Tests for the get_* queries."""

    def test_filters_by_project(self, event_store):
        event_store.append(_page_view(id="a", project_id="p1"))
        event_store.append(_page_view(id="b", project_id="p2"))

        assert [pv.id for pv in event_store.get_page_views("p1")] == ["a"]
        assert [pv.id for pv in event_store.get_page_views("p2")] == ["b"]

    def test_sorted_by_timestamp(self, event_store):
        event_store.append(_page_view(id="late", timestamp=T0 + timedelta(minutes=5)))
        event_store.append(_page_view(id="early", timestamp=T0))

        assert [pv.id for pv in event_store.get_page_views("p1")] == ["early", "late"]

    def test_date_range_is_inclusive(self, event_store):
        event_store.append(_page_view(id="start", timestamp=T0))
        event_store.append(_page_view(id="end", timestamp=T0 + timedelta(hours=1)))
        event_store.append(_page_view(id="after", timestamp=T0 + timedelta(hours=2)))

        date_range = DateRange(start=T0, end=T0 + timedelta(hours=1))
        ids = [pv.id for pv in event_store.get_page_views("p1", date_range)]

        assert ids == ["start", "end"]

    def test_sessions_filtered_by_start(self, event_store):
        event_store.save_session(_session(id="old", start=T0 - timedelta(days=2)))
        event_store.save_session(_session(id="new", start=T0))

        date_range = DateRange(start=T0 - timedelta(hours=1), end=T0 + timedelta(hours=1))
        assert [s.id for s in event_store.get_sessions("p1", date_range)] == ["new"]

    def test_project_analytics_snapshot(self, event_store):
        event_store.save_session(_session())
        event_store.append(_page_view())
        event_store.append(PerformanceSample(id="perf1", project_id="p1", timestamp=T0))

        snapshot = event_store.get_project_analytics("p1")

        assert len(snapshot.sessions) == 1
        assert len(snapshot.page_views) == 1
        assert snapshot.interactions == []
        assert snapshot.conversions == []
        assert len(snapshot.performance) == 1


class TestDegradedReads:
    """Tests for corrupt and unreadable data."""

    def test_corrupt_record_is_skipped(self, event_store, fake_redis):
        event_store.append(_page_view(id="good"))
        fake_redis.hset("sitestats:pageviews", "bad", "{not json")

        assert [pv.id for pv in event_store.get_page_views("p1")] == ["good"]

    def test_invalid_record_is_skipped(self, event_store, fake_redis):
        event_store.append(_page_view(id="good"))
        fake_redis.hset("sitestats:pageviews", "bad", json.dumps({"id": "bad"}))

        assert [pv.id for pv in event_store.get_page_views("p1")] == ["good"]

    def test_wrong_key_type_serves_empty(self, event_store, fake_redis):
        """A collection key holding a non-hash reads as an empty collection."""
        fake_redis.set("sitestats:sessions", "garbage")

        assert event_store.get_sessions("p1") == []

    def test_missing_collection_is_empty(self, event_store):
        assert event_store.get_conversions("p1") == []


# ==============================================================================
# Visitors and maintenance
# ==============================================================================


class TestVisitorsAndMaintenance:
    """Tests for visitor markers, clear_all() and storage_size()."""

    def test_visitor_marker(self, event_store):
        assert not event_store.has_visited("p1", "v1")

        event_store.mark_visited("p1", "v1")

        assert event_store.has_visited("p1", "v1")
        assert not event_store.has_visited("p2", "v1")

    def test_visitor_marker_keeps_first_visit(self, event_store, fake_redis):
        fake_redis.set("sitestats:visitor:p1:v1", "2024-01-01T00:00:00+00:00")

        event_store.mark_visited("p1", "v1")

        assert fake_redis.get("sitestats:visitor:p1:v1") == "2024-01-01T00:00:00+00:00"

    def test_visitor_marker_failure_is_logged(self, event_store, fake_cache, caplog):
        with patch.object(fake_cache, "set", side_effect=ResponseError("OOM command not allowed")):
            event_store.mark_visited("p1", "v1")

        assert "Cannot write visitor marker" in caplog.text
        assert not event_store.has_visited("p1", "v1")

    def test_clear_all_only_touches_prefix(self, event_store, fake_redis):
        event_store.save_session(_session())
        event_store.append(_page_view())
        event_store.mark_visited("p1", "v1")
        fake_redis.set("other:key", "keep")

        deleted = event_store.clear_all()

        assert deleted == 3
        assert event_store.get_sessions("p1") == []
        assert fake_redis.get("other:key") == "keep"

    def test_storage_size(self, event_store):
        assert event_store.storage_size() == 0

        page_view = _page_view()
        event_store.append(page_view)

        assert event_store.storage_size() == len(page_view.to_record().encode("utf-8"))
