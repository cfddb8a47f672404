# ==============================================================================
# Tests for Location Resolvers
# ==============================================================================
"""
Unit tests for the LocationResolver implementations.

Tests cover:
- Static and seeded sample resolvers
- ip-api lookups, caching and fallbacks (HTTP mocked, no network)
- Resolver selection from settings
"""

from unittest.mock import MagicMock

import pytest
import requests

from sitestats.core.models import Location, VisitorContext
from sitestats.infrastructure import (
    IpApiLocationResolver,
    SampleLocationResolver,
    StaticLocationResolver,
    build_location_resolver,
)
from sitestats.infrastructure.geolocation import SAMPLE_LOCATIONS, UNKNOWN_LOCATION
from sitestats.utils.config import AnalyticsSettings


def _response(payload=None, status_error=None):
    response = MagicMock()
    response.json.return_value = payload or {}
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    return response


# ==============================================================================
# Static and sample
# ==============================================================================


class TestStaticAndSample:
    """Tests for StaticLocationResolver and SampleLocationResolver."""

    def test_static_default_is_unknown(self):
        assert StaticLocationResolver().resolve(VisitorContext()) == UNKNOWN_LOCATION

    def test_static_custom(self):
        location = Location(country="Japan", city="Tokyo")
        assert StaticLocationResolver(location).resolve(VisitorContext()) == location

    def test_sample_is_reproducible_with_seed(self):
        first = SampleLocationResolver(seed=7)
        second = SampleLocationResolver(seed=7)

        picks = [first.resolve(VisitorContext()) for _ in range(5)]

        assert picks == [second.resolve(VisitorContext()) for _ in range(5)]
        assert all(pick in SAMPLE_LOCATIONS for pick in picks)

    def test_sample_requires_locations(self):
        with pytest.raises(ValueError):
            SampleLocationResolver(locations=[])


# ==============================================================================
# ip-api
# ==============================================================================


class TestIpApiResolver:
    """Tests for IpApiLocationResolver with a mocked HTTP session."""

    def test_successful_lookup(self):
        session = MagicMock()
        session.get.return_value = _response(
            {"status": "success", "country": "France", "city": "Paris"}
        )
        resolver = IpApiLocationResolver(base_url="http://geo.test/json/", session=session)

        location = resolver.resolve(VisitorContext(ip_address="203.0.113.7"))

        assert location == Location(country="France", city="Paris")
        url = session.get.call_args.args[0]
        assert url == "http://geo.test/json/203.0.113.7"

    def test_results_are_cached_per_ip(self):
        session = MagicMock()
        session.get.return_value = _response(
            {"status": "success", "country": "France", "city": "Paris"}
        )
        resolver = IpApiLocationResolver(session=session)
        context = VisitorContext(ip_address="203.0.113.7")

        resolver.resolve(context)
        resolver.resolve(context)

        assert session.get.call_count == 1

    def test_cache_is_bounded(self):
        session = MagicMock()
        session.get.return_value = _response(
            {"status": "success", "country": "France", "city": "Paris"}
        )
        resolver = IpApiLocationResolver(session=session, cache_size=2)

        for ip in ("203.0.113.1", "203.0.113.2", "203.0.113.1", "203.0.113.3"):
            resolver.resolve(VisitorContext(ip_address=ip))
        assert session.get.call_count == 3

        # .2 was least recently used and has been evicted; .1 is still cached
        resolver.resolve(VisitorContext(ip_address="203.0.113.1"))
        assert session.get.call_count == 3
        resolver.resolve(VisitorContext(ip_address="203.0.113.2"))
        assert session.get.call_count == 4

    def test_timeout_is_retried_once_then_falls_back(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("read timed out")
        resolver = IpApiLocationResolver(session=session)

        assert resolver.resolve(VisitorContext(ip_address="203.0.113.7")) == UNKNOWN_LOCATION
        assert session.get.call_count == 2

    def test_without_ip_uses_fallback(self):
        session = MagicMock()
        resolver = IpApiLocationResolver(session=session)

        assert resolver.resolve(VisitorContext()) == UNKNOWN_LOCATION
        session.get.assert_not_called()

    def test_failed_status_uses_fallback(self):
        session = MagicMock()
        session.get.return_value = _response({"status": "fail", "message": "private range"})
        fallback = Location(country="Nowhere", city="Nowhere")
        resolver = IpApiLocationResolver(session=session, fallback=fallback)

        assert resolver.resolve(VisitorContext(ip_address="10.0.0.1")) == fallback

    def test_http_error_uses_fallback(self):
        session = MagicMock()
        session.get.return_value = _response(status_error=requests.HTTPError("503"))
        resolver = IpApiLocationResolver(session=session)

        assert resolver.resolve(VisitorContext(ip_address="203.0.113.7")) == UNKNOWN_LOCATION

    def test_missing_fields_use_fallback_values(self):
        session = MagicMock()
        session.get.return_value = _response({"status": "success", "country": "Brazil"})
        resolver = IpApiLocationResolver(session=session)

        location = resolver.resolve(VisitorContext(ip_address="203.0.113.9"))

        assert location == Location(country="Brazil", city="Unknown")


# ==============================================================================
# Selection
# ==============================================================================


class TestBuildLocationResolver:
    """Tests for build_location_resolver()."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("static", StaticLocationResolver),
            ("sample", SampleLocationResolver),
            ("ip-api", IpApiLocationResolver),
        ],
    )
    def test_selects_by_setting(self, name, expected):
        settings = AnalyticsSettings(geolocation=name)
        assert isinstance(build_location_resolver(settings), expected)
