# ==============================================================================
# Location Resolvers
# ==============================================================================
"""
LocationResolver implementations.

- StaticLocationResolver: one fixed location for everybody (default)
- SampleLocationResolver: random pick from a sample list, for demos and seeding
- IpApiLocationResolver: HTTP lookup against an ip-api.com compatible service

The HTTP resolver runs while a session starts, so it retries a dropped
connection once without waiting and keeps a bounded per-IP cache.
"""

import logging
import random
from collections import OrderedDict
from typing import Optional, Sequence

import requests

from sitestats.base import LocationResolver
from sitestats.core.models import Location, VisitorContext
from sitestats.utils.config import AnalyticsSettings
from sitestats.utils.retry import HTTP_RETRY_EXCEPTIONS, retry_tracking

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 1024

UNKNOWN_LOCATION = Location(country="Unknown", city="Unknown")

SAMPLE_LOCATIONS = (
    Location(country="United States", city="New York"),
    Location(country="United Kingdom", city="London"),
    Location(country="Germany", city="Berlin"),
    Location(country="France", city="Paris"),
    Location(country="Japan", city="Tokyo"),
    Location(country="Australia", city="Sydney"),
    Location(country="Canada", city="Toronto"),
    Location(country="Brazil", city="São Paulo"),
    Location(country="India", city="Mumbai"),
    Location(country="China", city="Shanghai"),
)


class StaticLocationResolver(LocationResolver):
    """Returns the same location for every visitor."""

    def __init__(self, location: Location = UNKNOWN_LOCATION):
        self._location = location

    def resolve(self, context: VisitorContext) -> Location:
        return self._location


class SampleLocationResolver(LocationResolver):
    """Picks a location at random from a sample list."""

    def __init__(self, locations: Sequence[Location] = SAMPLE_LOCATIONS, seed: Optional[int] = None):
        """
        Args:
            locations: Candidate locations
            seed: Seed for reproducible picks
        """
        if not locations:
            raise ValueError("locations must not be empty")
        self._locations = list(locations)
        self._random = random.Random(seed)

    def resolve(self, context: VisitorContext) -> Location:
        return self._random.choice(self._locations)


class IpApiLocationResolver(LocationResolver):
    """
    Resolves the visitor's IP address through an ip-api.com style endpoint.

    ``GET {base_url}/{ip}`` is expected to answer with
    ``{"status": "success", "country": ..., "city": ...}``. Any failure
    resolves to the fallback location. Successful answers are cached per
    IP, least recently used first out once ``cache_size`` is reached.
    """

    def __init__(
        self,
        base_url: str = "http://ip-api.com/json",
        timeout: int = 5,
        fallback: Location = UNKNOWN_LOCATION,
        session: Optional[requests.Session] = None,
        cache_size: int = DEFAULT_CACHE_SIZE,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._fallback = fallback
        self._session = session or requests.Session()
        self._cache: OrderedDict[str, Location] = OrderedDict()
        self._cache_size = cache_size

    @retry_tracking(HTTP_RETRY_EXCEPTIONS, logger)
    def _lookup(self, ip_address: str) -> dict:
        response = self._session.get(
            f"{self._base_url}/{ip_address}",
            params={"fields": "status,message,country,city"},
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()

    def resolve(self, context: VisitorContext) -> Location:
        ip_address = context.ip_address
        if not ip_address:
            return self._fallback
        if ip_address in self._cache:
            self._cache.move_to_end(ip_address)
            return self._cache[ip_address]

        try:
            data = self._lookup(ip_address)
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geolocation lookup failed for %s: %s", ip_address, e)
            return self._fallback

        if data.get("status") != "success":
            logger.debug("Geolocation has no answer for %s: %s", ip_address, data.get("message"))
            return self._fallback

        location = Location(
            country=data.get("country") or self._fallback.country,
            city=data.get("city") or self._fallback.city,
        )
        self._cache[ip_address] = location
        if len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        return location


def build_location_resolver(settings: AnalyticsSettings) -> LocationResolver:
    """
    Create the resolver selected by ``ANALYTICS_GEOLOCATION``.

    Args:
        settings: Analytics settings

    Returns:
        Configured LocationResolver
    """
    if settings.geolocation == "sample":
        return SampleLocationResolver()
    if settings.geolocation == "ip-api":
        return IpApiLocationResolver(
            base_url=settings.geolocation_url,
            timeout=settings.geolocation_timeout,
        )
    return StaticLocationResolver()
