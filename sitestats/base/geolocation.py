# ==============================================================================
# Location Resolver Abstract Base Class
# ==============================================================================
"""
Abstract interface for resolving a visitor's coarse location.

The session manager asks the resolver once per session; the result is
stored on the session and copied onto each page view.
"""

from abc import ABC, abstractmethod

from sitestats.core.models import Location, VisitorContext


class LocationResolver(ABC):
    """Resolves a visitor context to a country and city."""

    @abstractmethod
    def resolve(self, context: VisitorContext) -> Location:
        """
        Resolve the visitor's location.

        Must not raise: resolvers fall back to an "Unknown" location.

        Args:
            context: Raw client values (IP address, timezone, ...)

        Returns:
            Location of the visitor
        """
        ...
