# ==============================================================================
# Event Store Abstract Base Class
# ==============================================================================
"""
Abstract interface for analytics event persistence.

Five event kinds are stored per project: sessions, page views, interactions,
conversions and performance samples. Everything except sessions is
append-only, with one exception: page views accept an in-place patch of
their time-on-page and scroll depth.

Reads never raise: unreadable data degrades to an empty collection. Writes
raise StoreWriteError when the record did not reach the store.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from sitestats.core.models import (
    ConversionEvent,
    DateRange,
    EventSnapshot,
    InteractionEvent,
    PageViewEvent,
    PerformanceSample,
    VisitorSession,
)

AppendableEvent = Union[PageViewEvent, InteractionEvent, ConversionEvent, PerformanceSample]


class EventStore(ABC):
    """Store for visitor sessions and analytics events."""

    @abstractmethod
    def save_session(self, session: VisitorSession) -> None:
        """
        Insert or replace a session record.

        Raises:
            StoreWriteError: If the session could not be written
        """
        ...

    @abstractmethod
    def append(self, event: AppendableEvent) -> None:
        """
        Append an event to the collection of its kind.

        Raises:
            StoreWriteError: If the event could not be written
        """
        ...

    @abstractmethod
    def update_page_view(
        self,
        page_view_id: str,
        time_on_page: Optional[int] = None,
        scroll_depth: Optional[int] = None,
    ) -> Optional[PageViewEvent]:
        """
        Patch the mutable fields of a stored page view.

        Args:
            page_view_id: Id of the page view to patch
            time_on_page: New time on page in seconds (unchanged if None)
            scroll_depth: New scroll depth percentage (unchanged if None)

        Returns:
            The updated page view, or None if it does not exist

        Raises:
            StoreWriteError: If the patch could not be written
        """
        ...

    @abstractmethod
    def get_sessions(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[VisitorSession]:
        """Sessions of a project whose start falls in ``date_range``, oldest first."""
        ...

    @abstractmethod
    def get_page_views(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[PageViewEvent]:
        """Page views of a project in ``date_range``, oldest first."""
        ...

    @abstractmethod
    def get_interactions(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[InteractionEvent]:
        """Interactions of a project in ``date_range``, oldest first."""
        ...

    @abstractmethod
    def get_conversions(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[ConversionEvent]:
        """Conversions of a project in ``date_range``, oldest first."""
        ...

    @abstractmethod
    def get_performance(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> list[PerformanceSample]:
        """Performance samples of a project in ``date_range``, oldest first."""
        ...

    @abstractmethod
    def has_visited(self, project_id: str, visitor_id: str) -> bool:
        """Whether the visitor has been seen on the project before."""
        ...

    @abstractmethod
    def mark_visited(self, project_id: str, visitor_id: str) -> None:
        """Remember the visitor so later sessions count as returning (best effort)."""
        ...

    @abstractmethod
    def clear_all(self) -> int:
        """
        Remove every analytics record for every project.

        Returns:
            Count of keys deleted
        """
        ...

    @abstractmethod
    def storage_size(self) -> int:
        """Bytes of serialized analytics data currently held."""
        ...

    def get_project_analytics(
        self, project_id: str, date_range: Optional[DateRange] = None
    ) -> EventSnapshot:
        """
        Read all five collections of a project.

        Args:
            project_id: Project to read
            date_range: Optional inclusive range applied to every collection

        Returns:
            EventSnapshot holding the filtered collections
        """
        return EventSnapshot(
            sessions=self.get_sessions(project_id, date_range),
            page_views=self.get_page_views(project_id, date_range),
            interactions=self.get_interactions(project_id, date_range),
            conversions=self.get_conversions(project_id, date_range),
            performance=self.get_performance(project_id, date_range),
        )
