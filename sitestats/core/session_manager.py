# ==============================================================================
# Session Manager
# ==============================================================================
"""
Lifecycle of the current visitor session and the four track operations.

A SessionManager represents one visitor's tracking context (one browser tab
in the website builder): it lazily starts a session on the first trackable
activity, keeps the session counters in step with the recorded events, and
finalizes duration and bounce when the session ends.

Bounce is decided twice, on purpose:
- while the session runs, any page view, interaction or conversion clears
  ``bounced``;
- ``end_session`` recomputes it from scratch as
  ``duration < threshold or page_views <= 1``, overriding the running value.
A session with two page views that ends after ten seconds therefore reports
``bounced=False`` while active and ``bounced=True`` once ended.
"""

import logging
import math
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from sitestats.base import EventStore, LocationResolver
from sitestats.core.aggregations import round_half_up
from sitestats.core.errors import StoreWriteError
from sitestats.core.models import (
    ConversionEvent,
    ConversionType,
    ElementPosition,
    InteractionEvent,
    InteractionType,
    PageViewEvent,
    PerformanceSample,
    VisitorContext,
    VisitorSession,
    utc_now,
)
from sitestats.core.user_agent import classify_user_agent

logger = logging.getLogger(__name__)

DEFAULT_BOUNCE_THRESHOLD_SECONDS = 30


def new_id() -> str:
    """Generate a unique record identifier."""
    return uuid.uuid4().hex


class SessionManager:
    """
    Owns "the current session" of one visitor.

    Writes go straight to the event store; a StoreWriteError from the store
    propagates to the caller. Counters are only incremented once the event
    itself has been stored.
    """

    def __init__(
        self,
        store: EventStore,
        location_resolver: LocationResolver,
        context: Optional[VisitorContext] = None,
        visitor_id: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
        bounce_threshold_seconds: int = DEFAULT_BOUNCE_THRESHOLD_SECONDS,
    ):
        """
        Initialize the session manager.

        Args:
            store: Event store receiving sessions and events
            location_resolver: Resolves country/city once per session
            context: Raw client values (user agent, referrer, ...)
            visitor_id: Stable visitor identifier for the returning-visitor marker
            clock: Returns the current aware UTC time
            id_factory: Generates record ids
            bounce_threshold_seconds: Minimum duration of a non-bounced session
        """
        self._store = store
        self._location_resolver = location_resolver
        self._context = context or VisitorContext()
        self._visitor_id = visitor_id or id_factory()
        self._clock = clock
        self._id_factory = id_factory
        self._bounce_threshold = bounce_threshold_seconds

        self._session: Optional[VisitorSession] = None
        self._current_page_view: Optional[PageViewEvent] = None
        self._page_started_at: Optional[datetime] = None
        self._scroll_depth = 0

    @property
    def current_session(self) -> Optional[VisitorSession]:
        """The active session, or None."""
        return self._session

    @property
    def visitor_id(self) -> str:
        return self._visitor_id

    @property
    def scroll_depth(self) -> int:
        """Deepest scroll position reached on the current page, in percent."""
        return self._scroll_depth

    # ==========================================================================
    # Session lifecycle
    # ==========================================================================

    def start_session(self, project_id: str) -> VisitorSession:
        """
        Start a new session for the project.

        The session starts bounced with zero counters; device data comes from
        the user agent and location from the resolver.

        Args:
            project_id: Project being visited

        Returns:
            The new, persisted session
        """
        device = classify_user_agent(self._context.user_agent)
        location = self._location_resolver.resolve(self._context)
        is_returning = self._store.has_visited(project_id, self._visitor_id)

        session = VisitorSession(
            id=self._id_factory(),
            project_id=project_id,
            session_start=self._clock(),
            device=device.device,
            browser=device.browser,
            os=device.os,
            country=location.country,
            city=location.city,
            referrer=self._context.referrer,
            user_agent=self._context.user_agent,
            screen_resolution=self._context.screen_resolution,
            language=self._context.language,
            timezone=self._context.timezone,
            is_returning=is_returning,
            bounced=True,
        )

        self._store.save_session(session)
        self._session = session
        self._current_page_view = None
        self._page_started_at = None
        self._scroll_depth = 0
        self._store.mark_visited(project_id, self._visitor_id)

        logger.info("Analytics session started: %s (project %s)", session.id, project_id)
        return session

    def end_session(self) -> Optional[VisitorSession]:
        """
        Finalize the current session.

        Sets the end time and duration and recomputes ``bounced`` solely from
        the duration threshold and the page view count.

        Returns:
            The finalized session, or None if no session was active
        """
        session = self._session
        if session is None:
            return None

        now = self._clock()
        session.session_end = now
        session.duration = max(0, math.floor((now - session.session_start).total_seconds()))
        session.bounced = session.duration < self._bounce_threshold or session.page_views <= 1

        self._store.save_session(session)
        self._session = None
        self._current_page_view = None
        self._page_started_at = None

        logger.info(
            "Analytics session ended: %s (duration %ds, bounced=%s)",
            session.id,
            session.duration,
            session.bounced,
        )
        return session

    def _ensure_session(self, project_id: str) -> VisitorSession:
        if self._session is not None and self._session.project_id != project_id:
            logger.debug(
                "Switching project %s -> %s, ending session %s",
                self._session.project_id,
                project_id,
                self._session.id,
            )
            self._flush_previous_page()
            self.end_session()
        if self._session is None:
            return self.start_session(project_id)
        return self._session

    # ==========================================================================
    # Tracking
    # ==========================================================================

    def track_page_view(
        self,
        project_id: str,
        page: str = "/",
        title: str = "",
        load_time: float = 0,
    ) -> PageViewEvent:
        """
        Record a page view.

        The previous page of the session gets its time-on-page and scroll
        depth flushed first; the accumulators then restart for the new page.

        Args:
            project_id: Project being visited
            page: Page path
            title: Document title
            load_time: Page load time in milliseconds

        Returns:
            The stored page view
        """
        session = self._ensure_session(project_id)
        self._flush_previous_page()

        page_view = PageViewEvent(
            id=self._id_factory(),
            project_id=project_id,
            session_id=session.id,
            timestamp=self._clock(),
            page=page,
            title=title,
            referrer=self._context.referrer,
            device=session.device,
            browser=session.browser,
            os=session.os,
            country=session.country,
            city=session.city,
            load_time=load_time,
        )
        self._store.append(page_view)

        session.page_views += 1
        session.bounced = False
        self._store.save_session(session)

        self._current_page_view = page_view
        self._page_started_at = page_view.timestamp
        self._scroll_depth = 0

        logger.debug("Page view tracked: %s %s", project_id, page)
        return page_view

    def track_interaction(
        self,
        project_id: str,
        type: InteractionType,
        element: Optional[str] = None,
        *,
        element_text: Optional[str] = None,
        element_position: Optional[ElementPosition] = None,
        section_id: Optional[str] = None,
        value: Optional[str] = None,
    ) -> InteractionEvent:
        """
        Record an on-page interaction.

        Args:
            project_id: Project being visited
            type: Interaction kind
            element: Element descriptor (CSS-like selector)
            element_text: Visible text of the element
            element_position: Viewport coordinates
            section_id: Builder section the element belongs to
            value: Free-form value (link target, file name, ...)

        Returns:
            The stored interaction
        """
        session = self._ensure_session(project_id)
        interaction = InteractionEvent(
            id=self._id_factory(),
            project_id=project_id,
            session_id=session.id,
            timestamp=self._clock(),
            type=type,
            element=element,
            element_text=element_text,
            element_position=element_position,
            section_id=section_id,
            value=value,
        )
        self._store.append(interaction)

        session.interactions += 1
        session.bounced = False
        self._store.save_session(session)

        logger.debug("Interaction tracked: %s %s", interaction.type.value, element)
        return interaction

    def track_conversion(
        self,
        project_id: str,
        type: ConversionType,
        value: Optional[float] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ConversionEvent:
        """
        Record a goal completion.

        Args:
            project_id: Project being visited
            type: Conversion goal
            value: Optional monetary or numeric value
            metadata: Free-form details

        Returns:
            The stored conversion
        """
        session = self._ensure_session(project_id)
        conversion = ConversionEvent(
            id=self._id_factory(),
            project_id=project_id,
            session_id=session.id,
            timestamp=self._clock(),
            type=type,
            value=value,
            metadata=metadata or {},
        )
        self._store.append(conversion)

        session.conversion_events.append(conversion)
        session.bounced = False
        self._store.save_session(session)

        logger.info("Conversion tracked: %s %s", conversion.type.value, value)
        return conversion

    def track_performance(self, project_id: str, **timings: float) -> PerformanceSample:
        """
        Record the load timings of one page load.

        Args:
            project_id: Project being visited
            **timings: PerformanceSample fields (load_time, first_contentful_paint, ...)

        Returns:
            The stored sample
        """
        sample = PerformanceSample(
            id=self._id_factory(),
            project_id=project_id,
            timestamp=self._clock(),
            **timings,
        )
        self._store.append(sample)
        return sample

    # ==========================================================================
    # Page accumulators
    # ==========================================================================

    def record_scroll(self, percent: float) -> int:
        """
        Raise the scroll depth of the current page if ``percent`` is deeper.

        Args:
            percent: Current scroll position as a percentage of the page

        Returns:
            The scroll depth now recorded for the page
        """
        depth = min(100, max(0, round_half_up(percent)))
        if depth > self._scroll_depth:
            self._scroll_depth = depth
        return self._scroll_depth

    def update_time_on_page(self) -> Optional[PageViewEvent]:
        """
        Store time-on-page and scroll depth of the current page view.

        Returns:
            The patched page view, or None if no page is being viewed
        """
        if self._current_page_view is None or self._page_started_at is None:
            return None

        elapsed = math.floor((self._clock() - self._page_started_at).total_seconds())
        return self._store.update_page_view(
            self._current_page_view.id,
            time_on_page=max(0, elapsed),
            scroll_depth=self._scroll_depth,
        )

    def _flush_previous_page(self) -> None:
        """Flush the page being left; its figures are lost if the store refuses."""
        try:
            self.update_time_on_page()
        except StoreWriteError as e:
            logger.warning("Time on page of %s lost: %s", self._current_page_view.id, e)
