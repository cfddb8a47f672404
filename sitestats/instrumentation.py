# ==============================================================================
# Page Instrumentation Hooks
# ==============================================================================
"""
Adapter between raw page events and the SessionManager.

The page-side instrumentation reports browser events with plain values
(element id, class name, scroll offsets, paint timings). PageInstrumentation
turns them into tracking calls for one project.

Every hook is fire-and-forget: tracking must never break the page it runs
on, so a store failure or a malformed payload is logged and the hook
returns None. Clicks and form submits are ignored until a page view has
started a session.
"""

import functools
import logging
from typing import Optional

from sitestats.core.aggregations import round_half_up
from sitestats.core.errors import AnalyticsError
from sitestats.core.models import ConversionType, ElementPosition, InteractionType
from sitestats.core.session_manager import SessionManager

logger = logging.getLogger(__name__)

ELEMENT_TEXT_LIMIT = 100
UNKNOWN_FORM = "unknown-form"


def element_selector(
    tag_name: str,
    element_id: Optional[str] = None,
    class_name: Optional[str] = None,
) -> str:
    """
    Describe an element as a short CSS-like selector.

    ``#id`` when the element has an id, otherwise ``.class`` for its first
    class, otherwise the lowercase tag name.
    """
    if element_id:
        return f"#{element_id}"
    if class_name:
        classes = class_name.split()
        if classes:
            return f".{classes[0]}"
    return tag_name.lower()


def scroll_percent(scroll_top: float, document_height: float, viewport_height: float) -> int:
    """Scroll position as a whole percentage of the scrollable distance."""
    scrollable = document_height - viewport_height
    if scrollable <= 0:
        return 100
    return min(100, max(0, round_half_up(scroll_top / scrollable * 100)))


def fire_and_forget(method):
    """Log and swallow store failures and malformed payloads of a hook."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            method(self, *args, **kwargs)
        except AnalyticsError as e:
            logger.warning("Analytics hook %s failed: %s", method.__name__, e)
        except (ValueError, TypeError) as e:
            # pydantic ValidationError is a ValueError
            logger.warning("Analytics hook %s got invalid data: %s", method.__name__, e)
        return None

    return wrapper


class PageInstrumentation:
    """Hooks for one published page bound to a project."""

    def __init__(self, manager: SessionManager, project_id: str):
        self._manager = manager
        self._project_id = project_id

    @property
    def manager(self) -> SessionManager:
        return self._manager

    @property
    def project_id(self) -> str:
        return self._project_id

    @fire_and_forget
    def on_navigation(self, page: str, title: str = "", load_time: float = 0) -> None:
        """Page shown (initial load or client-side route change)."""
        self._manager.track_page_view(self._project_id, page, title, load_time)

    @fire_and_forget
    def on_scroll(self, scroll_top: float, document_height: float, viewport_height: float) -> None:
        self._manager.record_scroll(scroll_percent(scroll_top, document_height, viewport_height))

    @fire_and_forget
    def on_visibility_hidden(self) -> None:
        """Tab hidden; the visitor may not come back, so flush the page."""
        self._manager.update_time_on_page()

    @fire_and_forget
    def on_unload(self) -> None:
        """Page closing: flush the page, then end the session."""
        try:
            self._manager.update_time_on_page()
        finally:
            self._manager.end_session()

    @fire_and_forget
    def on_click(
        self,
        tag_name: str,
        element_id: Optional[str] = None,
        class_name: Optional[str] = None,
        text: Optional[str] = None,
        x: float = 0,
        y: float = 0,
    ) -> None:
        if self._manager.current_session is None:
            return
        element_text = text.strip()[:ELEMENT_TEXT_LIMIT] if text else None
        self._manager.track_interaction(
            self._project_id,
            InteractionType.CLICK,
            element_selector(tag_name, element_id, class_name),
            element_text=element_text,
            element_position=ElementPosition(x=x, y=y),
        )

    @fire_and_forget
    def on_form_submit(self, form_id: Optional[str] = None, class_name: Optional[str] = None) -> None:
        """A form submit is both an interaction and a contact-form conversion."""
        if self._manager.current_session is None:
            return
        if form_id or (class_name and class_name.split()):
            selector = element_selector("form", form_id, class_name)
        else:
            selector = UNKNOWN_FORM
        self._manager.track_interaction(
            self._project_id, InteractionType.FORM_SUBMIT, selector
        )
        self._manager.track_conversion(
            self._project_id,
            ConversionType.CONTACT_FORM,
            value=1,
            metadata={"form": selector},
        )

    @fire_and_forget
    def on_load(self, **timings: float) -> None:
        """Navigation/paint timings of a finished page load (milliseconds)."""
        self._manager.track_performance(self._project_id, **timings)
