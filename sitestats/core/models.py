# ==============================================================================
# Visitor Analytics Domain Models
# ==============================================================================
"""
Pydantic models for visitor sessions and analytics events.

These models are used for:
- Validating values handed over by the instrumentation layer
- Serializing/deserializing records held in the key-value store
- Type safety throughout the application

Field names on the wire are camelCase (``pageViews``, ``sessionStart``); Python
code uses the snake_case attribute names. Timestamps are always timezone-aware
UTC datetimes and travel as ISO-8601 strings, so a store/reload cycle yields
the same instant back as a ``datetime``.

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DeviceType(str, Enum):
    """Device classes derived from the user agent."""

    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


class InteractionType(str, Enum):
    """Kinds of on-page interaction reported by instrumentation."""

    CLICK = "click"
    SCROLL = "scroll"
    HOVER = "hover"
    FORM_SUBMIT = "form_submit"
    DOWNLOAD = "download"
    EXTERNAL_LINK = "external_link"


class ConversionType(str, Enum):
    """Goal completions that count as conversions."""

    CONTACT_FORM = "contact_form"
    NEWSLETTER = "newsletter"
    DOWNLOAD = "download"
    EXTERNAL_LINK = "external_link"
    SOCIAL_SHARE = "social_share"
    EMAIL_CLICK = "email_click"
    PHONE_CLICK = "phone_click"


class AnalyticsModel(BaseModel):
    """Base model: camelCase wire names, UTC timestamps."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_record(self) -> str:
        """Serialize for the key-value store (camelCase JSON, ISO-8601 dates)."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_record(cls, data: str):
        """Deserialize a record produced by ``to_record``."""
        return cls.model_validate_json(data)


class DateRange(AnalyticsModel):
    """Closed time interval; both bounds are inclusive."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end


class Location(AnalyticsModel):
    """Coarse visitor location."""

    country: str = "Unknown"
    city: str = "Unknown"


class VisitorContext(AnalyticsModel):
    """
    Raw client values captured by the instrumentation layer.

    Attributes:
        user_agent: Browser user agent string
        referrer: Referring URL, empty for direct traffic
        screen_resolution: e.g. "1920x1080"
        language: Browser language, e.g. "en-US"
        timezone: IANA timezone reported by the browser
        ip_address: Client address, used only for geolocation
    """

    user_agent: str = ""
    referrer: str = ""
    screen_resolution: str = ""
    language: str = ""
    timezone: str = ""
    ip_address: Optional[str] = None


class ElementPosition(AnalyticsModel):
    """Viewport coordinates of an interaction."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class ConversionEvent(AnalyticsModel):
    """
    A tracked goal completion attributed to a session.

    Append-only; a copy is also embedded in the owning session's
    ``conversion_events`` list.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    session_id: str
    timestamp: datetime
    type: ConversionType
    value: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class VisitorSession(AnalyticsModel):
    """
    One visitor's continuous visit to a project's published site.

    Mutated in place by every track call for the session and finalized by
    ``SessionManager.end_session``.

    Attributes:
        id: Session identifier
        project_id: Project the session belongs to
        session_start: Time of the first trackable activity
        session_end: Set when the session is finalized
        duration: Whole seconds between start and end
        page_views: Number of page views recorded for the session
        interactions: Number of interactions recorded for the session
        bounced: True until the first activity; recomputed at session end
        conversion_events: Conversions recorded for the session
    """

    id: str
    project_id: str
    session_start: datetime
    session_end: Optional[datetime] = None
    duration: int = 0
    page_views: int = 0
    interactions: int = 0
    device: DeviceType = DeviceType.DESKTOP
    browser: str = "Unknown"
    os: str = "Unknown"
    country: str = "Unknown"
    city: str = "Unknown"
    referrer: str = ""
    user_agent: str = ""
    screen_resolution: str = ""
    language: str = ""
    timezone: str = ""
    is_returning: bool = False
    bounced: bool = True
    conversion_events: list[ConversionEvent] = Field(default_factory=list)

    @field_validator("session_start", "session_end")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def timestamp(self) -> datetime:
        """Sessions are filtered and ordered by their start time."""
        return self.session_start


class PageViewEvent(AnalyticsModel):
    """
    A single page view.

    ``time_on_page`` and ``scroll_depth`` are filled in when the visitor
    leaves the page; everything else is a snapshot taken at creation.
    """

    id: str
    project_id: str
    session_id: str
    timestamp: datetime
    page: str
    title: str = ""
    time_on_page: int = 0
    scroll_depth: int = 0
    referrer: str = ""
    device: DeviceType = DeviceType.DESKTOP
    browser: str = "Unknown"
    os: str = "Unknown"
    country: str = "Unknown"
    city: str = "Unknown"
    load_time: float = 0

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class InteractionEvent(AnalyticsModel):
    """An on-page interaction (click, scroll, form submit, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    session_id: str
    timestamp: datetime
    type: InteractionType
    element: Optional[str] = None
    element_text: Optional[str] = None
    element_position: Optional[ElementPosition] = None
    section_id: Optional[str] = None
    value: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class PerformanceSample(AnalyticsModel):
    """Page load timings, one per page load. Times are in milliseconds."""

    model_config = ConfigDict(frozen=True)

    id: str
    project_id: str
    timestamp: datetime
    load_time: float = 0
    dom_content_loaded: float = 0
    first_contentful_paint: float = 0
    largest_contentful_paint: float = 0
    cumulative_layout_shift: float = 0
    first_input_delay: float = 0
    resource_count: int = 0
    resource_size: int = 0
    cache_hit_rate: float = 0

    @field_validator("timestamp")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


@dataclass
class EventSnapshot:
    """
    The five event collections of one project, read once.

    Every statistic of a summary is computed from a single snapshot so the
    sub-views agree with each other.
    """

    sessions: list[VisitorSession] = field(default_factory=list)
    page_views: list[PageViewEvent] = field(default_factory=list)
    interactions: list[InteractionEvent] = field(default_factory=list)
    conversions: list[ConversionEvent] = field(default_factory=list)
    performance: list[PerformanceSample] = field(default_factory=list)

    def within(self, date_range: Optional[DateRange]) -> "EventSnapshot":
        """Return the subset of events whose timestamp falls in ``date_range``."""
        if date_range is None:
            return self
        return EventSnapshot(
            sessions=[s for s in self.sessions if date_range.contains(s.session_start)],
            page_views=[e for e in self.page_views if date_range.contains(e.timestamp)],
            interactions=[e for e in self.interactions if date_range.contains(e.timestamp)],
            conversions=[e for e in self.conversions if date_range.contains(e.timestamp)],
            performance=[e for e in self.performance if date_range.contains(e.timestamp)],
        )
