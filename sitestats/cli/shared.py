# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and box-drawing characters
- Box drawing helpers for formatted output
- Analytics context and date range helpers
"""

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import typer

from sitestats.context import AnalyticsContext, create_context
from sitestats.core.models import DateRange, ensure_utc, utc_now

# ==============================================================================
# Constants
# ==============================================================================

# Box drawing width (unified for all commands)
BOX_WIDTH = 68

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ==============================================================================
# ANSI Colors and Box Drawing
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Box:
    """Unicode box-drawing characters."""

    H = "─"  # horizontal
    V = "│"  # vertical
    TL = "┌"  # top-left
    TR = "┐"  # top-right
    BL = "└"  # bottom-left
    BR = "┘"  # bottom-right
    LT = "├"  # left-tee
    RT = "┤"  # right-tee


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    CIRCLE = "●"
    ARROW = "→"
    DATABASE = "◆"
    CHART = "▤"
    GLOBE = "◎"
    CLOCK = "◷"


# Module-level aliases for convenience
C, B, I = Colors, Box, Icons


# ==============================================================================
# Context and Arguments
# ==============================================================================


def get_context() -> AnalyticsContext:
    """Create the analytics context from environment settings."""
    return create_context()


def parse_date_range(
    since: Optional[datetime],
    until: Optional[datetime],
    days: Optional[int],
) -> Optional[DateRange]:
    """
    Build a DateRange from command options.

    ``--days N`` means the last N days up to now and wins over
    ``--since``/``--until``. Naive dates are taken as UTC.

    Returns:
        DateRange, or None for all recorded history
    """
    if days is not None:
        end = utc_now()
        return DateRange(start=end - timedelta(days=days), end=end)
    if since is None and until is None:
        return None

    start = ensure_utc(since) if since else EPOCH
    end = ensure_utc(until) if until else utc_now()
    if start > end:
        raise typer.BadParameter("--since must not be after --until")
    return DateRange(start=start, end=end)


def to_json(data: Any) -> str:
    """Serialize command output; datetimes become ISO-8601 strings."""
    return json.dumps(data, indent=2, default=lambda o: o.isoformat())


# ==============================================================================
# Box Drawing Helpers
# ==============================================================================

# Regex pattern for stripping ANSI escape codes
_ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def _visible_len(s: str) -> int:
    """Calculate visible length of string, ignoring ANSI escape codes."""
    return len(_ANSI_ESCAPE_PATTERN.sub("", s))


def _box_header(title: str, width: int = BOX_WIDTH) -> str:
    """Create a single-line box header."""
    inner_width = width - 2
    title_padded = f" {title} "
    left_bar = (inner_width - len(title_padded)) // 2
    right_bar = inner_width - left_bar - len(title_padded)
    return (
        f"{C.CYAN}{B.TL}{B.H * left_bar}{C.BOLD}{C.WHITE}{title_padded}"
        f"{C.RESET}{C.CYAN}{B.H * right_bar}{B.TR}{C.RESET}"
    )


def _section_header(title: str, icon: str, width: int = BOX_WIDTH) -> str:
    """Create a section header with icon."""
    inner_width = width - 2
    title_with_icon = f" {icon} {title} "
    bar_len = inner_width - len(title_with_icon) - 1  # -1 for the first H after LT
    return f"{C.CYAN}{B.LT}{B.H}{C.BOLD}{title_with_icon}{C.RESET}{C.CYAN}{B.H * bar_len}{B.RT}{C.RESET}"


def _box_line(content: str, width: int = BOX_WIDTH) -> str:
    """Create a line inside the box with proper padding to right border."""
    inner_width = width - 2
    padding = max(0, inner_width - _visible_len(content))
    return f"{C.CYAN}{B.V}{C.RESET}{content}{' ' * padding}{C.CYAN}{B.V}{C.RESET}"


def _empty_line(width: int = BOX_WIDTH) -> str:
    """Create an empty line inside the box."""
    return f"{C.CYAN}{B.V}{' ' * (width - 2)}{B.V}{C.RESET}"


def _box_bottom(width: int = BOX_WIDTH) -> str:
    """Create a box bottom border."""
    return f"{C.CYAN}{B.BL}{B.H * (width - 2)}{B.BR}{C.RESET}"


def _status_badge(status: str, is_ok: bool) -> tuple[str, int]:
    """Create a colored status badge. Returns (formatted_string, visible_length)."""
    if is_ok:
        return f"{C.BRIGHT_GREEN}{I.CHECK} {status}{C.RESET}", len(status) + 2
    return f"{C.BRIGHT_RED}{I.CROSS} {status}{C.RESET}", len(status) + 2


def _format_bytes(size: int) -> str:
    """Human-readable byte count."""
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
