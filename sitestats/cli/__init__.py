# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for sitestats.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and helpers
- analytics.py: Analytics summary and real-time commands
- data.py: Reset, size and seed commands
- config.py: Configuration display
- status.py: Status command showing store health
"""

from sitestats.cli.shared import (
    # Constants
    BOX_WIDTH,
    # Classes
    Box,
    Colors,
    Icons,
    # Aliases
    B,
    C,
    I,
    # Helpers
    get_context,
    parse_date_range,
    to_json,
)

__all__ = [
    # Constants
    "BOX_WIDTH",
    # Classes
    "Box",
    "Colors",
    "Icons",
    # Aliases
    "B",
    "C",
    "I",
    # Helpers
    "get_context",
    "parse_date_range",
    "to_json",
]
