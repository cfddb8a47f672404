# ==============================================================================
# Sitestats Utilities
# ==============================================================================
"""
Shared utilities for sitestats.

This module exports configuration and retry helpers for use throughout the
package.
"""

from sitestats.utils.config import (
    AnalyticsSettings,
    Settings,
    ValkeySettings,
    get_settings,
)
from sitestats.utils.retry import (
    HTTP_RETRY_EXCEPTIONS,
    REDIS_RETRY_EXCEPTIONS,
    retry_light,
    retry_standard,
    retry_tracking,
)

__all__ = [
    # Config
    "AnalyticsSettings",
    "Settings",
    "ValkeySettings",
    "get_settings",
    # Retry
    "HTTP_RETRY_EXCEPTIONS",
    "REDIS_RETRY_EXCEPTIONS",
    "retry_light",
    "retry_standard",
    "retry_tracking",
]
