# ==============================================================================
# User Agent Classification
# ==============================================================================
"""
Coarse device/browser/OS classification from a user agent string.

Matching is substring based and ordered: the first rule that matches wins.
Chrome is tested before Safari because Chrome user agents also carry the
"Safari" token, and tablets are tested before phones because iPad and
Android tablet user agents also match the mobile rule.
"""

import re
from typing import NamedTuple

from sitestats.core.models import DeviceType

_TABLET_PATTERN = re.compile(r"tablet|ipad|playbook|silk", re.IGNORECASE)
_MOBILE_PATTERN = re.compile(
    r"mobile|iphone|ipod|android|blackberry|opera|mini|windows\sce|palm|smartphone|iemobile",
    re.IGNORECASE,
)

_BROWSERS = (
    ("Chrome", "Chrome"),
    ("Firefox", "Firefox"),
    ("Safari", "Safari"),
    ("Edge", "Edge"),
    ("Opera", "Opera"),
)

_OPERATING_SYSTEMS = (
    ("Windows", "Windows"),
    ("Mac", "macOS"),
    ("Linux", "Linux"),
    ("Android", "Android"),
    ("iOS", "iOS"),
)


class DeviceInfo(NamedTuple):
    device: DeviceType
    browser: str
    os: str


def _first_match(user_agent: str, rules: tuple[tuple[str, str], ...]) -> str:
    for token, name in rules:
        if token in user_agent:
            return name
    return "Unknown"


def classify_user_agent(user_agent: str) -> DeviceInfo:
    """
    Classify a user agent into device type, browser and operating system.

    Args:
        user_agent: Raw user agent string (may be empty)

    Returns:
        DeviceInfo; unknown browsers/systems are reported as "Unknown"
    """
    if _TABLET_PATTERN.search(user_agent):
        device = DeviceType.TABLET
    elif _MOBILE_PATTERN.search(user_agent):
        device = DeviceType.MOBILE
    else:
        device = DeviceType.DESKTOP

    return DeviceInfo(
        device=device,
        browser=_first_match(user_agent, _BROWSERS),
        os=_first_match(user_agent, _OPERATING_SYSTEMS),
    )
