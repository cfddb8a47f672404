# ==============================================================================
# Status Command
# ==============================================================================
"""
Status command for the sitestats CLI.

Displays store health and per-collection record counts in either formatted
box output or JSON format for programmatic consumption.

Includes light retry logic (3 attempts, ~7 seconds) for network resilience
when checking the store.
"""

import json as json_module
import logging
from typing import Any

import typer
from redis.exceptions import RedisError, ResponseError

from sitestats.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _format_bytes,
    _section_header,
    _status_badge,
    get_context,
)
from sitestats.context import AnalyticsContext
from sitestats.infrastructure import EventKind, ValkeyCache, ValkeyEventStore
from sitestats.utils.retry import REDIS_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)


# ==============================================================================
# Data Collection
# ==============================================================================


@retry_light(REDIS_RETRY_EXCEPTIONS, logger)
def _valkey_stats_with_retry(context: AnalyticsContext) -> dict[str, Any]:
    """Read record counts and memory usage with retry logic."""
    store = context.store
    if not isinstance(store, ValkeyEventStore) or not isinstance(store.cache, ValkeyCache):
        return {"collections": {}, "memory": None}

    client = store.cache.client
    client.ping()
    collections = {kind.value: client.hlen(store.collection_key(kind)) for kind in EventKind}
    return {"collections": collections, "memory": _memory_usage(client)}


def _memory_usage(client) -> str | None:
    """Human readable used memory, or None when INFO is not available."""
    try:
        memory = client.info("memory").get("used_memory_human")
    except ResponseError:
        return None
    # Normalize memory format
    if memory and memory[-1] in ("K", "M", "G"):
        memory = memory[:-1] + " " + memory[-1] + "B"
    return memory


def _collect_status_data(context: AnalyticsContext) -> dict[str, Any]:
    """Collect store status data."""
    settings = context.settings
    data: dict[str, Any] = {
        "valkey": {
            "host": settings.valkey.host,
            "port": settings.valkey.port,
            "status": "unreachable",
            "memory": None,
        },
        "analytics": {
            "key_prefix": settings.analytics.key_prefix,
            "geolocation": settings.analytics.geolocation,
            "collections": {},
            "storage_bytes": None,
        },
    }

    try:
        stats = _valkey_stats_with_retry(context)
        data["valkey"]["status"] = "connected"
        data["valkey"]["memory"] = stats["memory"]
        data["analytics"]["collections"] = stats["collections"]
        data["analytics"]["storage_bytes"] = context.store.storage_size()
    except RedisError as e:
        logger.debug("Status check failed: %s", e)

    return data


# ==============================================================================
# Display
# ==============================================================================


def _display_status(data: dict[str, Any]) -> None:
    W = BOX_WIDTH
    valkey = data["valkey"]
    analytics = data["analytics"]
    connected = valkey["status"] == "connected"

    print()
    print(_box_header("SITESTATS STATUS", W))
    print(_empty_line(W))

    print(_section_header("Valkey", I.DATABASE, W))
    badge, _ = _status_badge(valkey["status"], connected)
    print(_box_line(f"  {'Server':<20}{valkey['host']}:{valkey['port']}", W))
    print(_box_line(f"  {'Status':<20}{badge}", W))
    if valkey["memory"]:
        print(_box_line(f"  {'Memory':<20}{valkey['memory']}", W))
    print(_empty_line(W))

    print(_section_header("Analytics", I.CHART, W))
    print(_box_line(f"  {'Key Prefix':<20}{analytics['key_prefix']}", W))
    print(_box_line(f"  {'Geolocation':<20}{analytics['geolocation']}", W))
    if connected:
        for name, count in analytics["collections"].items():
            print(_box_line(f"  {name.title():<20}{count:>12,}", W))
        if analytics["storage_bytes"] is not None:
            size = _format_bytes(analytics["storage_bytes"])
            print(_box_line(f"  {'Storage':<20}{size:>12}", W))
    print(_empty_line(W))
    print(_box_bottom(W))
    print()


# ==============================================================================
# Commands
# ==============================================================================


def show_status(
    json_output: bool = typer.Option(False, "--json", help="Output status as JSON"),
) -> None:
    """Show store health and analytics record counts."""
    data = _collect_status_data(get_context())

    if json_output:
        print(json_module.dumps(data, indent=2))
    else:
        _display_status(data)
