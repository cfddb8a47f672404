# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the sitestats CLI.
"""

import json
from typing import Annotated

import typer

from sitestats.cli.shared import C
from sitestats.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    # JSON output mode
    if json_output:
        config = {
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "socket_timeout": settings.valkey.socket_timeout,
                "retries": settings.valkey.retries,
                "password": settings.valkey.password,
            },
            "analytics": {
                "key_prefix": settings.analytics.key_prefix,
                "realtime_window_minutes": settings.analytics.realtime_window_minutes,
                "bounce_threshold_seconds": settings.analytics.bounce_threshold_seconds,
                "geolocation": settings.analytics.geolocation,
                "geolocation_url": settings.analytics.geolocation_url,
                "geolocation_timeout": settings.analytics.geolocation_timeout,
            },
            "log_level": settings.log_level,
            "debug": settings.debug,
        }
        print(json.dumps(config, indent=2))
        return

    # Human-readable output
    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    # Valkey
    print(f"{C.CYAN}Valkey{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.valkey.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.valkey.db}{C.RESET}")
    valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
    print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
    print(f"  Timeout:    {C.WHITE}{settings.valkey.socket_timeout}s, {settings.valkey.retries} client retries{C.RESET}")
    print()

    # Analytics
    analytics = settings.analytics
    print(f"{C.CYAN}Analytics{C.RESET}")
    print(f"  Prefix:     {C.WHITE}{analytics.key_prefix}{C.RESET}")
    print(f"  Real-time:  {C.WHITE}{analytics.realtime_window_minutes} minutes{C.RESET}")
    print(f"  Bounce:     {C.WHITE}< {analytics.bounce_threshold_seconds} seconds{C.RESET}")
    geolocation = analytics.geolocation
    if geolocation == "ip-api":
        geolocation = f"{geolocation} ({analytics.geolocation_url})"
    print(f"  Location:   {C.WHITE}{geolocation}{C.RESET}")
    print()

    print(f"{C.CYAN}Logging{C.RESET}")
    print(f"  Level:      {C.WHITE}{settings.log_level}{C.RESET}")
    print()
