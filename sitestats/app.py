# ==============================================================================
# Sitestats CLI
# ==============================================================================
"""
Command-line interface for the visitor analytics store.

Usage:
    sitestats --help
    sitestats status
    sitestats config show
    sitestats analytics my-site --days 7
    sitestats realtime my-site
    sitestats data seed my-site -n 200
    sitestats data size
    sitestats data reset -y
"""

import logging
import os

import typer

from sitestats.utils.config import get_settings

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="sitestats",
    help="Visitor analytics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main_callback() -> None:
    """Visitor analytics CLI."""
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


data_app = typer.Typer(
    help="Data management operations",
    no_args_is_help=True,
)
app.add_typer(data_app, name="data")

# Register data commands from cli.data module
from sitestats.cli.data import data_reset, data_seed, data_size

data_app.command("reset")(data_reset)
data_app.command("size")(data_size)
data_app.command("seed")(data_seed)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# Register config commands from cli.config module
from sitestats.cli.config import config_show

config_app.command("show")(config_show)


# Status command is imported from sitestats.cli.status
from sitestats.cli.status import show_status

app.command("status")(show_status)

# Analytics commands are imported from sitestats.cli.analytics
from sitestats.cli.analytics import show_analytics, show_realtime

app.command("analytics")(show_analytics)
app.command("realtime")(show_realtime)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
