# ==============================================================================
# Data Commands
# ==============================================================================
"""
Data management commands for the sitestats CLI.

Commands for clearing, measuring and seeding the analytics store.
"""

import random
from datetime import datetime, timedelta
from typing import Annotated, Optional

import typer

from sitestats.cli.shared import C, I, _format_bytes, get_context
from sitestats.core.errors import AnalyticsError
from sitestats.core.models import (
    ConversionType,
    InteractionType,
    VisitorContext,
    utc_now,
)
from sitestats.core.session_manager import SessionManager
from sitestats.infrastructure import SampleLocationResolver

SAMPLE_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (iPad; CPU OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
)

SAMPLE_REFERRERS = (
    "",
    "",
    "https://www.google.com/",
    "https://twitter.com/",
    "https://www.linkedin.com/",
)

SAMPLE_PAGES = ("/", "/about", "/services", "/portfolio", "/contact")


class SimulatedClock:
    """Clock for seeding: returns a settable time instead of the wall clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _simulate_visit(
    manager: SessionManager,
    clock: SimulatedClock,
    project_id: str,
    rng: random.Random,
) -> None:
    """Play one visitor session: a few pages, some clicks, maybe a conversion."""
    page_count = rng.choice((1, 1, 2, 3, 4, 5))
    for page in rng.sample(SAMPLE_PAGES, page_count):
        title = page.strip("/").title() or "Home"
        manager.track_page_view(project_id, page, title, load_time=rng.randint(300, 2500))
        manager.track_performance(
            project_id,
            load_time=rng.randint(300, 2500),
            dom_content_loaded=rng.randint(200, 1500),
            first_contentful_paint=rng.randint(200, 1800),
            largest_contentful_paint=rng.randint(500, 3500),
            cumulative_layout_shift=round(rng.uniform(0, 0.3), 3),
            first_input_delay=rng.randint(5, 150),
        )
        clock.advance(rng.randint(5, 90))
        manager.record_scroll(rng.randint(10, 100))
        if rng.random() < 0.4:
            element = rng.choice(("#cta", ".nav-link", "button"))
            manager.track_interaction(project_id, InteractionType.CLICK, element)
            clock.advance(rng.randint(1, 20))

    if rng.random() < 0.15:
        manager.track_conversion(project_id, rng.choice(list(ConversionType)), value=1)

    manager.update_time_on_page()
    manager.end_session()


# ==============================================================================
# Commands
# ==============================================================================


def data_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Delete all analytics data (sessions, events, visitor markers).

    Only keys under the configured prefix (ANALYTICS_KEY_PREFIX) are removed.

    Examples:
        sitestats data reset       # With confirmation prompt
        sitestats data reset -y    # Skip confirmation
    """
    context = get_context()
    prefix = context.settings.analytics.key_prefix

    if not confirm:
        typer.confirm(
            f"This will DELETE all analytics data under '{prefix}:*'. Are you sure?",
            abort=True,
        )

    print()
    print(f"  Clearing analytics data '{C.WHITE}{prefix}{C.RESET}'...")
    try:
        deleted = context.store.clear_all()
    except Exception as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Failed to clear analytics data: {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Analytics data cleared ({C.WHITE}{deleted}{C.RESET} keys){C.RESET}")
    print()


def data_size() -> None:
    """Show the storage used by analytics data."""
    context = get_context()
    try:
        size = context.store.storage_size()
    except Exception as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Cannot measure analytics data: {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.DATABASE} Analytics data: {C.WHITE}{_format_bytes(size)}{C.RESET} ({size:,} bytes)")


def data_seed(
    project_id: Annotated[str, typer.Argument(help="Project to generate visits for")],
    visits: Annotated[int, typer.Option("--visits", "-n", min=1, help="Number of visitor sessions")] = 50,
    days: Annotated[int, typer.Option("--days", "-d", min=1, help="Spread visits over the last N days")] = 7,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed for reproducible data")] = None,
) -> None:
    """Generate sample visitor sessions for a project.

    Visits are spread over the last N days with sample locations, browsers
    and devices, so the dashboard and the analytics command have data to show.

    Examples:
        sitestats data seed my-site
        sitestats data seed my-site -n 500 -d 30 --seed 42
    """
    context = get_context()
    rng = random.Random(seed)
    resolver = SampleLocationResolver(seed=seed)
    start = utc_now() - timedelta(days=days)

    starts = sorted(start + timedelta(seconds=rng.uniform(0, days * 86400)) for _ in range(visits))

    print()
    print(f"  Seeding {C.WHITE}{visits}{C.RESET} visits for '{C.WHITE}{project_id}{C.RESET}'...")
    try:
        for visit_start in starts:
            clock = SimulatedClock(visit_start)
            manager = SessionManager(
                context.store,
                resolver,
                context=VisitorContext(
                    user_agent=rng.choice(SAMPLE_USER_AGENTS),
                    referrer=rng.choice(SAMPLE_REFERRERS),
                ),
                clock=clock,
                bounce_threshold_seconds=context.settings.analytics.bounce_threshold_seconds,
            )
            _simulate_visit(manager, clock, project_id, rng)
    except AnalyticsError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Seeding failed: {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} {visits} visits generated{C.RESET}")
    print()
