# ==============================================================================
# Tests for CLI Commands
# ==============================================================================
"""
Tests that the CLI commands work end to end against a fakeredis store.

The commands' get_context() is replaced with a context built on the
fakeredis client from conftest.py, so no real Valkey/Redis server is needed.
"""

import json

import pytest
from typer.testing import CliRunner

from sitestats.app import app
from sitestats.context import create_context
from sitestats.utils.config import Settings

runner = CliRunner()


@pytest.fixture()
def cli_context(fake_redis, monkeypatch):
    """Point every command module at a fakeredis-backed context."""
    context = create_context(settings=Settings(), client=fake_redis)
    for module in ("analytics", "data", "status"):
        monkeypatch.setattr(f"sitestats.cli.{module}.get_context", lambda: context)
    return context


# ==============================================================================
# Data
# ==============================================================================


class TestDataCommands:
    """Tests for `sitestats data seed|size|reset`."""

    def test_seed_creates_sessions(self, cli_context):
        result = runner.invoke(app, ["data", "seed", "demo", "-n", "5", "--seed", "1"])

        assert result.exit_code == 0, result.output
        assert len(cli_context.store.get_sessions("demo")) == 5
        assert cli_context.store.get_page_views("demo")

    def test_size_and_reset(self, cli_context):
        runner.invoke(app, ["data", "seed", "demo", "-n", "3", "--seed", "2"])

        size = runner.invoke(app, ["data", "size"])
        assert size.exit_code == 0
        assert "Analytics data" in size.output

        reset = runner.invoke(app, ["data", "reset", "-y"])
        assert reset.exit_code == 0
        assert cli_context.store.get_sessions("demo") == []
        assert cli_context.store.storage_size() == 0


# ==============================================================================
# Analytics
# ==============================================================================


class TestAnalyticsCommands:
    """Tests for `sitestats analytics` and `sitestats realtime`."""

    def test_analytics_json(self, cli_context):
        runner.invoke(app, ["data", "seed", "demo", "-n", "10", "--seed", "3"])

        result = runner.invoke(app, ["analytics", "demo", "--json"])

        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["overview"]["totalVisitors"] == 10
        assert len(summary["traffic"]["hourlyViews"]) == 24

    def test_analytics_table_for_empty_project(self, cli_context):
        result = runner.invoke(app, ["analytics", "nothing-here"])

        assert result.exit_code == 0, result.output
        assert "SITE ANALYTICS" in result.output
        assert "no data" in result.output

    def test_analytics_rejects_inverted_range(self, cli_context):
        result = runner.invoke(
            app, ["analytics", "demo", "--since", "2024-02-01", "--until", "2024-01-01"]
        )
        assert result.exit_code != 0

    def test_realtime_json(self, cli_context):
        result = runner.invoke(app, ["realtime", "demo", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "activeVisitors": 0,
            "currentPageViews": [],
            "recentEvents": [],
        }


# ==============================================================================
# Status
# ==============================================================================


class TestStatusCommand:
    """Tests for `sitestats status`."""

    def test_status_json_counts_records(self, cli_context):
        runner.invoke(app, ["data", "seed", "demo", "-n", "4", "--seed", "4"])

        result = runner.invoke(app, ["status", "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["analytics"]["collections"]["sessions"] == 4
        assert data["analytics"]["storage_bytes"] > 0
