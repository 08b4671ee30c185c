"""
Tests for the Defer CLI commands.

Every test runs against its own temporary .defer/ directory.
"""
import json

import pytest
from click.testing import CliRunner

from defer.cli import cli


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def invoke(runner, defer_dir):
    """Invoke the CLI against the temporary .defer/ directory."""
    def _invoke(*args):
        return runner.invoke(cli, ["--defer-dir", str(defer_dir), *args])
    return _invoke


def _add(invoke, *args) -> dict:
    result = invoke("item", "add", "--json", *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestItemCommands:
    """Tests for the item command group."""

    def test_add_and_list(self, invoke):
        created = _add(invoke, "Buy gadget", "--category", "spending", "--cost", "49,99")
        assert created["title"] == "Buy gadget"
        assert created["estimated_cost"] == 49.99

        result = invoke("item", "list", "--json")
        assert result.exit_code == 0
        listed = json.loads(result.output)
        assert [i["uuid"] for i in listed] == [created["uuid"]]
        assert listed[0]["is_checkpoint_due"] is False

    def test_add_without_title_fails(self, invoke):
        result = invoke("item", "add")
        assert result.exit_code == 1
        assert "Title is required" in result.output

    def test_add_from_template(self, invoke):
        created = _add(invoke, "--template", "habit-binge")
        assert created["title"] == "Start another episode"
        assert created["category"] == "habit"
        assert created["delay_protocol"]["type"] == "seventy_two_hours"

    def test_add_from_template_with_start(self, invoke):
        created = _add(invoke, "--template", "custom-long-delay", "--start", "2099-01-01")
        assert created["start_date"].startswith("2099-01-01")
        assert created["delay_protocol"]["custom_date"].startswith("2099-01-08")

    def test_add_custom_until(self, invoke):
        created = _add(invoke, "Trip", "--start", "2030-01-01 10:00", "--until", "2030-01-05")
        assert created["delay_protocol"]["type"] == "custom_date"

    def test_add_custom_without_until_fails(self, invoke):
        result = invoke("item", "add", "Trip", "--protocol", "custom_date")
        assert result.exit_code == 2

    def test_show_unknown_item(self, invoke):
        result = invoke("item", "show", "missing")
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_checkin_twice(self, invoke):
        created = _add(invoke, "Snack")
        first = invoke("item", "checkin", created["uuid"][:8])
        assert first.exit_code == 0
        second = invoke("item", "checkin", created["uuid"][:8])
        assert second.exit_code == 1
        assert "already checked in" in second.output

    def test_resolve_announces_achievements(self, invoke):
        created = _add(invoke, "Snack")
        result = invoke(
            "item", "resolve", created["uuid"], "--outcome", "intentional", "--reflection", "Fine"
        )
        assert result.exit_code == 0, result.output
        assert "Resolved 'Snack' as intentional" in result.output
        assert "Achievement unlocked: First Win" in result.output

    def test_pause_then_fail(self, invoke):
        created = _add(invoke, "Snack")
        assert invoke("item", "pause", created["uuid"]).exit_code == 0
        result = invoke("item", "fail", created["uuid"])
        assert result.exit_code == 1
        assert "already closed" in result.output

    def test_postpone(self, invoke):
        created = _add(invoke, "Snack")
        result = invoke("item", "postpone", created["uuid"], "--protocol", "seventy_two_hours")
        assert result.exit_code == 0
        assert "Postponed 'Snack'" in result.output

    def test_strict_failed_checkin(self, invoke):
        created = _add(invoke, "Snack", "--strict")
        assert created["strict_mode"] is True
        result = invoke("item", "checkin", created["uuid"], "--status", "failed")
        assert result.exit_code == 0, result.output
        assert "Strict mode: 'Snack' is now failed." in result.output

    def test_overdue_and_sweep_with_nothing_due(self, invoke):
        created = _add(invoke, "Snack")
        assert json.loads(invoke("item", "overdue", "--json").output) == []
        result = invoke("item", "sweep")
        assert result.exit_code == 0
        assert "Nothing to update." in result.output
        assert "Strict mode: Off" in invoke("item", "show", created["uuid"]).output

    def test_home_json(self, invoke):
        created = _add(invoke, "Snack")
        result = invoke("item", "home", "--json")
        data = json.loads(result.output)
        assert data["stats"]["active"] == 1
        assert data["in_delay_window"] == [created["uuid"]]


class TestUrgeCommands:
    """Tests for the urge command group."""

    def test_log_and_recent(self, invoke):
        result = invoke("urge", "log", "--intensity", "9", "--note", "scrolling")
        assert result.exit_code == 0
        assert "intensity 5" in result.output
        assert "Achievement unlocked: Named the Urge" in result.output

        recent = json.loads(invoke("urge", "recent", "--json").output)
        assert recent[0]["note"] == "scrolling"

    def test_fallback(self, invoke):
        created = _add(invoke, "Snack", "--fallback", "Drink water")
        result = invoke("urge", "fallback", created["uuid"])
        assert result.exit_code == 0
        assert "Used fallback: Drink water" in result.output


class TestHistoryCommands:
    """Tests for the history command group."""

    def test_summary_json(self, invoke):
        for title, outcome in [("A", "intentional"), ("B", "impulsive")]:
            created = _add(invoke, title)
            invoke("item", "resolve", created["uuid"], "--outcome", outcome)

        summary = json.loads(invoke("history", "summary", "--json").output)
        assert summary["decision_count"] == 2
        assert summary["intentional_rate"] == 50

        rhythm = json.loads(invoke("history", "rhythm", "--json").output)
        assert len(rhythm) == 1
        assert rhythm[0]["count"] == 2

        timeline = invoke("history", "timeline")
        assert "+ A" in timeline.output
        assert "- B" in timeline.output

    def test_empty_history(self, invoke):
        assert "No decisions yet." in invoke("history", "categories").output


class TestAchievementCommands:
    """Tests for the achievements command group."""

    def test_list_empty(self, invoke):
        result = invoke("achievements", "list")
        assert result.exit_code == 0
        assert "Your first badge is waiting" in result.output

    def test_showcase_locked(self, invoke):
        result = invoke("achievements", "showcase", "streak_100")
        assert result.exit_code == 1
        assert "still locked" in result.output

    def test_showcase_unlocked(self, invoke):
        created = _add(invoke, "Snack")
        invoke("item", "resolve", created["uuid"], "--outcome", "intentional")
        assert invoke("achievements", "showcase", "first_completion").exit_code == 0

        data = json.loads(invoke("achievements", "list", "--json").output)
        assert data["showcased_key"] == "first_completion"
        assert [a["key"] for a in data["unlocked"]] == ["first_completion", "first_intentional_choice"]


class TestMiscCommands:
    """Tests for templates, config and export."""

    def test_templates_list(self, invoke):
        result = invoke("templates", "list", "--category", "health")
        assert result.exit_code == 0
        assert "health-late-snack" in result.output
        assert "spending-payday" not in result.output

    def test_template_show_unknown(self, invoke):
        assert invoke("templates", "show", "nope").exit_code == 1

    def test_config_set_and_get(self, invoke):
        assert invoke("config", "set", "due_soon_days", "5").exit_code == 0
        assert invoke("config", "get", "due_soon_days").output.strip() == "5"

    def test_config_set_invalid(self, invoke):
        result = invoke("config", "set", "retention_policy", "shred")
        assert result.exit_code == 1
        assert "Invalid value" in result.output

    def test_configured_date_formats(self, invoke):
        assert invoke("config", "set", "date_formats", "%d.%m.%Y").exit_code == 0
        created = _add(invoke, "Trip", "--start", "01.01.2030", "--until", "05.01.2030")
        assert created["start_date"].startswith("2030-01-01")

        result = invoke("item", "add", "Trip", "--start", "2030-01-01")
        assert result.exit_code == 2
        assert "Invalid date format" in result.output

    def test_configured_percent_precision(self, invoke):
        _add(invoke, "Snack")
        assert invoke("config", "set", "percentage_round_precision", "2").exit_code == 0
        assert "0.00%" in invoke("item", "list").output

    def test_export_to_file(self, invoke, temp_dir):
        _add(invoke, "Snack")
        target = temp_dir / "export.json"
        result = invoke("export", "--output", str(target))
        assert result.exit_code == 0
        assert json.loads(target.read_text())["defers"][0]["title"] == "Snack"

    def test_export_csv(self, invoke):
        _add(invoke, "Snack, salty", "--strict")
        result = invoke("export", "--format", "csv")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("Defer Backup Generated At,")
        assert "[Defers]" in lines
        assert '"Snack, salty"' in result.output
        assert "[Achievements]" in lines
