import json

import pytest
from rich.console import Console
from typer.testing import CliRunner

from cli import cli as cli_module
from cli.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Render tables wide enough that no cell is truncated."""
    monkeypatch.setattr(cli_module, "console", Console(width=200))


def test_patterns_lists_catalog():
    result = runner.invoke(app, ["patterns"])
    assert result.exit_code == 0
    for pattern_id in ("quick_4_4", "beginner_4_4", "standard_5_5", "advanced_6_6", "master_4_7_8"):
        assert pattern_id in result.output
    assert "4-7-8" in result.output


def test_progress_for_new_user(tmp_path):
    result = runner.invoke(app, ["progress", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "Level" in result.output
    assert "0 / 500" in result.output


def test_progress_reads_stored_record(tmp_path):
    (tmp_path / "progress.json").write_text(json.dumps({"level": 2, "xp": 900, "total_sessions": 7}))
    result = runner.invoke(app, ["progress", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "900 / 1500" in result.output


def test_achievements_listed(tmp_path):
    result = runner.invoke(app, ["achievements", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "First Breath" in result.output
    assert "Dedication Embodied" in result.output


def test_preferences_set_persists(tmp_path):
    result = runner.invoke(app, ["preferences", "--set", "master_volume=50", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads((tmp_path / "settings.json").read_text())["master_volume"] == 50


def test_preferences_reset(tmp_path):
    (tmp_path / "settings.json").write_text(json.dumps({"master_volume": 5}))
    result = runner.invoke(app, ["preferences", "--reset", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads((tmp_path / "settings.json").read_text())["master_volume"] == 75


@pytest.mark.parametrize("assignment", ["master_volume", "master_volume=loud", "master_volume=500"])
def test_preferences_rejects_bad_assignments(tmp_path, assignment):
    result = runner.invoke(app, ["preferences", "--set", assignment, "--data-dir", str(tmp_path)])
    assert result.exit_code == 2
    assert not (tmp_path / "settings.json").exists()


def test_session_quick_and_recommended_are_exclusive(tmp_path):
    result = runner.invoke(app, ["session", "--quick", "--recommended", "--data-dir", str(tmp_path)])
    assert result.exit_code == 2
    assert "mutually exclusive" in result.output


def test_preferences_reports_saved_settings(tmp_path):
    result = runner.invoke(app, ["preferences", "--set", "master_volume=60", "--data-dir", str(tmp_path)])
    assert result.exit_code == 0
    assert "Settings saved successfully" in result.output


def test_preferences_save_failure_is_reported(tmp_path):
    """An unwritable data dir surfaces the error instead of a success line."""
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")

    result = runner.invoke(app, ["preferences", "--set", "master_volume=60", "--data-dir", str(blocker)])

    assert result.exit_code == 1
    assert "Could not save your progress" in result.output
    assert "Settings saved successfully" not in result.output


def test_preferences_reset_failure_is_reported(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")

    result = runner.invoke(app, ["preferences", "--reset", "--data-dir", str(blocker)])

    assert result.exit_code == 1
    assert "Settings reset to defaults" not in result.output
