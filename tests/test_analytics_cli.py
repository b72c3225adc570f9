# ABOUTME: Verifies the analytics CLI registers its commands and runs end to end.
# ABOUTME: Drives Typer's test runner against a small attempts fixture.

import json
from pathlib import Path

from typer.testing import CliRunner

from scripts import analytics_cli

runner = CliRunner()

CONFIG = str(Path(__file__).resolve().parents[1] / "configs" / "analytics.yaml")

ATTEMPTS = [
    {
        "id": "a1",
        "userId": "u1",
        "restaurantId": "r1",
        "attemptDate": "2024-06-05T09:00:00Z",
        "questions": [
            {"questionId": "q1", "knowledgeCategory": "food", "isCorrect": True},
            {"questionId": "q2", "knowledgeCategory": "wine", "isCorrect": False},
        ],
    },
    {
        "id": "a2",
        "userId": "u2",
        "restaurantId": "r1",
        "attemptDate": "2024-05-20T09:00:00Z",
        "questions": [{"questionId": "q3", "knowledgeCategory": "beverage", "isCorrect": True}],
    },
]


def _write_attempts(tmp_path):
    path = tmp_path / "attempts.json"
    path.write_text(json.dumps(ATTEMPTS), encoding="utf-8")
    return path


def test_cli_registers_commands():
    names = {cmd.name or cmd.callback.__name__ for cmd in analytics_cli.app.registered_commands}
    assert {"classify", "replay", "insights"} <= names


def test_classify_command_prints_category():
    result = runner.invoke(analytics_cli.app, ["classify", "--text", "What wine pairs best with our duck confit?"])
    assert result.exit_code == 0
    assert "Category: wine" in result.stdout


def test_replay_command_lists_staff(tmp_path):
    path = _write_attempts(tmp_path)
    result = runner.invoke(
        analytics_cli.app, ["replay", "--attempts", str(path), "--restaurant-id", "r1", "--config", CONFIG]
    )
    assert result.exit_code == 0
    assert "processed=2" in result.stdout
    assert "u1" in result.stdout


def test_insights_json_output(tmp_path):
    path = _write_attempts(tmp_path)
    result = runner.invoke(
        analytics_cli.app,
        [
            "insights",
            "--attempts",
            str(path),
            "--restaurant-id",
            "r1",
            "--timeframe",
            "month",
            "--as-of",
            "2024-06-15T12:00:00Z",
            "--json",
            "--config",
            CONFIG,
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["restaurant"]["total_staff"] == 2
    assert payload["comparison"]["timeframe"] == "month"
    assert payload["comparison"]["current_period"]["total_questions"] == 2
    assert payload["comparison"]["previous_period"]["total_questions"] == 1
    assert [r["user_id"] for r in payload["forecast"]["staff_at_risk"]] == ["u1"]


def test_insights_rejects_unknown_timeframe(tmp_path):
    path = _write_attempts(tmp_path)
    result = runner.invoke(
        analytics_cli.app,
        ["insights", "--attempts", str(path), "--restaurant-id", "r1", "--timeframe", "decade", "--config", CONFIG],
    )
    assert result.exit_code == 1


def test_missing_attempts_file_exits(tmp_path):
    result = runner.invoke(
        analytics_cli.app, ["replay", "--attempts", str(tmp_path / "nope.json"), "--restaurant-id", "r1"]
    )
    assert result.exit_code == 1


def test_insights_accepts_timestamps_without_offset(tmp_path):
    attempts = [dict(a, attemptDate=a["attemptDate"].rstrip("Z")) for a in ATTEMPTS]
    path = tmp_path / "naive.json"
    path.write_text(json.dumps(attempts), encoding="utf-8")

    result = runner.invoke(
        analytics_cli.app,
        [
            "insights",
            "--attempts",
            str(path),
            "--restaurant-id",
            "r1",
            "--as-of",
            "2024-06-15T12:00:00Z",
            "--json",
            "--config",
            CONFIG,
        ],
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["comparison"]["current_period"]["total_questions"] == 2


def test_invalid_as_of_exits_cleanly(tmp_path):
    path = _write_attempts(tmp_path)
    result = runner.invoke(
        analytics_cli.app,
        ["insights", "--attempts", str(path), "--restaurant-id", "r1", "--as-of", "yesterday", "--config", CONFIG],
    )
    assert result.exit_code == 1
    assert "Invalid --as-of timestamp" in result.stdout
