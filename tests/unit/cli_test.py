"""Tests for the code-facts command line."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from code_facts.cli.app import app
from tests.builders import bundle, call, clause, definition, remote

runner = CliRunner()


def _write_bundle(tmp_path: Path, module: str) -> str:
    path = tmp_path / f"{module}.json"
    b = bundle(module, definition("run", clause(remote("Logger", "info", call("msg")), line=2)))
    path.write_text(b.model_dump_json(), encoding="utf-8")
    return str(path)


@pytest.mark.parametrize("args", [[], ["extract"]], ids=["root", "extract"])
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_extract_without_bundles_fails() -> None:
    result = runner.invoke(app, ["extract"])
    assert result.exit_code == 1
    assert "No bundles given" in result.output


def test_extract_prints_summary_table(tmp_path: Path) -> None:
    paths = [_write_bundle(tmp_path, "Alpha"), _write_bundle(tmp_path, "Beta")]

    result = runner.invoke(app, ["extract", *paths, "--workers", "2"])

    assert result.exit_code == 0
    assert "Extraction summary" in result.output
    assert "Modules processed" in result.output


def test_extract_json_output(tmp_path: Path) -> None:
    paths = [_write_bundle(tmp_path, "Alpha"), _write_bundle(tmp_path, "Beta")]

    result = runner.invoke(app, ["extract", *paths, "--json", "--executor", "thread"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert sorted(payload["functions"]) == ["Alpha.run/0:2", "Beta.run/0:2"]
    assert payload["stats"]["modules_succeeded"] == 2
    assert payload["stats"]["total_calls"] == 4


def test_invalid_environment_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CODE_FACTS_MAX_WORKERS", "zero")
    result = runner.invoke(app, ["extract", _write_bundle(tmp_path, "Alpha")])
    assert result.exit_code == 1
    assert "CODE_FACTS_MAX_WORKERS" in result.output


@pytest.fixture
def logging_levels(monkeypatch: pytest.MonkeyPatch) -> list[object]:
    """Record the level each ``logging.basicConfig`` call receives."""
    levels: list[object] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"]))
    return levels


def test_log_level_comes_from_settings(monkeypatch: pytest.MonkeyPatch, logging_levels: list[object]) -> None:
    monkeypatch.setenv("CODE_FACTS_LOG_LEVEL", "debug")
    runner.invoke(app, ["extract"])
    assert logging_levels == ["DEBUG"]


def test_log_level_option_overrides_environment(
    monkeypatch: pytest.MonkeyPatch, logging_levels: list[object]
) -> None:
    monkeypatch.setenv("CODE_FACTS_LOG_LEVEL", "INFO")
    runner.invoke(app, ["--log-level", "error", "extract"])
    assert logging_levels == ["ERROR"]


def test_invalid_log_level_option_is_rejected(logging_levels: list[object]) -> None:
    result = runner.invoke(app, ["--log-level", "loud", "extract"])
    assert result.exit_code == 2
    assert logging_levels == []


def test_invalid_log_level_environment_is_reported(
    monkeypatch: pytest.MonkeyPatch, logging_levels: list[object]
) -> None:
    monkeypatch.setenv("CODE_FACTS_LOG_LEVEL", "loud")
    result = runner.invoke(app, ["extract"])
    assert result.exit_code == 1
    assert "CODE_FACTS_LOG_LEVEL" in result.output
    assert logging_levels == []
