"""CLI parser and entrypoint tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from signalgraph import cli
from signalgraph.cli import _build_parser
from signalgraph.orchestrator import Orchestrator
from signalgraph.scanner import ProjectScanner
from tests._fixtures.fake_parser import FakeParser
from tests._fixtures.project_builder import ProjectBuilder


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "graph"])
    assert args.verbose is True
    assert args.command == "graph"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["unused", "game", "--verbose", "--min-confidence", "0.9"])
    assert args.verbose is True
    assert args.path == "game"
    assert args.min_confidence == pytest.approx(0.9)


def test_cli_clusters_depth_is_restricted() -> None:
    parser = _build_parser()
    assert parser.parse_args(["clusters", "--depth", "1"]).depth == 1
    with pytest.raises(SystemExit):
        parser.parse_args(["clusters", "--depth", "3"])


@pytest.fixture
def fake_orchestrator(monkeypatch):
    monkeypatch.setattr(
        cli, "Orchestrator", lambda: Orchestrator(scanner=ProjectScanner(parser=FakeParser()))
    )


def test_main_prints_unused_signals_as_json(
    fake_orchestrator, project_builder: ProjectBuilder, capsys
) -> None:
    project_builder.write({"main.gd": "signal lonely\nsignal used\nemit used\nconnect used _on_used\n"})

    cli.main(["unused", str(project_builder.path())])

    payload = json.loads(capsys.readouterr().out)
    assert [item["signal_name"] for item in payload] == ["lonely"]
    assert payload[0]["pattern"] == "isolated"


def test_main_clusters_respects_depth_flag(
    fake_orchestrator, project_builder: ProjectBuilder, capsys
) -> None:
    project_builder.write({"main.gd": "signal a_one\nsignal a_two\nemit a_one\nemit a_two\n"})

    cli.main(["clusters", str(project_builder.path()), "--depth", "1"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["metadata"]["depth"] == 1
    assert payload["sub_clusters"] is None


def test_main_graph_command(fake_orchestrator, project_builder: ProjectBuilder, capsys) -> None:
    project_builder.write({"main.gd": "signal ready_up\n"})

    cli.main(["graph", str(project_builder.path())])

    payload = json.loads(capsys.readouterr().out)
    assert list(payload["definitions"]) == ["ready_up"]


def test_main_exits_on_missing_project(fake_orchestrator, tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["report", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "signalgraph report failed" in capsys.readouterr().err


def test_main_writes_log_file(fake_orchestrator, project_builder: ProjectBuilder, tmp_path: Path, capsys) -> None:
    project_builder.write({"main.gd": "signal ready_up\n"})
    log_file = tmp_path / "signalgraph.log"

    cli.main(["--log-file", str(log_file), "graph", str(project_builder.path())])

    assert json.loads(capsys.readouterr().out)["definitions"]
    assert "signalgraph.scanner" in log_file.read_text(encoding="utf-8")
