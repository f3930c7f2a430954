"""Tests for signalgraph.scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from signalgraph.scanner import ProjectScanner, ScanError, build_ignore_rule
from tests._fixtures.fake_parser import FakeParser, UnavailableParser
from tests._fixtures.project_builder import ProjectBuilder


def _relative(paths, root: Path) -> list[str]:
    return [path.relative_to(root.resolve()).as_posix() for path in paths]


def test_discover_finds_scripts_and_skips_engine_dirs(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "player.gd": "signal died\n",
            "ui/hud.gd": "",
            "ui/hud.tscn": "[gd_scene]\n",
            "addons/plugin/tool.gd": "",
            ".godot/cache.gd": "",
        }
    )
    root = project_builder.path()

    scripts = ProjectScanner(parser=FakeParser()).discover(str(root))

    assert _relative(scripts, root) == ["player.gd", "ui/hud.gd"]


def test_discover_honours_gitignore_and_exclude_paths(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            ".gitignore": "build/\n*_old.gd\n!keep_old.gd\n",
            "main.gd": "",
            "build/generated.gd": "",
            "enemy_old.gd": "",
            "keep_old.gd": "",
            "prototypes/idea.gd": "",
        }
    )
    root = project_builder.path()

    scanner = ProjectScanner(parser=FakeParser(), exclude_paths=["prototypes/"])

    assert _relative(scanner.discover(str(root)), root) == ["keep_old.gd", "main.gd"]


def test_scan_parses_in_path_order_and_skips_broken_files(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "b.gd": "signal second\n",
            "a.gd": "signal first\n",
            "broken.gd": "!oops\n",
        }
    )
    parser = FakeParser()
    scanner = ProjectScanner(parser=parser)

    forest = scanner.scan(str(project_builder.path()))

    assert [Path(parsed.file_path).name for parsed in forest] == ["a.gd", "b.gd"]
    assert forest[0].source == b"signal first\n"
    assert forest[0].mtime > 0
    assert [Path(path).name for path in scanner.skipped] == ["broken.gd"]
    assert parser.parsed == 3
    assert scanner.stats.files_discovered == 3
    assert scanner.stats.files_parsed == 2
    assert scanner.stats.files_skipped == 1


def test_scan_without_grammar_raises(project_builder: ProjectBuilder) -> None:
    with pytest.raises(ScanError):
        ProjectScanner(parser=UnavailableParser()).scan(str(project_builder.path()))


def test_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(ScanError):
        ProjectScanner(parser=FakeParser()).discover(str(tmp_path / "missing"))


def test_ignore_rule_matching() -> None:
    anchored = build_ignore_rule("/scenes/")
    loose = build_ignore_rule("*.tmp.gd")

    assert anchored.matches("scenes", is_dir=True)
    assert not anchored.matches("scenes", is_dir=False)
    assert loose.matches("deep/nested/file.tmp.gd", is_dir=False)
    assert build_ignore_rule("   ") is None
