"""Project scanning: discover GDScript files and parse them into an AST forest."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .logging import get_logger
from .models import ParsedFile
from .parsers.tree_sitter import GDScriptParser

_EXCLUDED_DIRS = {
    ".git",
    ".godot",
    ".import",
    ".signalgraph",
    "addons",
}

_GDSCRIPT_SUFFIX = ".gd"

logger = get_logger("scanner")


class ScanError(RuntimeError):
    """Raised when a project cannot be scanned at all."""


@dataclass
class ScanStats:
    """Counters for the most recent scan."""

    files_discovered: int = 0
    files_parsed: int = 0
    files_skipped: int = 0


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .signalgraph.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str, negate: bool = False) -> Optional[IgnoreRule]:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _iter_scripts(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in dirnames:
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _should_ignore(rel_path, True, rules):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in filenames:
            if not filename.endswith(_GDSCRIPT_SUFFIX):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _should_ignore(rel_path, False, rules):
                continue
            yield current_dir / filename


class ProjectScanner:
    """Walks a Godot project and parses every script into a syntax tree.

    Files that cannot be read or parsed are skipped and listed in
    ``skipped`` after each scan.
    """

    def __init__(
        self,
        parser: Optional[GDScriptParser] = None,
        exclude_paths: Optional[Sequence[str]] = None,
    ) -> None:
        self.parser = parser or GDScriptParser()
        self.exclude_paths = list(exclude_paths or [])
        self.skipped: List[str] = []
        self.stats = ScanStats()

    def discover(self, root: str) -> List[Path]:
        """Return every GDScript file under ``root`` that survives ignore rules, sorted."""
        root_path = self._resolve_root(root)
        rules = _parse_gitignore(root_path / ".gitignore")
        for pattern in self.exclude_paths:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return sorted(_iter_scripts(root_path, rules), key=lambda path: path.as_posix())

    def scan(self, root: str) -> List[ParsedFile]:
        """Parse every discovered script and return the forest ordered by path."""
        if not self.parser.available:
            raise ScanError("GDScript grammar unavailable; install tree-sitter-language-pack")

        self.skipped = []
        forest: List[ParsedFile] = []
        scripts = self.discover(root)
        for path in scripts:
            file_path = path.as_posix()
            try:
                source = path.read_bytes()
                mtime = path.stat().st_mtime
                tree = self.parser.parse(source)
            except Exception as exc:
                logger.warning("Skipping %s: %s", file_path, exc)
                self.skipped.append(file_path)
                continue
            forest.append(ParsedFile(tree=tree, file_path=file_path, mtime=mtime, source=source))

        self.stats = ScanStats(
            files_discovered=len(scripts),
            files_parsed=len(forest),
            files_skipped=len(self.skipped),
        )
        logger.debug("Parsed %d scripts (%d skipped)", len(forest), len(self.skipped))
        return forest

    @staticmethod
    def _resolve_root(root: str) -> Path:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise ScanError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise ScanError(f"Project path is not a directory: {root}")
        return root_path


__all__ = ["IgnoreRule", "ProjectScanner", "ScanError", "ScanStats", "build_ignore_rule"]
