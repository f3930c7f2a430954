"""Tests for the tree-sitter GDScript bridge."""

from __future__ import annotations

import pytest

from signalgraph.parsers.signal_extractor import SignalExtractor
from signalgraph.parsers.tree_sitter import TREE_SITTER_AVAILABLE, GDScriptParser


def test_parser_disabled_reports_unavailable() -> None:
    parser = GDScriptParser(enabled=False)

    assert parser.available is False
    with pytest.raises(RuntimeError):
        parser.parse(b"signal hit\n")


@pytest.mark.skipif(
    not TREE_SITTER_AVAILABLE, reason="tree_sitter_language_pack not installed"
)
def test_real_grammar_definitions_are_extracted() -> None:
    source = b"extends Node\n\nsignal hit\nsignal health_changed(value)\n"
    tree = GDScriptParser().parse(source)

    facts = SignalExtractor().extract(tree, "res://enemy.gd", source)

    assert [d.name for d in facts.definitions] == ["hit", "health_changed"]
    assert facts.definitions[0].line == 3
