"""GDScript parsing and signal fact extraction."""

from .signal_extractor import ExtractionError, SignalExtractor
from .tree_sitter import TREE_SITTER_AVAILABLE, GDScriptParser

__all__ = ["ExtractionError", "GDScriptParser", "SignalExtractor", "TREE_SITTER_AVAILABLE"]
