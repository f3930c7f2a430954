"""Tree-sitter bridge for GDScript sources."""

from __future__ import annotations

from typing import Any, Optional

try:  # pragma: no cover - optional dependency
    from tree_sitter_language_pack import get_parser

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    get_parser = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False


_LANGUAGE_KEY = "gdscript"


class GDScriptParser:
    """Lazily builds a tree-sitter parser for the GDScript grammar."""

    def __init__(self, enabled: Optional[bool] = None) -> None:
        self._enabled = TREE_SITTER_AVAILABLE if enabled is None else enabled
        self._parser: Any = None

    @property
    def available(self) -> bool:
        return self._enabled and TREE_SITTER_AVAILABLE

    def parse(self, source: bytes) -> Any:
        """Return the syntax tree for ``source``.

        Raises RuntimeError when the grammar is not installed.
        """
        parser = self._get_parser()
        if parser is None:
            raise RuntimeError(
                "GDScript grammar unavailable; install tree-sitter-language-pack"
            )
        return parser.parse(source)

    def _get_parser(self) -> Any:
        if self._parser is not None:
            return self._parser
        if not self.available:
            return None
        self._parser = get_parser(_LANGUAGE_KEY)
        return self._parser


__all__ = ["GDScriptParser", "TREE_SITTER_AVAILABLE"]
