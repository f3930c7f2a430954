"""JSON persistence for SignalGraph with schema version checks."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import (
    SCHEMA_VERSION,
    ConnectionSite,
    EmissionSite,
    GraphMetadata,
    SignalDefinition,
    SignalGraph,
    SignalParam,
)

logger = get_logger("graph.serializer")


class GraphSerializationError(RuntimeError):
    """Raised when a cached graph cannot be read or has an invalid shape."""


def graph_to_dict(graph: SignalGraph) -> Dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "metadata": asdict(graph.metadata),
        "definitions": {name: [asdict(item) for item in items] for name, items in graph.definitions.items()},
        "emissions": {name: [asdict(item) for item in items] for name, items in graph.emissions.items()},
        "connections": {name: [asdict(item) for item in items] for name, items in graph.connections.items()},
    }


def graph_from_dict(payload: Dict[str, Any]) -> SignalGraph:
    """Rebuild a graph from ``graph_to_dict`` output.

    Raises GraphSerializationError when a required section is missing or
    an entry does not carry the expected fields.
    """
    if not isinstance(payload, dict):
        raise GraphSerializationError("Graph payload must be a JSON object")
    try:
        metadata = GraphMetadata(**_section(payload, "metadata", dict))
        definitions = {
            name: [_definition(item) for item in items]
            for name, items in _section(payload, "definitions", dict).items()
        }
        emissions = {
            name: [EmissionSite(**item) for item in items]
            for name, items in _section(payload, "emissions", dict).items()
        }
        connections = {
            name: [ConnectionSite(**item) for item in items]
            for name, items in (payload.get("connections") or {}).items()
        }
    except (TypeError, AttributeError) as exc:
        raise GraphSerializationError(f"Invalid graph entry: {exc}") from exc
    return SignalGraph(
        definitions=definitions,
        emissions=emissions,
        connections=connections,
        metadata=metadata,
    )


def _section(payload: Dict[str, Any], key: str, kind: type) -> Any:
    value = payload.get(key)
    if not isinstance(value, kind):
        raise GraphSerializationError(f"Graph payload is missing '{key}'")
    return value


def _definition(item: Dict[str, Any]) -> SignalDefinition:
    data = dict(item)
    params: List[SignalParam] = [SignalParam(**param) for param in data.pop("params", None) or []]
    return SignalDefinition(params=params, **data)


class GraphSerializer:
    """Saves and loads graphs as JSON files."""

    def save(self, graph: SignalGraph, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(graph_to_dict(graph), indent=2), encoding="utf-8")
        logger.debug("Serialized graph to %s", path)

    def load(self, path: Path) -> Optional[SignalGraph]:
        """Return the cached graph, or None if it is missing or was written by another schema version."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise GraphSerializationError(f"Failed to read {path}: {exc}") from exc

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise GraphSerializationError(f"Failed to parse {path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise GraphSerializationError(f"{path} does not contain a graph object")
        version = payload.get("version")
        if version != SCHEMA_VERSION:
            logger.warning(
                "Cache version mismatch: expected %s, got %s. Ignoring cache.", SCHEMA_VERSION, version
            )
            return None
        return graph_from_dict(payload)

    def is_stale(
        self,
        path: Path,
        latest_source_mtime: float,
        source_files: Optional[Sequence[str]] = None,
    ) -> bool:
        """True when the cached graph at ``path`` cannot be reused.

        ``latest_source_mtime`` is in seconds, as reported by ``os.stat``.
        When ``source_files`` is given, a cache built from a different set
        of scripts (one deleted, added or newly excluded) is stale even if
        no remaining script changed.
        """
        try:
            graph = self.load(path)
        except GraphSerializationError:
            return True
        if graph is None:
            return True
        if source_files is not None and sorted(set(source_files)) != graph.metadata.source_files:
            return True
        return graph.metadata.timestamp < latest_source_mtime * 1000


__all__ = ["GraphSerializationError", "GraphSerializer", "graph_from_dict", "graph_to_dict"]
