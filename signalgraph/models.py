"""Core data models shared across signalgraph components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

SCHEMA_VERSION = "3.0.0"


@dataclass
class SignalParam:
    """One declared parameter of a signal, in declaration order."""

    name: str
    type: Optional[str] = None


@dataclass
class SignalDefinition:
    """A `signal` declaration found in a script."""

    name: str
    file_path: str
    line: int
    params: List[SignalParam] = field(default_factory=list)


@dataclass
class EmissionSite:
    """A place in source where a signal is raised via `.emit(...)`."""

    signal_name: str
    file_path: str
    line: int
    context: str
    emitter: Optional[str] = None
    # None (not an empty list) when the call has no arguments.
    args: Optional[List[str]] = None


@dataclass
class ConnectionSite:
    """A place in source where a handler is wired to a signal via `.connect(...)`."""

    signal_name: str
    file_path: str
    line: int
    handler: str
    target: Optional[str] = None
    context: str = ""
    flags: Optional[List[str]] = None
    is_lambda: bool = False


@dataclass
class FileFacts:
    """Everything the extractor found in a single file."""

    file_path: str
    definitions: List[SignalDefinition] = field(default_factory=list)
    emissions: List[EmissionSite] = field(default_factory=list)
    connections: List[ConnectionSite] = field(default_factory=list)


@dataclass
class ParsedFile:
    """One entry of the AST forest produced by the project scanner."""

    tree: Any
    file_path: str
    mtime: float = 0.0
    source: Optional[bytes] = None


@dataclass
class GraphMetadata:
    """Summary counts and versioning for a built signal graph."""

    file_count: int = 0
    signal_count: int = 0
    emission_count: int = 0
    connection_count: int = 0
    schema_version: str = SCHEMA_VERSION
    timestamp: int = 0
    # Sorted paths of every script the graph was built from, skipped ones included.
    source_files: List[str] = field(default_factory=list)


@dataclass
class SignalGraph:
    """Project-wide index of signal facts keyed by signal name.

    A key present in any of the three maps always has a non-empty list;
    absence means zero occurrences of that kind.
    """

    definitions: Dict[str, List[SignalDefinition]] = field(default_factory=dict)
    emissions: Dict[str, List[EmissionSite]] = field(default_factory=dict)
    connections: Dict[str, List[ConnectionSite]] = field(default_factory=dict)
    metadata: GraphMetadata = field(default_factory=GraphMetadata)

    def definitions_for(self, name: str) -> List[SignalDefinition]:
        return list(self.definitions.get(name, []))

    def emissions_for(self, name: str) -> List[EmissionSite]:
        return list(self.emissions.get(name, []))

    def connections_for(self, name: str) -> List[ConnectionSite]:
        return list(self.connections.get(name, []))

    def all_signal_names(self) -> List[str]:
        """Sorted union of every name seen as a definition, emission or connection."""
        names = set(self.definitions)
        names.update(self.emissions)
        names.update(self.connections)
        return sorted(names)

    def undefined_signals(self) -> List[str]:
        """Signals that are emitted but never declared (typo or external signal)."""
        return sorted(name for name in self.emissions if name not in self.definitions)

    def unemitted_signals(self) -> List[str]:
        """Signals that are declared but never emitted (dead-code candidates)."""
        return sorted(name for name in self.definitions if name not in self.emissions)


__all__ = [
    "SCHEMA_VERSION",
    "ConnectionSite",
    "EmissionSite",
    "FileFacts",
    "GraphMetadata",
    "ParsedFile",
    "SignalDefinition",
    "SignalGraph",
    "SignalParam",
]
