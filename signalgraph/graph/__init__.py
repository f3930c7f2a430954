"""Project-wide signal graph construction and persistence."""

from .builder import BuilderStats, SignalGraphBuilder
from .serializer import GraphSerializationError, GraphSerializer

__all__ = ["BuilderStats", "GraphSerializationError", "GraphSerializer", "SignalGraphBuilder"]
