"""Usage analyses over a signal graph."""

from .unused import UnusedDetector, UnusedPattern, UnusedSignal

__all__ = ["UnusedDetector", "UnusedPattern", "UnusedSignal"]
