"""Detection of signals that are declared but never meaningfully used."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..models import EmissionSite, SignalDefinition, SignalGraph

ISOLATED_CONFIDENCE = 1.0
ORPHAN_BASE = 0.95
ORPHAN_THRESHOLD = 0.95
DEAD_EMITTER_BASE = 0.90
DEAD_EMITTER_THRESHOLD = 0.90

PRIVATE_PENALTY = 0.15
INHERITANCE_PENALTY = 0.20
EVENT_BUS_PENALTY = 0.10
AUTOLOAD_PENALTY = 0.20

ISOLATED_REASON = "Signal defined but never emitted or connected"

logger = get_logger("analysis.unused")


class UnusedPattern(Enum):
    """How a signal fails to be used."""

    ORPHAN = "orphan"
    DEAD_EMITTER = "dead_emitter"
    ISOLATED = "isolated"


@dataclass
class UnusedLocation:
    file: str
    line: int


@dataclass
class UnusedSignal:
    signal_name: str
    pattern: UnusedPattern
    confidence: float
    locations: List[UnusedLocation] = field(default_factory=list)
    reason: str = ""
    is_private: bool = False


@dataclass
class ConfidenceFactors:
    base_score: float
    private_penalty: float = 0.0
    # Inheritance hint for orphans, EventBus/autoload hint for dead emitters.
    inheritance_penalty: float = 0.0
    final_score: float = 0.0


@dataclass
class UnusedDetectorStats:
    signals_analyzed: int = 0
    isolated_found: int = 0
    orphans_found: int = 0
    dead_emitters_found: int = 0
    total_unused: int = 0
    duration_ms: float = 0.0
    avg_confidence: float = 0.0


class UnusedDetector:
    """Classifies each defined signal as isolated, orphan, dead emitter or used.

    The patterns are checked in that order and are mutually exclusive.
    Orphans and dead emitters are only reported when their confidence stays
    at or above the pattern's threshold after penalties.
    """

    def __init__(self) -> None:
        self.stats = UnusedDetectorStats()

    def detect(self, graph: SignalGraph) -> List[UnusedSignal]:
        start = time.perf_counter()
        stats = UnusedDetectorStats()
        unused: List[UnusedSignal] = []

        for name, definitions in graph.definitions.items():
            stats.signals_analyzed += 1
            emissions = graph.emissions.get(name)
            has_connections = bool(graph.connections.get(name))

            if not emissions and not has_connections:
                unused.append(_isolated(name, definitions))
                stats.isolated_found += 1
            elif not emissions:
                orphan = _orphan(name, definitions)
                if orphan.confidence >= ORPHAN_THRESHOLD:
                    unused.append(orphan)
                    stats.orphans_found += 1
            elif not has_connections:
                dead = _dead_emitter(name, emissions)
                if dead.confidence >= DEAD_EMITTER_THRESHOLD:
                    unused.append(dead)
                    stats.dead_emitters_found += 1

        unused.sort(key=lambda item: item.confidence, reverse=True)

        stats.total_unused = len(unused)
        if unused:
            stats.avg_confidence = sum(item.confidence for item in unused) / len(unused)
        stats.duration_ms = (time.perf_counter() - start) * 1000
        self.stats = stats
        logger.info(
            "Unused signals: %d of %d (%d isolated, %d orphan, %d dead emitter)",
            stats.total_unused,
            stats.signals_analyzed,
            stats.isolated_found,
            stats.orphans_found,
            stats.dead_emitters_found,
        )
        return unused


def filter_by_confidence(
    results: Sequence[UnusedSignal], min_confidence: Optional[float] = None
) -> List[UnusedSignal]:
    if min_confidence is None:
        return list(results)
    return [item for item in results if item.confidence >= min_confidence]


def _isolated(name: str, definitions: Sequence[SignalDefinition]) -> UnusedSignal:
    return UnusedSignal(
        signal_name=name,
        pattern=UnusedPattern.ISOLATED,
        confidence=ISOLATED_CONFIDENCE,
        locations=[UnusedLocation(file=d.file_path, line=d.line) for d in definitions],
        reason=ISOLATED_REASON,
        is_private=name.startswith("_"),
    )


def _orphan(name: str, definitions: Sequence[SignalDefinition]) -> UnusedSignal:
    factors = ConfidenceFactors(base_score=ORPHAN_BASE)
    if any(d.name.startswith("_") for d in definitions):
        factors.private_penalty = PRIVATE_PENALTY
    if len(definitions) > 1:
        factors.inheritance_penalty = INHERITANCE_PENALTY
    factors.final_score = _final(
        ORPHAN_BASE - factors.private_penalty - factors.inheritance_penalty
    )
    return UnusedSignal(
        signal_name=name,
        pattern=UnusedPattern.ORPHAN,
        confidence=factors.final_score,
        locations=[UnusedLocation(file=d.file_path, line=d.line) for d in definitions],
        reason=confidence_reason(factors),
        is_private=name.startswith("_"),
    )


def _dead_emitter(name: str, emissions: Sequence[EmissionSite]) -> UnusedSignal:
    factors = ConfidenceFactors(base_score=DEAD_EMITTER_BASE)
    score = DEAD_EMITTER_BASE
    if name.startswith("_"):
        factors.private_penalty = PRIVATE_PENALTY
        score -= PRIVATE_PENALTY
    if any("EventBus" in (e.emitter or "") or "EventBus" in e.file_path for e in emissions):
        factors.inheritance_penalty = EVENT_BUS_PENALTY
        score -= EVENT_BUS_PENALTY
    if any("/autoload/" in e.file_path for e in emissions):
        factors.inheritance_penalty = max(factors.inheritance_penalty, AUTOLOAD_PENALTY)
        score -= AUTOLOAD_PENALTY
    factors.final_score = _final(score)
    return UnusedSignal(
        signal_name=name,
        pattern=UnusedPattern.DEAD_EMITTER,
        confidence=factors.final_score,
        locations=[UnusedLocation(file=e.file_path, line=e.line) for e in emissions],
        reason=confidence_reason(factors),
        is_private=name.startswith("_"),
    )


def _final(score: float) -> float:
    return round(max(0.0, score), 4)


def confidence_reason(factors: ConfidenceFactors) -> str:
    reasons = []
    if factors.private_penalty > 0:
        reasons.append("private signal (may be placeholder)")
    if factors.inheritance_penalty > 0:
        reasons.append("inheritance/global usage hint")
    if not reasons:
        return "High confidence unused signal"
    return f"Confidence reduced by: {', '.join(reasons)}"


__all__ = [
    "ConfidenceFactors",
    "UnusedDetector",
    "UnusedDetectorStats",
    "UnusedLocation",
    "UnusedPattern",
    "UnusedSignal",
    "confidence_reason",
    "filter_by_confidence",
]
