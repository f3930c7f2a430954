"""Refactoring suggestions: near-duplicate signal names and naming convention fixes."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from ..models import SignalDefinition, SignalGraph
from .levenshtein import levenshtein
from .naming import (
    CONTAINS_SPACES,
    NOT_SNAKE_CASE,
    STARTS_WITH_UPPERCASE,
    is_snake_case,
    validate_naming,
)

MAX_MERGE_DISTANCE = 2
MAX_LENGTH_DIFFERENCE = 3
MIN_MERGE_CONFIDENCE = 0.98
RENAME_CONFIDENCE = 1.0

_VIOLATION_MESSAGES = {
    NOT_SNAKE_CASE: "signals should use snake_case",
    STARTS_WITH_UPPERCASE: "signals should start with lowercase letter",
    CONTAINS_SPACES: "signals cannot contain spaces",
}

logger = get_logger("refactoring")


class RefactorType(Enum):
    MERGE = "merge"
    RENAME = "rename"
    DEPRECATE = "deprecate"


@dataclass
class RefactorSuggestion:
    type: RefactorType
    target: str
    replacement: str
    confidence: float
    reason: str
    affected_files: List[str] = field(default_factory=list)
    distance: Optional[int] = None


@dataclass
class SimilarityStats:
    signals_analyzed: int = 0
    comparisons_performed: int = 0
    comparisons_skipped: int = 0
    similar_pairs_found: int = 0
    duration_ms: float = 0.0


@dataclass
class RefactoringStats:
    total_suggestions: int = 0
    merge_suggestions: int = 0
    rename_suggestions: int = 0
    deprecate_suggestions: int = 0
    duration_ms: float = 0.0
    avg_confidence: float = 0.0
    similarity: SimilarityStats = field(default_factory=SimilarityStats)


def similarity_confidence(a: str, b: str, distance: int) -> float:
    both_snake = is_snake_case(a) and is_snake_case(b)
    if distance <= 1:
        return 0.99 if both_snake else 0.98
    if distance == 2:
        return 0.98 if both_snake else 0.97
    return 0.95


class RefactoringEngine:
    """Suggests merging near-duplicate signals and renaming badly named ones.

    Pairs whose first characters differ, or whose lengths differ by more
    than three, are skipped before any edit distance is computed.
    """

    def __init__(self) -> None:
        self.stats = RefactoringStats()

    def generate(self, graph: SignalGraph) -> List[RefactorSuggestion]:
        start = time.perf_counter()
        stats = RefactoringStats()

        similarity_start = time.perf_counter()
        merges = self._similar_pairs(graph.definitions, stats.similarity)
        stats.similarity.duration_ms = (time.perf_counter() - similarity_start) * 1000

        renames = self._naming_violations(graph.definitions)

        suggestions = merges + renames
        suggestions.sort(key=lambda item: item.confidence, reverse=True)

        stats.merge_suggestions = len(merges)
        stats.rename_suggestions = len(renames)
        stats.total_suggestions = len(suggestions)
        if suggestions:
            stats.avg_confidence = sum(item.confidence for item in suggestions) / len(suggestions)
        stats.duration_ms = (time.perf_counter() - start) * 1000
        self.stats = stats
        logger.info(
            "Refactoring: %d merge and %d rename suggestions (%d of %d comparisons skipped)",
            stats.merge_suggestions,
            stats.rename_suggestions,
            stats.similarity.comparisons_skipped,
            stats.similarity.comparisons_skipped + stats.similarity.comparisons_performed,
        )
        return suggestions

    def _similar_pairs(
        self, definitions: Dict[str, List[SignalDefinition]], stats: SimilarityStats
    ) -> List[RefactorSuggestion]:
        names = list(definitions)
        stats.signals_analyzed = len(names)
        suggestions: List[RefactorSuggestion] = []

        for i, first in enumerate(names):
            for second in names[i + 1 :]:
                if first[:1] != second[:1] or abs(len(first) - len(second)) > MAX_LENGTH_DIFFERENCE:
                    stats.comparisons_skipped += 1
                    continue

                stats.comparisons_performed += 1
                distance = levenshtein(first, second, max_distance=MAX_MERGE_DISTANCE)
                if distance > MAX_MERGE_DISTANCE:
                    continue

                stats.similar_pairs_found += 1
                confidence = similarity_confidence(first, second, distance)
                if confidence < MIN_MERGE_CONFIDENCE:
                    continue
                suggestions.append(
                    RefactorSuggestion(
                        type=RefactorType.MERGE,
                        target=first,
                        replacement=second,
                        confidence=confidence,
                        reason=f"Similar names (Levenshtein distance: {distance})",
                        affected_files=_files_of(definitions[first], definitions[second]),
                        distance=distance,
                    )
                )
        return suggestions

    @staticmethod
    def _naming_violations(
        definitions: Dict[str, List[SignalDefinition]]
    ) -> List[RefactorSuggestion]:
        suggestions: List[RefactorSuggestion] = []
        for name, sites in definitions.items():
            violation = validate_naming(name, _files_of(sites))
            if violation is None:
                continue
            suggestions.append(
                RefactorSuggestion(
                    type=RefactorType.RENAME,
                    target=name,
                    replacement=violation.suggested_fix,
                    confidence=RENAME_CONFIDENCE,
                    reason=f"GDScript convention: {_VIOLATION_MESSAGES[violation.violation_type]}",
                    affected_files=violation.file_paths,
                )
            )
        return suggestions


def filter_by_confidence(
    suggestions: Sequence[RefactorSuggestion], min_confidence: Optional[float] = None
) -> List[RefactorSuggestion]:
    if min_confidence is None:
        return list(suggestions)
    return [item for item in suggestions if item.confidence >= min_confidence]


def _files_of(*groups: Sequence[SignalDefinition]) -> List[str]:
    files: List[str] = []
    for group in groups:
        for definition in group:
            if definition.file_path not in files:
                files.append(definition.file_path)
    return files


__all__ = [
    "RefactorSuggestion",
    "RefactorType",
    "RefactoringEngine",
    "RefactoringStats",
    "SimilarityStats",
    "filter_by_confidence",
    "similarity_confidence",
]
