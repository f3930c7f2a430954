"""TF-IDF labelling for clusters of signal names."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Set

NOISE_WORDS = frozenset({"on", "changed", "pressed", "released", "signal"})
EMPTY_CLUSTER_LABEL = "empty_cluster"


@dataclass
class TermScore:
    term: str
    tf: float
    idf: float
    tfidf: float


@dataclass
class LabelResult:
    label: str
    top_terms: List[TermScore] = field(default_factory=list)


@dataclass
class CorpusStats:
    total_signals: int = 0
    unique_terms: int = 0
    avg_terms_per_signal: float = 0.0


def tokenize(signal_name: str) -> List[str]:
    """Split on underscores, dropping empty fragments and noise words."""
    return [
        token
        for token in signal_name.split("_")
        if token and token.lower() not in NOISE_WORDS
    ]


class TFIDFLabeler:
    """Labels clusters by the terms that are frequent in them but rare project-wide.

    Call ``build_corpus`` once with every signal name of the run before
    generating labels; a term missing from the corpus scores zero.
    """

    def __init__(self) -> None:
        self._corpus: Dict[str, Set[str]] = {}
        self._total_signals = 0

    def build_corpus(self, signal_names: Iterable[str]) -> None:
        self._corpus = {}
        names = list(signal_names)
        self._total_signals = len(names)
        for name in names:
            for token in tokenize(name):
                self._corpus.setdefault(token, set()).add(name)

    def idf(self, term: str) -> float:
        documents = self._corpus.get(term)
        if not documents:
            return 0.0
        return math.log(self._total_signals / len(documents))

    def generate_label(self, signal_names: Sequence[str], top_n: int = 3) -> str:
        return self.generate_label_with_scores(signal_names, top_n).label

    def generate_label_with_scores(self, signal_names: Sequence[str], top_n: int = 3) -> LabelResult:
        """Label plus every term's score, best first.

        Equal scores keep the order in which terms first appeared.
        """
        if not signal_names:
            return LabelResult(label=EMPTY_CLUSTER_LABEL)
        if len(signal_names) == 1:
            return LabelResult(label=signal_names[0])

        counts: Dict[str, int] = {}
        total = 0
        for name in signal_names:
            for token in tokenize(name):
                counts[token] = counts.get(token, 0) + 1
                total += 1

        scores: List[TermScore] = []
        for term, count in counts.items():
            tf = count / total
            idf = self.idf(term)
            scores.append(TermScore(term=term, tf=tf, idf=idf, tfidf=tf * idf))
        scores.sort(key=lambda score: score.tfidf, reverse=True)

        top_terms = scores[:top_n]
        return LabelResult(label="_".join(score.term for score in top_terms), top_terms=top_terms)

    def corpus_stats(self) -> CorpusStats:
        signals: Set[str] = set()
        for names in self._corpus.values():
            signals.update(names)
        total_terms = sum(len(tokenize(name)) for name in signals)
        return CorpusStats(
            total_signals=self._total_signals,
            unique_terms=len(self._corpus),
            avg_terms_per_signal=total_terms / (len(signals) or 1),
        )


__all__ = [
    "EMPTY_CLUSTER_LABEL",
    "NOISE_WORDS",
    "CorpusStats",
    "LabelResult",
    "TFIDFLabeler",
    "TermScore",
    "tokenize",
]
