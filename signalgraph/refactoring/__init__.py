"""Refactoring suggestions for signal names."""

from .levenshtein import levenshtein, levenshtein_similarity, normalized_levenshtein
from .naming import is_snake_case, to_snake_case, validate_naming
from .suggestions import RefactoringEngine, RefactorSuggestion, RefactorType

__all__ = [
    "RefactorSuggestion",
    "RefactorType",
    "RefactoringEngine",
    "is_snake_case",
    "levenshtein",
    "levenshtein_similarity",
    "normalized_levenshtein",
    "to_snake_case",
    "validate_naming",
]
