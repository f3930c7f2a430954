"""GDScript signal naming conventions: validation and snake_case conversion."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

CONTAINS_SPACES = "contains_spaces"
STARTS_WITH_UPPERCASE = "starts_with_uppercase"
NOT_SNAKE_CASE = "not_snake_case"

_SNAKE_CASE = re.compile(r"[a-z_][a-z0-9_]*")
_UPPERCASE = re.compile(r"([A-Z])")
_SEPARATORS = re.compile(r"[\s-]+")
_INVALID_CHARS = re.compile(r"[^a-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_+")
_WHITESPACE = re.compile(r"\s")

_SUFFIXES = (
    "changed",
    "pressed",
    "released",
    "completed",
    "finished",
    "entered",
    "exited",
    "started",
    "stopped",
    "updated",
)
_SUFFIX_PATTERN = re.compile(r"_(%s)$" % "|".join(_SUFFIXES))
_PREFIX_PATTERN = re.compile(r"^(on)_")


@dataclass
class NamingViolation:
    signal_name: str
    violation_type: str
    suggested_fix: str
    file_paths: List[str] = field(default_factory=list)


def is_snake_case(name: str) -> bool:
    return _SNAKE_CASE.fullmatch(name) is not None


def to_snake_case(name: str) -> str:
    """Convert ``name`` to a valid snake_case identifier.

    A leading underscore on the input is kept as exactly one underscore.
    Applying the conversion to its own output returns it unchanged.
    """
    converted = _UPPERCASE.sub(r"_\1", name)
    converted = _SEPARATORS.sub("_", converted)
    converted = converted.lower()
    converted = _INVALID_CHARS.sub("_", converted)
    converted = converted.lstrip("_")
    if name.startswith("_"):
        converted = "_" + converted
    converted = _UNDERSCORE_RUNS.sub("_", converted)
    if converted[:1].isdigit():
        converted = "_" + converted
    return converted or "_"


def validate_naming(signal_name: str, file_paths: Sequence[str] = ()) -> Optional[NamingViolation]:
    """Return the first convention the name breaks, or None."""
    if _WHITESPACE.search(signal_name):
        violation = CONTAINS_SPACES
    elif signal_name.lstrip("_")[:1].isascii() and signal_name.lstrip("_")[:1].isupper():
        violation = STARTS_WITH_UPPERCASE
    elif not is_snake_case(signal_name):
        violation = NOT_SNAKE_CASE
    else:
        return None
    return NamingViolation(
        signal_name=signal_name,
        violation_type=violation,
        suggested_fix=to_snake_case(signal_name),
        file_paths=list(file_paths),
    )


def has_common_pattern(signal_name: str) -> bool:
    """True for idiomatic names such as ``on_ready`` or ``health_changed``."""
    return bool(_PREFIX_PATTERN.search(signal_name) or _SUFFIX_PATTERN.search(signal_name))


def extract_suffix(signal_name: str) -> Optional[str]:
    match = _SUFFIX_PATTERN.search(signal_name)
    return match.group(1) if match else None


def extract_prefix(signal_name: str) -> Optional[str]:
    match = _PREFIX_PATTERN.search(signal_name)
    return match.group(1) if match else None


__all__ = [
    "CONTAINS_SPACES",
    "NOT_SNAKE_CASE",
    "STARTS_WITH_UPPERCASE",
    "NamingViolation",
    "extract_prefix",
    "extract_suffix",
    "has_common_pattern",
    "is_snake_case",
    "to_snake_case",
    "validate_naming",
]
