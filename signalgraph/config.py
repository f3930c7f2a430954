"""Configuration loading for signalgraph (.signalgraph.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".signalgraph.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ExtractionConfig:
    """Per-file extraction settings."""

    workers: int = 1


@dataclass
class ClusteringConfig:
    """Hierarchical clustering settings."""

    depth: int = 2
    min_sub_cluster_size: int = 5
    label_terms: int = 3
    label_sub_clusters: bool = False


@dataclass
class CacheConfig:
    """Where a built graph is cached between runs."""

    graph_path: Optional[Path] = None


@dataclass
class SignalGraphConfig:
    """Represents the high-level settings defined in .signalgraph.yml."""

    root: Path
    exclude_paths: List[str] = field(default_factory=list)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)


def load_config(config_path: Path) -> SignalGraphConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SignalGraphConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    extraction = ExtractionConfig()
    extraction_data = _as_dict(data.get("extraction"))
    if extraction_data:
        workers = _as_int(extraction_data.get("workers"))
        if workers is not None:
            extraction.workers = max(1, workers)

    clustering = ClusteringConfig()
    clustering_data = _as_dict(data.get("clustering"))
    if clustering_data:
        depth = _as_int(clustering_data.get("depth"))
        if depth is not None:
            clustering.depth = min(2, max(1, depth))
        min_size = _as_int(clustering_data.get("min_sub_cluster_size"))
        if min_size is not None:
            clustering.min_sub_cluster_size = max(2, min_size)
        label_terms = _as_int(clustering_data.get("label_terms"))
        if label_terms is not None:
            clustering.label_terms = max(1, label_terms)
        label_sub = _as_bool(clustering_data.get("label_sub_clusters"))
        if label_sub is not None:
            clustering.label_sub_clusters = label_sub

    cache = CacheConfig()
    cache_data = _as_dict(data.get("cache"))
    graph_path = _as_str(cache_data.get("graph_path")) if cache_data else None
    if graph_path:
        cache.graph_path = root / graph_path

    return SignalGraphConfig(
        root=root,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        extraction=extraction,
        clustering=clustering,
        cache=cache,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CacheConfig",
    "ClusteringConfig",
    "ConfigError",
    "ExtractionConfig",
    "SignalGraphConfig",
    "load_config",
]
