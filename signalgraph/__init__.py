"""Signal graph analysis for Godot projects."""

from .models import (
    SCHEMA_VERSION,
    ConnectionSite,
    EmissionSite,
    FileFacts,
    GraphMetadata,
    ParsedFile,
    SignalDefinition,
    SignalGraph,
    SignalParam,
)
from .orchestrator import AnalysisReport, Orchestrator

__version__ = "0.1.0"

__all__ = [
    "SCHEMA_VERSION",
    "AnalysisReport",
    "ConnectionSite",
    "EmissionSite",
    "FileFacts",
    "GraphMetadata",
    "Orchestrator",
    "ParsedFile",
    "SignalDefinition",
    "SignalGraph",
    "SignalParam",
]
