"""Evolutionary file-journey analysis: per-file journeys, synthesis, classification."""

from .models import (
    DEFAULT_REINFORCEMENT,
    AnalysisView,
    ArchitecturalLesson,
    EvolutionAnalysisResult,
    Foundation,
    Hotspot,
    JourneyVerdict,
    NamedPiece,
    Synthesis,
    TokenUsage,
)
from .orchestrator import CancellationToken, EvolutionOrchestrator

__all__ = [
    "AnalysisView",
    "ArchitecturalLesson",
    "CancellationToken",
    "DEFAULT_REINFORCEMENT",
    "EvolutionAnalysisResult",
    "EvolutionOrchestrator",
    "Foundation",
    "Hotspot",
    "JourneyVerdict",
    "NamedPiece",
    "Synthesis",
    "TokenUsage",
]
