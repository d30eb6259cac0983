"""
Commit Journal - evolutionary file-journey analysis of git repositories.

Reconstructs how a repository's most-changed files evolved commit by commit,
asks a language model what each file's journey teaches, and folds those
journeys into repository-wide architectural lessons.
"""

__version__ = "0.3.0"

from .config import JournalConfig, load_config
from .evolution import EvolutionAnalysisResult, EvolutionOrchestrator
from .service import EvolutionService

__all__ = [
    "EvolutionService",  # Main entry point
    "EvolutionOrchestrator",  # Direct core access with custom collaborators
    "EvolutionAnalysisResult",
    "JournalConfig",
    "load_config",
]
