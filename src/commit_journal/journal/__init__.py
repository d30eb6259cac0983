"""Per-commit journal entries: summary, key decisions and callouts."""

from .analyzer import CommitAnalyzer, find_commit, usage_totals
from .models import (
    CALLOUT_TYPES,
    ArchitecturalCallout,
    CommitAnalysis,
    CommitAnalysisOutcome,
    UsageTotals,
)

__all__ = [
    "CALLOUT_TYPES",
    "ArchitecturalCallout",
    "CommitAnalysis",
    "CommitAnalysisOutcome",
    "CommitAnalyzer",
    "UsageTotals",
    "find_commit",
    "usage_totals",
]
