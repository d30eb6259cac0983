"""Records produced by per-commit journal analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from ..evolution.models import TokenUsage

CalloutType = Literal["design-decision", "pattern-used", "performance-insight", "learning"]

CALLOUT_TYPES = ("design-decision", "pattern-used", "performance-insight", "learning")


@dataclass(frozen=True)
class ArchitecturalCallout:
    type: CalloutType
    title: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "title": self.title, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArchitecturalCallout:
        return cls(
            type=data.get("type", "learning"),
            title=data.get("title", ""),
            description=data.get("description", ""),
        )


@dataclass
class CommitAnalysis:
    """The model's journal entry for one commit.

    Cached under ``(repo, commit_hash, model_id, prompt_id)``; any change to
    one of those four produces a separate entry.
    """

    repo: str
    commit_hash: str
    model_id: str
    prompt_id: str
    summary: str
    key_decisions: list[str] = field(default_factory=list)
    callouts: list[ArchitecturalCallout] = field(default_factory=list)
    duration_ms: int = 0
    tokens: TokenUsage = field(default_factory=TokenUsage)
    generated_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "repo": self.repo,
            "commit_hash": self.commit_hash,
            "model_id": self.model_id,
            "prompt_id": self.prompt_id,
            "summary": self.summary,
            "key_decisions": list(self.key_decisions),
            "callouts": [c.to_dict() for c in self.callouts],
            "duration_ms": self.duration_ms,
            "tokens": self.tokens.to_dict(),
            "generated_at": self.generated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommitAnalysis:
        return cls(
            repo=data["repo"],
            commit_hash=data["commit_hash"],
            model_id=data["model_id"],
            prompt_id=data["prompt_id"],
            summary=data.get("summary", ""),
            key_decisions=list(data.get("key_decisions", [])),
            callouts=[ArchitecturalCallout.from_dict(c) for c in data.get("callouts", [])],
            duration_ms=int(data.get("duration_ms", 0)),
            tokens=TokenUsage.from_dict(data.get("tokens")),
            generated_at=data.get("generated_at"),
        )


@dataclass
class CommitAnalysisOutcome:
    """An analysis plus whether it came from the cache."""

    analysis: CommitAnalysis
    was_cached: bool

    def to_dict(self) -> dict[str, Any]:
        return {"was_cached": self.was_cached, "result": self.analysis.to_dict()}


@dataclass
class UsageTotals:
    """Token usage recorded across every stored analysis."""

    commit_analyses: TokenUsage = field(default_factory=TokenUsage)
    evolution_analyses: TokenUsage = field(default_factory=TokenUsage)
    commit_analysis_count: int = 0
    evolution_analysis_count: int = 0

    @property
    def total(self) -> TokenUsage:
        return self.commit_analyses + self.evolution_analyses

    def to_dict(self) -> dict[str, Any]:
        return {
            "commit_analyses": {
                "count": self.commit_analysis_count,
                "tokens": self.commit_analyses.to_dict(),
            },
            "evolution_analyses": {
                "count": self.evolution_analysis_count,
                "tokens": self.evolution_analyses.to_dict(),
            },
            "total": self.total.to_dict(),
        }
