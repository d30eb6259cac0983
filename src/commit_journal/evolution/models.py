"""Records produced by an evolution analysis run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from ..temporal.models import FileEvolution

Impact = Literal["high", "medium", "low"]

# Used when the journey oracle gives a foundation file no reinforcement text.
DEFAULT_REINFORCEMENT = "Stable core logic"


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> TokenUsage:
        if not data:
            return cls()
        return cls(
            input_tokens=int(data.get("input_tokens", 0)),
            output_tokens=int(data.get("output_tokens", 0)),
        )


@dataclass
class JourneyVerdict:
    """The journey oracle's judgement of one file. Lives for one run."""

    path: str
    description: str
    is_hotspot: bool
    evolutionary_lessons: list[str] = field(default_factory=list)
    reinforcement: Optional[str] = None
    tokens: TokenUsage = field(default_factory=TokenUsage)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "description": self.description,
            "is_hotspot": self.is_hotspot,
            "evolutionary_lessons": list(self.evolutionary_lessons),
            "reinforcement": self.reinforcement,
            "tokens": self.tokens.to_dict(),
        }


@dataclass(frozen=True)
class Foundation:
    path: str
    description: str
    reinforcement: str = DEFAULT_REINFORCEMENT

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "description": self.description, "reinforcement": self.reinforcement}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Foundation:
        return cls(
            path=data["path"],
            description=data.get("description", ""),
            reinforcement=data.get("reinforcement") or DEFAULT_REINFORCEMENT,
        )


@dataclass(frozen=True)
class Hotspot:
    path: str
    evolutionary_lessons: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "evolutionary_lessons": list(self.evolutionary_lessons)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Hotspot:
        return cls(
            path=data["path"],
            evolutionary_lessons=tuple(data.get("evolutionary_lessons", [])),
        )


@dataclass(frozen=True)
class ArchitecturalLesson:
    title: str
    lesson: str
    impact: Impact = "medium"
    affected_files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "lesson": self.lesson,
            "impact": self.impact,
            "affected_files": list(self.affected_files),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArchitecturalLesson:
        return cls(
            title=data.get("title", ""),
            lesson=data.get("lesson", ""),
            impact=data.get("impact", "medium"),
            affected_files=tuple(data.get("affected_files", [])),
        )


@dataclass(frozen=True)
class NamedPiece:
    name: str
    description: str
    files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "files": list(self.files)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NamedPiece:
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            files=tuple(data.get("files", [])),
        )


@dataclass
class Synthesis:
    """Cross-file synthesis returned by the synthesis oracle."""

    summary: str = ""
    named_pieces: list[NamedPiece] = field(default_factory=list)
    architectural_lessons: list[ArchitecturalLesson] = field(default_factory=list)
    tokens: TokenUsage = field(default_factory=TokenUsage)


@dataclass
class EvolutionAnalysisResult:
    """Composed outcome of one orchestration run for a repository.

    Persisted wholesale; ``file_evolutions`` is always recomputed from the
    commit store when read.
    """

    repo: str
    generated_at: Optional[str] = None
    file_evolutions: list[FileEvolution] = field(default_factory=list)
    foundations: list[Foundation] = field(default_factory=list)
    hotspots: list[Hotspot] = field(default_factory=list)
    architectural_lessons: list[ArchitecturalLesson] = field(default_factory=list)
    named_pieces: list[NamedPiece] = field(default_factory=list)
    summary: str = ""
    tokens: TokenUsage = field(default_factory=TokenUsage)
    model_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "repo": self.repo,
            "generated_at": self.generated_at,
            "file_evolutions": [e.to_dict() for e in self.file_evolutions],
            "foundations": [f.to_dict() for f in self.foundations],
            "hotspots": [h.to_dict() for h in self.hotspots],
            "architectural_lessons": [lesson.to_dict() for lesson in self.architectural_lessons],
            "named_pieces": [p.to_dict() for p in self.named_pieces],
            "summary": self.summary,
            "tokens": self.tokens.to_dict(),
            "model_id": self.model_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EvolutionAnalysisResult:
        return cls(
            repo=data["repo"],
            generated_at=data.get("generated_at"),
            file_evolutions=[FileEvolution.from_dict(e) for e in data.get("file_evolutions", [])],
            foundations=[Foundation.from_dict(f) for f in data.get("foundations", [])],
            hotspots=[Hotspot.from_dict(h) for h in data.get("hotspots", [])],
            architectural_lessons=[
                ArchitecturalLesson.from_dict(a) for a in data.get("architectural_lessons", [])
            ],
            named_pieces=[NamedPiece.from_dict(p) for p in data.get("named_pieces", [])],
            summary=data.get("summary", ""),
            tokens=TokenUsage.from_dict(data.get("tokens")),
            model_id=data.get("model_id"),
        )


@dataclass
class AnalysisView:
    """What the read path returns.

    ``has_full_analysis`` is False when no orchestration run has been
    persisted; ``result`` then only carries fresh file evolutions.
    """

    has_full_analysis: bool
    result: EvolutionAnalysisResult

    def to_dict(self) -> dict[str, Any]:
        return {"has_full_analysis": self.has_full_analysis, "result": self.result.to_dict()}
