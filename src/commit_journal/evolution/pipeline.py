"""Pure steps of an evolution analysis run.

Nothing here performs I/O: the orchestrator feeds these functions what it
read from the stores and oracles and persists what they return.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from ..temporal.models import (
    SNAPSHOT_SCHEMA_TAG,
    CommitRef,
    DiffSnapshot,
    FileEvolution,
    parse_timestamp,
)
from .models import (
    DEFAULT_REINFORCEMENT,
    ArchitecturalLesson,
    EvolutionAnalysisResult,
    Foundation,
    Hotspot,
    JourneyVerdict,
    Synthesis,
    TokenUsage,
)

_IMPACT_RANK = {"high": 0, "medium": 1, "low": 2}


def select_target_files(
    evolutions: list[FileEvolution],
    selected: Optional[Iterable[str]] = None,
    default_count: int = 5,
) -> list[str]:
    """Explicit selection wins; otherwise the most frequently changed files.

    Duplicates in an explicit selection are dropped, first occurrence kept.
    """
    if selected is None:
        return [e.path for e in evolutions[:default_count]]
    return list(dict.fromkeys(selected))


def chronological_refs(evolution: FileEvolution) -> list[CommitRef]:
    """The file's commits oldest first, without touching the evolution."""
    return sorted(evolution.commits, key=lambda ref: parse_timestamp(ref.date))


def is_stale(snapshot: DiffSnapshot, expected_tag: str = SNAPSHOT_SCHEMA_TAG) -> bool:
    """A snapshot is stale when its schema tag is missing or out of date."""
    return snapshot.schema_tag != expected_tag


def partition_refs(
    refs: list[CommitRef],
    cached: Mapping[str, Optional[DiffSnapshot]],
    force_refresh: bool = False,
    expected_tag: str = SNAPSHOT_SCHEMA_TAG,
) -> tuple[list[DiffSnapshot], list[CommitRef]]:
    """Split a file's commits into usable cached snapshots and commits to fetch.

    Args:
        refs: The file's commits.
        cached: What the snapshot cache holds per commit hash (None if absent).
        force_refresh: Treat every cached snapshot as unusable.
        expected_tag: Current snapshot schema tag.

    Returns:
        ``(fresh_snapshots, refs_needing_fetch)``, both in ``refs`` order.
    """
    fresh: list[DiffSnapshot] = []
    missing: list[CommitRef] = []
    for ref in refs:
        snapshot = cached.get(ref.hash)
        if snapshot is None or force_refresh or is_stale(snapshot, expected_tag):
            missing.append(ref)
        else:
            fresh.append(snapshot)
    return fresh, missing


def build_snapshots(
    path: str,
    refs: list[CommitRef],
    diffs: Mapping[str, str],
    model_id: Optional[str] = None,
) -> list[DiffSnapshot]:
    """New snapshots for fetched commits; absent diffs become empty text."""
    return [
        DiffSnapshot(
            file_path=path,
            commit_hash=ref.hash,
            message=ref.message,
            diff=diffs.get(ref.hash) or "",
            timestamp=ref.date,
            schema_tag=SNAPSHOT_SCHEMA_TAG,
            model_id=model_id,
        )
        for ref in refs
    ]


def order_snapshots(snapshots: Iterable[DiffSnapshot]) -> list[DiffSnapshot]:
    """Oldest first by parsed timestamp; insertion order is not trusted."""
    return sorted(snapshots, key=lambda s: parse_timestamp(s.timestamp))


def build_world_view(evolutions: list[FileEvolution], limit: int = 10) -> str:
    """Short repository context: the names of the most active files."""
    names = ", ".join(e.path for e in evolutions[:limit])
    return f"Active files in this repo: {names}"


def classify(verdicts: list[JourneyVerdict]) -> tuple[list[Foundation], list[Hotspot]]:
    """Split verdicts by the oracle's own hotspot flag, keeping verdict order."""
    foundations: list[Foundation] = []
    hotspots: list[Hotspot] = []
    for verdict in verdicts:
        if verdict.is_hotspot:
            hotspots.append(
                Hotspot(path=verdict.path, evolutionary_lessons=tuple(verdict.evolutionary_lessons))
            )
        else:
            foundations.append(
                Foundation(
                    path=verdict.path,
                    description=verdict.description,
                    reinforcement=verdict.reinforcement or DEFAULT_REINFORCEMENT,
                )
            )
    return foundations, hotspots


def rank_lessons(lessons: Iterable[ArchitecturalLesson]) -> list[ArchitecturalLesson]:
    """Order lessons high, medium, low impact; equal impact keeps oracle order."""
    return sorted(lessons, key=lambda lesson: _IMPACT_RANK.get(lesson.impact, 1))


def total_tokens(verdicts: Iterable[JourneyVerdict], synthesis: Synthesis) -> TokenUsage:
    usage = TokenUsage()
    for verdict in verdicts:
        usage = usage + verdict.tokens
    return usage + synthesis.tokens


def compose_result(
    repo: str,
    evolutions: list[FileEvolution],
    verdicts: list[JourneyVerdict],
    synthesis: Synthesis,
    generated_at: str,
    model_id: Optional[str] = None,
) -> EvolutionAnalysisResult:
    foundations, hotspots = classify(verdicts)
    return EvolutionAnalysisResult(
        repo=repo,
        generated_at=generated_at,
        file_evolutions=evolutions,
        foundations=foundations,
        hotspots=hotspots,
        architectural_lessons=rank_lessons(synthesis.architectural_lessons),
        named_pieces=list(synthesis.named_pieces),
        summary=synthesis.summary,
        tokens=total_tokens(verdicts, synthesis),
        model_id=model_id,
    )


def degenerate_result(repo: str, evolutions: list[FileEvolution]) -> EvolutionAnalysisResult:
    """Read-path placeholder: fresh evolutions, empty narrative."""
    return EvolutionAnalysisResult(repo=repo, file_evolutions=evolutions)
