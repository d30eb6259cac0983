"""Collaborator interfaces the evolution and journal cores depend on.

Concrete implementations live in :mod:`commit_journal.storage`,
:mod:`commit_journal.temporal.git_extractor` and
:mod:`commit_journal.oracle`; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .evolution.models import EvolutionAnalysisResult, JourneyVerdict, Synthesis
    from .journal.models import CommitAnalysis
    from .oracle.prompts import CommitPrompt
    from .temporal.models import Commit, DiffSnapshot


@runtime_checkable
class MapStore(Protocol):
    """Durable map from ``(namespace, key)`` to a JSON-compatible value."""

    def get(self, namespace: str, key: str) -> Optional[Any]: ...

    def put(self, namespace: str, key: str, value: Any) -> None: ...

    def delete(self, namespace: str, key: str) -> None: ...

    def keys(self, namespace: str, prefix: str = "") -> Iterator[str]: ...

    def close(self) -> None: ...


class CommitSource(Protocol):
    """Read side of the commit store."""

    def list(self, repo: str) -> list[Commit]:
        """Return commits, raising RepoNotFetchedError when absent or empty."""
        ...


class SnapshotStore(Protocol):
    def get(self, repo: str, path: str, commit_hash: str) -> Optional[DiffSnapshot]: ...

    def put(self, repo: str, path: str, snapshot: DiffSnapshot) -> None: ...


class ResultStore(Protocol):
    def get(self, repo: str) -> Optional[EvolutionAnalysisResult]: ...

    def put(self, repo: str, result: EvolutionAnalysisResult) -> None: ...


class DiffSource(Protocol):
    def fetch_file_diffs(self, repo: str, path: str, hashes: list[str]) -> dict[str, str]:
        """Return ``{hash: diff text}`` for one file across many commits."""
        ...


class JourneyOracle(Protocol):
    def analyze(
        self,
        path: str,
        snapshots: list[DiffSnapshot],
        context: str,
        model_id: str,
    ) -> JourneyVerdict:
        """Judge one file's chronological history.

        Raises OracleError (or ContextWindowExceededError) on failure.
        """
        ...


class SynthesisOracle(Protocol):
    def synthesize(
        self,
        repo: str,
        verdicts: list[JourneyVerdict],
        model_id: str,
    ) -> Synthesis:
        """Fold every per-file verdict into repository-wide lessons."""
        ...


class CommitDiffSource(Protocol):
    def fetch_commit_diff(self, repo: str, commit_hash: str) -> str:
        """Return the whole diff of one commit, or "" when unavailable."""
        ...


class CommitOracle(Protocol):
    def analyze_commit(
        self,
        repo: str,
        commit: Commit,
        diff: str,
        prompt: CommitPrompt,
        model_id: str,
    ) -> CommitAnalysis:
        """Write the journal entry for one commit. Raises OracleError on failure."""
        ...


class CommitAnalysisResults(Protocol):
    def get(
        self, repo: str, commit_hash: str, model_id: str, prompt_id: str
    ) -> Optional[CommitAnalysis]: ...

    def put(self, analysis: CommitAnalysis) -> None: ...

    def delete(self, repo: str, commit_hash: str, model_id: str, prompt_id: str) -> bool: ...
