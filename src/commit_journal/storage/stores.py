"""Typed stores over a key-value backend.

Each store owns one namespace: ``commits`` (repo -> commit list),
``snapshots`` (repo/path/hash -> DiffSnapshot), ``evolution``
(repo -> latest EvolutionAnalysisResult) and ``commit_analyses``
(repo/hash/model/prompt -> CommitAnalysis).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ..evolution.models import EvolutionAnalysisResult
from ..exceptions import RepoNotFetchedError
from ..journal.models import CommitAnalysis
from ..logging_config import get_logger
from ..protocols import MapStore
from ..temporal.models import Commit, DiffSnapshot, parse_timestamp

logger = get_logger(__name__)

_KEY_SEP = "\x1f"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class CommitStore:
    """Repository id -> ordered commit list. Sole writer of commits."""

    namespace = "commits"

    def __init__(self, backend: MapStore) -> None:
        self._backend = backend

    def list(self, repo: str) -> list[Commit]:
        """Return the stored commits, raising if the repo was never fetched."""
        record = self._backend.get(self.namespace, repo)
        if not record or not record.get("commits"):
            raise RepoNotFetchedError(repo)
        return [Commit.from_dict(c) for c in record["commits"]]

    def has(self, repo: str) -> bool:
        return self._backend.get(self.namespace, repo) is not None

    def fetched_at(self, repo: str) -> Optional[str]:
        record = self._backend.get(self.namespace, repo)
        return record.get("fetched_at") if record else None

    def put(self, repo: str, commits: list[Commit]) -> None:
        self._backend.put(
            self.namespace,
            repo,
            {
                "fetched_at": datetime.now(timezone.utc).isoformat(),
                "commits": [c.to_dict() for c in commits],
            },
        )
        logger.debug("Stored %d commits for %s", len(commits), repo)


class SnapshotCache:
    """(repo, path, hash) -> DiffSnapshot with upsert semantics.

    Staleness is judged by the caller; the cache returns whatever is stored.
    """

    namespace = "snapshots"

    def __init__(self, backend: MapStore) -> None:
        self._backend = backend

    @staticmethod
    def _key(repo: str, path: str, commit_hash: str) -> str:
        return _KEY_SEP.join((repo, path, commit_hash))

    def get(self, repo: str, path: str, commit_hash: str) -> Optional[DiffSnapshot]:
        record = self._backend.get(self.namespace, self._key(repo, path, commit_hash))
        if record is None:
            return None
        return DiffSnapshot.from_dict(record)

    def put(self, repo: str, path: str, snapshot: DiffSnapshot) -> None:
        self._backend.put(
            self.namespace,
            self._key(repo, path, snapshot.commit_hash),
            snapshot.to_dict(),
        )

    def list_for_file(self, repo: str, path: str) -> list[DiffSnapshot]:
        """Every stored snapshot of one file, oldest first."""
        prefix = _KEY_SEP.join((repo, path)) + _KEY_SEP
        snapshots = []
        for key in self._backend.keys(self.namespace, prefix):
            record = self._backend.get(self.namespace, key)
            if record is not None:
                snapshots.append(DiffSnapshot.from_dict(record))
        return sorted(
            snapshots,
            key=lambda s: parse_timestamp(s.timestamp) if s.timestamp else _EPOCH,
        )


class EvolutionResultStore:
    """Repository id -> latest composed analysis result."""

    namespace = "evolution"

    def __init__(self, backend: MapStore) -> None:
        self._backend = backend

    def get(self, repo: str) -> Optional[EvolutionAnalysisResult]:
        record = self._backend.get(self.namespace, repo)
        if record is None:
            return None
        return EvolutionAnalysisResult.from_dict(record)

    def put(self, repo: str, result: EvolutionAnalysisResult) -> None:
        self._backend.put(self.namespace, repo, result.to_dict())
        logger.debug("Stored evolution analysis for %s", repo)

    def all(self) -> list[EvolutionAnalysisResult]:
        """Every stored result, ordered by repository id."""
        results = []
        for key in self._backend.keys(self.namespace):
            record = self._backend.get(self.namespace, key)
            if record is not None:
                results.append(EvolutionAnalysisResult.from_dict(record))
        return results


class CommitAnalysisStore:
    """(repo, commit, model, prompt) -> CommitAnalysis."""

    namespace = "commit_analyses"

    def __init__(self, backend: MapStore) -> None:
        self._backend = backend

    @staticmethod
    def _key(repo: str, commit_hash: str, model_id: str, prompt_id: str) -> str:
        return _KEY_SEP.join((repo, commit_hash, model_id, prompt_id))

    def get(
        self, repo: str, commit_hash: str, model_id: str, prompt_id: str
    ) -> Optional[CommitAnalysis]:
        record = self._backend.get(
            self.namespace, self._key(repo, commit_hash, model_id, prompt_id)
        )
        if record is None:
            return None
        return CommitAnalysis.from_dict(record)

    def put(self, analysis: CommitAnalysis) -> None:
        key = self._key(analysis.repo, analysis.commit_hash, analysis.model_id, analysis.prompt_id)
        self._backend.put(self.namespace, key, analysis.to_dict())
        logger.debug("Stored analysis of %s for %s", analysis.commit_hash[:7], analysis.repo)

    def delete(self, repo: str, commit_hash: str, model_id: str, prompt_id: str) -> bool:
        """Remove one analysis; False when nothing was stored under the key."""
        key = self._key(repo, commit_hash, model_id, prompt_id)
        if self._backend.get(self.namespace, key) is None:
            return False
        self._backend.delete(self.namespace, key)
        return True

    def list_for_repo(self, repo: str) -> list[CommitAnalysis]:
        return self._load(repo + _KEY_SEP)

    def all(self) -> list[CommitAnalysis]:
        return self._load("")

    def _load(self, prefix: str) -> list[CommitAnalysis]:
        analyses = []
        for key in self._backend.keys(self.namespace, prefix):
            record = self._backend.get(self.namespace, key)
            if record is not None:
                analyses.append(CommitAnalysis.from_dict(record))
        return analyses
