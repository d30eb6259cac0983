"""Drive an evolution analysis run for one repository.

A run reconciles each selected file's diff snapshots against the cache,
asks the journey oracle about the file, then asks the synthesis oracle to
fold every verdict together. The composed result is persisted only when the
whole run succeeds.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..config import MAX_JOURNEY_WORKERS
from ..exceptions import (
    AnalysisCancelledError,
    ContextWindowExceededError,
    NoHistoryError,
    OracleError,
    RepoNotFetchedError,
    is_context_window_error,
)
from ..logging_config import get_logger
from ..protocols import (
    CommitSource,
    DiffSource,
    JourneyOracle,
    ResultStore,
    SnapshotStore,
    SynthesisOracle,
)
from ..temporal.evolution import aggregate, find_evolution
from ..temporal.models import DiffSnapshot, FileEvolution
from . import pipeline
from .models import AnalysisView, EvolutionAnalysisResult, JourneyVerdict, Synthesis

logger = get_logger(__name__)


class CancellationToken:
    """Cooperative cancellation, checked between files."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _RepoLocks:
    """One lock per repository so runs on the same repo never interleave."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def for_repo(self, repo: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(repo, threading.Lock())


class EvolutionOrchestrator:
    """Owns the lifecycle of journey verdicts and analysis results.

    Usage::

        orchestrator = EvolutionOrchestrator(
            commits=CommitStore(backend),
            snapshots=SnapshotCache(backend),
            diffs=GitDiffSource(checkout),
            journey_oracle=journey,
            synthesis_oracle=synthesis,
            results=EvolutionResultStore(backend),
            model_id="meta-llama/Llama-3.1-8B-Instruct",
        )
        result = orchestrator.run(repo)
    """

    def __init__(
        self,
        commits: CommitSource,
        snapshots: SnapshotStore,
        diffs: DiffSource,
        journey_oracle: JourneyOracle,
        synthesis_oracle: SynthesisOracle,
        results: ResultStore,
        model_id: str,
        default_file_count: int = 5,
        context_file_count: int = 10,
        journey_workers: int = 1,
    ) -> None:
        if not 1 <= journey_workers <= MAX_JOURNEY_WORKERS:
            raise ValueError(f"journey_workers must be between 1 and {MAX_JOURNEY_WORKERS}")
        self._commits = commits
        self._snapshots = snapshots
        self._diffs = diffs
        self._journey_oracle = journey_oracle
        self._synthesis_oracle = synthesis_oracle
        self._results = results
        self.model_id = model_id
        self.default_file_count = default_file_count
        self.context_file_count = context_file_count
        self.journey_workers = journey_workers
        self._locks = _RepoLocks()

    # ── read path ─────────────────────────────────────────────────

    def file_evolutions(self, repo: str) -> list[FileEvolution]:
        """Fresh per-file histories; empty when the repo was never fetched."""
        try:
            commits = self._commits.list(repo)
        except RepoNotFetchedError:
            return []
        return aggregate(commits)

    def load(self, repo: str) -> AnalysisView:
        """Return the last persisted analysis without computing anything."""
        evolutions = self.file_evolutions(repo)
        stored = self._results.get(repo)
        if stored is None:
            return AnalysisView(
                has_full_analysis=False,
                result=pipeline.degenerate_result(repo, evolutions),
            )
        stored.file_evolutions = evolutions
        return AnalysisView(has_full_analysis=True, result=stored)

    # ── orchestration ─────────────────────────────────────────────

    def run(
        self,
        repo: str,
        selected_files: Optional[Iterable[str]] = None,
        force_refresh: bool = False,
        model_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> EvolutionAnalysisResult:
        """Analyze the selected files and persist the composed result.

        Raises:
            NoHistoryError: The repository has no commits.
            ContextWindowExceededError: A file's history overflowed the model.
            OracleError: Any other journey or synthesis failure.
            AnalysisCancelledError: ``cancel_token`` fired between files.
            StorageError: A store failed; propagated unchanged.
        """
        model = model_id or self.model_id
        with self._locks.for_repo(repo):
            try:
                commits = self._commits.list(repo)
            except RepoNotFetchedError as e:
                raise NoHistoryError(repo) from e
            if not commits:
                raise NoHistoryError(repo)

            evolutions = aggregate(commits)
            targets = pipeline.select_target_files(
                evolutions, selected_files, self.default_file_count
            )
            context = pipeline.build_world_view(evolutions, self.context_file_count)
            logger.info(
                "Analyzing %d file(s) of %s with %s (force_refresh=%s)",
                len(targets), repo, model, force_refresh,
            )

            verdicts = self._analyze_files(
                repo, evolutions, targets, context, model, force_refresh, cancel_token
            )
            synthesis = self._synthesize(repo, verdicts, model)

            result = pipeline.compose_result(
                repo,
                evolutions,
                verdicts,
                synthesis,
                generated_at=datetime.now(timezone.utc).isoformat(),
                model_id=model,
            )
            self._results.put(repo, result)
            logger.info(
                "Stored analysis for %s: %d hotspot(s), %d foundation(s), %d tokens",
                repo, len(result.hotspots), len(result.foundations), result.tokens.total_tokens,
            )
            return result

    def _analyze_files(
        self,
        repo: str,
        evolutions: list[FileEvolution],
        targets: list[str],
        context: str,
        model: str,
        force_refresh: bool,
        cancel_token: Optional[CancellationToken],
    ) -> list[JourneyVerdict]:
        """Reconcile and judge each target file, returning verdicts in target order."""
        if self.journey_workers == 1:
            verdicts = []
            for index, path in enumerate(targets):
                _check_cancelled(cancel_token, repo, index, len(targets))
                evolution = find_evolution(evolutions, path)
                if evolution is None:
                    logger.warning("Skipping %s: no history in %s", path, repo)
                    continue
                snapshots = self.reconcile_snapshots(repo, evolution, force_refresh, model)
                verdicts.append(self._journey(path, snapshots, context, model))
            return verdicts

        # Snapshot reconciliation stays on this thread; only oracle calls fan out.
        futures: list[Future] = []
        with ThreadPoolExecutor(max_workers=self.journey_workers) as executor:
            try:
                for index, path in enumerate(targets):
                    _check_cancelled(cancel_token, repo, index, len(targets))
                    evolution = find_evolution(evolutions, path)
                    if evolution is None:
                        logger.warning("Skipping %s: no history in %s", path, repo)
                        continue
                    snapshots = self.reconcile_snapshots(repo, evolution, force_refresh, model)
                    futures.append(
                        executor.submit(self._journey, path, snapshots, context, model)
                    )
                return [future.result() for future in futures]
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    def reconcile_snapshots(
        self,
        repo: str,
        evolution: FileEvolution,
        force_refresh: bool = False,
        model_id: Optional[str] = None,
    ) -> list[DiffSnapshot]:
        """Bring one file's snapshots up to date and return them oldest first.

        At most one diff-source call is made per file, covering every commit
        whose snapshot is absent, stale, or forced to refresh.
        """
        path = evolution.path
        refs = pipeline.chronological_refs(evolution)
        cached = {ref.hash: self._snapshots.get(repo, path, ref.hash) for ref in refs}
        fresh, missing = pipeline.partition_refs(refs, cached, force_refresh)

        fetched: list[DiffSnapshot] = []
        if missing:
            hashes = [ref.hash for ref in missing]
            logger.debug("Fetching %d diff(s) for %s (%d cached)", len(hashes), path, len(fresh))
            diffs = self._diffs.fetch_file_diffs(repo, path, hashes)
            fetched = pipeline.build_snapshots(path, missing, diffs, model_id)
            for snapshot in fetched:
                self._snapshots.put(repo, path, snapshot)
        else:
            logger.debug("All %d snapshot(s) cached for %s", len(fresh), path)

        return pipeline.order_snapshots(fresh + fetched)

    def _journey(
        self, path: str, snapshots: list[DiffSnapshot], context: str, model: str
    ) -> JourneyVerdict:
        logger.debug("Journey oracle: %s (%d snapshot(s))", path, len(snapshots))
        try:
            verdict = self._journey_oracle.analyze(path, snapshots, context, model)
        except ContextWindowExceededError as e:
            if e.file_path == path:
                raise
            raise ContextWindowExceededError(path, reason=e.reason or e.message) from e
        except OracleError as e:
            if e.file_path == path:
                raise
            raise OracleError(
                f"Journey analysis failed for {path}",
                file_path=path,
                reason=e.reason or e.message,
            ) from e
        except Exception as e:
            if is_context_window_error(str(e)):
                raise ContextWindowExceededError(path, reason=str(e)) from e
            raise OracleError(
                f"Journey analysis failed for {path}", file_path=path, reason=str(e)
            ) from e
        verdict.path = path
        return verdict

    def _synthesize(self, repo: str, verdicts: list[JourneyVerdict], model: str) -> Synthesis:
        logger.debug("Synthesis oracle: %d verdict(s)", len(verdicts))
        try:
            return self._synthesis_oracle.synthesize(repo, verdicts, model)
        except OracleError:
            raise
        except Exception as e:
            if is_context_window_error(str(e)):
                raise ContextWindowExceededError(None, reason=str(e), stage="synthesis") from e
            raise OracleError(
                f"Evolution synthesis failed for {repo}", stage="synthesis", reason=str(e)
            ) from e


def _check_cancelled(
    token: Optional[CancellationToken], repo: str, completed: int, total: int
) -> None:
    if token is not None and token.cancelled:
        logger.info("Run for %s cancelled after %d of %d file(s)", repo, completed, total)
        raise AnalysisCancelledError(repo, completed, total)
