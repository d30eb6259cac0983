"""Per-commit journal analysis with a result cache.

An entry is keyed by repository, commit, model and prompt. A cached entry
is returned untouched unless the caller asks to reanalyze, and a new entry
replaces the cached one only once the model call has succeeded.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from ..exceptions import (
    CommitAnalysisNotFoundError,
    CommitNotFoundError,
    ContextWindowExceededError,
    NoHistoryError,
    OracleError,
    PromptNotFoundError,
    RepoNotFetchedError,
    is_context_window_error,
)
from ..logging_config import get_logger
from ..oracle.prompts import COMMIT_PROMPTS, CommitPrompt
from .models import CommitAnalysis, CommitAnalysisOutcome, UsageTotals

if TYPE_CHECKING:
    from ..evolution.models import EvolutionAnalysisResult
    from ..protocols import CommitAnalysisResults, CommitDiffSource, CommitOracle, CommitSource
    from ..temporal.models import Commit

logger = get_logger(__name__)

# Shortest abbreviated hash accepted, as with git itself.
MIN_HASH_PREFIX = 4


def find_commit(repo: str, commits: list[Commit], ref: str) -> Commit:
    """Match a full hash, or a unique abbreviated one, against ``commits``."""
    ref = ref.strip().lower()
    for commit in commits:
        if commit.hash == ref:
            return commit
    if len(ref) < MIN_HASH_PREFIX:
        raise CommitNotFoundError(repo, ref)
    matches = [c for c in commits if c.hash.startswith(ref)]
    if not matches:
        raise CommitNotFoundError(repo, ref)
    if len(matches) > 1:
        raise CommitNotFoundError(repo, ref, reason=f"ambiguous prefix ({len(matches)} commits)")
    return matches[0]


def usage_totals(
    commit_analyses: Iterable[CommitAnalysis],
    evolution_results: Iterable[EvolutionAnalysisResult],
) -> UsageTotals:
    """Sum recorded token usage across every stored analysis."""
    totals = UsageTotals()
    for analysis in commit_analyses:
        totals.commit_analyses = totals.commit_analyses + analysis.tokens
        totals.commit_analysis_count += 1
    for result in evolution_results:
        totals.evolution_analyses = totals.evolution_analyses + result.tokens
        totals.evolution_analysis_count += 1
    return totals


class CommitAnalyzer:
    """Owns the lifecycle of cached commit journal entries.

    Usage::

        analyzer = CommitAnalyzer(
            commits=CommitStore(backend),
            diffs=GitDiffSource(checkout),
            oracle=LLMCommitOracle(client),
            results=CommitAnalysisStore(backend),
            model_id="meta-llama/Llama-3.1-8B-Instruct",
        )
        outcome = analyzer.analyze(repo, "1a2b3c4")
    """

    def __init__(
        self,
        commits: CommitSource,
        diffs: CommitDiffSource,
        oracle: CommitOracle,
        results: CommitAnalysisResults,
        model_id: str,
        default_prompt_id: str = "default",
        prompts: Optional[Mapping[str, CommitPrompt]] = None,
    ) -> None:
        self._commits = commits
        self._diffs = diffs
        self._oracle = oracle
        self._results = results
        self.model_id = model_id
        self.default_prompt_id = default_prompt_id
        self.prompts = dict(prompts if prompts is not None else COMMIT_PROMPTS)
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str, str, str], threading.Lock] = {}

    def prompt(self, prompt_id: Optional[str] = None) -> CommitPrompt:
        key = prompt_id or self.default_prompt_id
        try:
            return self.prompts[key]
        except KeyError:
            raise PromptNotFoundError(key) from None

    def resolve_commit(self, repo: str, ref: str) -> Commit:
        """Find a stored commit by full or abbreviated hash.

        Raises:
            NoHistoryError: The repository has no stored commits.
            CommitNotFoundError: ``ref`` matches no commit, or several.
        """
        try:
            commits = self._commits.list(repo)
        except RepoNotFetchedError as e:
            raise NoHistoryError(repo) from e
        return find_commit(repo, commits, ref)

    def get(
        self,
        repo: str,
        ref: str,
        model_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
    ) -> Optional[CommitAnalysis]:
        """Cached entry for the commit, or None. Never calls the model."""
        commit = self.resolve_commit(repo, ref)
        return self._results.get(
            repo, commit.hash, model_id or self.model_id, prompt_id or self.default_prompt_id
        )

    def analyze(
        self,
        repo: str,
        ref: str,
        model_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
        reanalyze: bool = False,
    ) -> CommitAnalysisOutcome:
        """Return the cached entry, or ask the model and store its answer.

        Raises:
            NoHistoryError: The repository has no stored commits.
            CommitNotFoundError: ``ref`` matches no commit, or several.
            PromptNotFoundError: ``prompt_id`` is not a known prompt.
            ContextWindowExceededError: The commit overflowed the model.
            OracleError: Any other model failure. Nothing is stored.
            StorageError: A store failed; propagated unchanged.
        """
        model = model_id or self.model_id
        prompt = self.prompt(prompt_id)
        commit = self.resolve_commit(repo, ref)
        key = (repo, commit.hash, model, prompt.id)

        with self._lock_for(key):
            if not reanalyze:
                cached = self._results.get(*key)
                if cached is not None:
                    logger.debug("Cached analysis of %s for %s", commit.hash[:7], repo)
                    return CommitAnalysisOutcome(analysis=cached, was_cached=True)

            diff = commit.diff
            if diff is None:
                diff = self._diffs.fetch_commit_diff(repo, commit.hash)
            logger.info("Analyzing commit %s of %s with %s", commit.hash[:7], repo, model)
            analysis = self._ask(repo, commit, diff, prompt, model)
            analysis = replace(
                analysis,
                repo=repo,
                commit_hash=commit.hash,
                model_id=model,
                prompt_id=prompt.id,
                generated_at=datetime.now(timezone.utc).isoformat(),
            )
            self._results.put(analysis)
            return CommitAnalysisOutcome(analysis=analysis, was_cached=False)

    def delete(
        self,
        repo: str,
        ref: str,
        model_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
    ) -> None:
        """Drop a cached entry so the next analyze asks the model again.

        Raises:
            CommitAnalysisNotFoundError: Nothing was stored under the key.
        """
        commit = self.resolve_commit(repo, ref)
        model = model_id or self.model_id
        prompt = prompt_id or self.default_prompt_id
        with self._lock_for((repo, commit.hash, model, prompt)):
            if not self._results.delete(repo, commit.hash, model, prompt):
                raise CommitAnalysisNotFoundError(repo, commit.hash, model, prompt)
        logger.info("Deleted analysis of %s for %s", commit.hash[:7], repo)

    def _lock_for(self, key: tuple[str, str, str, str]) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def _ask(
        self, repo: str, commit: Commit, diff: str, prompt: CommitPrompt, model: str
    ) -> CommitAnalysis:
        try:
            return self._oracle.analyze_commit(repo, commit, diff, prompt, model)
        except OracleError:
            raise
        except Exception as e:
            if is_context_window_error(str(e)):
                raise ContextWindowExceededError(commit.hash, reason=str(e), stage="commit") from e
            raise OracleError(
                f"Commit analysis failed for {commit.hash[:7]}", stage="commit", reason=str(e)
            ) from e
