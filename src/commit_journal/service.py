"""Service facade wiring configuration to stores, git and oracles.

Both the HTTP routes and the CLI go through :class:`EvolutionService`
instead of assembling collaborators themselves. It serves the evolution
analysis and the per-commit journal from one backend.

Example:
    >>> from commit_journal import EvolutionService, load_config
    >>> with EvolutionService.from_config(load_config()) as service:
    ...     service.fetch("https://github.com/org/repo")
    ...     result = service.analyze("https://github.com/org/repo")
"""

from __future__ import annotations

from typing import Iterable, Optional

from .config import JournalConfig
from .evolution import (
    AnalysisView,
    CancellationToken,
    EvolutionAnalysisResult,
    EvolutionOrchestrator,
)
from .journal import (
    CommitAnalysis,
    CommitAnalysisOutcome,
    CommitAnalyzer,
    UsageTotals,
    usage_totals,
)
from .logging_config import get_logger
from .oracle import ChatClient, LLMCommitOracle, LLMJourneyOracle, LLMSynthesisOracle
from .protocols import CommitOracle, DiffSource, JourneyOracle, MapStore, SynthesisOracle
from .storage import (
    CommitAnalysisStore,
    CommitStore,
    EvolutionResultStore,
    SnapshotCache,
    open_store,
)
from .temporal import FileEvolution, GitDiffSource, RepositoryCheckout
from .temporal.ingest import IngestResult, ingest

logger = get_logger(__name__)


class EvolutionService:
    """Owns one backend and everything built on top of it."""

    def __init__(
        self,
        config: JournalConfig,
        backend: MapStore,
        checkout: RepositoryCheckout,
        journey_oracle: JourneyOracle,
        synthesis_oracle: SynthesisOracle,
        commit_oracle: CommitOracle,
        diffs: Optional[DiffSource] = None,
        client: Optional[ChatClient] = None,
    ) -> None:
        self.config = config
        self.backend = backend
        self.checkout = checkout
        self.commits = CommitStore(backend)
        self.snapshots = SnapshotCache(backend)
        self.results = EvolutionResultStore(backend)
        self.commit_results = CommitAnalysisStore(backend)
        self._client = client
        diffs = diffs or GitDiffSource(checkout)
        self.orchestrator = EvolutionOrchestrator(
            commits=self.commits,
            snapshots=self.snapshots,
            diffs=diffs,
            journey_oracle=journey_oracle,
            synthesis_oracle=synthesis_oracle,
            results=self.results,
            model_id=config.model_id,
            default_file_count=config.default_file_count,
            context_file_count=config.context_file_count,
            journey_workers=config.journey_workers,
        )
        self.commit_analyzer = CommitAnalyzer(
            commits=self.commits,
            diffs=diffs,
            oracle=commit_oracle,
            results=self.commit_results,
            model_id=config.model_id,
            default_prompt_id=config.commit_prompt_id,
        )

    @classmethod
    def from_config(cls, config: JournalConfig) -> EvolutionService:
        """Build the production wiring: configured backend, git and LLM oracles."""
        backend = open_store(config.store_backend, config.data_path)
        checkout = RepositoryCheckout(
            config.data_path,
            clone_depth=config.clone_depth,
            timeout=config.git_timeout_seconds,
        )
        client = ChatClient(
            api_key=config.resolved_api_key or None,
            base_url=config.api_base_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
        )
        logger.debug(
            "Service ready: backend=%s data_dir=%s model=%s",
            config.store_backend, config.data_path, config.model_id,
        )
        return cls(
            config,
            backend,
            checkout,
            journey_oracle=LLMJourneyOracle(
                client,
                max_tokens=config.journey_max_tokens,
                max_diff_chars=config.max_diff_chars,
            ),
            synthesis_oracle=LLMSynthesisOracle(
                client,
                max_tokens=config.synthesis_max_tokens,
                named_pieces_limit=config.named_pieces_limit,
                lessons_limit=config.lessons_limit,
            ),
            commit_oracle=LLMCommitOracle(
                client,
                max_tokens=config.commit_max_tokens,
                max_diff_chars=config.max_diff_chars,
            ),
            client=client,
        )

    def fetch(self, repo: str, refresh: bool = False, max_commits: int = 0) -> IngestResult:
        """Ingest the repository's commits into the commit store."""
        return ingest(repo, self.commits, self.checkout, refresh=refresh, max_commits=max_commits)

    def file_evolutions(self, repo: str) -> list[FileEvolution]:
        return self.orchestrator.file_evolutions(repo)

    def analysis(self, repo: str) -> AnalysisView:
        """Read path: last persisted analysis plus fresh file evolutions."""
        return self.orchestrator.load(repo)

    def analyze(
        self,
        repo: str,
        selected_files: Optional[Iterable[str]] = None,
        force_refresh: bool = False,
        model_id: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> EvolutionAnalysisResult:
        """Write path: run the full pipeline and persist the result."""
        return self.orchestrator.run(
            repo,
            selected_files=selected_files,
            force_refresh=force_refresh,
            model_id=model_id,
            cancel_token=cancel_token,
        )

    def analyze_commit(
        self,
        repo: str,
        ref: str,
        model_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
        reanalyze: bool = False,
    ) -> CommitAnalysisOutcome:
        """Journal entry for one commit, from the cache when present."""
        return self.commit_analyzer.analyze(
            repo, ref, model_id=model_id, prompt_id=prompt_id, reanalyze=reanalyze
        )

    def commit_analysis(
        self,
        repo: str,
        ref: str,
        model_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
    ) -> Optional[CommitAnalysis]:
        return self.commit_analyzer.get(repo, ref, model_id=model_id, prompt_id=prompt_id)

    def delete_commit_analysis(
        self,
        repo: str,
        ref: str,
        model_id: Optional[str] = None,
        prompt_id: Optional[str] = None,
    ) -> None:
        self.commit_analyzer.delete(repo, ref, model_id=model_id, prompt_id=prompt_id)

    def usage_totals(self) -> UsageTotals:
        """Token usage summed over every stored commit and evolution analysis."""
        return usage_totals(self.commit_results.all(), self.results.all())

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self.backend.close()

    def __enter__(self) -> EvolutionService:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
