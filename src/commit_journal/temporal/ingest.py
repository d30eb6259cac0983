"""Fetch a repository's commits into the commit store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..exceptions import RepoNotFetchedError
from ..logging_config import get_logger
from ..storage.stores import CommitStore
from .git_extractor import GitExtractor, RepositoryCheckout
from .models import Commit

logger = get_logger(__name__)


@dataclass
class IngestResult:
    commits: list[Commit]
    was_cached: bool
    fetched_at: Optional[str] = None


def ingest(
    repo: str,
    store: CommitStore,
    checkout: RepositoryCheckout,
    refresh: bool = False,
    max_commits: int = 0,
) -> IngestResult:
    """Return the repository's commits, extracting them only when needed.

    Stored commits are reused unless ``refresh`` is set. A fresh extraction
    replaces the stored list wholesale.
    """
    if not refresh and store.has(repo):
        try:
            commits = store.list(repo)
        except RepoNotFetchedError:
            # Stored history is empty; extract again.
            logger.debug("Stored history for %s is empty, re-extracting", repo)
        else:
            logger.info("Using %d stored commits for %s", len(commits), repo)
            return IngestResult(commits=commits, was_cached=True, fetched_at=store.fetched_at(repo))

    path = checkout.resolve(repo, refresh=refresh)
    commits = GitExtractor(path, max_commits=max_commits, timeout=checkout.timeout).extract()
    store.put(repo, commits)
    logger.info("Fetched %d commits for %s", len(commits), repo)
    return IngestResult(commits=commits, was_cached=False, fetched_at=store.fetched_at(repo))
