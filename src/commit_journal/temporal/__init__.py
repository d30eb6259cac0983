"""Temporal analysis: commit ingestion, file evolutions and diff snapshots."""

from .evolution import aggregate, find_evolution
from .git_extractor import GitDiffSource, GitExtractor, RepositoryCheckout
from .models import (
    SNAPSHOT_SCHEMA_TAG,
    Commit,
    CommitRef,
    DiffSnapshot,
    FileChange,
    FileEvolution,
    parse_timestamp,
)

__all__ = [
    "Commit",
    "CommitRef",
    "DiffSnapshot",
    "FileChange",
    "FileEvolution",
    "SNAPSHOT_SCHEMA_TAG",
    "parse_timestamp",
    "aggregate",
    "find_evolution",
    "GitExtractor",
    "GitDiffSource",
    "RepositoryCheckout",
]
