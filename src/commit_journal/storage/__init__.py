"""Durable stores for commits, diff snapshots and analysis results."""

from .backends import DiskCacheStore, MemoryStore, SQLiteStore, open_store
from .stores import CommitAnalysisStore, CommitStore, EvolutionResultStore, SnapshotCache

__all__ = [
    "MemoryStore",
    "SQLiteStore",
    "DiskCacheStore",
    "open_store",
    "CommitStore",
    "SnapshotCache",
    "EvolutionResultStore",
    "CommitAnalysisStore",
]
