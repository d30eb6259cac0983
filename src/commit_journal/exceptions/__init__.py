"""Exception hierarchy for Commit Journal."""

from .analysis import (
    AnalysisCancelledError,
    AnalysisError,
    CommitAnalysisNotFoundError,
    CommitNotFoundError,
    GitCommandError,
    InvalidRepositoryError,
    NoHistoryError,
    PromptNotFoundError,
    RepoNotFetchedError,
)
from .base import JournalError
from .config import ConfigFileNotFoundError, ConfigurationError, InvalidConfigError
from .oracle import (
    ContextWindowExceededError,
    OracleAuthError,
    OracleError,
    OracleRateLimitError,
    OracleResponseError,
    is_context_window_error,
)
from .storage import StorageError

__all__ = [
    "JournalError",
    "AnalysisError",
    "AnalysisCancelledError",
    "GitCommandError",
    "InvalidRepositoryError",
    "NoHistoryError",
    "RepoNotFetchedError",
    "CommitNotFoundError",
    "CommitAnalysisNotFoundError",
    "PromptNotFoundError",
    "OracleError",
    "ContextWindowExceededError",
    "OracleAuthError",
    "OracleRateLimitError",
    "OracleResponseError",
    "is_context_window_error",
    "StorageError",
    "ConfigurationError",
    "ConfigFileNotFoundError",
    "InvalidConfigError",
]
