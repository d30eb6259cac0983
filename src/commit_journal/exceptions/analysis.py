"""Analysis-related exceptions: missing history, cancelled runs."""

from .base import JournalError


class AnalysisError(JournalError):
    """Base class for analysis-related errors."""
    pass


class NoHistoryError(AnalysisError):
    """Raised when a repository has no commits to analyze.

    Not retryable until the repository has been fetched.
    """

    def __init__(self, repo: str):
        super().__init__(
            "No commits found for this repository. Fetch it first.",
            details={"repo": repo},
        )
        self.repo = repo


class RepoNotFetchedError(AnalysisError):
    """Raised by the commit store when a repository was never ingested."""

    def __init__(self, repo: str):
        super().__init__(
            f"Repository has not been fetched: {repo}",
            details={"repo": repo},
        )
        self.repo = repo


class AnalysisCancelledError(AnalysisError):
    """Raised when a run is cancelled between files."""

    def __init__(self, repo: str, completed: int, total: int):
        super().__init__(
            "Evolution analysis cancelled",
            details={"repo": repo, "completed": str(completed), "total": str(total)},
        )
        self.repo = repo
        self.completed = completed
        self.total = total


class InvalidRepositoryError(AnalysisError):
    """Raised when a repository id is neither a local checkout nor a git URL."""

    def __init__(self, repo: str, reason: str):
        super().__init__(
            f"Invalid repository: {repo}",
            details={"repo": repo, "reason": reason},
        )
        self.repo = repo
        self.reason = reason


class GitCommandError(AnalysisError):
    """Raised when a git subprocess fails or cannot be started."""

    def __init__(self, command: str, reason: str):
        super().__init__(
            f"git command failed: {command}",
            details={"command": command, "reason": reason},
        )
        self.command = command
        self.reason = reason


class CommitNotFoundError(AnalysisError):
    """Raised when a commit reference matches no stored commit, or several."""

    def __init__(self, repo: str, ref: str, reason: str = "no such commit"):
        super().__init__(
            f"Commit not found in repository: {ref}",
            details={"repo": repo, "commit": ref, "reason": reason},
        )
        self.repo = repo
        self.ref = ref
        self.reason = reason


class PromptNotFoundError(AnalysisError):
    """Raised when a commit analysis names an unknown prompt."""

    def __init__(self, prompt_id: str):
        super().__init__(
            f"Prompt template not found: {prompt_id}",
            details={"prompt": prompt_id},
        )
        self.prompt_id = prompt_id


class CommitAnalysisNotFoundError(AnalysisError):
    """Raised when deleting a commit analysis that was never stored."""

    def __init__(self, repo: str, commit_hash: str, model_id: str, prompt_id: str):
        super().__init__(
            "Commit analysis not found",
            details={
                "repo": repo,
                "commit": commit_hash,
                "model": model_id,
                "prompt": prompt_id,
            },
        )
        self.repo = repo
        self.commit_hash = commit_hash
        self.model_id = model_id
        self.prompt_id = prompt_id
