"""Extract commits and file-scoped diffs from git via subprocess."""

from __future__ import annotations

import hashlib
import re
import subprocess
from pathlib import Path
from typing import Optional

from ..exceptions import GitCommandError, InvalidRepositoryError
from ..logging_config import get_logger
from .models import Commit, FileChange

logger = get_logger(__name__)

_REMOTE_RE = re.compile(r"^(https?://|git://|ssh://|file://|git@)")

# Field and record separators that never appear in git metadata.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"

_STATUS_NAMES = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
    "R": "renamed",
}


def _run_git(args: list[str], timeout: int) -> subprocess.CompletedProcess:
    """Run git, converting launch failures and timeouts to GitCommandError."""
    command = " ".join(["git", *args[:3]])
    try:
        return subprocess.run(
            ["git", *args],
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise GitCommandError(command, f"git executable not found: {e}")
    except subprocess.TimeoutExpired:
        raise GitCommandError(command, f"timed out after {timeout}s")


def is_remote(repo: str) -> bool:
    """True when ``repo`` looks like a clonable URL rather than a local path."""
    return bool(_REMOTE_RE.match(repo))


class RepositoryCheckout:
    """Resolve a repository id to a local working tree.

    Local directories are used in place. Remote URLs are shallow-cloned into
    ``<data_dir>/checkouts/<key>`` once and fetched again on refresh.
    """

    def __init__(self, data_dir: str | Path, clone_depth: int = 100, timeout: int = 60):
        self.checkouts_dir = Path(data_dir) / "checkouts"
        self.clone_depth = clone_depth
        self.timeout = timeout

    def checkout_path(self, repo: str) -> Path:
        key = hashlib.sha256(repo.encode()).hexdigest()[:16]
        return self.checkouts_dir / key

    def resolve(self, repo: str, refresh: bool = False) -> Path:
        """Return a local path holding the repository's history."""
        if not is_remote(repo):
            path = Path(repo).expanduser()
            if not path.is_dir():
                raise InvalidRepositoryError(repo, "not a directory or git URL")
            return path.resolve()

        target = self.checkout_path(repo)
        depth = [f"--depth={self.clone_depth}"] if self.clone_depth else []

        if target.exists():
            if refresh:
                logger.info("Fetching %s", repo)
                result = _run_git(
                    ["-C", str(target), "fetch", *depth, "origin", "HEAD"], self.timeout
                )
                if result.returncode != 0:
                    raise GitCommandError("git fetch", result.stderr.strip())
                result = _run_git(
                    ["-C", str(target), "reset", "--hard", "FETCH_HEAD"], self.timeout
                )
                if result.returncode != 0:
                    raise GitCommandError("git reset", result.stderr.strip())
            return target

        self.checkouts_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Cloning %s into %s", repo, target)
        result = _run_git(["clone", *depth, repo, str(target)], self.timeout)
        if result.returncode != 0:
            raise GitCommandError("git clone", result.stderr.strip())
        return target


class GitExtractor:
    """Parse ``git log`` with raw and numstat output into Commit records."""

    def __init__(self, repo_path: str | Path, max_commits: int = 0, timeout: int = 60):
        self.repo_path = str(Path(repo_path).resolve())
        self.max_commits = max_commits
        self.timeout = timeout

    def extract(self) -> list[Commit]:
        """Return commits oldest first. Empty list for an empty repository."""
        if not self._is_git_repo():
            raise InvalidRepositoryError(self.repo_path, "not a git repository")

        fmt = _RECORD_SEP + _FIELD_SEP.join(["%H", "%an", "%ae", "%aI", "%s"])
        # Unquoted paths so they match what git show accepts as a pathspec.
        args = [
            "-c",
            "core.quotePath=false",
            "-C",
            self.repo_path,
            "log",
            f"--format={fmt}",
            "--raw",
            "--numstat",
            "--no-renames",
            "--no-color",
        ]
        if self.max_commits:
            args.append(f"-n{self.max_commits}")

        result = _run_git(args, self.timeout)
        if result.returncode != 0:
            stderr = result.stderr.strip()
            # A repository without commits has no HEAD to log.
            if "does not have any commits" in stderr:
                return []
            raise GitCommandError("git log", stderr)

        commits = self._parse_log(result.stdout)
        commits.reverse()
        logger.debug("Extracted %d commits from %s", len(commits), self.repo_path)
        return commits

    def _is_git_repo(self) -> bool:
        result = _run_git(["-C", self.repo_path, "rev-parse", "--git-dir"], self.timeout)
        return result.returncode == 0

    def _parse_log(self, raw: str) -> list[Commit]:
        """Parse log output, newest first as git emits it.

        Each record starts with the record separator followed by the header
        fields, then ``:``-prefixed raw lines carrying the change status and
        tab-separated numstat lines carrying line counts.
        """
        commits = []
        for record in raw.split(_RECORD_SEP):
            if not record.strip():
                continue
            header, _, body = record.partition("\n")
            parts = header.split(_FIELD_SEP)
            if len(parts) < 5:
                logger.debug("Skipping malformed log header: %r", header[:80])
                continue
            sha, author, email, date, subject = parts[:5]

            statuses: dict[str, str] = {}
            changes: list[FileChange] = []
            for line in body.splitlines():
                if not line:
                    continue
                if line.startswith(":"):
                    meta, _, path = line.partition("\t")
                    code = meta.split()[-1][:1]
                    statuses[path] = _STATUS_NAMES.get(code, "modified")
                    continue
                fields = line.split("\t", 2)
                if len(fields) != 3:
                    continue
                added, deleted, path = fields
                changes.append(
                    FileChange(
                        path=path,
                        # binary files report "-"
                        additions=int(added) if added.isdigit() else 0,
                        deletions=int(deleted) if deleted.isdigit() else 0,
                        status=statuses.get(path, "modified"),
                    )
                )

            commits.append(
                Commit(
                    hash=sha,
                    author=author,
                    email=email,
                    date=date,
                    message=subject,
                    files=tuple(changes),
                )
            )
        return commits


class GitDiffSource:
    """Fetch file-scoped and whole-commit diffs from a checkout."""

    def __init__(self, checkout: RepositoryCheckout, timeout: Optional[int] = None):
        self.checkout = checkout
        self.timeout = timeout or checkout.timeout

    def fetch_file_diffs(self, repo: str, path: str, hashes: list[str]) -> dict[str, str]:
        """Return ``{hash: diff}`` for every requested hash.

        Commits missing from a shallow checkout map to an empty diff.
        """
        root = self.checkout.resolve(repo)
        diffs: dict[str, str] = {}
        for sha in hashes:
            result = _run_git(
                ["-C", str(root), "show", "--format=", "--no-color", sha, "--", path],
                self.timeout,
            )
            if result.returncode != 0:
                logger.warning(
                    "No diff for %s at %s: %s", path, sha[:7], result.stderr.strip()
                )
                diffs[sha] = ""
            else:
                diffs[sha] = result.stdout
        logger.debug("Fetched %d diffs for %s", len(diffs), path)
        return diffs

    def fetch_commit_diff(self, repo: str, commit_hash: str) -> str:
        """Whole diff of one commit; "" when the commit is not in the checkout."""
        root = self.checkout.resolve(repo)
        result = _run_git(
            ["-C", str(root), "show", "--format=", "--no-color", commit_hash],
            self.timeout,
        )
        if result.returncode != 0:
            logger.warning("No diff for %s: %s", commit_hash[:7], result.stderr.strip())
            return ""
        return result.stdout
