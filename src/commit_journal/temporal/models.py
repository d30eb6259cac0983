"""Data models for commit history, file evolutions and diff snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

# Bump when the DiffSnapshot record shape changes; older records are refetched.
SNAPSHOT_SCHEMA_TAG = "snapshot-v2"

FILE_STATUSES = ("added", "modified", "deleted", "renamed")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 date or timestamp into an aware datetime.

    Date-only values and naive timestamps are taken as UTC so that mixed
    inputs compare correctly.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class FileChange:
    path: str
    additions: int = 0
    deletions: int = 0
    status: str = "modified"  # added | modified | deleted | renamed

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "additions": self.additions,
            "deletions": self.deletions,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileChange:
        return cls(
            path=data["path"],
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
            status=data.get("status", "modified"),
        )


@dataclass(frozen=True)
class Commit:
    """One commit as ingested from the repository. Never mutated."""

    hash: str
    author: str
    date: str  # ISO-8601
    message: str
    files: tuple[FileChange, ...] = ()
    email: str = ""
    diff: Optional[str] = None

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "hash": self.hash,
            "author": self.author,
            "email": self.email,
            "date": self.date,
            "message": self.message,
            "files": [f.to_dict() for f in self.files],
            "stats": {
                "files_changed": len(self.files),
                "additions": self.additions,
                "deletions": self.deletions,
            },
        }
        if self.diff is not None:
            data["diff"] = self.diff
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Commit:
        return cls(
            hash=data["hash"],
            author=data.get("author", ""),
            email=data.get("email", ""),
            date=data["date"],
            message=data.get("message", ""),
            files=tuple(FileChange.from_dict(f) for f in data.get("files", [])),
            diff=data.get("diff"),
        )


@dataclass(frozen=True)
class CommitRef:
    """Lightweight reference to a commit as seen from one file."""

    hash: str
    date: str
    message: str
    additions: int = 0
    deletions: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "date": self.date,
            "message": self.message,
            "additions": self.additions,
            "deletions": self.deletions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommitRef:
        return cls(
            hash=data["hash"],
            date=data["date"],
            message=data.get("message", ""),
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
        )


@dataclass
class FileEvolution:
    """Change history of one file, derived from the full commit list.

    ``commits`` keeps the order in which the aggregator saw them, which is
    the order of the input commit stream.
    """

    path: str
    change_count: int = 0
    last_changed: str = ""
    authors: list[str] = field(default_factory=list)
    commits: list[CommitRef] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "change_count": self.change_count,
            "last_changed": self.last_changed,
            "authors": list(self.authors),
            "commits": [c.to_dict() for c in self.commits],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileEvolution:
        return cls(
            path=data["path"],
            change_count=int(data.get("change_count", 0)),
            last_changed=data.get("last_changed", ""),
            authors=list(data.get("authors", [])),
            commits=[CommitRef.from_dict(c) for c in data.get("commits", [])],
        )


@dataclass(frozen=True)
class DiffSnapshot:
    """Cached file-scoped diff of one commit."""

    file_path: str
    commit_hash: str
    message: str
    diff: str
    timestamp: str  # ISO-8601, the commit date
    schema_tag: Optional[str] = SNAPSHOT_SCHEMA_TAG
    model_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "commit_hash": self.commit_hash,
            "message": self.message,
            "diff": self.diff,
            "timestamp": self.timestamp,
            "schema_tag": self.schema_tag,
            "model_id": self.model_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiffSnapshot:
        # Legacy records carried "summary" and no "message"; they load tagless.
        return cls(
            file_path=data.get("file_path", data.get("filePath", "")),
            commit_hash=data.get("commit_hash", data.get("commitHash", "")),
            message=data.get("message", ""),
            diff=data.get("diff", ""),
            timestamp=data.get("timestamp", ""),
            schema_tag=data.get("schema_tag"),
            model_id=data.get("model_id", data.get("modelId")),
        )
