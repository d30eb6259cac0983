"""Group a commit stream into per-file change histories."""

from __future__ import annotations

from .models import Commit, CommitRef, FileEvolution, parse_timestamp


def aggregate(commits: list[Commit]) -> list[FileEvolution]:
    """Build one FileEvolution per touched path.

    Commits are consumed in input order. ``last_changed`` only moves forward
    when a commit date is strictly later as a parsed timestamp, so mixed
    offsets and date-only values compare correctly.

    Returns evolutions sorted by ``change_count`` descending; ties keep the
    order in which paths were first seen.
    """
    by_path: dict[str, FileEvolution] = {}

    for commit in commits:
        commit_ts = parse_timestamp(commit.date)
        for change in commit.files:
            evolution = by_path.get(change.path)
            if evolution is None:
                evolution = FileEvolution(path=change.path, last_changed=commit.date)
                by_path[change.path] = evolution
            elif commit_ts > parse_timestamp(evolution.last_changed):
                evolution.last_changed = commit.date

            evolution.change_count += 1
            if commit.author not in evolution.authors:
                evolution.authors.append(commit.author)
            evolution.commits.append(
                CommitRef(
                    hash=commit.hash,
                    date=commit.date,
                    message=commit.message,
                    additions=change.additions,
                    deletions=change.deletions,
                )
            )

    # dicts keep insertion order and sorted() is stable
    return sorted(by_path.values(), key=lambda e: e.change_count, reverse=True)


def find_evolution(evolutions: list[FileEvolution], path: str) -> FileEvolution | None:
    """Return the evolution for ``path`` or None."""
    for evolution in evolutions:
        if evolution.path == path:
            return evolution
    return None
