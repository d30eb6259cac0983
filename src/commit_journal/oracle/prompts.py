"""Prompt templates for the journey, synthesis and commit oracles."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..evolution.models import JourneyVerdict
    from ..temporal.models import Commit, DiffSnapshot

JOURNEY_SYSTEM_PROMPT = """\
You are an expert repository forensic analyst. You are analyzing the evolution journey of a SINGLE file.
Based on the provided chronological snapshots (commit messages and diffs), extract architectural lessons.
Focus on the technical evolution and design decisions reflected in the code changes.

Respond with valid JSON only:
{
  "description": "Brief summary of what this file is and how it evolved",
  "evolutionary_lessons": ["Lesson 1", "Lesson 2"],
  "reinforcement": "The stable pattern this file consistently reinforces",
  "is_hotspot": true
}
Give evolutionary_lessons only when the file changed significantly and
reinforcement only when it changed very little. Set is_hotspot to true when
the file is a source of frequent architectural churn."""

SYNTHESIS_SYSTEM_PROMPT = """\
You are a strategic software architect. You have analyzed several individual file journeys in a repository.
Synthesize them into a coherent repository-wide evolution analysis and identify
architectural lessons shared across files.

Respond with valid JSON only:
{
  "summary": "High-level summary of the repository's evolution",
  "architectural_lessons": [
    {"title": "...", "lesson": "...", "impact": "high|medium|low", "affected_files": ["..."]}
  ],
  "named_pieces": [
    {"name": "...", "description": "...", "files": ["..."]}
  ]
}"""

TRUNCATION_MARKER = "\n... (diff truncated)"


def truncate_diff(diff: str, max_chars: int) -> str:
    if max_chars <= 0 or len(diff) <= max_chars:
        return diff
    return diff[:max_chars] + TRUNCATION_MARKER


def render_journey_prompt(
    path: str,
    snapshots: list[DiffSnapshot],
    context: str,
    max_diff_chars: int = 8000,
) -> str:
    """User message for one file: world view, then every snapshot oldest first."""
    blocks = [
        f"[{s.timestamp}] {s.message}\nDiff:\n{truncate_diff(s.diff, max_diff_chars)}"
        for s in snapshots
    ]
    history = "\n\n---\n\n".join(blocks) if blocks else "(no recorded changes)"
    return (
        f"File: {path}\n"
        f"Context (global repository context):\n{context}\n\n"
        f"Chronological snapshots of changes:\n{history}\n"
    )


def render_synthesis_prompt(repo: str, verdicts: list[JourneyVerdict]) -> str:
    """User message listing every per-file verdict."""
    blocks = []
    for verdict in verdicts:
        lines = [
            f"File: {verdict.path}",
            f"Is hotspot: {verdict.is_hotspot}",
            f"Description: {verdict.description}",
        ]
        if verdict.evolutionary_lessons:
            lines.append("Lessons: " + "; ".join(verdict.evolutionary_lessons))
        if verdict.reinforcement:
            lines.append(f"Reinforcing: {verdict.reinforcement}")
        blocks.append("\n".join(lines))
    return f"Repo: {repo}\n\nAnalyzed file journeys:\n\n" + "\n---\n".join(blocks) + "\n"


COMMIT_SYSTEM_PROMPT = """\
You are a code analysis expert writing a development journal. Analyze the
commit you are given and respond with valid JSON only:
{
  "summary": "A comprehensive summary of the commit",
  "key_decisions": ["decision 1", "decision 2"],
  "architectural_callouts": [
    {
      "type": "design-decision|pattern-used|performance-insight|learning",
      "title": "Title of insight",
      "description": "Detailed description"
    }
  ]
}"""


@dataclass(frozen=True)
class CommitPrompt:
    """Named instructions for the three parts of a commit journal entry."""

    id: str
    name: str
    summary: str
    decisions: str
    insights: str


COMMIT_PROMPTS: dict[str, CommitPrompt] = {
    "default": CommitPrompt(
        id="default",
        name="Default",
        summary=(
            "Summarize what the commit accomplished: the feature worked on, the problem "
            "solved and the direction of development."
        ),
        decisions=(
            "List the architectural, technical or product decisions the commit makes. "
            "Each decision should be one clear sentence."
        ),
        insights=(
            "Identify insights, design patterns and performance considerations. Categorize "
            "each as design-decision, pattern-used, performance-insight or learning."
        ),
    ),
}


def render_commit_prompt(
    commit: Commit,
    diff: str,
    prompt: CommitPrompt,
    max_diff_chars: int = 8000,
) -> str:
    """User message for one commit: instructions, metadata, then the diff."""
    details = [
        f"Commit: {commit.hash[:7]}",
        f"Author: {commit.author}",
        f"Date: {commit.date}",
        f"Message: {commit.message}",
        f"Files changed: {len(commit.files)}, +{commit.additions} -{commit.deletions}",
    ]
    if diff:
        details.append("Diff:\n" + truncate_diff(diff, max_diff_chars))
    return (
        f"{prompt.summary}\n\n{prompt.decisions}\n\n{prompt.insights}\n\n"
        "Commit details:\n" + "\n".join(details) + "\n"
    )
