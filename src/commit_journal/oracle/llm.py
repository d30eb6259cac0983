"""Language-model backed journey, synthesis and commit oracles."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Optional

from pydantic import ValidationError

from ..evolution.models import (
    ArchitecturalLesson,
    JourneyVerdict,
    NamedPiece,
    Synthesis,
    TokenUsage,
)
from ..exceptions import ContextWindowExceededError, OracleResponseError
from ..journal.models import ArchitecturalCallout, CommitAnalysis
from ..logging_config import get_logger
from .client import ChatClient
from .normalize import extract_json
from .prompts import (
    COMMIT_SYSTEM_PROMPT,
    JOURNEY_SYSTEM_PROMPT,
    SYNTHESIS_SYSTEM_PROMPT,
    CommitPrompt,
    render_commit_prompt,
    render_journey_prompt,
    render_synthesis_prompt,
)
from .schemas import CommitAnalysisPayload, JourneyPayload, SynthesisPayload

if TYPE_CHECKING:
    from ..temporal.models import Commit, DiffSnapshot

logger = get_logger(__name__)


def token_usage(usage: Optional[dict]) -> TokenUsage:
    """Convert an OpenAI-style usage block; missing counts are zero."""
    if not usage:
        return TokenUsage()
    return TokenUsage(
        input_tokens=int(usage.get("prompt_tokens") or 0),
        output_tokens=int(usage.get("completion_tokens") or 0),
    )


class LLMJourneyOracle:
    """Judges one file's history with a single chat completion."""

    def __init__(self, client: ChatClient, max_tokens: int = 1000, max_diff_chars: int = 8000):
        self.client = client
        self.max_tokens = max_tokens
        self.max_diff_chars = max_diff_chars

    def analyze(
        self,
        path: str,
        snapshots: list[DiffSnapshot],
        context: str,
        model_id: str,
    ) -> JourneyVerdict:
        messages = [
            {"role": "system", "content": JOURNEY_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": render_journey_prompt(path, snapshots, context, self.max_diff_chars),
            },
        ]
        try:
            response = self.client.chat(messages, model=model_id, max_tokens=self.max_tokens)
        except ContextWindowExceededError as e:
            raise ContextWindowExceededError(path, reason=e.reason) from e

        content = ChatClient.extract_content(response)
        try:
            payload = JourneyPayload.model_validate(extract_json(content))
        except ValidationError as e:
            raise OracleResponseError(f"Journey payload invalid for {path}: {e}") from e

        tokens = token_usage(ChatClient.extract_usage(response))
        logger.debug("Journey for %s used %d token(s)", path, tokens.total_tokens)
        return JourneyVerdict(
            path=path,
            description=payload.description,
            is_hotspot=payload.is_hotspot,
            # Lessons belong to hotspots, reinforcement to foundations.
            evolutionary_lessons=list(payload.evolutionary_lessons) if payload.is_hotspot else [],
            reinforcement=None if payload.is_hotspot else (payload.reinforcement or None),
            tokens=tokens,
        )


class LLMSynthesisOracle:
    """Folds all per-file verdicts into repository-wide lessons."""

    def __init__(
        self,
        client: ChatClient,
        max_tokens: int = 1500,
        named_pieces_limit: int = 10,
        lessons_limit: int = 8,
    ):
        self.client = client
        self.max_tokens = max_tokens
        self.named_pieces_limit = named_pieces_limit
        self.lessons_limit = lessons_limit

    def synthesize(self, repo: str, verdicts: list[JourneyVerdict], model_id: str) -> Synthesis:
        messages = [
            {"role": "system", "content": SYNTHESIS_SYSTEM_PROMPT},
            {"role": "user", "content": render_synthesis_prompt(repo, verdicts)},
        ]
        response = self.client.chat(messages, model=model_id, max_tokens=self.max_tokens)

        content = ChatClient.extract_content(response)
        try:
            payload = SynthesisPayload.model_validate(extract_json(content))
        except ValidationError as e:
            raise OracleResponseError(f"Synthesis payload invalid: {e}", stage="synthesis") from e

        return Synthesis(
            summary=payload.summary,
            named_pieces=[
                NamedPiece(name=p.name, description=p.description, files=tuple(p.files))
                for p in payload.named_pieces[: self.named_pieces_limit]
            ],
            architectural_lessons=[
                ArchitecturalLesson(
                    title=lesson.title,
                    lesson=lesson.lesson,
                    impact=lesson.impact,
                    affected_files=tuple(lesson.affected_files),
                )
                for lesson in payload.architectural_lessons[: self.lessons_limit]
            ],
            tokens=token_usage(ChatClient.extract_usage(response)),
        )


class LLMCommitOracle:
    """Writes the journal entry for one commit with a single chat completion."""

    def __init__(self, client: ChatClient, max_tokens: int = 2048, max_diff_chars: int = 8000):
        self.client = client
        self.max_tokens = max_tokens
        self.max_diff_chars = max_diff_chars

    def analyze_commit(
        self,
        repo: str,
        commit: Commit,
        diff: str,
        prompt: CommitPrompt,
        model_id: str,
    ) -> CommitAnalysis:
        started = time.monotonic()
        messages = [
            {"role": "system", "content": COMMIT_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": render_commit_prompt(commit, diff, prompt, self.max_diff_chars),
            },
        ]
        try:
            response = self.client.chat(messages, model=model_id, max_tokens=self.max_tokens)
        except ContextWindowExceededError as e:
            raise ContextWindowExceededError(
                commit.hash, reason=e.reason, stage="commit"
            ) from e

        content = ChatClient.extract_content(response)
        try:
            payload = CommitAnalysisPayload.model_validate(extract_json(content))
        except ValidationError as e:
            raise OracleResponseError(
                f"Commit payload invalid for {commit.hash[:7]}: {e}", stage="commit"
            ) from e

        tokens = token_usage(ChatClient.extract_usage(response))
        logger.debug("Analysis of %s used %d token(s)", commit.hash[:7], tokens.total_tokens)
        return CommitAnalysis(
            repo=repo,
            commit_hash=commit.hash,
            model_id=model_id,
            prompt_id=prompt.id,
            summary=payload.summary.strip() or f"Commit {commit.hash[:7]}: {commit.message}",
            key_decisions=list(payload.key_decisions),
            callouts=[
                ArchitecturalCallout(type=c.type, title=c.title, description=c.description)
                for c in payload.architectural_callouts
            ],
            duration_ms=int((time.monotonic() - started) * 1000),
            tokens=tokens,
        )
