"""Tests for the language-model backed journey, synthesis and commit oracles."""

import json

import httpx
import pytest

from commit_journal.evolution import JourneyVerdict, TokenUsage
from commit_journal.exceptions import ContextWindowExceededError, OracleResponseError
from commit_journal.oracle import (
    COMMIT_PROMPTS,
    ChatClient,
    LLMCommitOracle,
    LLMJourneyOracle,
    LLMSynthesisOracle,
    token_usage,
)
from commit_journal.oracle.prompts import TRUNCATION_MARKER, render_journey_prompt
from commit_journal.temporal import Commit, DiffSnapshot, FileChange

REPO = "https://github.com/acme/widgets"


def _snapshots():
    return [
        DiffSnapshot("x.py", "c1", "add x", "+one", "2024-01-01"),
        DiffSnapshot("x.py", "c2", "grow x", "+two", "2024-01-02"),
    ]


class ScriptedEndpoint:
    """Returns one canned completion and records the request bodies."""

    def __init__(self, content, usage=None, status=200):
        self.content = content
        self.usage = usage
        self.status = status
        self.requests = []

    def __call__(self, request):
        self.requests.append(json.loads(request.content))
        if self.status != 200:
            return httpx.Response(self.status, text=self.content)
        body = {"choices": [{"message": {"content": self.content}}]}
        if self.usage is not None:
            body["usage"] = self.usage
        return httpx.Response(200, json=body)

    def client(self):
        return ChatClient(
            api_key="hf_test",
            base_url="https://llm.test/v1",
            max_retries=1,
            transport=httpx.MockTransport(self),
        )


class TestTokenUsage:
    def test_missing_usage(self):
        assert token_usage(None) == TokenUsage()

    def test_partial_usage(self):
        assert token_usage({"prompt_tokens": 9}) == TokenUsage(9, 0)


class TestJourneyPrompt:
    def test_snapshots_in_order_with_context(self):
        prompt = render_journey_prompt("x.py", _snapshots(), "Active files in this repo: x.py")
        assert prompt.startswith("File: x.py\n")
        assert "Active files in this repo: x.py" in prompt
        assert prompt.index("add x") < prompt.index("grow x")

    def test_long_diffs_truncated(self):
        snapshot = DiffSnapshot("x.py", "c1", "big", "+" * 50, "2024-01-01")
        prompt = render_journey_prompt("x.py", [snapshot], "ctx", max_diff_chars=10)
        assert "+" * 11 not in prompt
        assert TRUNCATION_MARKER.strip() in prompt


class TestLLMJourneyOracle:
    def test_parses_verdict(self):
        endpoint = ScriptedEndpoint(
            'Sure!\n{"description": "The router", "isHotspot": true, '
            '"evolutionaryLessons": ["split handlers"]}',
            usage={"prompt_tokens": 300, "completion_tokens": 40},
        )
        oracle = LLMJourneyOracle(endpoint.client(), max_tokens=1000)

        verdict = oracle.analyze("x.py", _snapshots(), "ctx", "m")

        assert isinstance(verdict, JourneyVerdict)
        assert verdict.path == "x.py"
        assert verdict.is_hotspot is True
        assert verdict.evolutionary_lessons == ["split handlers"]
        assert verdict.tokens == TokenUsage(300, 40)
        request = endpoint.requests[0]
        assert request["model"] == "m"
        assert request["max_tokens"] == 1000
        assert request["messages"][0]["role"] == "system"
        assert "x.py" in request["messages"][1]["content"]

    def test_empty_reply_uses_defaults(self):
        oracle = LLMJourneyOracle(ScriptedEndpoint("{}").client())
        verdict = oracle.analyze("x.py", _snapshots(), "ctx", "m")
        assert verdict.description == "Core file component"
        assert verdict.is_hotspot is False
        assert verdict.reinforcement is None
        assert verdict.tokens == TokenUsage()

    def test_foundation_keeps_only_reinforcement(self):
        endpoint = ScriptedEndpoint(
            '{"description": "settings", "isHotspot": false, '
            '"evolutionaryLessons": ["should not survive"], "reinforcement": "stable keys"}'
        )
        verdict = LLMJourneyOracle(endpoint.client()).analyze("y.py", _snapshots(), "ctx", "m")
        assert verdict.evolutionary_lessons == []
        assert verdict.reinforcement == "stable keys"

    def test_hotspot_keeps_only_lessons(self):
        endpoint = ScriptedEndpoint(
            '{"description": "router", "isHotspot": true, '
            '"evolutionaryLessons": ["split handlers"], "reinforcement": "should not survive"}'
        )
        verdict = LLMJourneyOracle(endpoint.client()).analyze("x.py", _snapshots(), "ctx", "m")
        assert verdict.evolutionary_lessons == ["split handlers"]
        assert verdict.reinforcement is None

    def test_unparseable_reply(self):
        oracle = LLMJourneyOracle(ScriptedEndpoint("I cannot help with that").client())
        with pytest.raises(OracleResponseError):
            oracle.analyze("x.py", _snapshots(), "ctx", "m")

    def test_schema_violation(self):
        oracle = LLMJourneyOracle(ScriptedEndpoint('{"evolutionaryLessons": 5}').client())
        with pytest.raises(OracleResponseError):
            oracle.analyze("x.py", _snapshots(), "ctx", "m")

    def test_context_overflow_names_file(self):
        endpoint = ScriptedEndpoint("Input is too long for requested model", status=400)
        oracle = LLMJourneyOracle(endpoint.client())
        with pytest.raises(ContextWindowExceededError) as exc_info:
            oracle.analyze("x.py", _snapshots(), "ctx", "m")
        assert exc_info.value.file_path == "x.py"


class TestLLMSynthesisOracle:
    def _verdicts(self):
        return [
            JourneyVerdict(path="x.py", description="router", is_hotspot=True,
                           evolutionary_lessons=["split"]),
            JourneyVerdict(path="y.py", description="config", is_hotspot=False,
                           reinforcement="stable settings"),
        ]

    def test_parses_and_trims(self):
        reply = {
            "summary": "From script to service",
            "architecturalLessons": [
                {"title": f"L{i}", "lesson": "x", "impact": "Major"} for i in range(12)
            ],
            "namedPieces": [{"name": f"P{i}", "description": "d", "files": ["x.py"]} for i in range(15)],
        }
        endpoint = ScriptedEndpoint(
            "```json\n" + json.dumps(reply) + "\n```",
            usage={"prompt_tokens": 500, "completion_tokens": 120},
        )
        oracle = LLMSynthesisOracle(endpoint.client(), named_pieces_limit=10, lessons_limit=8)

        synthesis = oracle.synthesize("repo", self._verdicts(), "m")

        assert synthesis.summary == "From script to service"
        assert len(synthesis.architectural_lessons) == 8
        assert len(synthesis.named_pieces) == 10
        assert synthesis.architectural_lessons[0].impact == "high"
        assert synthesis.named_pieces[0].files == ("x.py",)
        assert synthesis.tokens == TokenUsage(500, 120)
        user_prompt = endpoint.requests[0]["messages"][1]["content"]
        assert "Reinforcing: stable settings" in user_prompt
        assert "Lessons: split" in user_prompt
        assert endpoint.requests[0]["max_tokens"] == 1500

    def test_malformed_reply(self):
        oracle = LLMSynthesisOracle(ScriptedEndpoint("{not json}").client())
        with pytest.raises(OracleResponseError) as exc_info:
            oracle.synthesize("repo", self._verdicts(), "m")
        assert exc_info.value.stage in ("response", "synthesis")


class TestLLMCommitOracle:
    @pytest.fixture
    def commit(self):
        return Commit(
            hash="1a2b3c4d5e6f",
            author="alice",
            date="2024-03-01T09:00:00Z",
            message="cache results per key",
            files=(FileChange("x.py", additions=12, deletions=3),),
        )

    def test_parses_entry(self, commit):
        endpoint = ScriptedEndpoint(
            'Here you go:\n{"aiSummary": "Adds a result cache", '
            '"keyDecisions": ["key on model and prompt"], '
            '"architecturalCallouts": [{"type": "Performance", "title": "Cache", '
            '"description": "avoids repeat calls"}]}',
            usage={"prompt_tokens": 900, "completion_tokens": 80},
        )
        oracle = LLMCommitOracle(endpoint.client(), max_tokens=2048)

        analysis = oracle.analyze_commit(REPO, commit, "+cache = {}", COMMIT_PROMPTS["default"], "m")

        assert analysis.commit_hash == commit.hash
        assert analysis.prompt_id == "default"
        assert analysis.summary == "Adds a result cache"
        assert analysis.key_decisions == ["key on model and prompt"]
        assert analysis.callouts[0].type == "performance-insight"
        assert analysis.tokens == TokenUsage(900, 80)
        request = endpoint.requests[0]
        assert request["max_tokens"] == 2048
        user_prompt = request["messages"][1]["content"]
        assert "Commit: 1a2b3c4" in user_prompt
        assert "Files changed: 1, +12 -3" in user_prompt
        assert "+cache = {}" in user_prompt

    def test_empty_summary_falls_back_to_message(self, commit):
        oracle = LLMCommitOracle(ScriptedEndpoint("{}").client())
        analysis = oracle.analyze_commit(REPO, commit, "", COMMIT_PROMPTS["default"], "m")
        assert analysis.summary == "Commit 1a2b3c4: cache results per key"
        assert analysis.key_decisions == []
        assert analysis.callouts == []

    def test_no_diff_section_without_diff(self, commit):
        endpoint = ScriptedEndpoint('{"summary": "s"}')
        LLMCommitOracle(endpoint.client()).analyze_commit(
            REPO, commit, "", COMMIT_PROMPTS["default"], "m"
        )
        assert "Diff:" not in endpoint.requests[0]["messages"][1]["content"]

    def test_long_diff_truncated(self, commit):
        endpoint = ScriptedEndpoint('{"summary": "s"}')
        oracle = LLMCommitOracle(endpoint.client(), max_diff_chars=10)
        oracle.analyze_commit(REPO, commit, "+" * 50, COMMIT_PROMPTS["default"], "m")
        user_prompt = endpoint.requests[0]["messages"][1]["content"]
        assert "+" * 11 not in user_prompt
        assert TRUNCATION_MARKER.strip() in user_prompt

    def test_unparseable_reply(self, commit):
        oracle = LLMCommitOracle(ScriptedEndpoint("no idea").client())
        with pytest.raises(OracleResponseError):
            oracle.analyze_commit(REPO, commit, "", COMMIT_PROMPTS["default"], "m")

    def test_context_overflow_names_commit(self, commit):
        endpoint = ScriptedEndpoint("Input is too long for requested model", status=400)
        oracle = LLMCommitOracle(endpoint.client())
        with pytest.raises(ContextWindowExceededError) as exc_info:
            oracle.analyze_commit(REPO, commit, "+x", COMMIT_PROMPTS["default"], "m")
        assert exc_info.value.stage == "commit"
        assert exc_info.value.file_path == commit.hash
