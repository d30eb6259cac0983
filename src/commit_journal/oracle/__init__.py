"""Model-backed oracles and the chat client they share."""

from .client import ChatClient
from .llm import LLMCommitOracle, LLMJourneyOracle, LLMSynthesisOracle, token_usage
from .normalize import extract_json, normalize_callout_type, normalize_impact
from .prompts import COMMIT_PROMPTS, CommitPrompt
from .schemas import CommitAnalysisPayload, JourneyPayload, SynthesisPayload

__all__ = [
    "ChatClient",
    "LLMJourneyOracle",
    "LLMSynthesisOracle",
    "LLMCommitOracle",
    "token_usage",
    "extract_json",
    "normalize_impact",
    "normalize_callout_type",
    "COMMIT_PROMPTS",
    "CommitPrompt",
    "JourneyPayload",
    "SynthesisPayload",
    "CommitAnalysisPayload",
]
