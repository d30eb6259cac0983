"""Oracle (language model) failures."""

from typing import Optional

from .base import JournalError

# Phrases providers use when a prompt exceeds the model's context window.
CONTEXT_WINDOW_PHRASES = (
    "too many tokens",
    "context length",
    "maximum context length",
    "context window",
    "too long",
    "reduce the length",
    "payload too large",
)


def is_context_window_error(message: str) -> bool:
    """Return True when an oracle error message reads like a context overflow."""
    lowered = message.lower()
    return any(phrase in lowered for phrase in CONTEXT_WINDOW_PHRASES)


class OracleError(JournalError):
    """Raised when the journey or synthesis oracle fails.

    Covers transport failures, malformed responses and schema validation
    failures of the structured output.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        stage: str = "journey",
        reason: Optional[str] = None,
    ):
        details = {"stage": stage}
        if file_path is not None:
            details["file"] = file_path
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.file_path = file_path
        self.stage = stage
        self.reason = reason


class ContextWindowExceededError(OracleError):
    """Raised when a file's history does not fit in the model's context window."""

    def __init__(self, file_path: Optional[str], reason: Optional[str] = None, stage: str = "journey"):
        target = file_path or "synthesis"
        hint = (
            "This commit's diff is too large for the current model."
            if stage == "commit"
            else "This file has too much history for the current model."
        )
        super().__init__(
            f"Context window exceeded for {target}. {hint}",
            file_path=file_path,
            stage=stage,
            reason=reason,
        )


class OracleAuthError(OracleError):
    """Raised on 401/403 from the model endpoint. Never retried."""

    def __init__(self, reason: str):
        super().__init__("Model endpoint rejected the credentials", stage="request", reason=reason)


class OracleRateLimitError(OracleError):
    """Raised on 429 once the client's retries are exhausted."""

    def __init__(self, reason: str, retry_after: Optional[float] = None):
        super().__init__("Model endpoint rate limit hit", stage="request", reason=reason)
        self.retry_after = retry_after


class OracleResponseError(OracleError):
    """Raised when a response has no usable content or fails validation."""

    def __init__(self, reason: str, stage: str = "response"):
        super().__init__("Model returned an unusable response", stage=stage, reason=reason)
