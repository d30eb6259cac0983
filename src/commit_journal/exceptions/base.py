"""Base exception for Commit Journal."""

from typing import Dict, Optional


class JournalError(Exception):
    """Base exception for all Commit Journal errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_json(self) -> dict:
        """Structured payload for route responses and logs."""
        return {
            "error": self.message,
            "type": type(self).__name__,
            "details": dict(self.details),
        }
