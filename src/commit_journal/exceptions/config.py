"""Configuration-related exceptions."""

from pathlib import Path

from .base import JournalError


class ConfigurationError(JournalError):
    """Base class for configuration errors."""
    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a config file or value cannot be applied."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            f"Invalid configuration from {source}",
            details={"source": source, "reason": reason},
        )
        self.source = source
        self.reason = reason


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when an explicitly requested config file does not exist."""

    def __init__(self, path: Path):
        super().__init__(f"Config file not found: {path}", details={"path": str(path)})
        self.path = path
