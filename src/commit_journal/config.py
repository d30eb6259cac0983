"""Configuration loading and management for Commit Journal.

Configuration sources are merged in priority order:
    1. Defaults (defined in JournalConfig)
    2. Global config (~/.commit-journal.toml)
    3. Project config (./commit-journal.toml)
    4. Explicit config file
    5. Environment variables (JOURNAL_* prefix)
    6. Keyword overrides (typically CLI flags)

Example:
    >>> config = load_config(journey_workers=2)
    >>> config.journey_workers
    2
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigFileNotFoundError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
StoreBackend = Literal["sqlite", "diskcache", "memory"]

_STORE_BACKENDS = ("sqlite", "diskcache", "memory")
_VERBOSITIES = ("quiet", "normal", "verbose")

# Upper bound on concurrent journey oracle calls; the oracle is rate limited.
MAX_JOURNEY_WORKERS = 4


@dataclass(frozen=True)
class JournalConfig:
    """Configuration for ingestion, caching and evolution analysis.

    Attributes:
        Storage:
            data_dir: Directory holding the durable stores and checkouts
            store_backend: ``sqlite`` (default), ``diskcache`` or ``memory``

        Model access:
            model_id: Default model passed to the endpoint
            api_base_url: OpenAI-compatible endpoint
            api_key: Bearer token for the endpoint
            request_timeout: HTTP timeout in seconds
            max_retries: Attempts for transient HTTP failures

        Evolution analysis:
            default_file_count: Files analyzed when none are selected
            context_file_count: Active files named in the journey context
            journey_workers: Concurrent journey oracle calls (1 = sequential)
            journey_max_tokens: Completion budget for one journey
            synthesis_max_tokens: Completion budget for the synthesis
            named_pieces_limit: Named pieces kept from the synthesis
            lessons_limit: Architectural lessons kept from the synthesis
            max_diff_chars: Per-snapshot diff characters sent to the oracle

        Commit journal:
            commit_max_tokens: Completion budget for one commit analysis
            commit_prompt_id: Prompt used when a commit analysis names none

        Git:
            clone_depth: History depth for remote clones (0 = full)
            git_timeout_seconds: Timeout for one git subprocess

        Output control:
            verbosity: Logging verbosity level
    """

    # Storage
    data_dir: str = ".data"
    store_backend: StoreBackend = "sqlite"

    # Model access
    model_id: str = "meta-llama/Llama-3.1-8B-Instruct"
    api_base_url: str = "https://router.huggingface.co/v1"
    api_key: Optional[str] = None
    request_timeout: float = 120.0
    max_retries: int = 3

    # Evolution analysis
    default_file_count: int = 5
    context_file_count: int = 10
    journey_workers: int = 1
    journey_max_tokens: int = 1000
    synthesis_max_tokens: int = 1500
    named_pieces_limit: int = 10
    lessons_limit: int = 8
    max_diff_chars: int = 8000

    # Commit journal
    commit_max_tokens: int = 2048
    commit_prompt_id: str = "default"

    # Git
    clone_depth: int = 100
    git_timeout_seconds: int = 60

    # Output control
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.store_backend not in _STORE_BACKENDS:
            raise ValueError(
                f"store_backend must be one of {', '.join(_STORE_BACKENDS)}"
            )
        if self.verbosity not in _VERBOSITIES:
            raise ValueError(f"verbosity must be one of {', '.join(_VERBOSITIES)}")

        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        if self.default_file_count < 1:
            raise ValueError("default_file_count must be at least 1")
        if self.context_file_count < 0:
            raise ValueError("context_file_count must be non-negative")
        if not 1 <= self.journey_workers <= MAX_JOURNEY_WORKERS:
            raise ValueError(
                f"journey_workers must be between 1 and {MAX_JOURNEY_WORKERS}"
            )
        if min(self.journey_max_tokens, self.synthesis_max_tokens, self.commit_max_tokens) < 1:
            raise ValueError("max token budgets must be at least 1")
        if self.named_pieces_limit < 0 or self.lessons_limit < 0:
            raise ValueError("synthesis limits must be non-negative")
        if self.max_diff_chars < 1:
            raise ValueError("max_diff_chars must be at least 1")
        if not self.commit_prompt_id:
            raise ValueError("commit_prompt_id must not be empty")

        if self.clone_depth < 0:
            raise ValueError("clone_depth must be non-negative")
        if self.git_timeout_seconds < 1:
            raise ValueError("git_timeout_seconds must be at least 1")

    @property
    def data_path(self) -> Path:
        """Data directory as a Path."""
        return Path(self.data_dir)

    @property
    def resolved_api_key(self) -> str:
        """API key, falling back to the Hugging Face token variable."""
        return self.api_key or os.environ.get("HUGGINGFACE_API_TOKEN", "")


def load_config(config_file: Optional[Path] = None, **overrides) -> JournalConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep lower sources.

    Returns:
        Validated JournalConfig instance

    Raises:
        ConfigFileNotFoundError: If ``config_file`` does not exist
        InvalidConfigError: If any source holds an unknown or invalid value
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".commit-journal.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / "commit-journal.toml"
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigFileNotFoundError(config_file)
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return JournalConfig(**merged)
    except (TypeError, ValueError) as e:
        raise InvalidConfigError("merged configuration", str(e))


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from JOURNAL_* environment variables.

    Every JournalConfig field maps to ``JOURNAL_<FIELD>``, e.g.
    ``JOURNAL_MODEL_ID`` or ``JOURNAL_JOURNEY_WORKERS``.
    """
    type_hints = get_type_hints(JournalConfig)
    result: dict[str, Any] = {}

    for f in fields(JournalConfig):
        env_key = f"JOURNAL_{f.name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            result[f.name] = _parse_env_value(env_value, type_hints[f.name])
        except ValueError as e:
            raise InvalidConfigError(env_key, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the field's type."""
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    if type_hint is int:
        return int(value)
    if type_hint is float:
        return float(value)
    # str and Literal aliases
    return value


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file, accepting either top-level keys or a [journal] table."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise InvalidConfigError(str(path), str(e))
    section = data.get("journal")
    return dict(section) if isinstance(section, dict) else data
