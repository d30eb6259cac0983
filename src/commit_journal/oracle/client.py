"""OpenAI-compatible chat completion client over httpx with tenacity retry.

Works against any endpoint speaking ``POST /chat/completions``: the
Hugging Face router (default), OpenAI, or a local LM Studio server.
Retries belong here, at the transport, never in the analysis core.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx
import tenacity

from ..exceptions import (
    ContextWindowExceededError,
    OracleAuthError,
    OracleError,
    OracleRateLimitError,
    OracleResponseError,
    is_context_window_error,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://router.huggingface.co/v1"

_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    """Retry 429, 5xx and connection failures; never auth or client errors."""
    if isinstance(exc, OracleAuthError):
        return False
    if isinstance(exc, OracleRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _RETRYABLE_STATUS_CODES
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


class ChatClient:
    """Sync httpx client for OpenAI-compatible chat completions.

    Usage::

        with ChatClient(api_key="hf_...") as client:
            response = client.chat([{"role": "user", "content": "Hello"}], model="...")
            text = ChatClient.extract_content(response)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 120.0,
        max_retries: int = 3,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Bearer token. Falls back to JOURNAL_API_KEY, then
                HUGGINGFACE_API_TOKEN. Local endpoints may need none.
            base_url: API base URL. Falls back to JOURNAL_API_BASE_URL, then
                the Hugging Face router.
            timeout: Request timeout in seconds.
            max_retries: Attempts for retryable errors.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self._api_key = (
            api_key
            or os.environ.get("JOURNAL_API_KEY")
            or os.environ.get("HUGGINGFACE_API_TOKEN", "")
        )
        if not self._api_key:
            logger.warning("No API key configured - requests may fail")
        self._base_url = (
            base_url or os.environ.get("JOURNAL_API_BASE_URL", DEFAULT_BASE_URL)
        ).rstrip("/")
        self._max_retries = max_retries
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        self._client = httpx.Client(timeout=timeout, headers=headers, transport=transport)

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> dict:
        """Send a chat completion request, retrying transient failures.

        Raises:
            OracleAuthError: On 401/403 (no retry).
            OracleRateLimitError: On 429 after all retries.
            ContextWindowExceededError: When the endpoint reports the prompt
                is too long. The file path is attached by the caller.
            OracleResponseError: On a response without ``choices``.
            OracleError: On any other HTTP or transport failure.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=30)
                + tenacity.wait_random(0, 2)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retryer(
                self._do_chat,
                messages,
                model=model,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except OracleError:
            raise
        except httpx.HTTPStatusError as e:
            body = e.response.text
            if e.response.status_code == 413 or is_context_window_error(body):
                raise ContextWindowExceededError(None, reason=body[:500], stage="request") from e
            raise OracleError(
                f"Model endpoint returned HTTP {e.response.status_code}",
                stage="request",
                reason=body[:500],
            ) from e
        except httpx.HTTPError as e:
            raise OracleError("Model endpoint unreachable", stage="request", reason=str(e)) from e

    def _do_chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any,
    ) -> dict:
        """Execute a single chat completion request (no retry)."""
        payload: dict[str, Any] = {"model": model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(kwargs)

        response = self._client.post(f"{self._base_url}/chat/completions", json=payload)

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise OracleAuthError(f"HTTP {response.status_code} - {response.text[:500]}")

        if response.status_code == 429:
            retry_after_raw = response.headers.get("Retry-After")
            retry_after: Optional[float] = None
            if retry_after_raw is not None:
                try:
                    retry_after = float(retry_after_raw)
                except ValueError:
                    retry_after = None
            raise OracleRateLimitError(
                f"HTTP 429 - {response.text[:500]}", retry_after=retry_after
            )

        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise OracleResponseError(f"Response is not JSON: {e}") from e
        if "choices" not in data:
            raise OracleResponseError(f"Missing 'choices' key. Response: {str(data)[:500]}")
        return data

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> ChatClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @staticmethod
    def extract_content(response: dict) -> str:
        """The assistant message text of the first choice."""
        try:
            return response["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise OracleResponseError(f"Cannot extract content: {exc}") from exc

    @staticmethod
    def extract_usage(response: dict) -> Optional[dict]:
        """Usage dict with prompt/completion token counts, if reported."""
        return response.get("usage")
