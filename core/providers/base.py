"""LLM Provider interface: abstract base for all LLM backends.

Every provider must implement ``generate_json`` and ``stream_text``.
The business finder calls providers via dependency injection,
making it trivial to swap Gemini ↔ Claude ↔ OpenAI.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Union


@dataclass(frozen=True)
class LLMConfig:
    """Immutable configuration for a single LLM call."""

    model: str = ""
    temperature: float = 0.2
    max_tokens: int = 16384
    timeout_seconds: int = 180
    retry_attempts: int = 2
    retry_base_delay: float = 2.0
    use_search_grounding: bool = False


@dataclass
class LLMResponse:
    """Standardised response from any LLM provider."""

    raw_text: str
    parsed_json: Optional[Union[Dict[str, Any], List[Any]]] = None
    model: str = ""
    provider: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0
    stop_reason: str = ""
    prompt_hash: str = ""
    result_hash: str = ""


class LLMProvider(abc.ABC):
    """Abstract base class for LLM providers.

    Subclasses must implement:
    - ``generate_json``: send prompt, receive parsed JSON
    - ``stream_text``: send prompt, yield text chunks
    """

    provider_name: str = "base"
    default_model: str = ""

    @abc.abstractmethod
    def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
        schema_hint: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        """Send a prompt and return a parsed JSON response.

        Parameters
        ----------
        system_prompt : str
            System-level instruction (persona, rules, output format).
        user_prompt : str
            User-level content (area, category, result limit).
        config : LLMConfig, optional
            Override default config for this call.
        schema_hint : dict, optional
            Expected JSON schema (for providers that support structured output).

        Returns
        -------
        LLMResponse
            Contains ``parsed_json`` and usage metadata.

        Raises
        ------
        LLMError
            On API failure, timeout, or invalid JSON after all retries.
        """
        ...

    @abc.abstractmethod
    def stream_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
    ) -> Iterator[str]:
        """Send a prompt and yield text chunks as they arrive.

        Yields
        ------
        str
            Individual text chunks. Chunk boundaries are arbitrary and
            may fall in the middle of a line.
        """
        ...

    def _default_config(self, config: Optional[LLMConfig]) -> LLMConfig:
        return config or LLMConfig()

    def _resolve_model(self, config: LLMConfig) -> str:
        return config.model or self.default_model


class LLMError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(self, message: str, provider: str = "", retryable: bool = False):
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable


class LLMTimeoutError(LLMError):
    """LLM call exceeded timeout."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message, provider=provider, retryable=True)


class LLMJSONError(LLMError):
    """LLM returned invalid JSON that could not be repaired."""

    def __init__(self, message: str, raw_text: str = "", provider: str = ""):
        super().__init__(message, provider=provider, retryable=True)
        self.raw_text = raw_text


class LLMQuotaError(LLMError):
    """The provider rejected the call because a rate limit / quota was hit.

    The message always mentions "kota" so the UI can attach the
    rate-limit help links.
    """

    def __init__(self, message: str = "", provider: str = ""):
        super().__init__(
            message or "API kota limitine ulaşıldı. Lütfen bir süre sonra tekrar deneyin.",
            provider=provider,
            retryable=False,
        )


def is_quota_error(exc: BaseException) -> bool:
    """Heuristic check for HTTP 429 / RESOURCE_EXHAUSTED style SDK errors."""
    code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
    if code == 429:
        return True
    text = str(exc).lower()
    return any(
        marker in text
        for marker in ("429", "resource_exhausted", "quota", "rate limit", "rate_limit")
    )


def is_timeout_error(exc: BaseException) -> bool:
    """SDK/httpx timeouts and gRPC-style DEADLINE_EXCEEDED errors."""
    if isinstance(exc, TimeoutError):
        return True
    if "timeout" in type(exc).__name__.lower():
        return True
    text = str(exc).lower()
    return "timed out" in text or "deadline_exceeded" in text
