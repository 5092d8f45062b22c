"""Anthropic Claude provider implementation.

Same interface as the Gemini provider; Claude has no built-in search
grounding, so ``use_search_grounding`` is ignored here.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from typing import Any, Dict, Iterator, Optional

from .base import (
    LLMConfig,
    LLMError,
    LLMJSONError,
    LLMProvider,
    LLMQuotaError,
    LLMResponse,
    LLMTimeoutError,
    is_quota_error,
    is_timeout_error,
)
from .guards import JSONOutputGuard

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """LLM Provider backed by Anthropic Claude API."""

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "claude-sonnet-4-5-20250929",
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self.default_model = default_model
        self.base_url = base_url
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMError(
                    "ANTHROPIC_API_KEY ayarlanmamış.",
                    provider=self.provider_name,
                )
            try:
                from anthropic import Anthropic
            except ImportError:
                raise LLMError(
                    "anthropic paketi gerekli: pip install anthropic",
                    provider=self.provider_name,
                )
            kwargs: Dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = Anthropic(**kwargs)
        return self._client

    def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
        schema_hint: Optional[Dict[str, Any]] = None,
    ) -> LLMResponse:
        cfg = self._default_config(config)
        model = self._resolve_model(cfg)

        full_system = system_prompt + JSONOutputGuard.system_prompt_suffix()
        prompt_hash = hashlib.sha256(
            (full_system + user_prompt).encode()
        ).hexdigest()[:16]

        last_error: Optional[Exception] = None
        for attempt in range(cfg.retry_attempts + 1):
            if attempt > 0:
                delay = cfg.retry_base_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Retry %d/%d after %.1fs delay",
                    attempt, cfg.retry_attempts, delay,
                )
                time.sleep(delay)

            t0 = time.time()
            try:
                with self.client.messages.stream(
                    model=model,
                    max_tokens=cfg.max_tokens,
                    temperature=cfg.temperature,
                    system=full_system,
                    messages=[{"role": "user", "content": user_prompt}],
                    timeout=cfg.timeout_seconds,
                ) as stream:
                    response = stream.get_final_message()

                latency_ms = int((time.time() - t0) * 1000)
                raw_text = response.content[0].text
                stop_reason = getattr(response, "stop_reason", "unknown")

                usage = getattr(response, "usage", None)
                input_tokens = getattr(usage, "input_tokens", 0) if usage else 0
                output_tokens = getattr(usage, "output_tokens", 0) if usage else 0

                if JSONOutputGuard.strip_fences(raw_text).startswith("["):
                    parsed: Any = JSONOutputGuard.enforce_array(raw_text, stop_reason=stop_reason)
                else:
                    parsed = JSONOutputGuard.enforce(raw_text, stop_reason=stop_reason)

                result_hash = hashlib.sha256(
                    json.dumps(parsed, sort_keys=True).encode()
                ).hexdigest()[:16]

                return LLMResponse(
                    raw_text=raw_text,
                    parsed_json=parsed,
                    model=model,
                    provider=self.provider_name,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    latency_ms=latency_ms,
                    stop_reason=stop_reason,
                    prompt_hash=prompt_hash,
                    result_hash=result_hash,
                )

            except LLMJSONError:
                raise  # Same prompt = same output, no point retrying
            except LLMError:
                raise
            except Exception as e:
                if is_quota_error(e):
                    raise LLMQuotaError(
                        f"Anthropic API kota limitine ulaşıldı: {e}",
                        provider=self.provider_name,
                    )
                if is_timeout_error(e):
                    last_error = LLMTimeoutError(
                        f"Anthropic API zaman aşımına uğradı: {e}",
                        provider=self.provider_name,
                    )
                else:
                    last_error = e
                logger.error("Anthropic API error (attempt %d): %s", attempt + 1, e)
                continue

        raise LLMError(
            f"Anthropic API {cfg.retry_attempts + 1} denemede başarısız oldu: {last_error}",
            provider=self.provider_name,
            retryable=False,
        )

    def stream_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
    ) -> Iterator[str]:
        cfg = self._default_config(config)
        model = self._resolve_model(cfg)

        try:
            with self.client.messages.stream(
                model=model,
                max_tokens=cfg.max_tokens,
                temperature=cfg.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                timeout=cfg.timeout_seconds,
            ) as stream:
                for text in stream.text_stream:
                    yield text
        except LLMError:
            raise
        except Exception as e:
            if is_quota_error(e):
                raise LLMQuotaError(
                    f"Anthropic API kota limitine ulaşıldı: {e}",
                    provider=self.provider_name,
                )
            if is_timeout_error(e):
                raise LLMTimeoutError(
                    f"Anthropic API zaman aşımına uğradı: {e}",
                    provider=self.provider_name,
                )
            raise LLMError(
                f"Anthropic akışı başarısız oldu: {e}",
                provider=self.provider_name,
            )
