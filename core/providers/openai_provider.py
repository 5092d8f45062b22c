"""OpenAI provider implementation.

Implements the same LLMProvider interface as GoogleProvider.
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
    LLMProvider,
    LLMQuotaError,
    LLMResponse,
    LLMTimeoutError,
    is_quota_error,
    is_timeout_error,
)
from .guards import JSONOutputGuard

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """LLM Provider backed by OpenAI API (GPT-4o, etc.)."""

    provider_name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "gpt-4o",
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        self.default_model = default_model
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMError("OPENAI_API_KEY ayarlanmamış.", provider=self.provider_name)
            try:
                from openai import OpenAI
            except ImportError:
                raise LLMError(
                    "openai paketi gerekli: pip install openai",
                    provider=self.provider_name,
                )
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _wrap_error(self, exc: Exception) -> LLMError:
        if isinstance(exc, LLMError):
            return exc
        if is_quota_error(exc):
            return LLMQuotaError(
                f"OpenAI API kota limitine ulaşıldı: {exc}",
                provider=self.provider_name,
            )
        if is_timeout_error(exc):
            return LLMTimeoutError(
                f"OpenAI API zaman aşımına uğradı: {exc}",
                provider=self.provider_name,
            )
        return LLMError(f"OpenAI API hatası: {exc}", provider=self.provider_name)

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

        t0 = time.time()
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": full_system},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
                timeout=cfg.timeout_seconds,
            )
        except Exception as e:
            raise self._wrap_error(e)

        latency_ms = int((time.time() - t0) * 1000)
        raw_text = response.choices[0].message.content or ""
        stop_reason = response.choices[0].finish_reason or ""

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
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=response.usage.completion_tokens if response.usage else 0,
            latency_ms=latency_ms,
            stop_reason=stop_reason,
            prompt_hash=prompt_hash,
            result_hash=result_hash,
        )

    def stream_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        config: Optional[LLMConfig] = None,
    ) -> Iterator[str]:
        cfg = self._default_config(config)
        try:
            stream = self.client.chat.completions.create(
                model=self._resolve_model(cfg),
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=cfg.temperature,
                max_tokens=cfg.max_tokens,
                timeout=cfg.timeout_seconds,
                stream=True,
            )
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta and delta.content:
                    yield delta.content
        except Exception as e:
            raise self._wrap_error(e)
