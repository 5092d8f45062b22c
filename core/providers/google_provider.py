"""Google Gemini provider implementation.

Uses the ``google-genai`` SDK.  Gemini is the default backend of the
business finder; it supports optional Google Search grounding so the
model can look up live place data instead of relying on memory alone.
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


class GoogleProvider(LLMProvider):
    """LLM Provider backed by Google Gemini API."""

    provider_name = "google"

    def __init__(
        self,
        api_key: Optional[str] = None,
        default_model: str = "gemini-2.5-flash",
    ):
        self.api_key = (
            api_key
            or os.environ.get("GOOGLE_API_KEY", "")
            or os.environ.get("API_KEY", "")
        )
        self.default_model = default_model
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise LLMError(
                    "GOOGLE_API_KEY ayarlanmamış. Ayarlar bölümünden bir API anahtarı girin.",
                    provider=self.provider_name,
                )
            try:
                from google import genai
            except ImportError:
                raise LLMError(
                    "google-genai paketi gerekli: pip install google-genai",
                    provider=self.provider_name,
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def _build_config(
        self,
        system_prompt: str,
        cfg: LLMConfig,
        *,
        json_mode: bool = False,
        schema_hint: Optional[Dict[str, Any]] = None,
    ):
        from google.genai import types

        kwargs: Dict[str, Any] = {
            "system_instruction": system_prompt,
            "temperature": cfg.temperature,
            "max_output_tokens": cfg.max_tokens,
            "http_options": types.HttpOptions(timeout=cfg.timeout_seconds * 1000),
        }
        if cfg.use_search_grounding:
            # Grounding cannot be combined with a JSON response mime type
            kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        elif json_mode:
            kwargs["response_mime_type"] = "application/json"
            if schema_hint:
                kwargs["response_schema"] = schema_hint
        return types.GenerateContentConfig(**kwargs)

    def _wrap_error(self, exc: Exception) -> LLMError:
        if isinstance(exc, LLMError):
            return exc
        if is_quota_error(exc):
            return LLMQuotaError(
                f"Gemini API kota limitine ulaşıldı: {exc}",
                provider=self.provider_name,
            )
        if is_timeout_error(exc):
            return LLMTimeoutError(
                f"Gemini API zaman aşımına uğradı: {exc}",
                provider=self.provider_name,
            )
        return LLMError(
            f"Gemini API hatası: {exc}",
            provider=self.provider_name,
            retryable=True,
        )

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

        last_error: Optional[LLMError] = None
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
                response = self.client.models.generate_content(
                    model=model,
                    contents=user_prompt,
                    config=self._build_config(
                        full_system, cfg, json_mode=True, schema_hint=schema_hint,
                    ),
                )
            except Exception as e:
                last_error = self._wrap_error(e)
                logger.error("Gemini API error (attempt %d): %s", attempt + 1, e)
                if not last_error.retryable:
                    raise last_error
                continue

            latency_ms = int((time.time() - t0) * 1000)
            raw_text = response.text or ""
            usage = getattr(response, "usage_metadata", None)
            stop_reason = _finish_reason(response)

            stripped = JSONOutputGuard.strip_fences(raw_text)
            if stripped.startswith("["):
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
                input_tokens=(getattr(usage, "prompt_token_count", 0) or 0) if usage else 0,
                output_tokens=(getattr(usage, "candidates_token_count", 0) or 0) if usage else 0,
                latency_ms=latency_ms,
                stop_reason=stop_reason,
                prompt_hash=prompt_hash,
                result_hash=result_hash,
            )

        raise LLMError(
            f"Gemini API {cfg.retry_attempts + 1} denemede başarısız oldu: {last_error}",
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
        gen_config = self._build_config(system_prompt, cfg)

        for attempt in range(cfg.retry_attempts + 1):
            if attempt > 0:
                delay = cfg.retry_base_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Stream retry %d/%d after %.1fs delay",
                    attempt, cfg.retry_attempts, delay,
                )
                time.sleep(delay)

            yielded = False
            try:
                stream = self.client.models.generate_content_stream(
                    model=model,
                    contents=user_prompt,
                    config=gen_config,
                )
                for chunk in stream:
                    text = getattr(chunk, "text", None)
                    if text:
                        yielded = True
                        yield text
                return
            except Exception as e:
                error = self._wrap_error(e)
                logger.error("Gemini streaming error (attempt %d): %s", attempt + 1, e)
                # Once text has been handed out a retry would duplicate it
                if yielded or not error.retryable or attempt == cfg.retry_attempts:
                    raise error


def _finish_reason(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    reason = getattr(candidates[0], "finish_reason", None)
    if reason is None:
        return ""
    return getattr(reason, "name", str(reason))
