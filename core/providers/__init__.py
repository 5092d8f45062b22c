"""LLM Provider abstraction layer.

Supports multiple LLM backends (Google Gemini, Anthropic Claude, OpenAI)
with a unified interface, audit logging, and output guards.
"""

from .base import (
    LLMConfig,
    LLMError,
    LLMJSONError,
    LLMProvider,
    LLMQuotaError,
    LLMResponse,
    LLMTimeoutError,
)
from .google_provider import GoogleProvider
from .guards import JSONOutputGuard
from .audit import AuditLogger, AuditRecord
from .registry import get_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMConfig",
    "LLMError",
    "LLMJSONError",
    "LLMQuotaError",
    "LLMTimeoutError",
    "GoogleProvider",
    "JSONOutputGuard",
    "AuditLogger",
    "AuditRecord",
    "get_provider",
]
