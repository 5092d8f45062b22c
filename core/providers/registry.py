"""LLM provider factory and model catalog.

Central registry of available LLM providers, models, and a factory
function to instantiate the correct provider for a given selection.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .base import LLMProvider

# Environment variable each provider reads its API key from
API_KEY_ENV_VARS: Dict[str, str] = {
    "google": "GOOGLE_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}

# ---------------------------------------------------------------------------
# Model catalog: authoritative list of supported provider/model combos
# ---------------------------------------------------------------------------

MODEL_CATALOG: List[Dict[str, Any]] = [
    # --- Google Gemini ---
    {
        "provider": "google",
        "provider_label": "Gemini",
        "model_id": "gemini-2.5-flash",
        "label": "Gemini 2.5 Flash",
        "tier": "standard",
        "description": "Hızlı ve ekonomik. Varsayılan model",
    },
    {
        "provider": "google",
        "provider_label": "Gemini",
        "model_id": "gemini-2.5-pro",
        "label": "Gemini 2.5 Pro",
        "tier": "premium",
        "description": "En yüksek doğruluk",
    },
    {
        "provider": "google",
        "provider_label": "Gemini",
        "model_id": "gemini-2.0-flash",
        "label": "Gemini 2.0 Flash",
        "tier": "fast",
        "description": "Düşük gecikme",
    },
    # --- Anthropic Claude ---
    {
        "provider": "anthropic",
        "provider_label": "Claude",
        "model_id": "claude-sonnet-4-5-20250929",
        "label": "Claude Sonnet 4.5",
        "tier": "standard",
        "description": "Dengeli hız ve maliyet",
    },
    {
        "provider": "anthropic",
        "provider_label": "Claude",
        "model_id": "claude-haiku-4-5-20251001",
        "label": "Claude Haiku 4.5",
        "tier": "fast",
        "description": "Hızlı ve düşük maliyetli",
    },
    # --- OpenAI GPT ---
    {
        "provider": "openai",
        "provider_label": "ChatGPT",
        "model_id": "gpt-4o",
        "label": "GPT-4o",
        "tier": "standard",
        "description": "Genel amaçlı model",
    },
    {
        "provider": "openai",
        "provider_label": "ChatGPT",
        "model_id": "gpt-4o-mini",
        "label": "GPT-4o mini",
        "tier": "fast",
        "description": "Hızlı ve düşük maliyetli",
    },
]


def get_providers() -> List[Dict[str, str]]:
    """Return unique provider list with labels."""
    seen = {}
    for m in MODEL_CATALOG:
        if m["provider"] not in seen:
            seen[m["provider"]] = m["provider_label"]
    return [{"id": k, "label": v} for k, v in seen.items()]


def get_models_for_provider(provider: str) -> List[Dict[str, Any]]:
    """Return models available for a given provider."""
    return [m for m in MODEL_CATALOG if m["provider"] == provider]


def get_default_model_for_provider(provider: str) -> Optional[str]:
    """Return the default (standard tier) model_id for a provider."""
    for m in MODEL_CATALOG:
        if m["provider"] == provider and m["tier"] == "standard":
            return m["model_id"]
    for m in MODEL_CATALOG:
        if m["provider"] == provider:
            return m["model_id"]
    return None


def validate_provider_model(provider: str, model_id: str) -> bool:
    """Check if a provider/model combination is valid."""
    return any(
        m["provider"] == provider and m["model_id"] == model_id
        for m in MODEL_CATALOG
    )


# ---------------------------------------------------------------------------
# Provider factory
# ---------------------------------------------------------------------------

def get_provider(
    provider_name: str,
    model: Optional[str] = None,
    api_key: Optional[str] = None,
) -> LLMProvider:
    """Create and return an LLMProvider instance for the given provider/model.

    Parameters
    ----------
    provider_name :
        One of "google", "anthropic", "openai".
    model :
        Optional model ID override. Passed as default_model to the provider.
    api_key :
        Optional API key; providers fall back to their env var when omitted.

    Raises
    ------
    ValueError
        If the provider_name is not recognized.
    """
    kwargs: Dict[str, Any] = {}
    if model:
        kwargs["default_model"] = model
    if api_key:
        kwargs["api_key"] = api_key

    if provider_name == "google":
        from .google_provider import GoogleProvider
        return GoogleProvider(**kwargs)
    elif provider_name == "anthropic":
        from .anthropic_provider import AnthropicProvider
        return AnthropicProvider(**kwargs)
    elif provider_name == "openai":
        from .openai_provider import OpenAIProvider
        return OpenAIProvider(**kwargs)
    else:
        raise ValueError(
            f"Unknown LLM provider: {provider_name!r}. "
            f"Supported: google, anthropic, openai"
        )
