"""User settings and theme preference kept in the local store."""
from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from pydantic import ValidationError

from core.providers.registry import API_KEY_ENV_VARS
from core.storage import LocalStore

from ..config.models import AppSettings, ThemePreference

logger = logging.getLogger(__name__)

THEME_KEY = "theme"
SETTINGS_KEY = "settings"
API_KEYS_KEY = "apiKeys"

# theme -> (next theme, label)
THEME_CONFIG: Dict[str, Dict[str, str]] = {
    "light": {"next": "dark", "label": "Açık Mod"},
    "dark": {"next": "system", "label": "Koyu Mod"},
    "system": {"next": "light", "label": "Sistem"},
}


def theme_label(theme: str) -> str:
    return THEME_CONFIG.get(theme, THEME_CONFIG["system"])["label"]


class SettingsStore:
    """Typed access to settings, API keys and the theme preference."""

    def __init__(self, store: LocalStore):
        self.store = store

    # -- theme ---------------------------------------------------------------

    @property
    def theme(self) -> ThemePreference:
        stored = self.store.get(THEME_KEY)
        if stored in ("light", "dark"):
            return stored
        return "system"

    def set_theme(self, theme: ThemePreference) -> None:
        if theme not in THEME_CONFIG:
            raise ValueError(f"Unknown theme: {theme!r}")
        # "system" is the absence of an explicit choice
        if theme == "system":
            self.store.remove(THEME_KEY)
        else:
            self.store.set(THEME_KEY, theme)

    def next_theme(self) -> ThemePreference:
        """Cycle light -> dark -> system -> light and persist the result."""
        new_theme = THEME_CONFIG[self.theme]["next"]
        self.set_theme(new_theme)
        return new_theme

    # -- settings ------------------------------------------------------------

    def load(self) -> AppSettings:
        raw = self.store.get(SETTINGS_KEY)
        if not raw:
            return AppSettings()
        try:
            return AppSettings.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored settings are invalid, using defaults: %s", e)
            return AppSettings()

    def save(self, settings: AppSettings) -> None:
        self.store.set(SETTINGS_KEY, settings.model_dump(mode="json"))

    # -- API keys ------------------------------------------------------------

    def api_key(self, provider: str) -> Optional[str]:
        """Stored key for the provider, else its environment variable."""
        keys = self.store.get(API_KEYS_KEY, {})
        if isinstance(keys, dict) and keys.get(provider):
            return keys[provider]
        env_name = API_KEY_ENV_VARS.get(provider, "")
        value = os.environ.get(env_name, "") if env_name else ""
        if not value and provider == "google":
            value = os.environ.get("API_KEY", "")
        return value or None

    def set_api_key(self, provider: str, key: str) -> None:
        keys = self.store.get(API_KEYS_KEY, {})
        if not isinstance(keys, dict):
            keys = {}
        key = key.strip()
        if key:
            keys[provider] = key
        else:
            keys.pop(provider, None)
        self.store.set(API_KEYS_KEY, keys)

    def remove_api_key(self, provider: str) -> None:
        self.set_api_key(provider, "")
