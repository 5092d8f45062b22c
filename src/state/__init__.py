"""Locally persisted state: search history and user settings."""

from .history import SearchHistory
from .settings import SettingsStore, theme_label

__all__ = ["SearchHistory", "SettingsStore", "theme_label"]
