"""Core logic for İşletme Bulucu.

This package contains LLM provider access and local persistence.
It has ZERO dependency on any UI framework.
"""

__version__ = "0.1.0"
