"""Runtime version info -- displayed in the Streamlit sidebar.

The git commit hash is resolved at call time so we always know
exactly which code is running.
"""
from __future__ import annotations

import subprocess
from pathlib import Path

from core import __version__

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def _git(*args: str) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(_PROJECT_ROOT),
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError):
        return "unknown"
    if result.returncode == 0 and result.stdout.strip():
        return result.stdout.strip()
    return "unknown"


def get_git_commit() -> str:
    """Return the short git commit hash, or 'unknown' if unavailable."""
    return _git("rev-parse", "--short", "HEAD")


def get_git_branch() -> str:
    """Return the current git branch name."""
    return _git("rev-parse", "--abbrev-ref", "HEAD")


APP_VERSION = __version__


def version_label() -> str:
    """Return a human-readable version string like 'v0.1.0 (abc1234 @ main)'."""
    return f"v{APP_VERSION} ({get_git_commit()} @ {get_git_branch()})"
