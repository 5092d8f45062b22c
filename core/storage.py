"""Local key/value storage.

A small JSON-file store that plays the role browser ``localStorage``
plays for a web front-end: settings, the theme preference and the
search history all live here.

The location defaults to ``~/.isletme_bulucu/storage.json`` and can be
moved with the ``ISLETME_BULUCU_HOME`` environment variable.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

STORAGE_FILENAME = "storage.json"


def default_storage_path() -> Path:
    home = os.environ.get("ISLETME_BULUCU_HOME", "")
    base = Path(home) if home else Path.home() / ".isletme_bulucu"
    return base / STORAGE_FILENAME


class LocalStore:
    """JSON-file backed key/value store.

    Every mutation rewrites the file atomically (temp file + ``os.replace``)
    so a crash never leaves a half-written store behind.  A missing or
    unreadable file is treated as an empty store.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else default_storage_path()

    # -- reading -------------------------------------------------------------

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Storage file %s is unreadable, starting empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Storage file %s does not hold an object, ignoring it", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def keys(self) -> List[str]:
        return list(self._read().keys())

    def __contains__(self, key: str) -> bool:
        return key in self._read()

    # -- writing -------------------------------------------------------------

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=".storage-", suffix=".json", dir=str(self.path.parent),
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)
        logger.debug("Stored key %s", key)

    def remove(self, key: str) -> bool:
        """Delete a key. Returns False when it was not present."""
        data = self._read()
        if key not in data:
            return False
        del data[key]
        self._write(data)
        return True

    def clear(self) -> None:
        self._write({})
