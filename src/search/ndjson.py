"""Incremental NDJSON parsing for streamed LLM output.

Text arrives in arbitrary chunks, so a line may be split across two
chunks.  The parser keeps the unfinished tail in a buffer and only
parses complete lines; ``close()`` flushes the tail once the stream
has ended.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

_IGNORED_LINES = {"[", "]", "[]", ","}


class NDJSONStreamParser:
    """Turns a stream of text chunks into parsed JSON objects.

    Tolerated noise (skipped without counting as an error):
    - blank lines and markdown code fences (```json / ```)
    - lone ``[`` / ``]`` brackets and trailing commas, so a
      pretty-printed JSON array with one object per line also works

    Anything else that fails to parse, or parses to something other than
    an object, is dropped and counted in ``skipped_lines``.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._chunks: List[str] = []
        self.parsed_count = 0
        self.skipped_lines = 0
        self.closed = False

    @property
    def raw_text(self) -> str:
        """Everything received so far."""
        return "".join(self._chunks)

    def feed(self, chunk: str) -> List[Dict[str, Any]]:
        """Consume a chunk and return the objects completed by it."""
        if self.closed:
            raise ValueError("feed() called after close()")
        if not chunk:
            return []
        self._chunks.append(chunk)
        self._buffer += chunk

        *complete, self._buffer = self._buffer.split("\n")
        objects: List[Dict[str, Any]] = []
        for line in complete:
            objects.extend(self._parse_line(line))
        return objects

    def close(self) -> List[Dict[str, Any]]:
        """Parse whatever is left in the buffer and finish the stream."""
        if self.closed:
            return []
        self.closed = True
        tail, self._buffer = self._buffer, ""
        return self._parse_line(tail)

    def _parse_line(self, line: str) -> List[Dict[str, Any]]:
        text = line.strip()
        if not text or text.startswith("```"):
            return []
        if text.endswith(","):
            text = text[:-1].rstrip()
        if text in _IGNORED_LINES:
            return []

        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            # First or last object of an array split over lines: "[{...}" / "{...}]"
            if text.startswith("[") and not text.endswith("]"):
                return self._parse_line(text[1:])
            if text.endswith("]") and not text.startswith("["):
                return self._parse_line(text[:-1])
            self.skipped_lines += 1
            logger.debug("Skipping malformed line: %.120s", text)
            return []

        if isinstance(value, dict):
            self.parsed_count += 1
            return [value]
        if isinstance(value, list):
            objects = [item for item in value if isinstance(item, dict)]
            self.parsed_count += len(objects)
            return objects

        self.skipped_lines += 1
        logger.debug("Skipping non-object line: %.120s", text)
        return []
