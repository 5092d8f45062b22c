"""Output guards for LLM responses.

These guards enforce the output rules:
- JSON output starts with '{' (objects) or '[' (business lists)
- Markdown code fences are stripped
- Output truncated at max_tokens is repaired where possible
- Business lists are always returned as a list of dicts
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Keys a wrapper object may use around the actual business list
_LIST_WRAPPER_KEYS = ("businesses", "results", "items", "data", "isletmeler")


# ---------------------------------------------------------------------------
# JSON Output Guard
# ---------------------------------------------------------------------------

class JSONOutputGuard:
    """Ensure LLM output is valid JSON."""

    @staticmethod
    def system_prompt_suffix() -> str:
        return (
            "\n\nOUTPUT FORMAT: Return JSON only. "
            "Do not wrap it in ```json markdown fences. "
            "No explanations or comments."
        )

    @staticmethod
    def strip_fences(raw_text: str) -> str:
        """Remove a surrounding markdown code block, if any."""
        text = raw_text.strip()
        if text.startswith("```"):
            first_nl = text.find("\n")
            if first_nl > 0:
                text = text[first_nl + 1:]
            else:
                text = text[3:]
            if text.rstrip().endswith("```"):
                text = text.rstrip()[:-3].rstrip()
        return text

    @staticmethod
    def enforce(raw_text: str, stop_reason: str = "") -> Dict[str, Any]:
        """Parse raw LLM text into a JSON dict, with repair for truncated output."""
        from .base import LLMJSONError

        text = JSONOutputGuard.strip_fences(raw_text)

        brace_pos = text.find("{")
        if brace_pos < 0:
            raise LLMJSONError(
                "LLM yanıtında JSON nesnesi bulunamadı",
                raw_text=raw_text,
            )
        text = text[brace_pos:]

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            if stop_reason in ("max_tokens", "length", "MAX_TOKENS"):
                logger.warning(
                    "Response truncated at max_tokens (%d chars). Attempting repair.",
                    len(text),
                )
            repaired = JSONOutputGuard._repair_truncated(text)
            if isinstance(repaired, dict):
                return repaired
            return JSONOutputGuard._try_extract(raw_text)

        if not isinstance(parsed, dict):
            raise LLMJSONError("LLM yanıtı bir JSON nesnesi değil", raw_text=raw_text)
        return parsed

    @staticmethod
    def enforce_array(raw_text: str, stop_reason: str = "") -> List[Dict[str, Any]]:
        """Parse raw LLM text into a list of business dicts.

        Accepts a JSON array, an object wrapping an array under a common
        key (``businesses``, ``results`` ...), a single object, or NDJSON.
        Returns ``[]`` for blank output; raises ``LLMJSONError`` when the
        text contains no recoverable JSON at all.
        """
        from .base import LLMJSONError

        text = JSONOutputGuard.strip_fences(raw_text)
        if not text:
            return []

        starts = [p for p in (text.find("["), text.find("{")) if p >= 0]
        if not starts:
            raise LLMJSONError(
                "LLM yanıtında JSON bulunamadı",
                raw_text=raw_text,
            )
        text = text[min(starts):]

        try:
            return _as_business_list(json.loads(text))
        except json.JSONDecodeError:
            pass

        # NDJSON: one object per line
        lines = _parse_json_lines(text)
        if lines:
            return lines

        if stop_reason in ("max_tokens", "length", "MAX_TOKENS"):
            logger.warning(
                "Response truncated at max_tokens (%d chars). Attempting repair.",
                len(text),
            )
        repaired = JSONOutputGuard._repair_truncated(text)
        if repaired is not None:
            return _as_business_list(repaired)

        raise LLMJSONError(
            f"LLM yanıtından JSON çıkarılamadı. İlk 200 karakter: {raw_text[:200]}",
            raw_text=raw_text,
        )

    @staticmethod
    def _repair_truncated(text: str) -> Optional[Any]:
        """Repair JSON truncated at max_tokens by closing open brackets.

        Tracks string boundaries so that brackets inside string values
        are ignored, then tries the most recent structural cut points.
        """
        in_string = False
        escape = False
        stack: List[str] = []
        trim_points: list = []

        for i, ch in enumerate(text):
            if escape:
                escape = False
                continue
            if ch == '\\' and in_string:
                escape = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue

            if ch in '{[':
                stack.append(ch)
            elif ch in '}]':
                if not stack:
                    break
                stack.pop()
                trim_points.append((i, ch, list(stack)))
            elif ch == ',':
                trim_points.append((i, ch, list(stack)))

        for pos, ch, open_stack in reversed(trim_points[-30:]):
            sub = text[:pos] if ch == ',' else text[:pos + 1]
            suffix = "".join("}" if o == "{" else "]" for o in reversed(open_stack))
            try:
                result = json.loads(sub + suffix)
            except json.JSONDecodeError:
                continue
            logger.info(
                "Repaired truncated JSON (trim at pos %d '%s', added '%s')",
                pos, ch, suffix,
            )
            return result

        return None

    @staticmethod
    def _try_extract(text: str) -> Dict[str, Any]:
        """Last-resort extraction strategies."""
        from .base import LLMJSONError

        patterns = [r'```json\s*(.*?)\s*```', r'```\s*(.*?)\s*```', r'\{.*\}']
        for pattern in patterns:
            match = re.search(pattern, text, re.DOTALL)
            if match:
                try:
                    candidate = match.group(1) if '```' in pattern else match.group(0)
                    parsed = json.loads(candidate)
                except (json.JSONDecodeError, IndexError):
                    continue
                if isinstance(parsed, dict):
                    return parsed

        raise LLMJSONError(
            f"LLM yanıtından JSON çıkarılamadı. İlk 200 karakter: {text[:200]}",
            raw_text=text,
        )


def _as_business_list(value: Any) -> List[Dict[str, Any]]:
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    if isinstance(value, dict):
        for key in _LIST_WRAPPER_KEYS:
            inner = value.get(key)
            if isinstance(inner, list):
                return [item for item in inner if isinstance(item, dict)]
        return [value]
    return []


def _parse_json_lines(text: str) -> List[Dict[str, Any]]:
    items: List[Dict[str, Any]] = []
    for line in text.splitlines():
        line = line.strip().rstrip(",")
        if not line or line in ("[", "]"):
            continue
        try:
            parsed = json.loads(line)
        except json.JSONDecodeError:
            continue
        items.extend(_as_business_list(parsed))
    return items
