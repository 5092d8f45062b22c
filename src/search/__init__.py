"""LLM-backed business search: task planning, streaming and parsing."""

from .finder import (
    BusinessFinder,
    SearchEvent,
    SearchResult,
    SearchTask,
    SearchValidationError,
    plan_tasks,
)
from .ndjson import NDJSONStreamParser
from .normalizer import maps_search_link, normalize_business
from .prompts import build_search_prompt

__all__ = [
    "BusinessFinder",
    "SearchEvent",
    "SearchResult",
    "SearchTask",
    "SearchValidationError",
    "plan_tasks",
    "NDJSONStreamParser",
    "maps_search_link",
    "normalize_business",
    "build_search_prompt",
]
