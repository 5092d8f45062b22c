"""Persisted search history ("Geçmiş Aramalar")."""
from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError

from core.storage import LocalStore

from ..config.locations import LocationCatalog, get_catalog
from ..config.models import SearchCriteria, SearchHistoryItem

logger = logging.getLogger(__name__)

HISTORY_KEY = "searchHistory"
DEFAULT_HISTORY_LIMIT = 10


class SearchHistory:
    """Newest-first list of past searches kept in the local store.

    Re-running an identical search moves it to the top instead of
    adding a duplicate; the list is capped at ``limit`` entries.
    """

    def __init__(
        self,
        store: LocalStore,
        limit: int = DEFAULT_HISTORY_LIMIT,
        catalog: Optional[LocationCatalog] = None,
    ):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.store = store
        self.limit = limit
        self.catalog = catalog

    def items(self) -> List[SearchHistoryItem]:
        raw_items = self.store.get(HISTORY_KEY, [])
        if not isinstance(raw_items, list):
            logger.warning("Ignoring malformed search history (%s)", type(raw_items).__name__)
            return []
        items: List[SearchHistoryItem] = []
        for raw in raw_items:
            try:
                items.append(SearchHistoryItem.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping corrupt history entry: %s", e)
        return items

    def _save(self, items: List[SearchHistoryItem]) -> None:
        self.store.set(HISTORY_KEY, [item.model_dump(mode="json") for item in items])

    def add(self, criteria: SearchCriteria, result_count: int = 0) -> SearchHistoryItem:
        labels = (self.catalog or get_catalog()).resolve_labels(criteria)
        entry = SearchHistoryItem(criteria=criteria, result_count=result_count, **labels)

        items = [item for item in self.items() if item.criteria.key() != criteria.key()]
        items.insert(0, entry)
        self._save(items[: self.limit])
        logger.info("Saved search to history: %s", entry.location_text())
        return entry

    def get(self, item_id: str) -> Optional[SearchHistoryItem]:
        for item in self.items():
            if item.id == item_id:
                return item
        return None

    def clear(self) -> None:
        self.store.remove(HISTORY_KEY)
