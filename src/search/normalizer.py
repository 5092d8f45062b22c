"""Normalisation of raw business records coming out of the LLM."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import quote_plus

from pydantic import ValidationError

from ..config.models import Business

if TYPE_CHECKING:
    from .finder import SearchTask

logger = logging.getLogger(__name__)

MAPS_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={query}"


def maps_search_link(name: str, address: str = "", place_id: Optional[str] = None) -> str:
    """Build a Google Maps search URL for a business without a link."""
    url = MAPS_SEARCH_URL.format(query=quote_plus(f"{name} {address}".strip()))
    if place_id:
        url += f"&query_place_id={quote_plus(place_id)}"
    return url


def normalize_business(raw: Dict[str, Any], task: Optional["SearchTask"] = None) -> Optional[Business]:
    """Validate a raw record and fill gaps from the task that produced it.

    Returns None when the record cannot be turned into a Business
    (e.g. the name is missing).
    """
    try:
        business = Business.model_validate(raw)
    except ValidationError as e:
        logger.debug("Dropping invalid business record %r: %s", raw, e)
        return None

    updates: Dict[str, Any] = {}
    if task is not None:
        if not business.district:
            updates["district"] = task.district_label
        if not business.neighborhood and task.neighborhood:
            updates["neighborhood"] = task.neighborhood_label
        if not business.main_category:
            updates["main_category"] = task.main_category_label
        if not business.sub_category and task.sub_category:
            updates["sub_category"] = task.sub_category_label
    if not business.google_maps_link.startswith(("http://", "https://")):
        updates["google_maps_link"] = maps_search_link(
            business.business_name, business.address, business.google_place_id,
        )

    return business.model_copy(update=updates) if updates else business
