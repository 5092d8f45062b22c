"""Prompt templates for the business search.

All prompt constants are exposed so the Streamlit UI can show them in
an editable "Gelişmiş" section.  Custom overrides are accepted via the
``overrides`` dict parameter on :func:`build_search_prompt`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional, Tuple

if TYPE_CHECKING:
    from .finder import SearchTask


class PromptTemplateError(ValueError):
    """A custom user prompt template cannot be filled in."""


# ------------------------------------------------------------------
# System prompt
# ------------------------------------------------------------------

SYSTEM_PROMPT = """\
You are a local business directory expert for Turkey.
You list real businesses using Google Maps data.

IMPORTANT RULES:
- List every matching business you can find; do not summarise or sample
- Only list businesses that are located in the requested neighborhood
- Never invent phone numbers, ratings or place IDs; use null when unknown
- Output NDJSON: exactly one JSON object per line, nothing else
- No markdown, no code fences, no surrounding array, no commentary
"""

# ------------------------------------------------------------------
# Output fields
# ------------------------------------------------------------------

FIELD_GUIDE = """\
Each line must be a JSON object with these keys:
- businessName: full name of the business
- mainCategory: main business category
- subCategory: specific sub-category
- phone: contact phone number, or null
- district: district (ilçe)
- neighborhood: neighborhood (mahalle)
- address: full address
- googleRating: Google Maps rating as a number (e.g. 4.5), or null
- googleMapsLink: full Google Maps URL of the business
- googlePlaceId: Google Place ID, or null
- coordinates: "latitude,longitude", or null
"""

USER_PROMPT_TEMPLATE = """\
Find all businesses in {location}, Turkey that match:
- Main Category: '{main_category}'
- Sub-category: '{sub_category}'

Return at most {max_results} businesses.

{field_guide}
Example line:
{{"businessName": "Örnek Kafe", "mainCategory": "{main_category}", "subCategory": "{sub_category}", \
"phone": null, "district": "{district}", "neighborhood": "{neighborhood}", "address": "...", \
"googleRating": 4.5, "googleMapsLink": "https://maps.google.com/?cid=...", \
"googlePlaceId": null, "coordinates": null}}
"""


def build_search_prompt(
    task: "SearchTask",
    max_results: int = 50,
    overrides: Optional[Dict[str, str]] = None,
) -> Tuple[str, str]:
    """Build the ``(system_prompt, user_prompt)`` pair for one search task.

    ``overrides`` may contain ``"system"`` and/or ``"user_template"``; the
    user template receives the same format fields as
    :data:`USER_PROMPT_TEMPLATE`.
    """
    overrides = overrides or {}
    system_prompt = overrides.get("system") or SYSTEM_PROMPT
    template = overrides.get("user_template") or USER_PROMPT_TEMPLATE

    if task.neighborhood:
        location = (
            f"the '{task.neighborhood_label}' neighborhood of the "
            f"'{task.district_label}' district, '{task.province_label}' province"
        )
    else:
        location = f"the '{task.district_label}' district, '{task.province_label}' province"

    try:
        user_prompt = template.format(
            location=location,
            province=task.province_label,
            district=task.district_label,
            neighborhood=task.neighborhood_label if task.neighborhood else "...",
            main_category=task.main_category_label,
            sub_category=task.sub_category_label,
            max_results=max_results,
            field_guide=FIELD_GUIDE,
        )
    except (KeyError, IndexError, ValueError) as e:
        raise PromptTemplateError(f"İstem şablonu geçersiz: {e}") from e
    return system_prompt, user_prompt
