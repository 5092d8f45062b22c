"""
İşletme Bulucu - Configuration and Data Models
==============================================

Defines ALL Pydantic v2 models used across the business finder:

  Results  : Business
  Form     : Option, SearchCriteria
  History  : SearchHistoryItem
  Settings : AppSettings, ThemePreference

Convention
----------
- ``Business`` serialises with camelCase aliases (``businessName`` ...),
  which is the wire shape the LLM is asked to emit.  Both aliases and
  snake_case field names are accepted when loading.
- Turkish comments clarify domain-specific terms (il / ilçe / mahalle).
"""

from __future__ import annotations

import math
import time
import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from core.providers.registry import get_default_model_for_provider


NOT_AVAILABLE = "N/A"

ThemePreference = Literal["light", "dark", "system"]
ProviderName = Literal["google", "anthropic", "openai"]


def _blank_to_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a", "-"):
        return None
    return text


# ============================================================
# 1.  Business  (one result row)
# ============================================================


class Business(BaseModel):
    """A single business listing returned by the LLM.

    Attributes:
        business_name:    İşletmenin tam adı.
        main_category:    Ana kategori.
        sub_category:     Alt kategori.
        phone:            Telefon numarası; None when unknown.
        district:         İlçe.
        neighborhood:     Mahalle.
        address:          Açık adres.
        google_rating:    Google Haritalar puanı (0-5); None when unknown.
        google_maps_link: Google Haritalar bağlantısı.
        google_place_id:  Google Place ID; None when unknown.
        coordinates:      "lat,lng" string; None when unknown.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    business_name: str
    main_category: str = ""
    sub_category: str = ""
    phone: Optional[str] = None
    district: str = ""
    neighborhood: str = ""
    address: str = ""
    google_rating: Optional[float] = None
    google_maps_link: str = ""
    google_place_id: Optional[str] = None
    coordinates: Optional[str] = None

    # -- validators ----------------------------------------------------------

    @field_validator("business_name", mode="before")
    @classmethod
    def _require_name(cls, v: Any) -> str:
        text = "" if v is None else str(v).strip()
        if not text:
            raise ValueError("businessName must not be empty")
        return text

    @field_validator(
        "main_category", "sub_category", "district", "neighborhood",
        "address", "google_maps_link",
        mode="before",
    )
    @classmethod
    def _text_or_empty(cls, v: Any) -> str:
        return _blank_to_none(v) or ""

    @field_validator("phone", "google_place_id", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("coordinates", mode="before")
    @classmethod
    def _normalise_coordinates(cls, v: Any) -> Optional[str]:
        # Models sometimes emit {"lat": .., "lng": ..} or [lat, lng]
        if isinstance(v, dict):
            lat = v.get("lat", v.get("latitude"))
            lng = v.get("lng", v.get("lon", v.get("longitude")))
            if lat is None or lng is None:
                return None
            return f"{lat},{lng}"
        if isinstance(v, (list, tuple)):
            if len(v) != 2:
                return None
            return f"{v[0]},{v[1]}"
        return _blank_to_none(v)

    @field_validator("google_rating", mode="before")
    @classmethod
    def _coerce_rating(cls, v: Any) -> Optional[float]:
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, str):
            text = v.strip().replace(",", ".")
            if not text:
                return None
            try:
                v = float(text)
            except ValueError:
                return None
        try:
            rating = float(v)
        except (TypeError, ValueError):
            return None
        if math.isnan(rating) or not 0.0 <= rating <= 5.0:
            return None
        return rating

    # -- helpers -------------------------------------------------------------

    def dedup_key(self) -> str:
        """Identity used to drop duplicates across search tasks."""
        if self.google_place_id:
            return f"place:{self.google_place_id}"
        return f"{self.business_name.casefold()}|{self.address.casefold()}"

    def display_phone(self) -> str:
        return self.phone or NOT_AVAILABLE

    def display_rating(self) -> str:
        if self.google_rating is None:
            return NOT_AVAILABLE
        return f"{self.google_rating:.1f}"

    def to_wire(self) -> dict:
        """camelCase dict, the same shape the LLM produces."""
        return self.model_dump(by_alias=True)


# ============================================================
# 2.  Option / SearchCriteria  (form state)
# ============================================================


class Option(BaseModel):
    """A dropdown entry: machine value + Turkish label."""

    value: str
    label: str


class SearchCriteria(BaseModel):
    """The user's form selection (option *values*, not labels).

    An empty ``neighborhood`` means every neighborhood of the district;
    an empty ``sub_category`` means every sub-category of the main
    category.
    """

    province: str = ""        # il
    district: str = ""        # ilçe
    neighborhood: str = ""    # mahalle ("" = tümü)
    main_category: str = ""
    sub_category: str = ""    # "" = tümü

    @field_validator("*", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    def is_complete(self) -> bool:
        return bool(self.province and self.district and self.main_category)

    def key(self) -> tuple:
        return (
            self.province,
            self.district,
            self.neighborhood,
            self.main_category,
            self.sub_category,
        )


# ============================================================
# 3.  SearchHistoryItem
# ============================================================


def _now_ms() -> int:
    return int(time.time() * 1000)


class SearchHistoryItem(BaseModel):
    """One entry of the persisted search history."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: int = Field(default_factory=_now_ms, description="Epoch milliseconds")
    criteria: SearchCriteria
    province_label: str = ""
    district_label: str = ""
    neighborhood_label: str = ""
    main_category_label: str = ""
    sub_category_label: str = ""
    result_count: int = Field(default=0, ge=0)

    def formatted_timestamp(self) -> str:
        """``gg.aa.yyyy ss:dd`` (tr-TR style)."""
        return datetime.fromtimestamp(self.timestamp / 1000).strftime("%d.%m.%Y %H:%M")

    def location_text(self) -> str:
        return f"{self.province_label} > {self.district_label} > {self.neighborhood_label}"


# ============================================================
# 4.  AppSettings
# ============================================================

class AppSettings(BaseModel):
    """User preferences persisted in the local store."""

    provider: ProviderName = "google"
    model: str = ""
    max_results_per_task: int = Field(
        default=50, ge=1, le=500,
        description="Upper bound requested from the model per neighborhood/category",
    )
    use_search_grounding: bool = Field(
        default=False,
        description="Let Gemini consult Google Search while answering",
    )
    history_limit: int = Field(default=10, ge=1, le=100)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    @model_validator(mode="after")
    def _default_model(self) -> "AppSettings":
        if not self.model:
            self.model = get_default_model_for_provider(self.provider)
        return self
