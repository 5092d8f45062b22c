"""Tests for src.config.models -- Pydantic v2 domain models."""

import pytest
from pydantic import ValidationError

from core.providers.registry import get_default_model_for_provider
from src.config.models import (
    NOT_AVAILABLE,
    AppSettings,
    Business,
    SearchCriteria,
    SearchHistoryItem,
)


class TestBusiness:
    def test_accepts_camel_case_wire_keys(self):
        b = Business.model_validate({
            "businessName": "Moda Kahve",
            "subCategory": "Kafe",
            "googleRating": 4.5,
            "googleMapsLink": "https://maps.google.com/?cid=1",
        })
        assert b.business_name == "Moda Kahve"
        assert b.sub_category == "Kafe"
        assert b.google_rating == 4.5

    def test_accepts_snake_case_names(self):
        b = Business(business_name="Moda Kahve", sub_category="Kafe")
        assert b.sub_category == "Kafe"

    def test_name_required(self):
        with pytest.raises(ValidationError):
            Business.model_validate({"address": "Moda Cad."})

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Business.model_validate({"businessName": "   "})

    def test_name_is_stripped(self):
        assert Business(business_name="  Kafe X ").business_name == "Kafe X"

    def test_unknown_keys_ignored(self):
        b = Business.model_validate({"businessName": "X", "openingHours": "09-18"})
        assert not hasattr(b, "openingHours")

    @pytest.mark.parametrize("value", [None, "", "null", "N/A", "-", "  "])
    def test_placeholder_phone_becomes_none(self, value):
        assert Business(business_name="X", phone=value).phone is None

    def test_null_text_field_becomes_empty(self):
        assert Business.model_validate({"businessName": "X", "address": None}).address == ""

    def test_rating_string_with_comma(self):
        assert Business(business_name="X", google_rating="4,3").google_rating == 4.3

    @pytest.mark.parametrize("value", [7, -1, "çok iyi", float("nan"), True])
    def test_invalid_rating_becomes_none(self, value):
        assert Business(business_name="X", google_rating=value).google_rating is None

    def test_rating_bounds_inclusive(self):
        assert Business(business_name="X", google_rating=0).google_rating == 0.0
        assert Business(business_name="X", google_rating=5).google_rating == 5.0

    def test_coordinates_from_dict(self):
        b = Business(business_name="X", coordinates={"lat": 40.98, "lng": 29.02})
        assert b.coordinates == "40.98,29.02"

    def test_coordinates_from_list(self):
        assert Business(business_name="X", coordinates=[41.0, 29.0]).coordinates == "41.0,29.0"

    def test_coordinates_incomplete_dict(self):
        assert Business(business_name="X", coordinates={"lat": 41.0}).coordinates is None

    def test_display_helpers(self):
        b = Business(business_name="X")
        assert b.display_phone() == NOT_AVAILABLE
        assert b.display_rating() == NOT_AVAILABLE
        b = Business(business_name="X", phone="0212 000 00 00", google_rating=4)
        assert b.display_phone() == "0212 000 00 00"
        assert b.display_rating() == "4.0"

    def test_dedup_key_prefers_place_id(self):
        a = Business(business_name="Kafe A", address="Adres 1", google_place_id="P1")
        b = Business(business_name="Kafe B", address="Adres 2", google_place_id="P1")
        assert a.dedup_key() == b.dedup_key() == "place:P1"

    def test_dedup_key_name_and_address_case_insensitive(self):
        a = Business(business_name="Kafe A", address="Moda Cad. 1")
        b = Business(business_name="KAFE A", address="moda cad. 1")
        c = Business(business_name="Kafe A", address="Moda Cad. 2")
        assert a.dedup_key() == b.dedup_key()
        assert a.dedup_key() != c.dedup_key()

    def test_to_wire_uses_camel_case(self):
        wire = Business(business_name="X", google_rating=4.2).to_wire()
        assert wire["businessName"] == "X"
        assert wire["googleRating"] == 4.2
        assert "business_name" not in wire


class TestSearchCriteria:
    def test_default_incomplete(self):
        assert SearchCriteria().is_complete() is False

    def test_complete_without_optional_levels(self):
        c = SearchCriteria(province="istanbul", district="kadikoy", main_category="yeme-icme")
        assert c.is_complete() is True

    def test_missing_district_incomplete(self):
        c = SearchCriteria(province="istanbul", main_category="yeme-icme")
        assert c.is_complete() is False

    def test_values_are_stripped(self):
        c = SearchCriteria(province=" istanbul ", district=None)
        assert c.province == "istanbul"
        assert c.district == ""

    def test_key_identifies_selection(self):
        a = SearchCriteria(province="istanbul", district="kadikoy", main_category="saglik")
        b = SearchCriteria(province="istanbul", district="kadikoy", main_category="saglik")
        assert a.key() == b.key()


class TestSearchHistoryItem:
    def test_ids_are_unique(self):
        a = SearchHistoryItem(criteria=SearchCriteria())
        b = SearchHistoryItem(criteria=SearchCriteria())
        assert a.id != b.id

    def test_formatted_timestamp(self):
        from datetime import datetime

        ts = int(datetime(2024, 3, 5, 14, 7).timestamp() * 1000)
        item = SearchHistoryItem(criteria=SearchCriteria(), timestamp=ts)
        assert item.formatted_timestamp() == "05.03.2024 14:07"

    def test_location_text(self):
        item = SearchHistoryItem(
            criteria=SearchCriteria(),
            province_label="İstanbul",
            district_label="Kadıköy",
            neighborhood_label="Tüm Mahalleler",
        )
        assert item.location_text() == "İstanbul > Kadıköy > Tüm Mahalleler"

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            SearchHistoryItem(criteria=SearchCriteria(), result_count=-1)


class TestAppSettings:
    def test_defaults(self):
        s = AppSettings()
        assert s.provider == "google"
        assert s.model == "gemini-2.5-flash"
        assert s.max_results_per_task == 50
        assert s.history_limit == 10
        assert s.use_search_grounding is False

    def test_default_model_follows_provider(self):
        assert AppSettings(provider="openai").model == "gpt-4o"

    @pytest.mark.parametrize("provider", ["google", "anthropic", "openai"])
    def test_default_model_comes_from_registry(self, provider):
        assert AppSettings(provider=provider).model == get_default_model_for_provider(provider)

    def test_explicit_model_kept(self):
        assert AppSettings(model="gemini-2.5-pro").model == "gemini-2.5-pro"

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValidationError):
            AppSettings(provider="mistral")

    def test_max_results_bounds(self):
        with pytest.raises(ValidationError):
            AppSettings(max_results_per_task=0)
        with pytest.raises(ValidationError):
            AppSettings(max_results_per_task=501)
