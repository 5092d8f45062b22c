"""Tests for src.config.locations -- province/district/category lookup."""

import json

import pytest
import yaml

from src.config import locations
from src.config.locations import (
    ALL_NEIGHBORHOODS_LABEL,
    ALL_SUB_CATEGORIES_LABEL,
    LocationCatalog,
    get_catalog,
    label_for,
)
from src.config.models import SearchCriteria

SMALL_CATALOG = {
    "provinces": [
        {
            "value": "mugla",
            "label": "Muğla",
            "districts": [
                {
                    "value": "bodrum",
                    "label": "Bodrum",
                    "neighborhoods": [{"value": "gumbet", "label": "Gümbet"}],
                },
                {"value": "datca", "label": "Datça"},
            ],
        },
    ],
    "categories": [
        {
            "value": "konaklama",
            "label": "Konaklama",
            "sub_categories": [{"value": "otel", "label": "Otel"}],
        },
        {"value": "diger", "label": "Diğer"},
    ],
}


class TestBuiltinCatalog:
    def test_provinces_present(self, catalog):
        values = [p.value for p in catalog.provinces]
        assert "istanbul" in values
        assert "ankara" in values

    def test_districts_for_province(self, catalog):
        values = [d.value for d in catalog.get_district_options("istanbul")]
        assert "kadikoy" in values

    def test_districts_for_empty_province(self, catalog):
        assert catalog.get_district_options("") == []

    def test_districts_for_unknown_province(self, catalog):
        assert catalog.get_district_options("atlantis") == []

    def test_neighborhoods_need_both_parents(self, catalog):
        assert catalog.get_neighborhood_options("istanbul", "") == []
        assert catalog.get_neighborhood_options("", "kadikoy") == []

    def test_neighborhood_label(self, catalog):
        options = catalog.get_neighborhood_options("istanbul", "kadikoy")
        assert label_for(options, "moda") == "Caferağa (Moda)"

    def test_sub_categories(self, catalog):
        values = [s.value for s in catalog.get_sub_category_options("yeme-icme")]
        assert "kafe" in values
        assert catalog.get_sub_category_options("") == []

    def test_returned_lists_are_copies(self, catalog):
        catalog.get_district_options("istanbul").clear()
        assert catalog.get_district_options("istanbul")

    def test_every_district_has_neighborhood_entry(self, catalog):
        for province in catalog.provinces:
            for district in catalog.get_district_options(province.value):
                assert (province.value, district.value) in catalog.neighborhoods

    def test_every_main_category_has_sub_categories(self, catalog):
        for cat in catalog.main_categories:
            assert catalog.get_sub_category_options(cat.value)


class TestLabelFor:
    def test_unknown_value(self, catalog):
        assert label_for(catalog.provinces, "atlantis") == ""


class TestResolveLabels:
    def test_full_selection(self, catalog, moda_cafe_criteria):
        labels = catalog.resolve_labels(moda_cafe_criteria)
        assert labels == {
            "province_label": "İstanbul",
            "district_label": "Kadıköy",
            "neighborhood_label": "Caferağa (Moda)",
            "main_category_label": "Yeme & İçme",
            "sub_category_label": "Kafe",
        }

    def test_empty_levels_use_all_labels(self, catalog):
        criteria = SearchCriteria(province="istanbul", district="kadikoy", main_category="saglik")
        labels = catalog.resolve_labels(criteria)
        assert labels["neighborhood_label"] == ALL_NEIGHBORHOODS_LABEL
        assert labels["sub_category_label"] == ALL_SUB_CATEGORIES_LABEL

    def test_module_level_shortcut(self, moda_cafe_criteria):
        assert locations.resolve_labels(moda_cafe_criteria)["district_label"] == "Kadıköy"


class TestCatalogFromData:
    def test_from_dict(self):
        catalog = LocationCatalog.from_dict(SMALL_CATALOG)
        assert [p.label for p in catalog.provinces] == ["Muğla"]
        assert [n.value for n in catalog.get_neighborhood_options("mugla", "bodrum")] == ["gumbet"]
        assert catalog.get_neighborhood_options("mugla", "datca") == []
        assert catalog.get_sub_category_options("diger") == []

    def test_from_dict_requires_content(self):
        with pytest.raises(ValueError):
            LocationCatalog.from_dict({"provinces": []})

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(SMALL_CATALOG, allow_unicode=True), encoding="utf-8")
        catalog = LocationCatalog.from_file(path)
        assert catalog.get_district_options("mugla")[0].label == "Bodrum"

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(SMALL_CATALOG, ensure_ascii=False), encoding="utf-8")
        catalog = LocationCatalog.from_file(path)
        assert catalog.main_categories[0].value == "konaklama"

    def test_env_var_selects_catalog_file(self, tmp_path, monkeypatch):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(SMALL_CATALOG), encoding="utf-8")
        monkeypatch.setenv("ISLETME_BULUCU_LOCATIONS", str(path))
        get_catalog.cache_clear()
        assert [p.value for p in get_catalog().provinces] == ["mugla"]
        assert locations.get_district_options("mugla")[0].value == "bodrum"
