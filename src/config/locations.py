"""
İşletme Bulucu - Location and Category Catalog
==============================================

Lookup tables that drive the cascading dropdowns:

* **PROVINCES / DISTRICTS / NEIGHBORHOODS** -- il -> ilçe -> mahalle.
  ``DISTRICTS`` is keyed by province value, ``NEIGHBORHOODS`` by
  ``(province, district)``.

* **MAIN_CATEGORIES / SUB_CATEGORIES** -- ana kategori -> alt kategori.

The built-in tables cover a handful of large provinces.  A complete
catalog can be loaded from a YAML or JSON file with the same shape via
:meth:`LocationCatalog.from_file`; the ``ISLETME_BULUCU_LOCATIONS``
environment variable points :func:`get_catalog` at such a file.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .models import Option, SearchCriteria

logger = logging.getLogger(__name__)

ALL_NEIGHBORHOODS_LABEL = "Tüm Mahalleler"
ALL_SUB_CATEGORIES_LABEL = "Tüm Alt Kategoriler"


def _opts(*pairs: Tuple[str, str]) -> List[Option]:
    return [Option(value=v, label=l) for v, l in pairs]


# ====================================================================
# 1.  Provinces -> Districts -> Neighborhoods
# ====================================================================

PROVINCES: List[Option] = _opts(
    ("istanbul", "İstanbul"),
    ("ankara", "Ankara"),
    ("izmir", "İzmir"),
    ("bursa", "Bursa"),
    ("antalya", "Antalya"),
)

DISTRICTS: Dict[str, List[Option]] = {
    "istanbul": _opts(
        ("kadikoy", "Kadıköy"),
        ("besiktas", "Beşiktaş"),
        ("uskudar", "Üsküdar"),
        ("sisli", "Şişli"),
        ("fatih", "Fatih"),
    ),
    "ankara": _opts(
        ("cankaya", "Çankaya"),
        ("kecioren", "Keçiören"),
        ("yenimahalle", "Yenimahalle"),
    ),
    "izmir": _opts(
        ("konak", "Konak"),
        ("karsiyaka", "Karşıyaka"),
        ("bornova", "Bornova"),
    ),
    "bursa": _opts(
        ("osmangazi", "Osmangazi"),
        ("nilufer", "Nilüfer"),
    ),
    "antalya": _opts(
        ("muratpasa", "Muratpaşa"),
        ("konyaalti", "Konyaaltı"),
    ),
}

NEIGHBORHOODS: Dict[Tuple[str, str], List[Option]] = {
    # ----------------------------------------------------------------
    # İstanbul
    # ----------------------------------------------------------------
    ("istanbul", "kadikoy"): _opts(
        ("moda", "Caferağa (Moda)"),
        ("fenerbahce", "Fenerbahçe"),
        ("goztepe", "Göztepe"),
        ("kosuyolu", "Koşuyolu"),
        ("suadiye", "Suadiye"),
        ("erenkoy", "Erenköy"),
    ),
    ("istanbul", "besiktas"): _opts(
        ("bebek", "Bebek"),
        ("etiler", "Etiler"),
        ("levent", "Levent"),
        ("ortakoy", "Ortaköy"),
        ("sinanpasa", "Sinanpaşa"),
    ),
    ("istanbul", "uskudar"): _opts(
        ("kuzguncuk", "Kuzguncuk"),
        ("altunizade", "Altunizade"),
        ("cengelkoy", "Çengelköy"),
        ("mimarsinan", "Mimar Sinan"),
    ),
    ("istanbul", "sisli"): _opts(
        ("mecidiyekoy", "Mecidiyeköy"),
        ("nisantasi", "Teşvikiye (Nişantaşı)"),
        ("fulya", "Fulya"),
        ("esentepe", "Esentepe"),
    ),
    ("istanbul", "fatih"): _opts(
        ("balat", "Balat"),
        ("sultanahmet", "Sultan Ahmet"),
        ("aksaray", "Aksaray"),
        ("fener", "Fener"),
    ),
    # ----------------------------------------------------------------
    # Ankara
    # ----------------------------------------------------------------
    ("ankara", "cankaya"): _opts(
        ("kizilay", "Kızılay"),
        ("bahcelievler", "Bahçelievler"),
        ("cayyolu", "Çayyolu"),
        ("kavaklidere", "Kavaklıdere"),
        ("ayranci", "Ayrancı"),
    ),
    ("ankara", "kecioren"): _opts(
        ("etlik", "Etlik"),
        ("baglum", "Bağlum"),
        ("kalaba", "Kalaba"),
    ),
    ("ankara", "yenimahalle"): _opts(
        ("batikent", "Batıkent"),
        ("demetevler", "Demetevler"),
        ("ostim", "Ostim"),
    ),
    # ----------------------------------------------------------------
    # İzmir
    # ----------------------------------------------------------------
    ("izmir", "konak"): _opts(
        ("alsancak", "Alsancak"),
        ("goztepe", "Göztepe"),
        ("guzelyali", "Güzelyalı"),
        ("kemeralti", "Kemeraltı"),
    ),
    ("izmir", "karsiyaka"): _opts(
        ("bostanli", "Bostanlı"),
        ("mavisehir", "Mavişehir"),
        ("alaybey", "Alaybey"),
    ),
    ("izmir", "bornova"): _opts(
        ("kazimdirik", "Kazımdirik"),
        ("erzene", "Erzene"),
        ("evka3", "Evka 3"),
    ),
    # ----------------------------------------------------------------
    # Bursa
    # ----------------------------------------------------------------
    ("bursa", "osmangazi"): _opts(
        ("heykel", "Heykel"),
        ("cekirge", "Çekirge"),
        ("demirtas", "Demirtaş"),
    ),
    ("bursa", "nilufer"): _opts(
        ("ozluce", "Özlüce"),
        ("gorukle", "Görükle"),
        ("fethiye", "Fethiye"),
    ),
    # ----------------------------------------------------------------
    # Antalya
    # ----------------------------------------------------------------
    ("antalya", "muratpasa"): _opts(
        ("kaleici", "Kaleiçi"),
        ("lara", "Lara"),
        ("sirinyali", "Şirinyalı"),
    ),
    ("antalya", "konyaalti"): _opts(
        ("liman", "Liman"),
        ("hurma", "Hurma"),
        ("sarisu", "Sarısu"),
    ),
}


# ====================================================================
# 2.  Main Categories -> Sub-categories
# ====================================================================

MAIN_CATEGORIES: List[Option] = _opts(
    ("yeme-icme", "Yeme & İçme"),
    ("saglik", "Sağlık"),
    ("guzellik", "Güzellik & Bakım"),
    ("perakende", "Perakende"),
    ("hizmet", "Hizmetler"),
    ("konaklama", "Konaklama"),
)

SUB_CATEGORIES: Dict[str, List[Option]] = {
    "yeme-icme": _opts(
        ("restoran", "Restoran"),
        ("kafe", "Kafe"),
        ("pastane", "Pastane"),
        ("firin", "Fırın"),
        ("kebapci", "Kebapçı"),
    ),
    "saglik": _opts(
        ("eczane", "Eczane"),
        ("dis-klinigi", "Diş Kliniği"),
        ("veteriner", "Veteriner"),
        ("fizik-tedavi", "Fizik Tedavi Merkezi"),
    ),
    "guzellik": _opts(
        ("kuafor", "Kuaför"),
        ("berber", "Berber"),
        ("guzellik-salonu", "Güzellik Salonu"),
    ),
    "perakende": _opts(
        ("market", "Market"),
        ("kirtasiye", "Kırtasiye"),
        ("cicekci", "Çiçekçi"),
        ("optik", "Optik"),
    ),
    "hizmet": _opts(
        ("oto-servis", "Oto Servis"),
        ("kuru-temizleme", "Kuru Temizleme"),
        ("emlak", "Emlak Ofisi"),
        ("noter", "Noter"),
    ),
    "konaklama": _opts(
        ("otel", "Otel"),
        ("pansiyon", "Pansiyon"),
        ("hostel", "Hostel"),
    ),
}


# ====================================================================
# 3.  Catalog object
# ====================================================================


def label_for(options: List[Option], value: str) -> str:
    """Resolve an option value to its label (``""`` when unknown)."""
    for opt in options:
        if opt.value == value:
            return opt.label
    return ""


class LocationCatalog:
    """Bundle of the five lookup tables with cascade helpers."""

    def __init__(
        self,
        provinces: List[Option],
        districts: Dict[str, List[Option]],
        neighborhoods: Dict[Tuple[str, str], List[Option]],
        main_categories: List[Option],
        sub_categories: Dict[str, List[Option]],
    ):
        self.provinces = provinces
        self.districts = districts
        self.neighborhoods = neighborhoods
        self.main_categories = main_categories
        self.sub_categories = sub_categories

    @classmethod
    def builtin(cls) -> "LocationCatalog":
        return cls(PROVINCES, DISTRICTS, NEIGHBORHOODS, MAIN_CATEGORIES, SUB_CATEGORIES)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationCatalog":
        """Build a catalog from a nested mapping.

        Expected shape::

            provinces:
              - value: istanbul
                label: İstanbul
                districts:
                  - value: kadikoy
                    label: Kadıköy
                    neighborhoods:
                      - {value: moda, label: Moda}
            categories:
              - value: yeme-icme
                label: Yeme & İçme
                sub_categories:
                  - {value: kafe, label: Kafe}
        """
        provinces: List[Option] = []
        districts: Dict[str, List[Option]] = {}
        neighborhoods: Dict[Tuple[str, str], List[Option]] = {}
        for prov in data.get("provinces", []):
            p = Option(value=prov["value"], label=prov["label"])
            provinces.append(p)
            districts[p.value] = []
            for dist in prov.get("districts", []):
                d = Option(value=dist["value"], label=dist["label"])
                districts[p.value].append(d)
                neighborhoods[(p.value, d.value)] = [
                    Option(value=n["value"], label=n["label"])
                    for n in dist.get("neighborhoods", [])
                ]

        main_categories: List[Option] = []
        sub_categories: Dict[str, List[Option]] = {}
        for cat in data.get("categories", []):
            c = Option(value=cat["value"], label=cat["label"])
            main_categories.append(c)
            sub_categories[c.value] = [
                Option(value=s["value"], label=s["label"])
                for s in cat.get("sub_categories", [])
            ]

        if not provinces or not main_categories:
            raise ValueError("Location catalog needs at least one province and one category")
        return cls(provinces, districts, neighborhoods, main_categories, sub_categories)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "LocationCatalog":
        """Load a catalog from a YAML (``.yaml``/``.yml``) or JSON file."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        catalog = cls.from_dict(data)
        logger.info(
            "Loaded location catalog from %s (%d provinces, %d categories)",
            path, len(catalog.provinces), len(catalog.main_categories),
        )
        return catalog

    # -- cascade helpers -----------------------------------------------------

    def get_district_options(self, province: str) -> List[Option]:
        return list(self.districts.get(province, [])) if province else []

    def get_neighborhood_options(self, province: str, district: str) -> List[Option]:
        if not province or not district:
            return []
        return list(self.neighborhoods.get((province, district), []))

    def get_sub_category_options(self, main_category: str) -> List[Option]:
        return list(self.sub_categories.get(main_category, [])) if main_category else []

    def resolve_labels(self, criteria: SearchCriteria) -> Dict[str, str]:
        """Labels for every part of the criteria, ready for display/prompting."""
        neighborhood_label = (
            label_for(
                self.get_neighborhood_options(criteria.province, criteria.district),
                criteria.neighborhood,
            )
            if criteria.neighborhood
            else ALL_NEIGHBORHOODS_LABEL
        )
        sub_category_label = (
            label_for(self.get_sub_category_options(criteria.main_category), criteria.sub_category)
            if criteria.sub_category
            else ALL_SUB_CATEGORIES_LABEL
        )
        return {
            "province_label": label_for(self.provinces, criteria.province),
            "district_label": label_for(
                self.get_district_options(criteria.province), criteria.district,
            ),
            "neighborhood_label": neighborhood_label,
            "main_category_label": label_for(self.main_categories, criteria.main_category),
            "sub_category_label": sub_category_label,
        }


@lru_cache(maxsize=1)
def get_catalog() -> LocationCatalog:
    """Return the active catalog (file from env var, else built-in)."""
    path = os.environ.get("ISLETME_BULUCU_LOCATIONS", "")
    if path:
        return LocationCatalog.from_file(path)
    return LocationCatalog.builtin()


# Module-level shortcuts over the active catalog

def get_district_options(province: str) -> List[Option]:
    return get_catalog().get_district_options(province)


def get_neighborhood_options(province: str, district: str) -> List[Option]:
    return get_catalog().get_neighborhood_options(province, district)


def get_sub_category_options(main_category: str) -> List[Option]:
    return get_catalog().get_sub_category_options(main_category)


def resolve_labels(criteria: SearchCriteria, catalog: Optional[LocationCatalog] = None) -> Dict[str, str]:
    return (catalog or get_catalog()).resolve_labels(criteria)
