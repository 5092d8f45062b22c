"""Tabular views of search results (pandas) and clipboard export."""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import pandas as pd

from ..config.models import NOT_AVAILABLE, Business

logger = logging.getLogger(__name__)

EMPTY_EXPORT_MESSAGE = "Dışa aktarılacak veri bulunmamaktadır."


class ExportError(Exception):
    """Raised when results cannot be exported."""


# (header, Business attribute) in display order
EXPORT_COLUMNS: List[Tuple[str, str]] = [
    ("İşletme Adı", "business_name"),
    ("Ana Kategori", "main_category"),
    ("Alt Kategori", "sub_category"),
    ("Telefon", "phone"),
    ("İlçe", "district"),
    ("Mahalle", "neighborhood"),
    ("Adres", "address"),
    ("Google Puanı", "google_rating"),
    ("Google Haritalar", "google_maps_link"),
    ("Place ID", "google_place_id"),
    ("Koordinatlar", "coordinates"),
]


def _require_rows(businesses: Sequence[Business]) -> None:
    if not businesses:
        raise ExportError(EMPTY_EXPORT_MESSAGE)


def businesses_to_dataframe(businesses: Sequence[Business]) -> pd.DataFrame:
    """One row per business with Turkish column headers.

    Missing optional values stay as None/NaN so numeric columns keep
    their type; use :func:`display_dataframe` for an on-screen view.
    """
    rows = [
        {header: getattr(b, attr) for header, attr in EXPORT_COLUMNS}
        for b in businesses
    ]
    return pd.DataFrame(rows, columns=[header for header, _ in EXPORT_COLUMNS])


def display_dataframe(businesses: Sequence[Business]) -> pd.DataFrame:
    """Compact table used by the UI: name, category, phone, address, rating."""
    rows = [
        {
            "İşletme Adı": b.business_name,
            "Kategori": f"{b.main_category} / {b.sub_category}".strip(" /"),
            "Telefon": b.display_phone(),
            "Adres": f"{b.neighborhood}, {b.district} - {b.address}".strip(" ,-"),
            "Puan": b.display_rating(),
            "Harita": b.google_maps_link,
        }
        for b in businesses
    ]
    return pd.DataFrame(
        rows, columns=["İşletme Adı", "Kategori", "Telefon", "Adres", "Puan", "Harita"],
    )


def to_clipboard_text(businesses: Sequence[Business]) -> str:
    """Tab-separated text with a header row, ready to paste into a sheet."""
    _require_rows(businesses)
    df = businesses_to_dataframe(businesses)
    return df.to_csv(sep="\t", index=False, na_rep=NOT_AVAILABLE, lineterminator="\n")


def copy_to_clipboard(businesses: Sequence[Business]) -> int:
    """Copy results to the system clipboard. Returns the number of rows."""
    _require_rows(businesses)
    df = businesses_to_dataframe(businesses)
    try:
        df.to_clipboard(sep="\t", index=False, na_rep=NOT_AVAILABLE)
    except Exception as e:
        # pandas raises PyperclipException when no clipboard tool is present
        logger.error("Clipboard copy failed: %s", e)
        raise ExportError(f"Panoya kopyalanamadı: {e}") from e
    logger.info("Copied %d businesses to clipboard", len(df))
    return len(df)
