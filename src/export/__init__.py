"""Export of search results to XLSX and the clipboard."""

from .table import (
    EXPORT_COLUMNS,
    ExportError,
    businesses_to_dataframe,
    copy_to_clipboard,
    display_dataframe,
    to_clipboard_text,
)
from .xlsx import DEFAULT_FILENAME, SHEET_NAME, XLSX_MIME, BusinessExcelExporter

__all__ = [
    "EXPORT_COLUMNS",
    "ExportError",
    "businesses_to_dataframe",
    "copy_to_clipboard",
    "display_dataframe",
    "to_clipboard_text",
    "DEFAULT_FILENAME",
    "SHEET_NAME",
    "XLSX_MIME",
    "BusinessExcelExporter",
]
