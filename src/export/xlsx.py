"""Excel (XLSX) export of search results."""
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from ..config.models import Business
from .table import EXPORT_COLUMNS, ExportError, EMPTY_EXPORT_MESSAGE

logger = logging.getLogger(__name__)

SHEET_NAME = "İşletmeler"
DEFAULT_FILENAME = "isletme_bulucu_sonuclari.xlsx"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FILL = PatternFill(start_color="FF4F46E5", end_color="FF4F46E5", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFFFF")
LINK_FONT = Font(color="FF4F46E5", underline="single")
MAX_COLUMN_WIDTH = 60


class BusinessExcelExporter:
    """Writes a list of businesses to a single-sheet workbook."""

    def __init__(self, businesses: Sequence[Business], sheet_name: str = SHEET_NAME):
        if not businesses:
            raise ExportError(EMPTY_EXPORT_MESSAGE)
        self.businesses = list(businesses)
        self.sheet_name = sheet_name

    def build(self) -> openpyxl.Workbook:
        """
        Build the workbook in memory.

        Steps:
        1. Header row (bold, filled, frozen, auto-filter)
        2. One row per business; rating as number, maps link as hyperlink
        3. Column widths fitted to content
        """
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = self.sheet_name

        headers = [header for header, _ in EXPORT_COLUMNS]
        ws.append(headers)
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
            cell.alignment = Alignment(vertical="center")

        link_col = [attr for _, attr in EXPORT_COLUMNS].index("google_maps_link") + 1
        rating_col = [attr for _, attr in EXPORT_COLUMNS].index("google_rating") + 1

        for row_idx, business in enumerate(self.businesses, start=2):
            for col_idx, (_, attr) in enumerate(EXPORT_COLUMNS, start=1):
                value = getattr(business, attr)
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                if col_idx == link_col and value:
                    cell.hyperlink = value
                    cell.font = LINK_FONT
                elif col_idx == rating_col and value is not None:
                    cell.number_format = "0.0"

        ws.freeze_panes = "A2"
        ws.auto_filter.ref = ws.dimensions
        self._fit_columns(ws)
        return wb

    def _fit_columns(self, ws) -> None:
        widths: Dict[int, int] = {}
        for row in ws.iter_rows():
            for cell in row:
                if cell.value is None:
                    continue
                length = len(str(cell.value))
                widths[cell.column] = max(widths.get(cell.column, 0), length)
        for col, width in widths.items():
            ws.column_dimensions[get_column_letter(col)].width = min(width + 2, MAX_COLUMN_WIDTH)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.build().save(buffer)
        return buffer.getvalue()

    def save(self, path: Union[str, Path] = DEFAULT_FILENAME) -> str:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.build().save(str(output_path))
        logger.info(f"Exported {len(self.businesses)} businesses to {output_path}")
        return str(output_path)

    def get_summary(self) -> Dict[str, Any]:
        """Counts shown above the export buttons."""
        by_sub: Dict[str, int] = {}
        for b in self.businesses:
            by_sub[b.sub_category or "-"] = by_sub.get(b.sub_category or "-", 0) + 1
        rated: List[float] = [b.google_rating for b in self.businesses if b.google_rating is not None]
        return {
            "total": len(self.businesses),
            "with_phone": sum(1 for b in self.businesses if b.phone),
            "average_rating": round(sum(rated) / len(rated), 2) if rated else None,
            "by_sub_category": by_sub,
        }
