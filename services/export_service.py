"""
Export service: Generate price list Excel files.

Builds the bulk upload template and the filtered product export.
"""

from datetime import date
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter
import structlog

from models.actor import Actor, Role
from models.product import ProductResponse
from parsers.product_rows import TEMPLATE_HEADERS

logger = structlog.get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_HEADERS = [
    "Category", "Brand", "Model Number", "HP", "Outlet",
    "Max Head", "Max Flow", "Watt", "Phase", "Price (Rs.)",
]

TEMPLATE_SAMPLE_ROWS = [
    ["Submersible", "Pentax", "SUB-NEW-001", 1, "1 inch", 50, 120, 750, "1 Phase", 15000],
    ["Centrifugal", "Deep Tec", "CENT-NEW-001", 2, "2 inch", 35, 300, 1500, "3 Phase", 25000],
]

HIDDEN_PRICE = "N/A"


def export_filename(today: Optional[date] = None) -> str:
    """products-export-YYYY-MM-DD.xlsx"""
    return f"products-export-{(today or date.today()).isoformat()}.xlsx"


class ExportService:
    """Service for generating price list workbooks."""

    def generate_template(self) -> BytesIO:
        """
        Upload template: the expected headers plus two sample rows.

        Returns:
            BytesIO containing the Excel file
        """
        logger.info("generating_upload_template")
        return self._write_sheet("Products", TEMPLATE_HEADERS, TEMPLATE_SAMPLE_ROWS)

    def generate_product_export(
        self,
        products: list[ProductResponse],
        actor: Actor
    ) -> BytesIO:
        """
        Export products in upload-compatible column order.

        Employees see "N/A" instead of prices.

        Args:
            products: Products to export, already filtered and sorted
            actor: Requesting user

        Returns:
            BytesIO containing the Excel file
        """
        hide_price = actor.role == Role.EMPLOYEE

        logger.info(
            "generating_product_export",
            product_count=len(products),
            hide_price=hide_price
        )

        rows = [
            [
                p.category_name,
                p.brand_name,
                p.model_number,
                p.hp,
                p.outlet,
                p.max_head,
                p.max_flow,
                p.watt,
                p.phase.value,
                HIDDEN_PRICE if hide_price else float(p.price),
            ]
            for p in products
        ]

        return self._write_sheet("Products", EXPORT_HEADERS, rows)

    def _write_sheet(self, title: str, headers: list[str], rows: list[list]) -> BytesIO:
        wb = Workbook()
        ws = wb.active
        ws.title = title

        header_font = Font(bold=True)
        header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")

        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center")

        for row_idx, values in enumerate(rows, start=2):
            for col, value in enumerate(values, start=1):
                ws.cell(row=row_idx, column=col, value=value)

        # Column widths sized to the longest value
        for col, header in enumerate(headers, start=1):
            longest = max(
                [len(str(header))] + [len(str(r[col - 1])) for r in rows if r[col - 1] is not None]
            )
            ws.column_dimensions[get_column_letter(col)].width = min(longest + 2, 40)

        ws.freeze_panes = "A2"

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output


# Singleton instance for convenience
_export_service: Optional[ExportService] = None

def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
