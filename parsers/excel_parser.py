"""
Excel decoder for product uploads.

Reads the first worksheet of an uploaded workbook into header names and
row records. Knows nothing about products: column meaning is handled by
parsers.product_rows.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from io import BytesIO
from typing import Any, Union
import math
import numbers
import structlog

import pandas as pd

from exceptions import ExcelParseError

logger = structlog.get_logger(__name__)

CellValue = Union[str, int, float]


@dataclass
class SheetRow:
    """One non-empty data row. `row` is the 1-indexed spreadsheet row number."""
    row: int
    values: dict[str, CellValue] = field(default_factory=dict)


@dataclass
class DecodedSheet:
    """Headers and data rows of the first worksheet."""
    headers: list[str] = field(default_factory=list)
    rows: list[SheetRow] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return len(self.rows) == 0


def decode_workbook(content: bytes) -> DecodedSheet:
    """
    Decode the first worksheet of an .xlsx or .xls file.

    The first row is the header row. Blank cells are left out of the row
    record and fully blank rows are skipped; row numbers still refer to
    the original spreadsheet rows.

    Args:
        content: Raw file bytes

    Returns:
        DecodedSheet

    Raises:
        ExcelParseError: If the bytes are not a readable workbook
    """
    logger.info("decoding_workbook", size=len(content))

    file_obj = BytesIO(content)
    df = None
    last_error = None

    # Try openpyxl first (xlsx), fall back to xlrd (xls)
    for engine in ("openpyxl", "xlrd"):
        try:
            df = pd.read_excel(file_obj, sheet_name=0, dtype=object, engine=engine)
            break
        except Exception as e:
            last_error = e
            file_obj.seek(0)
            continue

    if df is None:
        logger.error("workbook_read_failed", error=str(last_error))
        raise ExcelParseError(
            message="Failed to read Excel file",
            details={"original_error": str(last_error)}
        )

    headers = [
        str(col).strip()
        for col in df.columns
        if not str(col).startswith("Unnamed:") and str(col).strip()
    ]

    sheet = DecodedSheet(headers=headers)

    for idx, record in enumerate(df.to_dict(orient="records")):
        values = {}
        for header, raw in record.items():
            name = str(header).strip()
            if name not in headers:
                continue
            value = _clean_cell(raw)
            if value is not None:
                values[name] = value

        if values:
            sheet.rows.append(SheetRow(row=idx + 2, values=values))  # 1-indexed + header

    logger.info(
        "workbook_decoded",
        headers=len(sheet.headers),
        rows=len(sheet.rows)
    )

    return sheet


def _clean_cell(value: Any) -> Union[CellValue, None]:
    """Turn a pandas cell into str/int/float, or None when blank."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return float(value)
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass

    text = str(value).strip()
    return text or None
