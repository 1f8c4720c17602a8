"""
Excel upload parsers.

excel_parser decodes workbooks; product_rows gives the columns meaning.
"""

from parsers.excel_parser import (
    decode_workbook,
    DecodedSheet,
    SheetRow,
)
from parsers.product_rows import (
    match_headers,
    normalize_row,
    RowCandidate,
    RowError,
    TEMPLATE_HEADERS,
)

__all__ = [
    "decode_workbook",
    "DecodedSheet",
    "SheetRow",
    "match_headers",
    "normalize_row",
    "RowCandidate",
    "RowError",
    "TEMPLATE_HEADERS",
]
