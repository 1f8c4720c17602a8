"""
Product upload columns: header validation and row normalization.

Column spellings are data, not code. REQUIRED_COLUMNS drives header
validation and FIELD_ALIASES drives value extraction; both are keyed by
the same logical field names.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
import math
import re

from exceptions import MissingColumnsError
from models.product import Phase
from parsers.excel_parser import SheetRow, CellValue


# Logical field -> (display name, words that must all appear in one header)
REQUIRED_COLUMNS: dict[str, tuple[str, tuple[str, ...]]] = {
    "category": ("category", ("category",)),
    "brand": ("brand", ("brand",)),
    "model_number": ("model number", ("model", "number")),
    "hp": ("hp", ("hp",)),
    "outlet": ("outlet", ("outlet",)),
    "max_head": ("max head", ("max", "head")),
    "max_flow": ("max flow", ("max", "flow")),
    "watt": ("watt", ("watt",)),
    "phase": ("phase", ("phase",)),
    "price": ("price", ("price",)),
}

# Logical field -> accepted header names, in probe order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "category": ("category",),
    "brand": ("brand",),
    "model_number": ("model number", "model_number", "model no"),
    "hp": ("hp",),
    "outlet": ("outlet",),
    "max_head": ("max head", "max_head"),
    "max_flow": ("max flow", "max_flow", "max flow (l/min)"),
    "watt": ("watt", "watts"),
    "phase": ("phase",),
    "price": ("price (Rs.)", "price (rs.)", "price"),
}

# Every field except price must carry a value
REQUIRED_VALUES = (
    "category", "brand", "model_number", "hp", "outlet",
    "max_head", "max_flow", "watt", "phase",
)

NUMERIC_FIELDS = ("hp", "max_head", "max_flow", "watt")

# Template / export column order
TEMPLATE_HEADERS = [
    "category", "brand", "model number", "HP", "outlet",
    "max head", "max flow", "watt", "phase", "price (Rs.)",
]


# ===================
# ROW RESULTS
# ===================

@dataclass
class RowCandidate:
    """A normalized upload row, not yet persisted."""
    row: int
    category_name: str
    brand_name: str
    category_id: str
    brand_id: str
    model_number: str
    hp: float
    outlet: str
    max_head: float
    max_flow: float
    watt: float
    phase: Phase
    price: Optional[Decimal] = None


@dataclass
class RowError:
    """A row that could not be processed."""
    row: int
    code: str
    error: str


# ===================
# HEADER VALIDATION
# ===================

def match_headers(headers: list[str]) -> dict[str, str]:
    """
    Map each required logical field to the first header that satisfies it.

    A header satisfies a field when it contains every word of that field,
    ignoring case ("Price (Rs.)" satisfies price, "Model Number" and
    "modelNumber" satisfy model number).

    Raises:
        MissingColumnsError: Naming every field no header satisfies
    """
    lowered = [(header, header.lower()) for header in headers]
    matched: dict[str, str] = {}
    missing: list[str] = []

    for field_name, (display, words) in REQUIRED_COLUMNS.items():
        for header, low in lowered:
            if all(word in low for word in words):
                matched[field_name] = header
                break
        else:
            missing.append(display)

    if missing:
        raise MissingColumnsError(missing)

    return matched


# ===================
# ROW NORMALIZATION
# ===================

def header_variants(alias: str) -> list[str]:
    """
    Spellings probed for one alias: exact, Capitalized, Title, UPPER, camelCase.

    "max head" -> ["max head", "Max head", "Max Head", "MAX HEAD", "maxHead"]
    """
    words = [w for w in re.split(r"[^0-9a-zA-Z]+", alias) if w]
    camel = words[0].lower() + "".join(w.capitalize() for w in words[1:]) if words else alias

    variants = []
    for candidate in (alias, alias.capitalize(), alias.title(), alias.upper(), camel):
        if candidate not in variants:
            variants.append(candidate)
    return variants


def extract_field(
    values: dict[str, CellValue],
    field_name: str,
    matched_header: Optional[str] = None
) -> Optional[CellValue]:
    """
    First non-empty value among the field's aliases.

    The header picked by match_headers is probed last, so unusual but
    valid headers ("Max Head (m)") still resolve.
    """
    candidates = [
        variant
        for alias in FIELD_ALIASES[field_name]
        for variant in header_variants(alias)
    ]
    if matched_header and matched_header not in candidates:
        candidates.append(matched_header)

    for header in candidates:
        value = values.get(header)
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        return value
    return None


def normalize_row(
    sheet_row: SheetRow,
    category_lookup: dict[str, str],
    brand_lookup: dict[str, str],
    matched_headers: Optional[dict[str, str]] = None
) -> Union[RowCandidate, RowError]:
    """
    Turn one spreadsheet row into a RowCandidate, or a RowError.

    Checks run in a fixed order and the first failure is reported:
    missing values, unknown category, unknown brand, invalid phase,
    invalid number.

    Args:
        sheet_row: Decoded row
        category_lookup: lower-cased category name -> id
        brand_lookup: lower-cased brand name -> id
        matched_headers: Output of match_headers for this sheet
    """
    matched_headers = matched_headers or {}
    raw = {
        name: extract_field(sheet_row.values, name, matched_headers.get(name))
        for name in FIELD_ALIASES
    }

    missing = [
        REQUIRED_COLUMNS[name][0]
        for name in REQUIRED_VALUES
        if raw[name] is None
    ]
    if missing:
        return RowError(
            row=sheet_row.row,
            code="MISSING_REQUIRED_FIELDS",
            error=f"Missing required fields: {', '.join(missing)}"
        )

    category_name = _text(raw["category"])
    brand_name = _text(raw["brand"])

    category_id = category_lookup.get(category_name.lower())
    if not category_id:
        return RowError(
            row=sheet_row.row,
            code="UNKNOWN_CATEGORY",
            error=f"Category '{category_name}' not found"
        )

    brand_id = brand_lookup.get(brand_name.lower())
    if not brand_id:
        return RowError(
            row=sheet_row.row,
            code="UNKNOWN_BRAND",
            error=f"Brand '{brand_name}' not found"
        )

    phase_text = _text(raw["phase"])
    try:
        phase = Phase(phase_text)
    except ValueError:
        return RowError(
            row=sheet_row.row,
            code="INVALID_PHASE",
            error=f'Phase must be "{Phase.SINGLE.value}" or "{Phase.THREE.value}"'
        )

    numbers = {}
    for name in NUMERIC_FIELDS:
        number = _to_number(raw[name])
        if number is None:
            return _invalid_number(sheet_row.row, name, raw[name])
        numbers[name] = number

    price = None
    if raw["price"] is not None:
        price = _to_price(raw["price"])
        if price is None:
            return _invalid_number(sheet_row.row, "price", raw["price"])

    return RowCandidate(
        row=sheet_row.row,
        category_name=category_name,
        brand_name=brand_name,
        category_id=category_id,
        brand_id=brand_id,
        model_number=_text(raw["model_number"]),
        hp=numbers["hp"],
        outlet=_text(raw["outlet"]),
        max_head=numbers["max_head"],
        max_flow=numbers["max_flow"],
        watt=numbers["watt"],
        phase=phase,
        price=price,
    )


# ===================
# HELPER FUNCTIONS
# ===================

def _text(value: CellValue) -> str:
    """Cell as trimmed text; whole floats lose their '.0' (model 1200.0 -> '1200')."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _to_number(value: CellValue) -> Optional[float]:
    """Strict non-negative number, or None."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _to_price(value: CellValue) -> Optional[Decimal]:
    """Strict non-negative decimal price, or None."""
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price < 0:
        return None
    return price


def _invalid_number(row: int, field_name: str, value: CellValue) -> RowError:
    display = REQUIRED_COLUMNS[field_name][0]
    return RowError(
        row=row,
        code="INVALID_NUMBER",
        error=f"{display} must be a non-negative number (got '{value}')"
    )
