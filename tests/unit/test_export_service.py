"""
Tests for export_service: price list Excel generation.
"""

from datetime import date
from decimal import Decimal

from openpyxl import load_workbook

from services.export_service import (
    ExportService,
    get_export_service,
    export_filename,
    EXPORT_HEADERS,
    HIDDEN_PRICE,
)
from models.actor import Actor, Role
from models.product import ProductResponse, Phase
from parsers.excel_parser import decode_workbook
from parsers.product_rows import TEMPLATE_HEADERS, match_headers


def make_product(**overrides) -> ProductResponse:
    data = {
        "id": "p-1",
        "category_id": "cat-1",
        "brand_id": "brand-1",
        "category_name": "Submersible",
        "brand_name": "Pentax",
        "model_number": "SUB-100",
        "hp": 1,
        "outlet": "1 inch",
        "max_head": 50,
        "max_flow": 120,
        "watt": 750,
        "phase": Phase.SINGLE,
        "price": Decimal("15000"),
        "created_at": "2025-01-01T00:00:00Z",
    }
    data.update(overrides)
    return ProductResponse(**data)


def read_rows(output) -> list[tuple]:
    wb = load_workbook(output)
    return list(wb.active.iter_rows(values_only=True))


class TestTemplate:

    def test_headers_and_sample_rows(self):
        rows = read_rows(ExportService().generate_template())

        assert list(rows[0]) == TEMPLATE_HEADERS
        assert rows[1][:3] == ("Submersible", "Pentax", "SUB-NEW-001")
        assert rows[2][:3] == ("Centrifugal", "Deep Tec", "CENT-NEW-001")

    def test_template_passes_header_validation(self):
        content = ExportService().generate_template().getvalue()

        sheet = decode_workbook(content)

        assert set(match_headers(sheet.headers)) == {
            "category", "brand", "model_number", "hp", "outlet",
            "max_head", "max_flow", "watt", "phase", "price",
        }


class TestProductExport:

    def test_admin_sees_prices(self):
        admin = Actor(id="a", role=Role.ADMIN)

        rows = read_rows(ExportService().generate_product_export([make_product()], admin))

        assert list(rows[0]) == EXPORT_HEADERS
        assert rows[1] == ("Submersible", "Pentax", "SUB-100", 1, "1 inch", 50, 120, 750, "1 Phase", 15000)

    def test_employee_price_hidden(self):
        employee = Actor(id="e", role=Role.EMPLOYEE)

        rows = read_rows(ExportService().generate_product_export([make_product()], employee))

        assert rows[1][-1] == HIDDEN_PRICE

    def test_project_user_sees_prices(self):
        project_user = Actor(id="p", role=Role.PROJECT_USER)

        rows = read_rows(ExportService().generate_product_export([make_product()], project_user))

        assert rows[1][-1] == 15000

    def test_missing_max_flow_blank(self):
        admin = Actor(id="a", role=Role.ADMIN)

        rows = read_rows(ExportService().generate_product_export([make_product(max_flow=None)], admin))

        assert rows[1][6] is None

    def test_export_reuploadable(self):
        admin = Actor(id="a", role=Role.ADMIN)
        output = ExportService().generate_product_export([make_product()], admin)

        sheet = decode_workbook(output.getvalue())

        assert len(match_headers(sheet.headers)) == 10
        assert sheet.rows[0].values["Model Number"] == "SUB-100"

    def test_empty_export_has_headers(self):
        admin = Actor(id="a", role=Role.ADMIN)

        rows = read_rows(ExportService().generate_product_export([], admin))

        assert rows == [tuple(EXPORT_HEADERS)]


class TestHelpers:

    def test_export_filename(self):
        assert export_filename(date(2025, 3, 7)) == "products-export-2025-03-07.xlsx"

    def test_singleton(self):
        assert get_export_service() is get_export_service()
