"""Tests for CSV and Excel output."""

import csv
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from openpyxl import load_workbook

from superstore_normalizer.config import Config
from superstore_normalizer.models.transaction import ShipMode, TransactionRecord
from superstore_normalizer.output import CSVExporter, ExcelWriter
from superstore_normalizer.output.excel_writer import ANALYSIS_SHEETS
from superstore_normalizer.output.rows import TABLE_COLUMNS, to_text
from superstore_normalizer.processing.analysis import generate_analysis_report
from superstore_normalizer.processing.feature_deriver import FeatureDeriver


def create_record(
    record_id: int,
    order_id: str,
    sales: str,
    profit: str,
    product_name: str = "Bush Somerset Collection Bookcase",
) -> TransactionRecord:
    """Helper to create a TransactionRecord for testing."""
    return TransactionRecord(
        id=record_id,
        order_id=order_id,
        order_date=date(2016, 11, 8),
        ship_date=date(2016, 11, 11),
        ship_mode=ShipMode.SECOND_CLASS,
        customer_id="CG-12520",
        customer_name="Claire Gute",
        segment="Consumer",
        country="United States",
        city="Henderson",
        state="Kentucky",
        postal_code="04240",
        region="South",
        product_id="FUR-BO-10001798",
        category="Furniture",
        sub_category="Bookcases",
        product_name=product_name,
        sales=Decimal(sales),
        quantity=2,
        discount=Decimal("0.45"),
        profit=Decimal(profit),
    )


@pytest.fixture
def records() -> list[TransactionRecord]:
    """Enriched records, deliberately out of id order."""
    return FeatureDeriver().derive_all([
        create_record(7, "CA-2", "957.5775", "-383.031"),
        create_record(3, "CA-1", "261.96", "41.9136", product_name="=HYPERLINK()"),
    ])


def read_csv(path: Path) -> list[dict[str, str]]:
    """Helper to read a CSV file into dicts."""
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


class TestToText:
    """Tests for cell rendering."""

    def test_rounding_half_up(self) -> None:
        """Test that money rounds half up to the requested places."""
        assert to_text(Decimal("2.345"), 2) == "2.35"
        assert to_text(Decimal("-0.001"), 2) == "0.00"

    def test_other_types(self) -> None:
        """Test dates, None, and integers."""
        assert to_text(date(2017, 1, 2)) == "2017-01-02"
        assert to_text(None) == ""
        assert to_text(5) == "5"


class TestCSVExporter:
    """Tests for CSVExporter."""

    def test_table_ordered_by_id(self, tmp_path: Path, records: list[TransactionRecord]) -> None:
        """Test the normalized table columns, order, and formatting."""
        path = tmp_path / "out" / "normalized.csv"

        created = CSVExporter(Config()).export(path, records)

        assert created == [path]
        rows = read_csv(path)
        assert list(rows[0].keys()) == TABLE_COLUMNS
        assert [r["id"] for r in rows] == ["3", "7"]
        assert rows[0]["order_date"] == "2016-11-08"
        assert rows[0]["postal_code"] == "04240"
        assert rows[0]["sales"] == "261.96"
        assert rows[0]["discount"] == "0.4500"
        assert rows[0]["shipping_duration"] == "3"
        assert rows[0]["customer_tier"] == "Mid Value Customer"
        assert rows[1]["profit"] == "-383.03"
        assert rows[1]["customer_tier"] == "High Value Customer"

    def test_formula_text_sanitized(self, tmp_path: Path, records: list[TransactionRecord]) -> None:
        """Test that text cells cannot inject spreadsheet formulas."""
        path = tmp_path / "normalized.csv"

        CSVExporter(Config()).export(path, records)

        assert read_csv(path)[0]["product_name"] == "'=HYPERLINK()"

    def test_analysis_files(self, tmp_path: Path, records: list[TransactionRecord]) -> None:
        """Test that each analysis is written beside the table."""
        path = tmp_path / "normalized.csv"
        report = generate_analysis_report(records)

        created = CSVExporter(Config()).export(path, records, report)

        names = sorted(p.name for p in created)
        assert names == sorted(
            ["normalized.csv"] + [f"{name}.csv" for name in ANALYSIS_SHEETS]
        )
        tiers = read_csv(tmp_path / "tier_contribution.csv")
        assert tiers[0] == {
            "customer_tier": "Mid Value Customer",
            "total_transactions": "1",
            "total_profit": "41.91",
        }
        ratio = read_csv(tmp_path / "sub_category_profit.csv")[0]["profit_ratio"]
        assert ratio == "-0.2797"

    def test_decimal_places_setting(self, tmp_path: Path, records: list[TransactionRecord]) -> None:
        """Test configurable money precision."""
        config = Config()
        config.output.decimal_places = 0
        path = tmp_path / "normalized.csv"

        CSVExporter(config).export(path, records)

        assert read_csv(path)[1]["sales"] == "958"


class TestExcelWriter:
    """Tests for ExcelWriter."""

    def test_workbook_sheets(self, tmp_path: Path, records: list[TransactionRecord]) -> None:
        """Test that the table and every analysis get a sheet."""
        path = tmp_path / "normalized.xlsx"
        report = generate_analysis_report(records)

        ExcelWriter(Config()).write(path, records, report)

        wb = load_workbook(path)
        assert wb.sheetnames == [ExcelWriter.SHEET_TABLE, *ANALYSIS_SHEETS.values()]

    def test_table_values_typed(self, tmp_path: Path, records: list[TransactionRecord]) -> None:
        """Test that numbers and dates stay typed in the workbook."""
        path = tmp_path / "normalized.xlsx"

        ExcelWriter(Config()).write(path, records)

        ws = load_workbook(path)[ExcelWriter.SHEET_TABLE]
        header = [c.value for c in ws[1]]
        assert header == TABLE_COLUMNS
        first = {h: c for h, c in zip(header, ws[2])}
        assert first["id"].value == 3
        assert first["sales"].value == pytest.approx(261.96)
        assert first["order_date"].value.date() == date(2016, 11, 8)
        assert first["product_name"].value == "'=HYPERLINK()"
        second = {h: c for h, c in zip(header, ws[3])}
        assert second["profit"].value == pytest.approx(-383.031)
        assert second["profit"].font.color.rgb.endswith("CC0000")
        assert ws.freeze_panes == "A2"
