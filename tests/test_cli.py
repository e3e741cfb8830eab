"""Tests for the command-line entry point."""

import csv
from pathlib import Path
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from superstore_normalizer.cli import create_parser, get_log_level, main

HEADER = (
    "Row ID,Order ID,Order Date,Ship Date,Ship Mode,Customer ID,Customer Name,Segment,"
    "Country,City,State,Postal Code,Region,Product ID,Category,Sub-Category,Product Name,"
    "Sales,Quantity,Discount,Profit"
)


def make_row(row_id: int, order_id: str, product_id: str, sales: str, order_date: str = "11/8/2016") -> str:
    """Helper to build one Superstore CSV line."""
    return (
        f"{row_id},{order_id},{order_date},11/11/2016,Second Class,CG-12520,Claire Gute,"
        f"Consumer,United States,Henderson,Kentucky,42420,South,{product_id},Furniture,"
        f"Chairs,Chair,{sales},2,0,10.5"
    )


class TestMain:
    """End-to-end tests for main()."""

    @pytest.fixture(autouse=True)
    def workdir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        """Run each test from an empty directory so logs and config stay local."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("SUPERSTORE_LOG_LEVEL", raising=False)
        return tmp_path

    @pytest.fixture
    def input_file(self, tmp_path: Path) -> Path:
        """Export with one duplicated order line."""
        path = tmp_path / "superstore.csv"
        path.write_text(
            "\n".join([
                HEADER,
                make_row(1, "CA-1", "P1", "600"),
                make_row(2, "CA-1", "P2", "50"),
                make_row(3, "CA-1", "P1", "600"),
                make_row(4, "CA-2", "P1", "150"),
            ]) + "\n",
            encoding="utf-8",
        )
        return path

    def test_normalizes_to_csv(self, tmp_path: Path, input_file: Path) -> None:
        """Test that duplicates are removed and features written."""
        output = tmp_path / "out" / "normalized.csv"

        assert main(["-i", str(input_file), "-o", str(output)]) == 0

        with open(output, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [(r["id"], r["order_id"], r["product_id"]) for r in rows] == [
            ("1", "CA-1", "P1"),
            ("2", "CA-1", "P2"),
            ("4", "CA-2", "P1"),
        ]
        assert [r["customer_tier"] for r in rows] == [
            "High Value Customer",
            "Low Value Customer",
            "Mid Value Customer",
        ]
        assert {r["shipping_duration"] for r in rows} == {"3"}
        assert (output.parent / "monthly_sales.csv").exists()

    def test_xlsx_secondary_output(self, tmp_path: Path, input_file: Path) -> None:
        """Test that --xlsx adds a workbook beside the CSV."""
        output = tmp_path / "out" / "normalized.csv"

        assert main(["-i", str(input_file), "-o", str(output), "--xlsx"]) == 0

        wb = load_workbook(output.with_suffix(".xlsx"))
        assert wb["Normalized Data"].max_row == 4

    def test_threshold_override(self, tmp_path: Path, input_file: Path) -> None:
        """Test that tier thresholds can be set on the command line."""
        output = tmp_path / "normalized.csv"

        assert main([
            "-i", str(input_file), "-o", str(output),
            "--high-value-threshold", "1000", "--mid-value-threshold", "40",
        ]) == 0

        with open(output, newline="", encoding="utf-8") as f:
            tiers = [r["customer_tier"] for r in csv.DictReader(f)]
        assert tiers == ["Mid Value Customer", "Mid Value Customer", "Mid Value Customer"]

    def test_invalid_threshold_override(self, tmp_path: Path, input_file: Path) -> None:
        """Test that a mid threshold above the high threshold is rejected."""
        assert main(["-i", str(input_file), "--mid-value-threshold", "600"]) == 1

    def test_strict_aborts_batch(self, tmp_path: Path, input_file: Path) -> None:
        """Test that one malformed row fails the run in strict mode."""
        with open(input_file, "a", encoding="utf-8") as f:
            f.write(make_row(5, "CA-3", "P1", "10", order_date="bad") + "\n")
        output = tmp_path / "out" / "normalized.csv"

        assert main(["-i", str(input_file), "-o", str(output), "--strict"]) == 1
        assert not output.exists()

    def test_lenient_rejects_row(self, tmp_path: Path, input_file: Path) -> None:
        """Test that malformed rows are skipped by default."""
        with open(input_file, "a", encoding="utf-8") as f:
            f.write(make_row(5, "CA-3", "P1", "10", order_date="bad") + "\n")
        output = tmp_path / "normalized.csv"

        assert main(["-i", str(input_file), "-o", str(output)]) == 0

        with open(output, newline="", encoding="utf-8") as f:
            assert len(list(csv.DictReader(f))) == 3

    def test_unparseable_file_fails_run(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test that a file without the record columns is reported and fails the run."""
        path = tmp_path / "nocols.csv"
        path.write_text(HEADER.replace(",Profit", "") + "\n", encoding="utf-8")
        output = tmp_path / "out" / "normalized.csv"

        assert main(["-i", str(path), "-o", str(output)]) == 1

        out = capsys.readouterr().out
        assert "Skipped files (1)" in out
        assert "Missing required columns" in out
        assert not output.exists()

    def test_corrupt_workbook_fails_run(self, tmp_path: Path) -> None:
        """Test that an unreadable workbook is a reported failure, not a crash."""
        path = tmp_path / "broken.xlsx"
        path.write_text("not a zip", encoding="utf-8")

        assert main(["-i", str(path), "-o", str(tmp_path / "normalized.csv")]) == 1

    def test_skipped_file_in_directory(self, tmp_path: Path, input_file: Path) -> None:
        """Test that good files are still written when another file is skipped."""
        exports = tmp_path / "exports"
        exports.mkdir()
        input_file.rename(exports / "a.csv")
        (exports / "b.xlsx").write_text("not a zip", encoding="utf-8")
        output = tmp_path / "out" / "normalized.csv"

        assert main(["-i", str(exports), "-o", str(output)]) == 1

        with open(output, newline="", encoding="utf-8") as f:
            assert len(list(csv.DictReader(f))) == 3

    def test_missing_input(self, tmp_path: Path) -> None:
        """Test that a missing input path fails."""
        assert main(["-i", str(tmp_path / "nope.csv")]) == 1

    def test_input_required(self) -> None:
        """Test that running without input fails."""
        assert main([]) == 1

    def test_profile_only(self, tmp_path: Path, input_file: Path) -> None:
        """Test that profiling stops before normalization."""
        output = tmp_path / "out" / "normalized.csv"

        with patch("superstore_normalizer.processing.TableNormalizer") as mock_normalizer:
            assert main(["-i", str(input_file), "-o", str(output), "--profile-only"]) == 0
            mock_normalizer.assert_not_called()

        assert not output.exists()

    def test_dry_run(self, tmp_path: Path, input_file: Path) -> None:
        """Test that a dry run writes nothing."""
        output = tmp_path / "out" / "normalized.csv"

        assert main(["-i", str(input_file), "-o", str(output), "--dry-run"]) == 0
        assert not output.parent.exists()

    def test_validate_only(self, tmp_path: Path) -> None:
        """Test configuration validation exit codes."""
        assert main(["--validate-only"]) == 0

        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "settings.yaml").write_text(
            "tiers:\n  high_value_threshold: 10\n", encoding="utf-8"
        )
        assert main(["--validate-only"]) == 1

    def test_init_config(self, tmp_path: Path) -> None:
        """Test that --init-config writes a loadable settings file."""
        assert main(["--init-config", "--high-value-threshold", "750"]) == 0

        content = (tmp_path / "config" / "settings.yaml").read_text(encoding="utf-8")
        assert "high_value_threshold: '750'" in content

    def test_directory_input(self, tmp_path: Path) -> None:
        """Test that a directory of exports is loaded in name order."""
        exports = tmp_path / "exports"
        exports.mkdir()
        (exports / "b.csv").write_text(HEADER + "\n" + make_row(1, "CA-1", "P1", "20") + "\n", encoding="utf-8")
        (exports / "a.csv").write_text(HEADER + "\n" + make_row(1, "CA-1", "P1", "30") + "\n", encoding="utf-8")
        output = tmp_path / "normalized.csv"

        assert main(["-i", str(exports), "-o", str(output)]) == 0

        with open(output, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]["sales"] == "30.00"


class TestParserOptions:
    """Tests for argument handling helpers."""

    @pytest.mark.parametrize(("count", "level"), [(0, "WARNING"), (1, "INFO"), (2, "DEBUG"), (3, "DEBUG")])
    def test_get_log_level(self, count: int, level: str) -> None:
        """Test verbosity to log level mapping."""
        assert get_log_level(count) == level

    def test_threshold_must_be_number(self) -> None:
        """Test that non-numeric thresholds are rejected by argparse."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--high-value-threshold", "lots"])
