"""Excel workbook writer for the normalized table and analyses."""

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from superstore_normalizer.config import Config
from superstore_normalizer.models.report import AnalysisReport
from superstore_normalizer.models.transaction import TransactionRecord
from superstore_normalizer.output.rows import (
    RATIO_COLUMNS,
    RATIO_PLACES,
    TABLE_COLUMNS,
    analysis_tables,
    record_cells,
)
from superstore_normalizer.utils.logging_config import get_logger
from superstore_normalizer.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)

# Sheet titles, keyed by analysis table name (Excel limits titles to 31 chars)
ANALYSIS_SHEETS = {
    "sub_category_profit": "Sub-Category Profit",
    "discount_profit": "Discount Impact",
    "tier_contribution": "Tier Contribution",
    "shipping_performance": "Shipping by Mode",
    "monthly_sales": "Monthly Sales",
    "yearly_sales_range": "Yearly Sales Range",
}


class ExcelWriter:
    """Writes the normalized table and analyses to one workbook.

    Generates sheets:
    - Normalized Data
    - one sheet per analysis (see ANALYSIS_SHEETS)
    """

    SHEET_TABLE = "Normalized Data"

    def __init__(self, config: Config):
        """Initialize Excel writer.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.output_config = config.output

        self.header_font = Font(bold=True, color="FFFFFF")
        self.header_fill = PatternFill(
            start_color="4472C4", end_color="4472C4", fill_type="solid"
        )
        self.centered = Alignment(horizontal="center")
        self.negative_font = Font(color="CC0000")

    def write(
        self,
        output_path: Path,
        records: Sequence[TransactionRecord],
        report: AnalysisReport | None = None,
    ) -> Path:
        """Write all data to an Excel workbook.

        Args:
            output_path: Path for output file.
            records: Normalized records.
            report: Analysis results, or None for the table only.

        Returns:
            The written path.
        """
        logger.info(f"Writing Excel workbook to {output_path}")

        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        table_rows = [record_cells(r) for r in sorted(records, key=lambda r: r.id)]
        self._create_sheet(wb, self.SHEET_TABLE, TABLE_COLUMNS, table_rows)

        if report is not None:
            for name, (headers, rows) in analysis_tables(report).items():
                self._create_sheet(wb, ANALYSIS_SHEETS[name], headers, rows)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Excel workbook saved: {output_path}")
        return output_path

    def _create_sheet(
        self,
        wb: Workbook,
        title: str,
        headers: list[str],
        rows: list[list[object]],
    ) -> Worksheet:
        ws = wb.create_sheet(title)

        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = self.header_font
            cell.fill = self.header_fill
            cell.alignment = self.centered

        for row_idx, row in enumerate(rows, 2):
            for col, (header, value) in enumerate(zip(headers, row), 1):
                cell = ws.cell(row=row_idx, column=col, value=self._cell_value(value))
                if isinstance(value, Decimal):
                    cell.number_format = self._number_format(header)
                    if value < 0:
                        cell.font = self.negative_font
                elif isinstance(value, date):
                    cell.number_format = "yyyy-mm-dd"

        ws.freeze_panes = "A2"
        for col, header in enumerate(headers, 1):
            ws.column_dimensions[get_column_letter(col)].width = max(12, len(header) + 4)

        logger.debug(f"Created sheet '{title}' with {len(rows)} rows")
        return ws

    def _cell_value(self, value: object) -> object:
        if isinstance(value, Decimal):
            return float(value)
        if isinstance(value, str):
            return sanitize_for_csv(value)
        return value

    def _number_format(self, header: str) -> str:
        places = RATIO_PLACES if header in RATIO_COLUMNS else self.output_config.decimal_places
        return "#,##0" + ("." + "0" * places if places else "")
