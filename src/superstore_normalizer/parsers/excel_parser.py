"""Excel parser using the openpyxl library."""

import zipfile
from collections.abc import Iterator, Sequence
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from superstore_normalizer.models.transaction import RawRecord
from superstore_normalizer.parsers.base import (
    BaseParser,
    MalformedRecordError,
    ParseError,
    map_columns,
)
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum Excel file size to prevent memory exhaustion (50 MB)
MAX_EXCEL_FILE_SIZE = 50 * 1024 * 1024

# Same row cap as CSV input
MAX_EXCEL_ROWS = 500_000

# Errors openpyxl raises for files that are not readable workbooks
UNREADABLE_WORKBOOK_ERRORS = (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError)


class ExcelParser(BaseParser):
    """Parser for .xlsx workbooks.

    Reads the first worksheet whose first row maps onto the record
    columns. Date and number cells are used as typed by the workbook.
    """

    @property
    def supported_extensions(self) -> list[str]:
        """Return supported file extensions."""
        return [".xlsx", ".xlsm"]

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the file.

        Args:
            file_path: Path to the file.

        Returns:
            True if the file is a readable workbook.
        """
        if not self._check_extension(file_path):
            return False

        try:
            wb = load_workbook(file_path, read_only=True, data_only=True)
            wb.close()
            return True
        except UNREADABLE_WORKBOOK_ERRORS as e:
            logger.debug(f"{file_path.name} is not a readable workbook: {e}")
            return False

    def parse(self, file_path: Path) -> list[RawRecord]:
        """Parse a workbook and return raw records.

        Args:
            file_path: Path to the workbook.

        Returns:
            List of RawRecord objects in sheet row order.

        Raises:
            ParseError: If no worksheet holds a transaction table.
            MalformedRecordError: In strict mode, on the first bad row.
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_size = file_path.stat().st_size
        if file_size > MAX_EXCEL_FILE_SIZE:
            raise ParseError(
                f"File too large ({file_size / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_EXCEL_FILE_SIZE / 1024 / 1024:.0f} MB",
                file_path,
            )

        logger.info(f"Parsing Excel file: {file_path.name}")

        try:
            wb = load_workbook(file_path, read_only=True, data_only=True)
        except UNREADABLE_WORKBOOK_ERRORS as e:
            raise ParseError(f"Failed to open Excel file: {e}", file_path) from e

        try:
            for sheet in wb.worksheets:
                rows = sheet.iter_rows(values_only=True)
                header = next(rows, None)
                if header is None:
                    continue
                try:
                    mapping = map_columns(header)
                except ParseError:
                    logger.debug(f"Sheet '{sheet.title}' has no transaction header, skipping")
                    continue

                records = self._parse_rows(rows, mapping, file_path)
                logger.info(
                    f"Parsed {len(records)} records from {file_path.name} [{sheet.title}]"
                )
                return records
        finally:
            wb.close()

        raise ParseError(f"No worksheet with transaction columns in {file_path.name}", file_path)

    def _parse_rows(
        self,
        rows: Iterator[Sequence[object]],
        mapping: dict[str, int],
        file_path: Path,
    ) -> list[RawRecord]:
        records: list[RawRecord] = []
        for row_num, row in enumerate(rows, start=1):
            if row_num > MAX_EXCEL_ROWS:
                raise ParseError(
                    f"Sheet exceeds maximum row limit ({MAX_EXCEL_ROWS:,} rows). "
                    f"Split file into smaller chunks.",
                    file_path,
                )
            if not row or all(cell is None or str(cell).strip() == "" for cell in row):
                continue
            try:
                records.append(self.build_record(row, mapping, file_path, row_num))
            except MalformedRecordError as e:
                self.handle_malformed(e)
        return records
