"""CSV parser for Superstore transaction exports."""

import csv
from pathlib import Path

from superstore_normalizer.models.transaction import RawRecord
from superstore_normalizer.parsers.base import (
    BaseParser,
    MalformedRecordError,
    ParseError,
    map_columns,
)
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)

# Maximum CSV file size to prevent memory exhaustion (50 MB)
MAX_CSV_FILE_SIZE = 50 * 1024 * 1024

# Maximum number of rows to prevent memory exhaustion from many small rows
MAX_CSV_ROWS = 500_000

CANDIDATE_DELIMITERS = ",\t;|"


class CSVParser(BaseParser):
    """Parser for delimited text exports of the transaction table.

    The first line must be a header. Columns are matched by name, so
    column order and extra columns do not matter.
    """

    @property
    def supported_extensions(self) -> list[str]:
        """Return supported file extensions."""
        return [".csv", ".tsv", ".txt"]

    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the file.

        Args:
            file_path: Path to the file.

        Returns:
            True if the file has a supported extension and a usable header.
        """
        if not self._check_extension(file_path):
            return False

        lines = self._read_first_lines(file_path, 1)
        if not lines:
            return False

        delimiter = self._detect_delimiter(lines)
        try:
            map_columns(next(csv.reader([lines[0]], delimiter=delimiter)))
        except ParseError as e:
            logger.debug(f"{file_path.name} is not a transaction table: {e}")
            return False
        return True

    def parse(self, file_path: Path) -> list[RawRecord]:
        """Parse a CSV file and return raw records.

        Args:
            file_path: Path to the CSV file.

        Returns:
            List of RawRecord objects in file order.

        Raises:
            ParseError: If the file cannot be parsed.
            MalformedRecordError: In strict mode, on the first bad row.
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        file_size = file_path.stat().st_size
        if file_size > MAX_CSV_FILE_SIZE:
            raise ParseError(
                f"File too large ({file_size / 1024 / 1024:.1f} MB). "
                f"Maximum allowed is {MAX_CSV_FILE_SIZE / 1024 / 1024:.0f} MB",
                file_path,
            )

        delimiter = self._detect_delimiter(self._read_first_lines(file_path, 10))
        logger.info(f"Parsing {file_path.name} (delimiter={delimiter!r})")

        records: list[RawRecord] = []
        rejected_before = self.rejected_rows
        try:
            with open(file_path, encoding="utf-8-sig", errors="replace", newline="") as f:
                reader = csv.reader(f, delimiter=delimiter)

                header = next(reader, None)
                if header is None:
                    raise ParseError(f"Empty file: {file_path.name}", file_path)
                try:
                    mapping = map_columns(header)
                except ParseError as e:
                    raise ParseError(f"{file_path.name}: {e}", file_path) from e

                for row_num, row in enumerate(reader, start=1):
                    if row_num > MAX_CSV_ROWS:
                        raise ParseError(
                            f"File exceeds maximum row limit ({MAX_CSV_ROWS:,} rows). "
                            f"Split file into smaller chunks.",
                            file_path,
                        )

                    if not row or all(cell.strip() == "" for cell in row):
                        continue

                    try:
                        records.append(self.build_record(row, mapping, file_path, row_num))
                    except MalformedRecordError as e:
                        self.handle_malformed(e)

        except ParseError:
            raise
        except (OSError, csv.Error) as e:
            raise ParseError(f"Failed to parse CSV file: {e}", file_path) from e

        rejected = self.rejected_rows - rejected_before
        logger.info(f"Parsed {len(records)} records from {file_path.name} ({rejected} rows rejected)")
        if rejected:
            logger.warning(f"{rejected} rows could not be parsed in {file_path.name} - use -vv for details")
        return records

    def _detect_delimiter(self, lines: list[str]) -> str:
        """Detect the delimiter from the first lines of the file.

        Args:
            lines: First few lines of file.

        Returns:
            Detected delimiter character (comma when undecidable).
        """
        if not lines:
            return ","

        sample = "\n".join(lines[:10])
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS)
            return dialect.delimiter
        except csv.Error:
            pass

        # Fall back to the most frequent candidate in the header line
        counts = {d: lines[0].count(d) for d in CANDIDATE_DELIMITERS}
        best = max(counts, key=lambda d: counts[d])
        return best if counts[best] else ","
