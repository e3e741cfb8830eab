"""Abstract base class for file parsers and the shared row schema."""

import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional, TypeVar

from superstore_normalizer.models.transaction import RawRecord, ShipMode
from superstore_normalizer.utils.date_utils import parse_date
from superstore_normalizer.utils.decimal_utils import parse_rate, to_decimal
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)

# Every input column, in table order
RECORD_FIELDS = (
    "order_id",
    "order_date",
    "ship_date",
    "ship_mode",
    "customer_id",
    "customer_name",
    "segment",
    "country",
    "city",
    "state",
    "postal_code",
    "region",
    "product_id",
    "category",
    "sub_category",
    "product_name",
    "sales",
    "quantity",
    "discount",
    "profit",
)

# Header spellings that differ from the field name once normalized
HEADER_ALIASES = {
    "sales_amount": "sales",
    "profit_amount": "profit",
    "postcode": "postal_code",
    "zip": "postal_code",
    "zip_code": "postal_code",
    "subcategory": "sub_category",
}

# Surrogate-key columns in exports; ids are always reassigned on load
IGNORED_HEADERS = {"row_id", "id"}

T = TypeVar("T")


class ParseError(Exception):
    """Exception raised when parsing fails."""

    def __init__(self, message: str, file_path: Optional[Path] = None):
        """Initialize ParseError.

        Args:
            message: Error message.
            file_path: Optional path to the file that failed to parse.
        """
        self.file_path = file_path
        super().__init__(message)


class MalformedRecordError(ParseError):
    """A row whose values cannot be converted to a record."""

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        line: Optional[int] = None,
        field: Optional[str] = None,
    ):
        """Initialize MalformedRecordError.

        Args:
            message: Error message.
            file_path: Path to the file containing the row.
            line: Data row number (1-based, header excluded).
            field: Name of the offending field.
        """
        self.line = line
        self.field = field
        super().__init__(message, file_path)


def normalize_header(header: str) -> str:
    """Reduce a column header to a field-style name.

    "Order ID" -> "order_id", "Sub-Category" -> "sub_category".
    """
    name = re.sub(r"[\s\-\.]+", "_", header.strip().lower()).strip("_")
    return HEADER_ALIASES.get(name, name)


def map_columns(headers: Sequence[object]) -> dict[str, int]:
    """Map record fields to column indices.

    Args:
        headers: Header row cells.

    Returns:
        Dict of field name to column index.

    Raises:
        ParseError: If any required column is absent.
    """
    mapping: dict[str, int] = {}
    for idx, header in enumerate(headers):
        if header is None:
            continue
        name = normalize_header(str(header))
        if name in IGNORED_HEADERS:
            continue
        if name in RECORD_FIELDS and name not in mapping:
            mapping[name] = idx

    missing = [f for f in RECORD_FIELDS if f not in mapping]
    if missing:
        raise ParseError(f"Missing required columns: {', '.join(missing)}")
    return mapping


def _text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Spreadsheets store numeric postal codes as floats
        return str(int(value))
    return str(value).strip()


def _quantity(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity {value!r}")
    if isinstance(value, int):
        return value
    amount = to_decimal(value)
    if amount != amount.to_integral_value():
        raise ValueError(f"Quantity must be a whole number, got {value!r}")
    return int(amount)


class BaseParser(ABC):
    """Abstract base class for all file parsers.

    Subclasses must implement:
    - supported_extensions: List of file extensions this parser handles
    - can_parse(): Check if this parser can handle a file
    - parse(): Parse a file and return raw records

    Row conversion is shared: ``build_record`` turns a row of cell values
    into a RawRecord or raises MalformedRecordError, and ``handle_malformed``
    applies the strict/lenient policy uniformly across formats.
    """

    def __init__(self, strict: bool = False):
        """Initialize parser.

        Args:
            strict: If True, abort on the first malformed row.
                   If False, log a warning and skip malformed rows.
        """
        self.strict = strict
        self.rejected_rows = 0

    @property
    @abstractmethod
    def supported_extensions(self) -> list[str]:
        """Return list of file extensions this parser supports."""
        pass

    @property
    def name(self) -> str:
        """Return parser name for logging."""
        return self.__class__.__name__

    @abstractmethod
    def can_parse(self, file_path: Path) -> bool:
        """Check if this parser can handle the given file.

        Args:
            file_path: Path to the file to check.

        Returns:
            True if this parser can handle the file.
        """
        pass

    @abstractmethod
    def parse(self, file_path: Path) -> list[RawRecord]:
        """Parse a file and return raw records.

        Args:
            file_path: Path to the file to parse.

        Returns:
            List of RawRecord objects in file order.

        Raises:
            ParseError: If the file cannot be parsed.
            MalformedRecordError: In strict mode, on the first bad row.
            FileNotFoundError: If file doesn't exist.
        """
        pass

    def build_record(
        self,
        row: Sequence[object],
        mapping: dict[str, int],
        file_path: Path,
        line: int,
    ) -> RawRecord:
        """Convert one row of cells to a RawRecord.

        Args:
            row: Cell values.
            mapping: Field to column index mapping.
            file_path: Source file (for error context).
            line: Data row number.

        Returns:
            The parsed record.

        Raises:
            MalformedRecordError: If a date, number, or ship mode is invalid.
        """

        def cell(name: str) -> object:
            idx = mapping[name]
            return row[idx] if idx < len(row) else None

        def convert(name: str, converter: Callable[[object], T]) -> T:
            value = cell(name)
            try:
                return converter(value)
            except (ValueError, TypeError) as e:
                raise MalformedRecordError(
                    f"Row {line}: invalid {name} {value!r}: {e}",
                    file_path,
                    line=line,
                    field=name,
                ) from e

        sales = convert("sales", to_decimal)
        if sales < 0:
            raise MalformedRecordError(
                f"Row {line}: sales must be non-negative, got {sales}",
                file_path,
                line=line,
                field="sales",
            )

        return RawRecord(
            order_id=_text(cell("order_id")),
            order_date=convert("order_date", parse_date),
            ship_date=convert("ship_date", parse_date),
            ship_mode=convert("ship_mode", lambda v: ShipMode.from_label(_text(v))),
            customer_id=_text(cell("customer_id")),
            customer_name=_text(cell("customer_name")),
            segment=_text(cell("segment")),
            country=_text(cell("country")),
            city=_text(cell("city")),
            state=_text(cell("state")),
            postal_code=_text(cell("postal_code")),
            region=_text(cell("region")),
            product_id=_text(cell("product_id")),
            category=_text(cell("category")),
            sub_category=_text(cell("sub_category")),
            product_name=_text(cell("product_name")),
            sales=sales,
            quantity=convert("quantity", _quantity),
            discount=convert("discount", parse_rate),
            profit=convert("profit", to_decimal),
            source_file=file_path.name,
            source_line=line,
        )

    def handle_malformed(self, error: MalformedRecordError) -> None:
        """Apply the malformed-row policy.

        Raises:
            MalformedRecordError: In strict mode.
        """
        if self.strict:
            raise error
        self.rejected_rows += 1
        logger.warning(f"Rejected row in {error.file_path.name if error.file_path else '?'}: {error}")

    def _check_extension(self, file_path: Path) -> bool:
        """Check if file extension matches supported extensions."""
        return file_path.suffix.lower() in self.supported_extensions

    def _read_first_lines(self, file_path: Path, n_lines: int = 10) -> list[str]:
        """Read first N lines of a text file.

        Useful for format detection without reading entire file.

        Args:
            file_path: Path to the file.
            n_lines: Number of lines to read.

        Returns:
            List of first N lines (empty if the file is unreadable).
        """
        lines = []
        try:
            with open(file_path, encoding="utf-8-sig", errors="replace") as f:
                for i, line in enumerate(f):
                    if i >= n_lines:
                        break
                    lines.append(line.rstrip("\n\r"))
        except OSError as e:
            logger.warning(f"Could not read first lines of {file_path}: {e}")
        return lines
