"""File parsers for transaction table exports."""

from superstore_normalizer.parsers.base import BaseParser, MalformedRecordError, ParseError
from superstore_normalizer.parsers.csv_parser import CSVParser
from superstore_normalizer.parsers.detector import FileDetector
from superstore_normalizer.parsers.excel_parser import ExcelParser

__all__ = [
    "BaseParser",
    "ParseError",
    "MalformedRecordError",
    "CSVParser",
    "ExcelParser",
    "FileDetector",
]
