"""Output generation for CSV and Excel exports."""

from superstore_normalizer.output.csv_exporter import CSVExporter
from superstore_normalizer.output.excel_writer import ExcelWriter

__all__ = ["CSVExporter", "ExcelWriter"]
