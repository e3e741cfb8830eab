"""CSV exporter for the normalized table and analysis results."""

import csv
from collections.abc import Sequence
from pathlib import Path

from superstore_normalizer.config import Config
from superstore_normalizer.models.report import AnalysisReport
from superstore_normalizer.models.transaction import TransactionRecord
from superstore_normalizer.output.rows import (
    TABLE_COLUMNS,
    analysis_tables,
    places_for,
    record_cells,
    to_text,
)
from superstore_normalizer.utils.logging_config import get_logger
from superstore_normalizer.utils.sanitize import sanitize_for_csv

logger = get_logger(__name__)


class CSVExporter:
    """Exports the normalized table and analyses to CSV files.

    The table goes to the requested output path; each analysis is written
    next to it:
    - sub_category_profit.csv
    - discount_profit.csv
    - tier_contribution.csv
    - shipping_performance.csv
    - monthly_sales.csv
    - yearly_sales_range.csv
    """

    def __init__(self, config: Config):
        """Initialize CSV exporter.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.output_config = config.output

    def export(
        self,
        output_path: Path,
        records: Sequence[TransactionRecord],
        report: AnalysisReport | None = None,
    ) -> list[Path]:
        """Export the table and, if given, the analysis report.

        Args:
            output_path: Path of the normalized table CSV.
            records: Normalized records.
            report: Analysis results, or None to write only the table.

        Returns:
            List of paths to created CSV files.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        created_files = [self.export_table(output_path, records)]
        if report is not None:
            created_files.extend(self.export_analysis(output_path.parent, report))

        logger.info(f"Exported {len(created_files)} CSV files")
        return created_files

    def export_table(self, output_path: Path, records: Sequence[TransactionRecord]) -> Path:
        """Write the normalized table, ordered by id.

        Args:
            output_path: Destination file.
            records: Normalized records.

        Returns:
            Path to created file.
        """
        rows = [record_cells(r) for r in sorted(records, key=lambda r: r.id)]
        self._write(output_path, TABLE_COLUMNS, rows)
        logger.info(f"Wrote {len(rows)} records to {output_path}")
        return output_path

    def export_analysis(self, base_dir: Path, report: AnalysisReport) -> list[Path]:
        """Write one CSV per analysis into ``base_dir``.

        Args:
            base_dir: Output directory.
            report: Analysis results.

        Returns:
            Paths to created files.
        """
        base_dir.mkdir(parents=True, exist_ok=True)
        created: list[Path] = []
        for name, (headers, rows) in analysis_tables(report).items():
            path = base_dir / f"{name}.csv"
            self._write(path, headers, rows)
            created.append(path)
        return created

    def _write(self, path: Path, headers: list[str], rows: list[list[object]]) -> None:
        places = [places_for(h, self.output_config.decimal_places) for h in headers]
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for row in rows:
                # Only free text is sanitized; negative numbers keep their sign
                writer.writerow(
                    [
                        sanitize_for_csv(value) if isinstance(value, str) else to_text(value, p)
                        for value, p in zip(row, places)
                    ]
                )
