"""Input discovery and parser selection."""

from pathlib import Path

from superstore_normalizer.models.transaction import RawRecord
from superstore_normalizer.parsers.base import BaseParser, ParseError
from superstore_normalizer.parsers.csv_parser import CSVParser
from superstore_normalizer.parsers.excel_parser import ExcelParser
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)


class FileDetector:
    """Finds input files and routes each to a parser.

    All parsers share the same strict/lenient policy so that malformed rows
    are treated the same way whatever the file format.
    """

    def __init__(self, strict: bool = False):
        """Initialize with all available parsers.

        Args:
            strict: If True, parsers abort on the first malformed row.
                   If False (default), malformed rows are logged and rejected.
        """
        self.strict = strict
        self.parsers: list[BaseParser] = [
            CSVParser(strict=strict),
            ExcelParser(strict=strict),
        ]

    @property
    def supported_extensions(self) -> list[str]:
        """Get all supported file extensions."""
        extensions: set[str] = set()
        for parser in self.parsers:
            extensions.update(parser.supported_extensions)
        return sorted(extensions)

    @property
    def rejected_rows(self) -> int:
        """Rows rejected as malformed across all parsed files."""
        return sum(parser.rejected_rows for parser in self.parsers)

    def discover_files(self, input_path: Path) -> list[Path]:
        """Resolve the input to a list of files.

        A file path is returned as-is. A directory is searched recursively
        for supported files, sorted by name so ids are assigned in a stable
        order across runs.

        Args:
            input_path: File or directory.

        Returns:
            List of candidate input files.
        """
        if input_path.is_file():
            return [input_path]

        if not input_path.is_dir():
            logger.warning(f"Input not found: {input_path}")
            return []

        files: list[Path] = []
        supported = set(self.supported_extensions)
        resolved_directory = input_path.resolve()

        for file_path in input_path.rglob("*"):
            if file_path.is_file() and file_path.suffix.lower() in supported:
                try:
                    # Symlinks must not escape the input directory
                    file_path.resolve().relative_to(resolved_directory)
                except ValueError:
                    logger.warning(
                        f"Skipping file outside target directory (symlink traversal): {file_path}"
                    )
                    continue
                files.append(file_path)

        files.sort(key=lambda p: p.name.lower())

        logger.info(f"Discovered {len(files)} potential files in {input_path}")
        return files

    def detect_parser(self, file_path: Path) -> BaseParser | None:
        """Return the first parser that accepts the file, or None."""
        for parser in self.parsers:
            if parser.can_parse(file_path):
                logger.debug(f"File {file_path.name} matched by {parser.name}")
                return parser

        logger.warning(f"No parser found for {file_path.name}")
        return None

    def parse_file(self, file_path: Path) -> list[RawRecord]:
        """Parse a single file using the appropriate parser.

        Args:
            file_path: Path to the file.

        Returns:
            List of RawRecord objects.

        Raises:
            ParseError: If no parser accepts the file or parsing fails.
        """
        parser = self.detect_parser(file_path)
        if parser is None:
            # Supported extension that failed detection: let its parser raise
            parser = self._parser_for_extension(file_path)
        if parser is None:
            raise ParseError(f"No parser found for file: {file_path}", file_path)

        return parser.parse(file_path)

    def _parser_for_extension(self, file_path: Path) -> BaseParser | None:
        suffix = file_path.suffix.lower()
        for parser in self.parsers:
            if suffix in parser.supported_extensions:
                return parser
        return None
