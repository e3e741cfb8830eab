"""Command-line interface for the superstore normalizer."""

import argparse
import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from superstore_normalizer import __version__
from superstore_normalizer.config import (
    Config,
    ConfigError,
    load_config,
    save_settings,
    validate_thresholds,
)
from superstore_normalizer.models.report import AnalysisReport, DataProfile
from superstore_normalizer.models.transaction import RawRecord
from superstore_normalizer.processing.feature_deriver import TierThresholds
from superstore_normalizer.utils.logging_config import get_logger, setup_logging

# SUPERSTORE_LOG_LEVEL may come from a local .env
load_dotenv()

console = Console()
logger = get_logger(__name__)


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: '{value}'") from None


def create_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="superstore-normalizer",
        description=(
            "Remove duplicate order lines from a retail transaction export, "
            "derive shipping duration and customer tier, and report aggregates"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -i superstore.csv
  %(prog)s -i ./exports -o output/normalized.xlsx --csv
  %(prog)s -i superstore.csv --strict --high-value-threshold 1000
  %(prog)s -i superstore.csv --profile-only
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-i", "--input",
        type=Path,
        default=None,
        help="Input file or directory of CSV/XLSX exports",
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output file, .csv or .xlsx (default: output/YYYYMMDD_HHMMSS/normalized.csv)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: <config-dir>/settings.yaml)",
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        default=Path("config"),
        help="Directory holding settings.yaml (default: ./config)",
    )

    # Tier overrides
    parser.add_argument(
        "--high-value-threshold",
        type=_decimal_arg,
        default=None,
        help="Sales at or above this are High Value (default: 500)",
    )

    parser.add_argument(
        "--mid-value-threshold",
        type=_decimal_arg,
        default=None,
        help="Sales above this are at least Mid Value (default: 100)",
    )

    # Output options
    parser.add_argument(
        "--csv",
        action="store_true",
        help="Also write CSV files when the output is .xlsx",
    )

    parser.add_argument(
        "--xlsx",
        action="store_true",
        help="Also export an Excel workbook (when using .csv output)",
    )

    # Processing options
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first malformed row instead of rejecting it",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (-v, -vv)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Normalize and analyze but do not write output",
    )

    parser.add_argument(
        "--profile-only",
        action="store_true",
        help="Show the data profile (counts, nulls, duplicates) and stop",
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Check settings and exit",
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a settings.yaml with default values to the config directory",
    )

    return parser


def get_log_level(verbosity: int) -> str:
    """Map the number of -v flags to a log level name.

    Args:
        verbosity: How many times -v was given.

    Returns:
        Log level string.
    """
    if verbosity >= 2:
        return "DEBUG"
    elif verbosity >= 1:
        return "INFO"
    else:
        return "WARNING"


def generate_default_output_path() -> Path:
    """Timestamped default location for the normalized table.

    Returns:
        Path with format output/YYYYMMDD_HHMMSS/normalized.csv
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(f"output/{timestamp}/normalized.csv")


def validate_config(args: argparse.Namespace) -> int:
    """Load settings and report whether they are usable.

    Args:
        args: Command-line namespace.

    Returns:
        0 when settings load cleanly, 1 otherwise.
    """
    console.print("[bold]Checking settings[/bold]\n")

    settings_path = args.config or (args.config_dir / "settings.yaml")
    if settings_path.exists():
        console.print(f"[green]✓[/green] Settings: {settings_path}")
    else:
        console.print(f"[yellow]Settings file not found: {settings_path} (defaults apply)[/yellow]")

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
    except ConfigError as e:
        console.print(f"\n[red]Errors:[/red]\n  - {e}")
        return 1

    console.print("\n[green]✓[/green] Effective settings:")
    console.print(f"  - High value threshold: {config.tiers.high_value}")
    console.print(f"  - Mid value threshold: {config.tiers.mid_value}")
    console.print(f"  - Strict parsing: {config.parsing.strict}")
    console.print(f"  - Output format: {config.output.format}")
    console.print("\n[green]Settings OK.[/green]")
    return 0


def apply_overrides(config: Config, args: argparse.Namespace) -> None:
    """Apply command-line overrides to the loaded configuration.

    Raises:
        ConfigError: If the resulting tier thresholds are invalid.
    """
    if args.strict:
        config.parsing.strict = True

    if args.high_value_threshold is not None or args.mid_value_threshold is not None:
        thresholds = TierThresholds(
            high_value=(
                args.high_value_threshold
                if args.high_value_threshold is not None
                else config.tiers.high_value
            ),
            mid_value=(
                args.mid_value_threshold
                if args.mid_value_threshold is not None
                else config.tiers.mid_value
            ),
        )
        validate_thresholds(thresholds)
        config.tiers = thresholds


def display_profile(profile: DataProfile) -> None:
    """Display the pre-cleaning data profile.

    Args:
        profile: Profile of the loaded table.
    """
    table = Table(title="Data Profile", show_header=False)
    table.add_column("Check")
    table.add_column("Value", justify="right")
    table.add_row("Total records", str(profile.total_records))
    table.add_row("Order date span", profile.period_display)
    table.add_row("Unique customers", str(profile.unique_customers))
    table.add_row("Rows with missing keys", str(profile.rows_with_missing_keys))
    table.add_row("Duplicate (order, product) keys", str(len(profile.duplicate_keys)))
    table.add_row("Rows to remove", str(profile.duplicate_rows))
    console.print(table)

    for key in profile.duplicate_keys[:10]:
        console.print(f"  [yellow]{key.order_id} / {key.product_id}: {key.count} rows[/yellow]")
    if len(profile.duplicate_keys) > 10:
        console.print(f"  ... and {len(profile.duplicate_keys) - 10} more")


def display_analysis(report: AnalysisReport) -> None:
    """Display headline findings from the analysis report.

    Args:
        report: Analysis results.
    """
    console.print("\n[bold]Findings[/bold]")

    best = report.most_profitable_sub_category
    worst = report.least_profitable_sub_category
    if best and worst:
        console.print(f"  Most profitable sub-category: {best.sub_category} ({best.profit_ratio:.2%})")
        console.print(f"  Least profitable sub-category: {worst.sub_category} ({worst.profit_ratio:.2%})")

    tiers = Table(title="Profit by Customer Tier")
    tiers.add_column("Tier")
    tiers.add_column("Orders", justify="right")
    tiers.add_column("Profit", justify="right")
    for row in report.tier_contribution:
        tiers.add_row(row.customer_tier.value, str(row.order_count), f"{row.total_profit:,.2f}")
    console.print(tiers)

    shipping = Table(title="Shipping Duration by Mode")
    shipping.add_column("Ship mode")
    shipping.add_column("Avg days", justify="right")
    shipping.add_column("Fastest", justify="right")
    shipping.add_column("Slowest", justify="right")
    for perf in report.shipping_performance:
        shipping.add_row(
            perf.ship_mode.value,
            f"{perf.average_days:.2f}",
            str(perf.fastest_days),
            str(perf.slowest_days),
        )
    console.print(shipping)


def display_summary(
    total_files: int,
    parsed_files: int,
    loaded_records: int,
    rejected_rows: int,
    duplicates_removed: int,
    output_records: int,
    negative_durations: int,
    errors: list[str],
) -> None:
    """Print the end-of-run counts.

    Args:
        total_files: Input files found.
        parsed_files: Files that yielded records.
        loaded_records: Records loaded before cleaning.
        rejected_rows: Malformed rows rejected.
        duplicates_removed: Duplicate records removed.
        output_records: Records in the normalized table.
        negative_durations: Records shipped before they were ordered.
        errors: Messages for files that could not be parsed.
    """
    console.print("\n[bold]Run Summary[/bold]")
    console.print(f"  Input files: {total_files}")
    console.print(f"  Files loaded: {parsed_files}")
    console.print(f"  Records loaded: {loaded_records}")
    console.print(f"  Malformed rows rejected: {rejected_rows}")
    console.print(f"  Duplicates removed: {duplicates_removed}")
    console.print(f"  Normalized records: {output_records}")
    if negative_durations:
        console.print(f"  [yellow]Negative shipping durations: {negative_durations}[/yellow]")

    display_file_errors(errors)


def display_file_errors(errors: list[str]) -> None:
    """Print the files that could not be parsed, if any."""
    if not errors:
        return
    console.print(f"\n[red]Skipped files ({len(errors)}):[/red]")
    for e in errors[:10]:
        console.print(f"  - {e}")
    if len(errors) > 10:
        console.print(f"  ... and {len(errors) - 10} more")


def create_progress() -> Progress:
    """Progress bar used for parsing and writing.

    Returns:
        Rich Progress instance.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        console=console,
    )


def write_outputs(
    args: argparse.Namespace,
    config: Config,
    records: list,
    report: AnalysisReport,
) -> list[Path]:
    """Write the primary output format and any requested secondary one.

    Returns:
        Paths of written files.
    """
    from superstore_normalizer.output import CSVExporter, ExcelWriter

    written: list[Path] = []
    is_csv_output = args.output.suffix.lower() != ".xlsx"

    with create_progress() as progress:
        if is_csv_output or args.csv:
            task = progress.add_task("CSV", total=1)
            csv_path = args.output if is_csv_output else args.output.with_suffix(".csv")
            written.extend(CSVExporter(config).export(csv_path, records, report))
            progress.update(task, advance=1)

        if not is_csv_output or args.xlsx:
            task = progress.add_task("Workbook", total=1)
            xlsx_path = args.output.with_suffix(".xlsx")
            written.append(ExcelWriter(config).write(xlsx_path, records, report))
            progress.update(task, advance=1)

    return written


def main(argv: list[str] | None = None) -> int:
    """Run the normalizer from the command line.

    Args:
        argv: Arguments (default: sys.argv[1:]).

    Returns:
        0 on success, 1 when the batch was aborted or an input file was skipped.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging
    setup_logging(level=get_log_level(args.verbose), console_output=args.verbose > 0)

    # Validate only mode
    if args.validate_only:
        return validate_config(args)

    try:
        config = load_config(settings_path=args.config, config_dir=args.config_dir)
        apply_overrides(config, args)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        return 1

    # Settings may name another log file or level; -v flags still win
    log_level = get_log_level(args.verbose) if args.verbose else config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file, console_output=args.verbose > 0)

    if args.init_config:
        settings_path = args.config or (args.config_dir / "settings.yaml")
        save_settings(settings_path, config)
        console.print(f"[green]Settings written to {settings_path}[/green]")
        return 0

    if args.input is None:
        console.print("[red]Error: --input is required[/red]")
        parser.print_usage()
        return 1

    if not args.input.exists():
        console.print(f"[red]Error: Input not found: {args.input}[/red]")
        return 1

    if args.output is None:
        args.output = generate_default_output_path()
        if config.output.format == "xlsx":
            args.output = args.output.with_suffix(".xlsx")
        console.print(f"[dim]Output: {args.output}[/dim]")

    console.print(f"[bold]Superstore Normalizer v{__version__}[/bold]\n")
    console.print(f"Input: {args.input}")
    console.print(
        f"Tiers: High >= {config.tiers.high_value}, Mid > {config.tiers.mid_value}"
    )

    from superstore_normalizer.parsers import FileDetector, MalformedRecordError, ParseError
    from superstore_normalizer.processing import (
        PreconditionViolationError,
        RecordLoader,
        TableNormalizer,
        generate_analysis_report,
        profile_records,
    )
    from superstore_normalizer.processing.normalizer import NormalizationError

    detector = FileDetector(strict=config.parsing.strict)
    loader = RecordLoader()

    error_list: list[str] = []
    raw_by_file: dict[str, list[RawRecord]] = {}

    files = detector.discover_files(args.input)
    total_files = len(files)
    console.print(f"\n{total_files} input file(s)")

    if total_files == 0:
        console.print("[yellow]No supported files found.[/yellow]")
        return 0

    with create_progress() as progress:
        task = progress.add_task("Parsing files...", total=total_files)

        for file_path in files:
            progress.console.print(f"  {file_path.name}")
            progress.update(task, advance=1)
            try:
                raw_by_file[str(file_path)] = detector.parse_file(file_path)
            except MalformedRecordError as e:
                # Strict mode: one bad row aborts the whole batch
                console.print(f"[red]Error: {file_path.name}: {e}[/red]")
                logger.error(f"Batch aborted: {file_path.name}: {e}")
                return 1
            except ParseError as e:
                error_msg = f"{file_path.name}: {e}"
                if config.parsing.strict:
                    console.print(f"[red]Error: {error_msg}[/red]")
                    return 1
                error_list.append(error_msg)
                logger.warning(error_msg)

    # A skipped file fails the run even when the other files load
    exit_code = 1 if error_list else 0

    records = loader.load_all(raw_by_file)
    console.print(f"Loaded {len(records)} records from {len(raw_by_file)} files")

    if not records:
        console.print("[yellow]No records found.[/yellow]")
        display_file_errors(error_list)
        return exit_code

    profile = profile_records(records)
    display_profile(profile)

    if args.profile_only:
        display_file_errors(error_list)
        return exit_code

    # Cleaning runs as one pass; any failure aborts before analysis
    try:
        with console.status("[bold green]Removing duplicates and deriving features..."):
            result = TableNormalizer(config.tiers).normalize(records)
    except (PreconditionViolationError, NormalizationError) as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.error(f"Normalization aborted: {e}")
        return 1

    with console.status("[bold green]Running analysis..."):
        report = generate_analysis_report(result.records)

    display_analysis(report)

    if not args.dry_run:
        written = write_outputs(args, config, result.records, report)
        console.print(f"\n[green]Wrote {len(written)} files to {args.output.parent}[/green]")
    else:
        console.print("\n[yellow]Dry run: nothing written[/yellow]")

    display_summary(
        total_files=total_files,
        parsed_files=len(raw_by_file),
        loaded_records=len(records),
        rejected_rows=detector.rejected_rows,
        duplicates_removed=len(result.removed),
        output_records=result.output_count,
        negative_durations=result.negative_durations,
        errors=error_list,
    )

    if error_list:
        logger.error(f"{len(error_list)} input files could not be parsed")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
