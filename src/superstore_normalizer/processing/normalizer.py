"""Batch normalization: deduplicate, verify, then derive features."""

from collections.abc import Sequence
from dataclasses import dataclass, field

from superstore_normalizer.models.report import DuplicateKey
from superstore_normalizer.models.transaction import TransactionRecord
from superstore_normalizer.processing.deduplicator import Deduplicator, find_duplicate_keys
from superstore_normalizer.processing.feature_deriver import (
    DEFAULT_THRESHOLDS,
    FeatureDeriver,
    TierThresholds,
)
from superstore_normalizer.utils.logging_config import LogContext, get_logger

logger = get_logger(__name__)


class NormalizationError(Exception):
    """Raised when the normalized table fails its post-conditions."""

    pass


@dataclass
class NormalizationResult:
    """Outcome of one normalization batch.

    Attributes:
        records: Deduplicated, enriched records.
        removed: Records discarded as duplicates.
        duplicate_keys: Natural keys that had duplicates.
        input_count: Number of records passed in.
        negative_durations: Records whose ship date precedes the order date.
    """

    records: list[TransactionRecord] = field(default_factory=list)
    removed: list[TransactionRecord] = field(default_factory=list)
    duplicate_keys: list[DuplicateKey] = field(default_factory=list)
    input_count: int = 0
    negative_durations: int = 0

    @property
    def output_count(self) -> int:
        """Number of records in the normalized table."""
        return len(self.records)


class TableNormalizer:
    """Runs the cleaning pass over a whole table.

    The pass is all-or-nothing: it works on new lists and never mutates the
    input, so a failure in any step leaves the caller's records untouched
    and no partial result is returned.
    """

    def __init__(self, thresholds: TierThresholds = DEFAULT_THRESHOLDS):
        """Initialize normalizer.

        Args:
            thresholds: Customer tier boundaries.
        """
        self.thresholds = thresholds
        self.deduplicator = Deduplicator()

    def normalize(self, records: Sequence[TransactionRecord]) -> NormalizationResult:
        """Deduplicate and enrich a table.

        Args:
            records: Loaded records.

        Returns:
            NormalizationResult.

        Raises:
            PreconditionViolationError: If record ids are not unique.
            NormalizationError: If a duplicate key survives deduplication.
        """
        with LogContext(logger, "normalization", records=len(records)):
            dedup = self.deduplicator.deduplicate(records)

            remaining = find_duplicate_keys(dedup.kept)
            if remaining:
                raise NormalizationError(
                    f"{len(remaining)} duplicate keys remain after deduplication"
                )

            deriver = FeatureDeriver(self.thresholds)
            enriched = deriver.derive_all(dedup.kept)

        result = NormalizationResult(
            records=enriched,
            removed=dedup.removed,
            duplicate_keys=dedup.duplicate_keys,
            input_count=len(records),
            negative_durations=deriver.negative_duration_count,
        )
        logger.info(
            f"Normalized {result.input_count} records into {result.output_count} "
            f"({len(result.removed)} duplicates removed)"
        )
        return result


def normalize_records(
    records: Sequence[TransactionRecord],
    thresholds: TierThresholds = DEFAULT_THRESHOLDS,
) -> list[TransactionRecord]:
    """Convenience function returning only the normalized records."""
    return TableNormalizer(thresholds).normalize(records).records
