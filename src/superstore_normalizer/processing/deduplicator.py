"""Duplicate transaction line removal."""

from collections import Counter, defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from superstore_normalizer.models.report import DuplicateKey
from superstore_normalizer.models.transaction import TransactionRecord
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)


class PreconditionViolationError(Exception):
    """Raised when record ids are not unique.

    Deduplication breaks ties on the surrogate id, so a repeated id makes
    the surviving record ambiguous and the batch must stop.
    """

    def __init__(self, message: str, duplicate_ids: list[int] | None = None):
        """Initialize PreconditionViolationError.

        Args:
            message: Error message.
            duplicate_ids: The ids that occur more than once.
        """
        self.duplicate_ids = duplicate_ids or []
        super().__init__(message)


@dataclass
class DeduplicationResult:
    """Outcome of a deduplication pass.

    Attributes:
        kept: Surviving records, one per natural key, in input order.
        removed: Discarded records.
        duplicate_keys: Natural keys that had more than one record.
    """

    kept: list[TransactionRecord] = field(default_factory=list)
    removed: list[TransactionRecord] = field(default_factory=list)
    duplicate_keys: list[DuplicateKey] = field(default_factory=list)


def find_duplicate_keys(records: Sequence[TransactionRecord]) -> list[DuplicateKey]:
    """List natural keys that occur more than once.

    Args:
        records: Records to check.

    Returns:
        Duplicate keys sorted by (order_id, product_id).
    """
    counts = Counter(record.natural_key for record in records)
    return [
        DuplicateKey(order_id=order_id, product_id=product_id, count=count)
        for (order_id, product_id), count in sorted(counts.items())
        if count > 1
    ]


def ensure_unique_ids(records: Sequence[TransactionRecord]) -> None:
    """Check that every record has a distinct id.

    Raises:
        PreconditionViolationError: If any id repeats.
    """
    id_counts = Counter(record.id for record in records)
    repeated = sorted(record_id for record_id, count in id_counts.items() if count > 1)
    if repeated:
        preview = ", ".join(str(i) for i in repeated[:10])
        raise PreconditionViolationError(
            f"Record ids must be unique; {len(repeated)} repeated: {preview}",
            duplicate_ids=repeated,
        )


class Deduplicator:
    """Removes duplicate transaction lines.

    Records sharing an (order_id, product_id) pair are duplicates. Within
    each group the record with the smallest id (the earliest loaded) is
    kept and the rest are discarded. Groups of one pass through unchanged.

    The input sequence is never modified.
    """

    def deduplicate(self, records: Sequence[TransactionRecord]) -> DeduplicationResult:
        """Remove duplicate records.

        Args:
            records: Loaded records with unique ids.

        Returns:
            DeduplicationResult with kept and removed records.

        Raises:
            PreconditionViolationError: If record ids are not unique.
        """
        ensure_unique_ids(records)

        groups: dict[tuple[str, str], list[TransactionRecord]] = defaultdict(list)
        for record in records:
            groups[record.natural_key].append(record)

        survivor_ids: set[int] = set()
        duplicate_keys: list[DuplicateKey] = []

        for (order_id, product_id), group in groups.items():
            survivor = min(group, key=lambda r: r.id)
            survivor_ids.add(survivor.id)
            if len(group) > 1:
                duplicate_keys.append(
                    DuplicateKey(order_id=order_id, product_id=product_id, count=len(group))
                )
                logger.debug(
                    f"Duplicate key ({order_id}, {product_id}): keeping id {survivor.id}, "
                    f"removing {sorted(r.id for r in group if r.id != survivor.id)}"
                )

        result = DeduplicationResult(duplicate_keys=sorted(
            duplicate_keys, key=lambda k: (k.order_id, k.product_id)
        ))
        for record in records:
            if record.id in survivor_ids:
                result.kept.append(record)
            else:
                result.removed.append(record)

        logger.info(
            f"Removed {len(result.removed)} duplicate records "
            f"across {len(result.duplicate_keys)} keys"
        )
        return result


def deduplicate(records: Sequence[TransactionRecord]) -> list[TransactionRecord]:
    """Convenience function returning only the surviving records.

    Args:
        records: Loaded records with unique ids.

    Returns:
        One record per (order_id, product_id), the one with the smallest id.
    """
    return Deduplicator().deduplicate(records).kept
