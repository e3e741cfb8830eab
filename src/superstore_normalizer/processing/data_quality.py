"""Exploration checks run before cleaning."""

from collections.abc import Sequence

from superstore_normalizer.models.report import DataProfile
from superstore_normalizer.models.transaction import TransactionRecord
from superstore_normalizer.processing.deduplicator import find_duplicate_keys
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)


def has_missing_key(record: TransactionRecord) -> bool:
    """Whether a key column is blank.

    Order date and sales are typed and always present after parsing, so
    only the identifier columns can be missing.
    """
    return not record.order_id.strip() or not record.customer_id.strip()


def profile_records(records: Sequence[TransactionRecord]) -> DataProfile:
    """Summarize a loaded table.

    Args:
        records: Loaded (not yet deduplicated) records.

    Returns:
        DataProfile with counts, date span, and duplicate keys.
    """
    if not records:
        return DataProfile(
            total_records=0,
            start_date=None,
            end_date=None,
            unique_customers=0,
            rows_with_missing_keys=0,
        )

    missing = sum(1 for r in records if has_missing_key(r))
    if missing:
        logger.warning(f"{missing} records have a blank order_id or customer_id")

    profile = DataProfile(
        total_records=len(records),
        start_date=min(r.order_date for r in records),
        end_date=max(r.order_date for r in records),
        unique_customers=len({r.customer_id for r in records if r.customer_id.strip()}),
        rows_with_missing_keys=missing,
        duplicate_keys=find_duplicate_keys(records),
    )

    logger.info(
        f"Profiled {profile.total_records} records ({profile.period_display}), "
        f"{profile.unique_customers} customers, {len(profile.duplicate_keys)} duplicate keys"
    )
    return profile
