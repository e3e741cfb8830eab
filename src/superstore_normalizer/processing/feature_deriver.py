"""Derived columns: shipping duration and customer tier."""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal

from superstore_normalizer.models.transaction import CustomerTier, TransactionRecord
from superstore_normalizer.utils.date_utils import days_between
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)

# Sales at or above this are HIGH_VALUE
HIGH_VALUE_THRESHOLD = Decimal("500")

# Sales strictly above this, and below HIGH_VALUE_THRESHOLD, are MID_VALUE
MID_VALUE_THRESHOLD = Decimal("100")


@dataclass(frozen=True)
class TierThresholds:
    """Sales thresholds separating customer tiers.

    Attributes:
        high_value: Lowest sales amount classified HIGH_VALUE (inclusive).
        mid_value: Sales must exceed this to be MID_VALUE (exclusive).
    """

    high_value: Decimal = HIGH_VALUE_THRESHOLD
    mid_value: Decimal = MID_VALUE_THRESHOLD


DEFAULT_THRESHOLDS = TierThresholds()


def shipping_duration_days(order_date: date, ship_date: date) -> int:
    """Whole days between order and shipment.

    A ship date before the order date yields a negative duration; it is
    passed through unchanged.
    """
    return days_between(order_date, ship_date)


def classify_customer_tier(
    sales: Decimal,
    thresholds: TierThresholds = DEFAULT_THRESHOLDS,
) -> CustomerTier:
    """Classify a sales amount into a customer tier.

    With default thresholds: 500.00 and above is HIGH_VALUE, 100.01 up to
    499.99 is MID_VALUE, and 100.00 and below is LOW_VALUE.

    Args:
        sales: Line sales amount.
        thresholds: Tier boundaries.

    Returns:
        The customer tier.
    """
    if sales >= thresholds.high_value:
        return CustomerTier.HIGH_VALUE
    if sales > thresholds.mid_value:
        return CustomerTier.MID_VALUE
    return CustomerTier.LOW_VALUE


def derive_features(
    record: TransactionRecord,
    thresholds: TierThresholds = DEFAULT_THRESHOLDS,
) -> TransactionRecord:
    """Return a copy of ``record`` with derived fields computed.

    Derived values depend only on the record's dates and sales amount, so
    applying this to an already enriched record yields the same values.

    Args:
        record: Record to enrich.
        thresholds: Tier boundaries.

    Returns:
        New TransactionRecord with shipping_duration_days and customer_tier set.
    """
    return replace(
        record,
        shipping_duration_days=shipping_duration_days(record.order_date, record.ship_date),
        customer_tier=classify_customer_tier(record.sales, thresholds),
    )


class FeatureDeriver:
    """Enriches deduplicated records with derived columns.

    Counts records whose ship date precedes the order date; such records
    are kept with a negative duration.
    """

    def __init__(self, thresholds: TierThresholds = DEFAULT_THRESHOLDS):
        """Initialize feature deriver.

        Args:
            thresholds: Tier boundaries.
        """
        self.thresholds = thresholds
        self.negative_duration_count = 0

    def derive_all(self, records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
        """Derive features for every record.

        Args:
            records: Deduplicated records.

        Returns:
            New list of enriched records in input order.
        """
        enriched: list[TransactionRecord] = []
        negative = 0

        for record in records:
            derived = derive_features(record, self.thresholds)
            if derived.shipping_duration_days is not None and derived.shipping_duration_days < 0:
                negative += 1
                logger.debug(
                    f"Record {record.id} ({record.order_id}) ships before it was ordered: "
                    f"{record.order_date} -> {record.ship_date}"
                )
            enriched.append(derived)

        self.negative_duration_count = negative
        if negative:
            logger.warning(f"{negative} records have a negative shipping duration")

        logger.info(f"Derived features for {len(enriched)} records")
        return enriched
