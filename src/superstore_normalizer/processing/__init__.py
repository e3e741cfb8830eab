"""Transaction table processing pipeline components."""

from superstore_normalizer.processing.analysis import generate_analysis_report
from superstore_normalizer.processing.data_quality import profile_records
from superstore_normalizer.processing.deduplicator import (
    DeduplicationResult,
    Deduplicator,
    PreconditionViolationError,
    deduplicate,
    find_duplicate_keys,
)
from superstore_normalizer.processing.feature_deriver import (
    HIGH_VALUE_THRESHOLD,
    MID_VALUE_THRESHOLD,
    FeatureDeriver,
    TierThresholds,
    classify_customer_tier,
    derive_features,
    shipping_duration_days,
)
from superstore_normalizer.processing.loader import RecordLoader, load_records
from superstore_normalizer.processing.normalizer import (
    NormalizationError,
    NormalizationResult,
    TableNormalizer,
    normalize_records,
)

__all__ = [
    "RecordLoader",
    "load_records",
    "profile_records",
    "Deduplicator",
    "DeduplicationResult",
    "PreconditionViolationError",
    "deduplicate",
    "find_duplicate_keys",
    "FeatureDeriver",
    "TierThresholds",
    "HIGH_VALUE_THRESHOLD",
    "MID_VALUE_THRESHOLD",
    "classify_customer_tier",
    "derive_features",
    "shipping_duration_days",
    "TableNormalizer",
    "NormalizationResult",
    "NormalizationError",
    "normalize_records",
    "generate_analysis_report",
]
