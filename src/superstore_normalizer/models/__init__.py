"""Data models for transaction records and reports."""

from superstore_normalizer.models.report import (
    AnalysisReport,
    DataProfile,
    DiscountProfit,
    DuplicateKey,
    MonthlySales,
    ShippingPerformance,
    SubCategoryProfit,
    TierContribution,
    YearlySalesRange,
)
from superstore_normalizer.models.transaction import (
    CustomerTier,
    RawRecord,
    ShipMode,
    TransactionRecord,
)

__all__ = [
    "RawRecord",
    "TransactionRecord",
    "ShipMode",
    "CustomerTier",
    "DataProfile",
    "DuplicateKey",
    "AnalysisReport",
    "SubCategoryProfit",
    "DiscountProfit",
    "TierContribution",
    "ShippingPerformance",
    "MonthlySales",
    "YearlySalesRange",
]
