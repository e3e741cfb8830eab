"""Report data models for profiling and analysis output."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from superstore_normalizer.models.transaction import CustomerTier, ShipMode


@dataclass(frozen=True)
class DuplicateKey:
    """A natural key that occurs more than once in a table."""

    order_id: str
    product_id: str
    count: int


@dataclass
class DataProfile:
    """Exploration summary of a loaded table.

    Attributes:
        total_records: Number of records.
        start_date: Earliest order date (None if no data).
        end_date: Latest order date (None if no data).
        unique_customers: Distinct customer ids.
        rows_with_missing_keys: Records with a blank order_id or customer_id.
        duplicate_keys: Natural keys occurring more than once.
    """

    total_records: int
    start_date: date | None
    end_date: date | None
    unique_customers: int
    rows_with_missing_keys: int
    duplicate_keys: list[DuplicateKey] = field(default_factory=list)

    @property
    def duplicate_rows(self) -> int:
        """Rows that deduplication would remove."""
        return sum(k.count - 1 for k in self.duplicate_keys)

    @property
    def period_display(self) -> str:
        """Formatted date range string."""
        if self.start_date is None or self.end_date is None:
            return "No data"
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"


@dataclass(frozen=True)
class SubCategoryProfit:
    """Profitability of one product sub-category."""

    sub_category: str
    total_sales: Decimal
    total_profit: Decimal
    profit_ratio: Decimal | None


@dataclass(frozen=True)
class DiscountProfit:
    """Average profit at one discount level."""

    discount: Decimal
    average_profit: Decimal
    line_count: int


@dataclass(frozen=True)
class TierContribution:
    """Profit contribution of one customer tier."""

    customer_tier: CustomerTier
    order_count: int
    total_profit: Decimal


@dataclass(frozen=True)
class ShippingPerformance:
    """Shipping duration statistics for one ship mode."""

    ship_mode: ShipMode
    average_days: Decimal
    fastest_days: int
    slowest_days: int


@dataclass(frozen=True)
class MonthlySales:
    """Total sales for one calendar month."""

    month: str
    total_sales: Decimal


@dataclass(frozen=True)
class YearlySalesRange:
    """Best and worst monthly sales totals within one year."""

    year: int
    highest_monthly_sales: Decimal
    lowest_monthly_sales: Decimal


@dataclass
class AnalysisReport:
    """All descriptive aggregates over a normalized table."""

    sub_category_profit: list[SubCategoryProfit] = field(default_factory=list)
    discount_profit: list[DiscountProfit] = field(default_factory=list)
    tier_contribution: list[TierContribution] = field(default_factory=list)
    shipping_performance: list[ShippingPerformance] = field(default_factory=list)
    monthly_sales: list[MonthlySales] = field(default_factory=list)
    yearly_sales_range: list[YearlySalesRange] = field(default_factory=list)

    @property
    def most_profitable_sub_category(self) -> SubCategoryProfit | None:
        """Sub-category with the highest profit ratio."""
        ranked = [row for row in self.sub_category_profit if row.profit_ratio is not None]
        return ranked[0] if ranked else None

    @property
    def least_profitable_sub_category(self) -> SubCategoryProfit | None:
        """Sub-category with the lowest profit ratio."""
        ranked = [row for row in self.sub_category_profit if row.profit_ratio is not None]
        return ranked[-1] if ranked else None
