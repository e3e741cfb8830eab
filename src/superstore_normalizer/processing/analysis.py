"""Descriptive aggregates over a normalized table.

Each function is a read-only grouping over the records and returns rows
in a fixed order so reports are reproducible.
"""

from collections import defaultdict
from collections.abc import Sequence
from decimal import Decimal

from superstore_normalizer.models.report import (
    AnalysisReport,
    DiscountProfit,
    MonthlySales,
    ShippingPerformance,
    SubCategoryProfit,
    TierContribution,
    YearlySalesRange,
)
from superstore_normalizer.models.transaction import CustomerTier, ShipMode, TransactionRecord
from superstore_normalizer.utils.date_utils import month_key
from superstore_normalizer.utils.logging_config import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")


def _require_enriched(records: Sequence[TransactionRecord], analysis: str) -> None:
    missing = sum(1 for r in records if not r.is_enriched)
    if missing:
        raise ValueError(f"{analysis} needs enriched records; {missing} lack derived fields")


def profit_by_sub_category(records: Sequence[TransactionRecord]) -> list[SubCategoryProfit]:
    """Sales, profit, and profit ratio per sub-category, best ratio first.

    The ratio is None when a sub-category's total sales are zero; those
    rows sort last.
    """
    sales: dict[str, Decimal] = defaultdict(lambda: ZERO)
    profit: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for r in records:
        sales[r.sub_category] += r.sales
        profit[r.sub_category] += r.profit

    rows = [
        SubCategoryProfit(
            sub_category=name,
            total_sales=sales[name],
            total_profit=profit[name],
            profit_ratio=profit[name] / sales[name] if sales[name] else None,
        )
        for name in sales
    ]
    rows.sort(key=lambda row: row.sub_category)
    rows.sort(key=lambda row: (row.profit_ratio is None, -(row.profit_ratio or ZERO)))
    return rows


def profit_by_discount(records: Sequence[TransactionRecord]) -> list[DiscountProfit]:
    """Average profit per discount level, lowest discount first."""
    profits: dict[Decimal, list[Decimal]] = defaultdict(list)
    for r in records:
        # 0.2 and 0.20 are the same level
        profits[r.discount.normalize()].append(r.profit)

    return [
        DiscountProfit(
            discount=level,
            average_profit=sum(values, ZERO) / len(values),
            line_count=len(values),
        )
        for level, values in sorted(profits.items())
    ]


def profit_by_customer_tier(records: Sequence[TransactionRecord]) -> list[TierContribution]:
    """Distinct orders and total profit per customer tier, most profitable first.

    Raises:
        ValueError: If any record has not been enriched.
    """
    _require_enriched(records, "Tier contribution")

    orders: dict[CustomerTier, set[str]] = defaultdict(set)
    profit: dict[CustomerTier, Decimal] = defaultdict(lambda: ZERO)
    for r in records:
        if r.customer_tier is None:
            continue
        orders[r.customer_tier].add(r.order_id)
        profit[r.customer_tier] += r.profit

    rows = [
        TierContribution(customer_tier=tier, order_count=len(orders[tier]), total_profit=profit[tier])
        for tier in CustomerTier
        if tier in profit
    ]
    rows.sort(key=lambda row: row.total_profit, reverse=True)
    return rows


def shipping_by_mode(records: Sequence[TransactionRecord]) -> list[ShippingPerformance]:
    """Average, fastest, and slowest shipping duration per ship mode, fastest average first.

    Raises:
        ValueError: If any record has not been enriched.
    """
    _require_enriched(records, "Shipping performance")

    durations: dict[ShipMode, list[int]] = defaultdict(list)
    for r in records:
        if r.shipping_duration_days is None:
            continue
        durations[r.ship_mode].append(r.shipping_duration_days)

    rows = [
        ShippingPerformance(
            ship_mode=mode,
            average_days=Decimal(sum(values)) / len(values),
            fastest_days=min(values),
            slowest_days=max(values),
        )
        for mode, values in durations.items()
    ]
    rows.sort(key=lambda row: (row.average_days, row.ship_mode.value))
    return rows


def monthly_sales(records: Sequence[TransactionRecord]) -> list[MonthlySales]:
    """Total sales per order month, chronologically."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for r in records:
        totals[month_key(r.order_date)] += r.sales

    return [MonthlySales(month=month, total_sales=total) for month, total in sorted(totals.items())]


def yearly_sales_range(months: Sequence[MonthlySales]) -> list[YearlySalesRange]:
    """Highest and lowest monthly total within each year.

    Only months with at least one order take part, so a year with a single
    month of data reports that month as both highest and lowest.
    """
    by_year: dict[int, list[Decimal]] = defaultdict(list)
    for m in months:
        by_year[int(m.month[:4])].append(m.total_sales)

    return [
        YearlySalesRange(
            year=year,
            highest_monthly_sales=max(totals),
            lowest_monthly_sales=min(totals),
        )
        for year, totals in sorted(by_year.items())
    ]


def generate_analysis_report(records: Sequence[TransactionRecord]) -> AnalysisReport:
    """Run every aggregate over a normalized table.

    Single source of truth for report figures, used by both the CSV and
    Excel outputs.

    Args:
        records: Deduplicated, enriched records.

    Returns:
        AnalysisReport.

    Raises:
        ValueError: If records have not been enriched.
    """
    months = monthly_sales(records)
    report = AnalysisReport(
        sub_category_profit=profit_by_sub_category(records),
        discount_profit=profit_by_discount(records),
        tier_contribution=profit_by_customer_tier(records),
        shipping_performance=shipping_by_mode(records),
        monthly_sales=months,
        yearly_sales_range=yearly_sales_range(months),
    )
    logger.info(
        f"Generated analysis over {len(records)} records: "
        f"{len(report.sub_category_profit)} sub-categories, {len(months)} months"
    )
    return report
