"""Column layouts shared by the CSV and Excel outputs."""

from datetime import date
from decimal import Decimal

from superstore_normalizer.models.report import AnalysisReport
from superstore_normalizer.models.transaction import TransactionRecord
from superstore_normalizer.utils.date_utils import date_to_iso
from superstore_normalizer.utils.decimal_utils import format_currency

# Normalized table columns, in SQL column order plus the derived columns
TABLE_COLUMNS = [
    "id",
    "order_id",
    "order_date",
    "ship_date",
    "ship_mode",
    "customer_id",
    "customer_name",
    "segment",
    "country",
    "city",
    "state",
    "postal_code",
    "region",
    "product_id",
    "category",
    "sub_category",
    "product_name",
    "sales",
    "quantity",
    "discount",
    "profit",
    "shipping_duration",
    "customer_tier",
]

# Rates and ratios keep extra precision
RATIO_PLACES = 4
RATIO_COLUMNS = {"discount", "profit_ratio"}


def record_cells(record: TransactionRecord) -> list[object]:
    """Typed cell values for one normalized record, matching TABLE_COLUMNS."""
    return [
        record.id,
        record.order_id,
        record.order_date,
        record.ship_date,
        record.ship_mode.value,
        record.customer_id,
        record.customer_name,
        record.segment,
        record.country,
        record.city,
        record.state,
        record.postal_code,
        record.region,
        record.product_id,
        record.category,
        record.sub_category,
        record.product_name,
        record.sales,
        record.quantity,
        record.discount,
        record.profit,
        record.shipping_duration_days,
        record.customer_tier.value if record.customer_tier else None,
    ]


def analysis_tables(report: AnalysisReport) -> dict[str, tuple[list[str], list[list[object]]]]:
    """Each analysis as (headers, typed rows), keyed by table name."""
    return {
        "sub_category_profit": (
            ["sub_category", "total_sales", "total_profit", "profit_ratio"],
            [
                [r.sub_category, r.total_sales, r.total_profit, r.profit_ratio]
                for r in report.sub_category_profit
            ],
        ),
        "discount_profit": (
            ["discount", "avg_profit", "line_count"],
            [[r.discount, r.average_profit, r.line_count] for r in report.discount_profit],
        ),
        "tier_contribution": (
            ["customer_tier", "total_transactions", "total_profit"],
            [
                [r.customer_tier.value, r.order_count, r.total_profit]
                for r in report.tier_contribution
            ],
        ),
        "shipping_performance": (
            ["ship_mode", "avg_shipping_days", "fastest_shipping", "slowest_shipping"],
            [
                [r.ship_mode.value, r.average_days, r.fastest_days, r.slowest_days]
                for r in report.shipping_performance
            ],
        ),
        "monthly_sales": (
            ["sales_month", "total_sales"],
            [[r.month, r.total_sales] for r in report.monthly_sales],
        ),
        "yearly_sales_range": (
            ["sales_year", "highest_sales", "lowest_sales"],
            [
                [r.year, r.highest_monthly_sales, r.lowest_monthly_sales]
                for r in report.yearly_sales_range
            ],
        ),
    }


def places_for(column: str, decimal_places: int) -> int:
    """Decimal places used when rendering a column."""
    return RATIO_PLACES if column in RATIO_COLUMNS else decimal_places


def to_text(value: object, places: int = 2) -> str:
    """Render a typed cell as CSV text, rounding Decimals to ``places``."""
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format_currency(value, places)
    if isinstance(value, date):
        return date_to_iso(value)
    return str(value)
