"""Tests for profiling, loading, and descriptive analysis."""

from datetime import date
from decimal import Decimal

import pytest

from superstore_normalizer.models.report import DuplicateKey, MonthlySales
from superstore_normalizer.models.transaction import (
    CustomerTier,
    RawRecord,
    ShipMode,
    TransactionRecord,
)
from superstore_normalizer.processing.analysis import (
    generate_analysis_report,
    monthly_sales,
    profit_by_customer_tier,
    profit_by_discount,
    profit_by_sub_category,
    shipping_by_mode,
    yearly_sales_range,
)
from superstore_normalizer.processing.data_quality import has_missing_key, profile_records
from superstore_normalizer.processing.feature_deriver import FeatureDeriver
from superstore_normalizer.processing.loader import RecordLoader, load_records


def create_record(
    record_id: int,
    order_id: str = "CA-1",
    product_id: str = "P1",
    sub_category: str = "Chairs",
    sales: str = "100.00",
    profit: str = "10.00",
    discount: str = "0",
    order_date: date = date(2016, 1, 10),
    ship_date: date = date(2016, 1, 13),
    ship_mode: ShipMode = ShipMode.STANDARD_CLASS,
    customer_id: str = "CG-12520",
) -> TransactionRecord:
    """Helper to create a TransactionRecord for testing."""
    return TransactionRecord(
        id=record_id,
        order_id=order_id,
        order_date=order_date,
        ship_date=ship_date,
        ship_mode=ship_mode,
        customer_id=customer_id,
        customer_name="Claire Gute",
        segment="Consumer",
        country="United States",
        city="Henderson",
        state="Kentucky",
        postal_code="42420",
        region="South",
        product_id=product_id,
        category="Furniture",
        sub_category=sub_category,
        product_name="Item",
        sales=Decimal(sales),
        quantity=1,
        discount=Decimal(discount),
        profit=Decimal(profit),
    )


def create_raw(order_id: str, product_id: str) -> RawRecord:
    """Helper to create a RawRecord for testing."""
    record = create_record(0, order_id=order_id, product_id=product_id)
    return RawRecord(
        **{
            name: getattr(record, name)
            for name in RawRecord.__dataclass_fields__
        }
    )


class TestRecordLoader:
    """Tests for RecordLoader."""

    def test_ids_sequential_across_files(self) -> None:
        """Test that ids continue from one file to the next."""
        loader = RecordLoader()

        records = loader.load_all({
            "a.csv": [create_raw("CA-1", "P1"), create_raw("CA-1", "P2")],
            "b.csv": [create_raw("CA-2", "P1")],
        })

        assert [r.id for r in records] == [1, 2, 3]
        assert [r.order_id for r in records] == ["CA-1", "CA-1", "CA-2"]
        assert loader.next_id == 4

    def test_start_id(self) -> None:
        """Test loading from a custom start id."""
        records = load_records([create_raw("CA-1", "P1")], start_id=100)

        assert records[0].id == 100
        assert not records[0].is_enriched

    def test_invalid_start_id(self) -> None:
        """Test that ids must be positive."""
        with pytest.raises(ValueError):
            RecordLoader(start_id=0)


class TestDataQuality:
    """Tests for exploration profiling."""

    def test_profile_counts(self) -> None:
        """Test counts, date span, and duplicate detection."""
        records = [
            create_record(1, "CA-1", "P1", order_date=date(2015, 3, 1)),
            create_record(2, "CA-1", "P1", order_date=date(2015, 3, 1)),
            create_record(3, "CA-2", "P1", order_date=date(2017, 12, 30), customer_id="DV-13045"),
            create_record(4, "", "P2", customer_id=""),
        ]

        profile = profile_records(records)

        assert profile.total_records == 4
        assert profile.start_date == date(2015, 3, 1)
        assert profile.end_date == date(2017, 12, 30)
        assert profile.unique_customers == 2
        assert profile.rows_with_missing_keys == 1
        assert profile.duplicate_keys == [DuplicateKey("CA-1", "P1", 2)]
        assert profile.duplicate_rows == 1
        assert profile.period_display == "2015-03-01 to 2017-12-30"

    def test_empty_profile(self) -> None:
        """Test profiling an empty table."""
        profile = profile_records([])

        assert profile.total_records == 0
        assert profile.period_display == "No data"
        assert profile.duplicate_rows == 0

    def test_missing_key_whitespace(self) -> None:
        """Test that whitespace-only identifiers count as missing."""
        assert has_missing_key(create_record(1, order_id="  "))
        assert not has_missing_key(create_record(1))


class TestSubCategoryProfit:
    """Tests for profit_by_sub_category."""

    def test_ranked_by_ratio(self) -> None:
        """Test ratio computation and best-first ordering."""
        records = [
            create_record(1, sub_category="Tables", sales="200", profit="-50"),
            create_record(2, sub_category="Labels", sales="100", profit="40"),
            create_record(3, sub_category="Labels", sales="100", profit="0"),
            create_record(4, sub_category="Chairs", sales="400", profit="40"),
        ]

        rows = profit_by_sub_category(records)

        assert [r.sub_category for r in rows] == ["Labels", "Chairs", "Tables"]
        assert rows[0].total_sales == Decimal("200")
        assert rows[0].total_profit == Decimal("40")
        assert rows[0].profit_ratio == Decimal("0.2")
        assert rows[2].profit_ratio == Decimal("-0.25")

    def test_zero_sales_sorts_last(self) -> None:
        """Test that a sub-category without sales has no ratio."""
        records = [
            create_record(1, sub_category="Freebies", sales="0", profit="-5"),
            create_record(2, sub_category="Chairs", sales="100", profit="-90"),
        ]

        rows = profit_by_sub_category(records)

        assert rows[-1].sub_category == "Freebies"
        assert rows[-1].profit_ratio is None


class TestDiscountProfit:
    """Tests for profit_by_discount."""

    def test_levels_merged_and_sorted(self) -> None:
        """Test that equal discounts written differently share a level."""
        records = [
            create_record(1, discount="0.2", profit="10"),
            create_record(2, discount="0.20", profit="20"),
            create_record(3, discount="0", profit="30"),
        ]

        rows = profit_by_discount(records)

        assert [r.discount for r in rows] == [Decimal("0"), Decimal("0.2")]
        assert rows[1].average_profit == Decimal("15")
        assert rows[1].line_count == 2


class TestEnrichedAggregates:
    """Tests for aggregates over derived fields."""

    def test_tier_contribution(self) -> None:
        """Test distinct order counts and profit per tier."""
        records = FeatureDeriver().derive_all([
            create_record(1, "CA-1", "P1", sales="600", profit="100"),
            create_record(2, "CA-1", "P2", sales="700", profit="50"),
            create_record(3, "CA-2", "P1", sales="50", profit="-5"),
            create_record(4, "CA-3", "P1", sales="150", profit="20"),
        ])

        rows = profit_by_customer_tier(records)

        assert [r.customer_tier for r in rows] == [
            CustomerTier.HIGH_VALUE,
            CustomerTier.MID_VALUE,
            CustomerTier.LOW_VALUE,
        ]
        assert rows[0].order_count == 1
        assert rows[0].total_profit == Decimal("150")
        assert rows[2].total_profit == Decimal("-5")

    def test_shipping_by_mode(self) -> None:
        """Test duration statistics per ship mode."""
        records = FeatureDeriver().derive_all([
            create_record(1, ship_date=date(2016, 1, 14), ship_mode=ShipMode.STANDARD_CLASS),
            create_record(2, ship_date=date(2016, 1, 16), ship_mode=ShipMode.STANDARD_CLASS),
            create_record(3, ship_date=date(2016, 1, 10), ship_mode=ShipMode.SAME_DAY),
        ])

        rows = shipping_by_mode(records)

        assert [r.ship_mode for r in rows] == [ShipMode.SAME_DAY, ShipMode.STANDARD_CLASS]
        assert rows[0].average_days == Decimal("0")
        assert rows[1].average_days == Decimal("5")
        assert rows[1].fastest_days == 4
        assert rows[1].slowest_days == 6

    def test_requires_enriched_records(self) -> None:
        """Test that raw records are rejected."""
        with pytest.raises(ValueError, match="enriched"):
            profit_by_customer_tier([create_record(1)])
        with pytest.raises(ValueError, match="enriched"):
            shipping_by_mode([create_record(1)])

    def test_partially_enriched_rejected(self) -> None:
        """Test that one unenriched record fails the whole aggregate."""
        records = FeatureDeriver().derive_all([create_record(1)]) + [create_record(2, "CA-2")]

        with pytest.raises(ValueError, match="1 lack derived fields"):
            profit_by_customer_tier(records)
        with pytest.raises(ValueError, match="1 lack derived fields"):
            shipping_by_mode(records)


class TestSalesTrends:
    """Tests for monthly and yearly sales."""

    def test_monthly_totals(self) -> None:
        """Test sales bucketed by order month."""
        records = [
            create_record(1, sales="10", order_date=date(2016, 2, 1)),
            create_record(2, sales="15", order_date=date(2016, 2, 29)),
            create_record(3, sales="7", order_date=date(2015, 12, 31)),
        ]

        rows = monthly_sales(records)

        assert rows == [
            MonthlySales("2015-12", Decimal("7")),
            MonthlySales("2016-02", Decimal("25")),
        ]

    def test_yearly_range(self) -> None:
        """Test highest and lowest month per year."""
        months = [
            MonthlySales("2016-01", Decimal("300")),
            MonthlySales("2016-02", Decimal("100")),
            MonthlySales("2016-03", Decimal("200")),
            MonthlySales("2017-05", Decimal("50")),
        ]

        rows = yearly_sales_range(months)

        assert [(r.year, r.highest_monthly_sales, r.lowest_monthly_sales) for r in rows] == [
            (2016, Decimal("300"), Decimal("100")),
            (2017, Decimal("50"), Decimal("50")),
        ]


class TestAnalysisReport:
    """Tests for generate_analysis_report."""

    def test_full_report(self) -> None:
        """Test that all sections are filled from one table."""
        records = FeatureDeriver().derive_all([
            create_record(1, "CA-1", "P1", sub_category="Chairs", sales="600", profit="60"),
            create_record(2, "CA-2", "P1", sub_category="Tables", sales="100", profit="-30"),
        ])

        report = generate_analysis_report(records)

        assert report.most_profitable_sub_category.sub_category == "Chairs"
        assert report.least_profitable_sub_category.sub_category == "Tables"
        assert len(report.tier_contribution) == 2
        assert len(report.monthly_sales) == 1
        assert report.yearly_sales_range[0].year == 2016

    def test_empty_report(self) -> None:
        """Test that an empty table yields empty sections."""
        report = generate_analysis_report([])

        assert report.sub_category_profit == []
        assert report.most_profitable_sub_category is None
