"""Transaction record models for the Superstore dataset."""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


def _label_key(text: str) -> str:
    return re.sub(r"[\s_\-]+", "", text).lower()


class ShipMode(Enum):
    """Shipping service level of an order line."""

    SAME_DAY = "Same Day"
    FIRST_CLASS = "First Class"
    SECOND_CLASS = "Second Class"
    STANDARD_CLASS = "Standard Class"

    @classmethod
    def from_label(cls, text: str) -> "ShipMode":
        """Resolve a ship mode from its label.

        Matching ignores case, whitespace, hyphens, and underscores, so
        "Same Day", "same_day", and "SAMEDAY" all resolve to SAME_DAY.

        Raises:
            ValueError: If the label matches no ship mode.
        """
        key = _label_key(text)
        for mode in cls:
            if key in (_label_key(mode.value), _label_key(mode.name)):
                return mode
        raise ValueError(f"Unknown ship mode: '{text}'")


class CustomerTier(Enum):
    """Value tier of a transaction line, derived from its sales amount."""

    HIGH_VALUE = "High Value Customer"
    MID_VALUE = "Mid Value Customer"
    LOW_VALUE = "Low Value Customer"


@dataclass
class RawRecord:
    """One parsed line of the input table, before a surrogate id is assigned.

    String fields may be empty when the source cell was blank; typed fields
    (dates, money, quantity) are always valid because the parser rejects
    rows it cannot convert.
    """

    order_id: str
    order_date: date
    ship_date: date
    ship_mode: ShipMode
    customer_id: str
    customer_name: str
    segment: str
    country: str
    city: str
    state: str
    postal_code: str
    region: str
    product_id: str
    category: str
    sub_category: str
    product_name: str
    sales: Decimal
    quantity: int
    discount: Decimal
    profit: Decimal
    source_file: str = ""
    source_line: int | None = None


@dataclass(frozen=True)
class TransactionRecord:
    """A loaded transaction line.

    Attributes:
        id: Surrogate key assigned on load, strictly increasing in load
            order. Used only as the deduplication tie-breaker.
        order_id: Order identifier; with product_id forms the natural key.
        order_date: Date the order was placed.
        ship_date: Date the order shipped. Not validated against order_date.
        ship_mode: Shipping service level.
        customer_id: Customer identifier.
        customer_name: Customer display name.
        segment: Customer segment (Consumer, Corporate, Home Office).
        country: Ship-to country.
        city: Ship-to city.
        state: Ship-to state.
        postal_code: Ship-to postal code, kept as text to preserve zeros.
        region: Sales region.
        product_id: Product identifier.
        category: Product category.
        sub_category: Product sub-category.
        product_name: Product display name.
        sales: Line sales amount (non-negative).
        quantity: Units sold.
        discount: Discount rate applied (0.2 means 20%).
        profit: Line profit; negative for loss-making lines.
        shipping_duration_days: Derived ``ship_date - order_date`` in days.
        customer_tier: Derived value tier.
        source_file: Name of the file this line was loaded from.
        source_line: Data row number in the source file.
    """

    id: int
    order_id: str
    order_date: date
    ship_date: date
    ship_mode: ShipMode
    customer_id: str
    customer_name: str
    segment: str
    country: str
    city: str
    state: str
    postal_code: str
    region: str
    product_id: str
    category: str
    sub_category: str
    product_name: str
    sales: Decimal
    quantity: int
    discount: Decimal
    profit: Decimal

    # Derived fields, populated once by the feature deriver
    shipping_duration_days: int | None = None
    customer_tier: CustomerTier | None = None

    # Audit trail
    source_file: str = ""
    source_line: int | None = None

    @property
    def natural_key(self) -> tuple[str, str]:
        """The (order_id, product_id) pair identifying a transaction line."""
        return (self.order_id, self.product_id)

    @property
    def is_enriched(self) -> bool:
        """Whether derived fields have been computed."""
        return self.shipping_duration_days is not None and self.customer_tier is not None

    def __repr__(self) -> str:
        return (
            f"TransactionRecord(id={self.id}, order_id={self.order_id!r}, "
            f"product_id={self.product_id!r}, sales={self.sales})"
        )
