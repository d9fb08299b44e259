"""Types for order calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PromotionKind(str, Enum):
    """How a promotion's value is interpreted."""

    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_DELIVERY = "free_delivery"


class CalculationSource(str, Enum):
    """Where a calculation ran. Used for logging only."""

    CLIENT = "client"
    SERVER = "server"


@dataclass(frozen=True, slots=True)
class CalculationItem:
    """
    One cart line.

    Attributes:
        id: Cart line identifier.
        product_id: Product identifier.
        product_name: Display name.
        price: VAT-inclusive unit price in major units (Naira).
        quantity: Number of units, a positive integer.
        vat_rate: VAT percentage for this item; None means the default rate.
    """

    id: str
    product_id: str
    product_name: str
    price: Decimal
    quantity: int
    vat_rate: Decimal | None = None


@dataclass(frozen=True, slots=True)
class Promotion:
    """
    A discount rule offered to the calculation.

    Attributes:
        id: Promotion identifier.
        name: Display name.
        kind: How value is interpreted.
        value: Percentage points for PERCENTAGE, major-unit amount for
            FIXED_AMOUNT, ignored for FREE_DELIVERY.
        code: Code customers type to select it, if any.
        free_delivery: Also waive the delivery fee, whatever the kind.
    """

    id: str
    name: str
    kind: PromotionKind
    value: Decimal = Decimal("0")
    code: str | None = None
    free_delivery: bool = False


@dataclass(frozen=True, slots=True)
class CalculationInput:
    """
    Request for an order calculation.

    Promotions are expected to be pre-filtered for eligibility by the caller;
    the calculation applies whatever it is handed.

    Attributes:
        items: Cart lines in display order.
        delivery_fee: Delivery fee in major units.
        promotions: Candidate promotions.
        promotion_code: Selects the candidate with this exact code.
        source: Where this calculation runs.
    """

    items: tuple[CalculationItem, ...]
    delivery_fee: Decimal = Decimal("0")
    promotions: tuple[Promotion, ...] = ()
    promotion_code: str | None = None
    source: CalculationSource = CalculationSource.CLIENT


@dataclass(frozen=True, slots=True)
class ItemBreakdown:
    """Minor-unit figures for one cart line."""

    item_id: str
    product_name: str
    quantity: int
    unit_price_minor: int
    unit_cost_minor: int
    unit_vat_minor: int
    total_price_minor: int
    total_cost_minor: int
    total_vat_minor: int


@dataclass(frozen=True, slots=True)
class PromotionDiscount:
    """Discount produced by a promotion, in minor units."""

    discount_minor: int = 0
    delivery_discount_minor: int = 0
    promotion: Promotion | None = None

    @property
    def total_minor(self) -> int:
        """Combined subtotal and delivery discount."""
        return self.discount_minor + self.delivery_discount_minor


@dataclass(frozen=True, slots=True)
class CalculationBreakdown:
    """
    Minor-unit ledger behind a result.

    Attributes:
        precision_adjustments: Number of times this result was chosen over a
            disagreeing counterpart. Zero straight out of a calculation.
    """

    subtotal_minor: int
    subtotal_cost_minor: int
    total_vat_minor: int
    delivery_fee_minor: int
    discount_minor: int
    delivery_discount_minor: int
    total_minor: int
    precision_adjustments: int = 0
    items: tuple[ItemBreakdown, ...] = ()


@dataclass(frozen=True, slots=True)
class CalculationResult:
    """
    Totals for an order, in major units.

    total_amount == subtotal + delivery_fee - discount_amount - delivery_discount
    holds exactly, all fields come from the same minor-unit ledger.
    """

    subtotal: Decimal
    subtotal_cost: Decimal
    total_vat: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal
    delivery_discount: Decimal
    total_amount: Decimal
    applied_promotion: Promotion | None
    breakdown: CalculationBreakdown

    @property
    def precision_adjustments(self) -> int:
        """Override counter from the breakdown."""
        return self.breakdown.precision_adjustments


@dataclass(frozen=True, slots=True)
class ComparisonDetails:
    """Per-field absolute differences in major units."""

    subtotal_diff: Decimal
    delivery_diff: Decimal
    discount_diff: Decimal
    total_diff: Decimal


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """
    Outcome of comparing two calculation results.

    Attributes:
        matches: Total difference is within tolerance.
        difference: Absolute total difference in major units.
        tolerance: Tolerance used, in major units.
        details: Per-field differences.
    """

    matches: bool
    difference: Decimal
    tolerance: Decimal
    details: ComparisonDetails
