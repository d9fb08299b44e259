"""
Promotion selection and application.

At most one promotion applies to an order. Candidates are assumed eligible;
minimum order, validity window and usage limits are checked beforehand (see
services.orders.eligibility).
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import get_logger
from services.orders.money import round_half_up, to_decimal, to_minor_units
from services.orders.types import PromotionDiscount, PromotionKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.orders.types import Promotion

logger = get_logger(__name__)


def apply_promotion(
    promotion: Promotion,
    subtotal_minor: int,
    delivery_fee_minor: int,
) -> PromotionDiscount:
    """
    Compute what a single promotion is worth.

    Args:
        promotion: The promotion to evaluate.
        subtotal_minor: Order subtotal in minor units.
        delivery_fee_minor: Delivery fee in minor units.

    Returns:
        PromotionDiscount carrying the promotion and its minor-unit discounts.
    """
    discount = 0
    delivery_discount = 0

    match promotion.kind:
        case PromotionKind.PERCENTAGE:
            value = to_decimal(promotion.value, "promotion.value")
            discount = round_half_up(Decimal(subtotal_minor) * value / 100)
        case PromotionKind.FIXED_AMOUNT:
            discount = min(to_minor_units(promotion.value), subtotal_minor)
        case PromotionKind.FREE_DELIVERY:
            delivery_discount = delivery_fee_minor

    if promotion.free_delivery:
        delivery_discount = delivery_fee_minor

    return PromotionDiscount(
        discount_minor=discount,
        delivery_discount_minor=delivery_discount,
        promotion=promotion,
    )


def select_promotion(
    subtotal_minor: int,
    delivery_fee_minor: int,
    promotions: Iterable[Promotion],
    promotion_code: str | None = None,
) -> PromotionDiscount:
    """
    Pick the promotion to apply.

    With a code, only the candidate whose code matches exactly is considered,
    even if another candidate is worth more; no match means no discount.
    Without a code, the candidate with the strictly greatest combined
    discount wins and earlier candidates win ties.

    Returns:
        The winning PromotionDiscount, or an empty one if nothing applies.
    """
    if promotion_code:
        for promotion in promotions:
            if promotion.code == promotion_code:
                return apply_promotion(promotion, subtotal_minor, delivery_fee_minor)
        logger.info("Promotion code not found", promotion_code=promotion_code)
        return PromotionDiscount()

    best = PromotionDiscount()
    for promotion in promotions:
        candidate = apply_promotion(promotion, subtotal_minor, delivery_fee_minor)
        if candidate.total_minor > best.total_minor:
            best = candidate
    return best
