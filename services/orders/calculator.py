"""
Order total calculation.

calculate_order() is pure: the same input always produces an equal result,
and nothing outside the input is read or written apart from log lines.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import get_logger
from services.orders.errors import ValidationError
from services.orders.money import (
    DEFAULT_VAT_RATE,
    to_decimal,
    to_major_units,
    to_minor_units,
    vat_breakdown,
)
from services.orders.promotions import select_promotion
from services.orders.types import (
    CalculationBreakdown,
    CalculationResult,
    ItemBreakdown,
    PromotionKind,
)

if TYPE_CHECKING:
    from services.orders.types import CalculationInput, CalculationItem, Promotion

logger = get_logger(__name__)


def validate_input(calculation_input: CalculationInput) -> None:
    """
    Reject input that would produce meaningless totals.

    Raises:
        ValidationError: On a non-numeric or negative price, a quantity that
            is not a positive integer, a negative delivery fee or VAT rate,
            or a promotion value out of range.
    """
    for index, item in enumerate(calculation_input.items):
        _validate_item(index, item)

    if calculation_input.delivery_fee is not None:
        fee = to_decimal(calculation_input.delivery_fee, "delivery_fee")
        if fee < 0:
            raise ValidationError("delivery_fee", f"must not be negative, got {fee}")

    for promotion in calculation_input.promotions:
        _validate_promotion(promotion)


def _validate_item(index: int, item: CalculationItem) -> None:
    field = f"items[{index}]"
    price = to_decimal(item.price, f"{field}.price")
    if price < 0:
        raise ValidationError(f"{field}.price", f"must not be negative, got {price}")
    if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
        raise ValidationError(f"{field}.quantity", f"must be an integer, got {item.quantity!r}")
    if item.quantity <= 0:
        raise ValidationError(f"{field}.quantity", f"must be positive, got {item.quantity}")
    if item.vat_rate is not None:
        rate = to_decimal(item.vat_rate, f"{field}.vat_rate")
        if rate < 0:
            raise ValidationError(f"{field}.vat_rate", f"must not be negative, got {rate}")


def _validate_promotion(promotion: Promotion) -> None:
    field = f"promotions[{promotion.id}].value"
    value = to_decimal(promotion.value, field)
    if value < 0:
        raise ValidationError(field, f"must not be negative, got {value}")
    if promotion.kind is PromotionKind.PERCENTAGE and value > 100:
        raise ValidationError(field, f"percentage must not exceed 100, got {value}")


def _item_breakdown(item: CalculationItem) -> ItemBreakdown:
    unit_price_minor = to_minor_units(item.price)
    rate = DEFAULT_VAT_RATE if item.vat_rate is None else item.vat_rate
    vat = vat_breakdown(item.price, rate)
    return ItemBreakdown(
        item_id=item.id,
        product_name=item.product_name,
        quantity=item.quantity,
        unit_price_minor=unit_price_minor,
        unit_cost_minor=vat.cost_minor,
        unit_vat_minor=vat.vat_minor,
        total_price_minor=unit_price_minor * item.quantity,
        total_cost_minor=vat.cost_minor * item.quantity,
        total_vat_minor=vat.vat_minor * item.quantity,
    )


def calculate_order(calculation_input: CalculationInput) -> CalculationResult:
    """
    Calculate subtotal, VAT, discounts and total for an order.

    Each item's price is treated as VAT-inclusive. VAT is split per unit and
    multiplied by quantity, so per-item rounding is kept on the receipt line
    rather than spread across the order.

    Args:
        calculation_input: Items, delivery fee and candidate promotions.

    Returns:
        CalculationResult with major-unit totals and the minor-unit ledger.

    Raises:
        ValidationError: If the input is malformed.
    """
    started = time.perf_counter()
    source = calculation_input.source.value

    logger.info(
        "Order calculation starting",
        source=source,
        item_count=len(calculation_input.items),
        delivery_fee=str(calculation_input.delivery_fee),
        promotion_code=calculation_input.promotion_code,
        promotion_count=len(calculation_input.promotions),
    )

    validate_input(calculation_input)

    subtotal_minor = 0
    subtotal_cost_minor = 0
    total_vat_minor = 0
    items: list[ItemBreakdown] = []

    for item in calculation_input.items:
        line = _item_breakdown(item)
        subtotal_minor += line.total_price_minor
        subtotal_cost_minor += line.total_cost_minor
        total_vat_minor += line.total_vat_minor
        items.append(line)
        logger.debug(
            "Item calculated",
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price_minor=line.unit_price_minor,
            total_price_minor=line.total_price_minor,
        )

    delivery_fee_minor = to_minor_units(calculation_input.delivery_fee or Decimal("0"))

    discount = select_promotion(
        subtotal_minor,
        delivery_fee_minor,
        calculation_input.promotions,
        calculation_input.promotion_code,
    )

    total_minor = (
        subtotal_minor
        + delivery_fee_minor
        - discount.discount_minor
        - discount.delivery_discount_minor
    )

    result = CalculationResult(
        subtotal=to_major_units(subtotal_minor),
        subtotal_cost=to_major_units(subtotal_cost_minor),
        total_vat=to_major_units(total_vat_minor),
        delivery_fee=to_major_units(delivery_fee_minor),
        discount_amount=to_major_units(discount.discount_minor),
        delivery_discount=to_major_units(discount.delivery_discount_minor),
        total_amount=to_major_units(total_minor),
        applied_promotion=discount.promotion,
        breakdown=CalculationBreakdown(
            subtotal_minor=subtotal_minor,
            subtotal_cost_minor=subtotal_cost_minor,
            total_vat_minor=total_vat_minor,
            delivery_fee_minor=delivery_fee_minor,
            discount_minor=discount.discount_minor,
            delivery_discount_minor=discount.delivery_discount_minor,
            total_minor=total_minor,
            items=tuple(items),
        ),
    )

    logger.info(
        "Order calculation completed",
        source=source,
        elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        subtotal_minor=subtotal_minor,
        delivery_fee_minor=delivery_fee_minor,
        discount_minor=discount.discount_minor,
        delivery_discount_minor=discount.delivery_discount_minor,
        total_minor=total_minor,
        applied_promotion=discount.promotion.id if discount.promotion else None,
    )

    return result
