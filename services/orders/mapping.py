"""
Mapping between backend storage shapes and calculation types.

Promotion rows exist in two shapes: the current one carries the amount in
"value", an older one in "discount_amount". Both are resolved here, once, so
the calculation only ever sees a Promotion.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from services.orders.eligibility import ACTIVE_STATUS, PromotionRecord
from services.orders.errors import ValidationError
from services.orders.money import to_decimal, to_major_units, to_minor_units
from services.orders.types import (
    CalculationBreakdown,
    CalculationInput,
    CalculationItem,
    CalculationResult,
    Promotion,
    PromotionKind,
)


def _require(row: dict[str, Any], key: str, kind: str) -> Any:
    value = row.get(key)
    if value is None:
        raise ValidationError(f"{kind}.{key}", "is required")
    return value


def _parse_count(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(field, f"expected a whole number, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(field, f"expected a whole number, got {value!r}") from e


def _parse_datetime(value: str | datetime | None, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValidationError(field, f"invalid timestamp {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def promotion_from_row(row: dict[str, Any]) -> PromotionRecord:
    """
    Map a stored promotion row to a PromotionRecord.

    Args:
        row: Row from the promotions table.

    Returns:
        PromotionRecord with the Promotion and its eligibility rules.

    Raises:
        ValidationError: If the row has no id or an unknown type.
    """
    raw_kind = _require(row, "type", "promotion")
    try:
        kind = PromotionKind(raw_kind)
    except ValueError as e:
        raise ValidationError("promotion.type", f"unknown promotion type {raw_kind!r}") from e

    raw_value = row.get("value")
    if raw_value is None:
        raw_value = row.get("discount_amount")
    value = to_decimal(raw_value if raw_value is not None else 0, "promotion.value")

    promotion = Promotion(
        id=str(_require(row, "id", "promotion")),
        name=row.get("name") or "",
        kind=kind,
        value=value,
        code=row.get("code") or None,
        free_delivery=bool(row.get("free_delivery")),
    )

    min_order = row.get("min_order_amount")
    return PromotionRecord(
        promotion=promotion,
        status=row.get("status") or ACTIVE_STATUS,
        valid_from=_parse_datetime(row.get("valid_from"), "promotion.valid_from"),
        valid_until=_parse_datetime(row.get("valid_until"), "promotion.valid_until"),
        min_order_amount=to_decimal(min_order, "promotion.min_order_amount")
        if min_order is not None
        else None,
        usage_limit=_parse_count(row.get("usage_limit"), "promotion.usage_limit"),
        usage_count=_parse_count(row.get("usage_count"), "promotion.usage_count") or 0,
        applicable_days=tuple(day.lower() for day in row.get("applicable_days") or ()),
    )


def item_from_row(row: dict[str, Any]) -> CalculationItem:
    """
    Map a cart row to a CalculationItem.

    Cart rows carry the unit price as "price" or "unit_price".

    Raises:
        ValidationError: If price or quantity is missing.
    """
    price = row.get("price")
    if price is None:
        price = _require(row, "unit_price", "item")
    vat_rate = row.get("vat_rate")
    return CalculationItem(
        id=str(row.get("id") or row.get("product_id") or ""),
        product_id=str(row.get("product_id") or ""),
        product_name=row.get("product_name") or row.get("name") or "",
        price=to_decimal(price, "item.price"),
        quantity=_require(row, "quantity", "item"),
        vat_rate=to_decimal(vat_rate, "item.vat_rate") if vat_rate is not None else None,
    )


def input_to_payload(calculation_input: CalculationInput) -> dict[str, Any]:
    """Serialize a calculation request for the server-side function."""
    return {
        "items": [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "price": str(item.price),
                "quantity": item.quantity,
                "vat_rate": str(item.vat_rate) if item.vat_rate is not None else None,
            }
            for item in calculation_input.items
        ],
        "delivery_fee": str(calculation_input.delivery_fee),
        "promotions": [_promotion_to_payload(p) for p in calculation_input.promotions],
        "promotion_code": calculation_input.promotion_code,
        "calculation_source": calculation_input.source.value,
    }


def _promotion_to_payload(promotion: Promotion) -> dict[str, Any]:
    return {
        "id": promotion.id,
        "name": promotion.name,
        "code": promotion.code,
        "type": promotion.kind.value,
        "value": str(promotion.value),
        "free_delivery": promotion.free_delivery,
    }


def result_to_payload(result: CalculationResult) -> dict[str, Any]:
    """Serialize a result in the backend's order-totals shape."""
    ledger = result.breakdown
    return {
        "subtotal": str(result.subtotal),
        "subtotal_cost": str(result.subtotal_cost),
        "total_vat": str(result.total_vat),
        "delivery_fee": str(result.delivery_fee),
        "discount_amount": str(result.discount_amount),
        "delivery_discount": str(result.delivery_discount),
        "total_amount": str(result.total_amount),
        "applied_promotions": [_promotion_to_payload(result.applied_promotion)]
        if result.applied_promotion
        else [],
        "calculation_breakdown": {
            "subtotal_cents": ledger.subtotal_minor,
            "delivery_fee_cents": ledger.delivery_fee_minor,
            "discount_cents": ledger.discount_minor,
            "delivery_discount_cents": ledger.delivery_discount_minor,
            "total_cents": ledger.total_minor,
            "precision_adjustments": ledger.precision_adjustments,
        },
    }


def result_from_payload(payload: dict[str, Any]) -> CalculationResult:
    """
    Build a CalculationResult from the backend's order-totals shape.

    Minor-unit figures are taken from calculation_breakdown when present and
    derived from the major-unit fields otherwise.

    Raises:
        ValidationError: If a required amount is missing or not numeric.
    """
    if isinstance(payload.get("data"), dict):
        payload = payload["data"]

    ledger = payload.get("calculation_breakdown") or {}

    def minor(field: str, ledger_key: str | None = None, required: bool = True) -> int:
        if ledger_key and ledger.get(ledger_key) is not None:
            return int(ledger[ledger_key])
        value = payload.get(field)
        if value is None:
            if required:
                raise ValidationError(f"result.{field}", "is required")
            return 0
        return to_minor_units(to_decimal(value, f"result.{field}"))

    subtotal_minor = minor("subtotal", "subtotal_cents")
    subtotal_cost_minor = minor("subtotal_cost", required=False)
    total_vat_minor = minor("total_vat", required=False)
    delivery_fee_minor = minor("delivery_fee", "delivery_fee_cents", required=False)
    discount_minor = minor("discount_amount", "discount_cents", required=False)
    delivery_discount_minor = minor(
        "delivery_discount", "delivery_discount_cents", required=False
    )
    total_minor = minor("total_amount", "total_cents")

    applied = payload.get("applied_promotions") or []
    applied_promotion = promotion_from_row(applied[0]).promotion if applied else None

    return CalculationResult(
        subtotal=to_major_units(subtotal_minor),
        subtotal_cost=to_major_units(subtotal_cost_minor),
        total_vat=to_major_units(total_vat_minor),
        delivery_fee=to_major_units(delivery_fee_minor),
        discount_amount=to_major_units(discount_minor),
        delivery_discount=to_major_units(delivery_discount_minor),
        total_amount=to_major_units(total_minor),
        applied_promotion=applied_promotion,
        breakdown=CalculationBreakdown(
            subtotal_minor=subtotal_minor,
            subtotal_cost_minor=subtotal_cost_minor,
            total_vat_minor=total_vat_minor,
            delivery_fee_minor=delivery_fee_minor,
            discount_minor=discount_minor,
            delivery_discount_minor=delivery_discount_minor,
            total_minor=total_minor,
            precision_adjustments=int(ledger.get("precision_adjustments") or 0),
        ),
    )

