"""Tests for order total calculation."""

from __future__ import annotations

import random
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from services.orders.calculator import calculate_order, validate_input
from services.orders.errors import ValidationError
from services.orders.money import round_half_up, to_major_units
from services.orders.types import (
    CalculationInput,
    CalculationItem,
    CalculationSource,
    Promotion,
    PromotionKind,
)

if TYPE_CHECKING:
    from collections.abc import Callable


def _random_order(seed: int) -> CalculationInput:
    """Build a reproducible pseudo-random order."""
    rng = random.Random(seed)
    items = tuple(
        CalculationItem(
            id=f"line-{i}",
            product_id=f"prod-{i}",
            product_name=f"Dish {i}",
            price=Decimal(rng.randint(1, 2_500_000)) / 100,
            quantity=rng.randint(1, 12),
            vat_rate=rng.choice([None, Decimal("0"), Decimal("5"), Decimal("7.5")]),
        )
        for i in range(rng.randint(1, 25))
    )
    promotions = tuple(
        Promotion(
            id=f"promo-{i}",
            name=f"Promo {i}",
            kind=rng.choice(list(PromotionKind)),
            value=Decimal(rng.randint(0, 10_000)) / 100,
            free_delivery=rng.random() < 0.3,
        )
        for i in range(rng.randint(0, 4))
    )
    return CalculationInput(
        items=items,
        delivery_fee=Decimal(rng.randint(0, 300_000)) / 100,
        promotions=promotions,
    )


class TestCalculateOrderBasics:
    """Tests for straightforward calculations."""

    def test_no_promotions_baseline(self, ten_thousand_order: CalculationInput) -> None:
        """Without promotions, total is subtotal plus delivery."""
        result = calculate_order(ten_thousand_order)

        assert result.subtotal == Decimal("10000.00")
        assert result.delivery_fee == Decimal("500.00")
        assert result.discount_amount == Decimal("0.00")
        assert result.delivery_discount == Decimal("0.00")
        assert result.total_amount == Decimal("10500.00")
        assert result.applied_promotion is None

    def test_quantities_multiply(self, make_item: Callable[..., CalculationItem]) -> None:
        """Line totals are unit price times quantity."""
        order = CalculationInput(
            items=(
                make_item("1500.50", quantity=3, item_id="a"),
                make_item("250.25", quantity=2, item_id="b"),
            ),
        )

        result = calculate_order(order)

        assert result.subtotal == Decimal("5002.00")
        assert result.breakdown.subtotal_minor == 500200
        assert [line.total_price_minor for line in result.breakdown.items] == [450150, 50050]

    def test_vat_totals(self, make_item: Callable[..., CalculationItem]) -> None:
        """VAT is split per unit and multiplied by quantity."""
        order = CalculationInput(items=(make_item("1075.00", quantity=2),))

        result = calculate_order(order)

        assert result.subtotal == Decimal("2150.00")
        assert result.subtotal_cost == Decimal("2000.00")
        assert result.total_vat == Decimal("150.00")

    def test_item_vat_rate_overrides_default(
        self,
        make_item: Callable[..., CalculationItem],
    ) -> None:
        """An explicit zero rate means no VAT, not the default rate."""
        order = CalculationInput(items=(make_item("500.00", vat_rate="0"),))

        result = calculate_order(order)

        assert result.subtotal_cost == Decimal("500.00")
        assert result.total_vat == Decimal("0.00")

    def test_empty_order(self) -> None:
        """An empty cart yields zero totals."""
        result = calculate_order(CalculationInput(items=()))

        assert result.subtotal == Decimal("0.00")
        assert result.total_amount == Decimal("0.00")
        assert result.breakdown.items == ()

    def test_empty_order_still_charges_delivery(self) -> None:
        """Delivery fee is charged even with no items."""
        result = calculate_order(CalculationInput(items=(), delivery_fee=Decimal("800")))

        assert result.total_amount == Decimal("800.00")

    def test_missing_delivery_fee_defaults_to_zero(
        self,
        make_item: Callable[..., CalculationItem],
    ) -> None:
        """A None delivery fee is treated as zero."""
        order = CalculationInput(items=(make_item("100.00"),), delivery_fee=None)  # type: ignore[arg-type]

        result = calculate_order(order)

        assert result.delivery_fee == Decimal("0.00")
        assert result.total_amount == Decimal("100.00")

    def test_precision_adjustments_start_at_zero(
        self,
        ten_thousand_order: CalculationInput,
    ) -> None:
        """A fresh calculation has not been overridden."""
        assert calculate_order(ten_thousand_order).precision_adjustments == 0

    def test_float_prices_do_not_drift(self) -> None:
        """Many 0.10 floats add up to exactly 10.00."""
        order = CalculationInput(
            items=tuple(
                CalculationItem(
                    id=str(i),
                    product_id=str(i),
                    product_name="Sachet water",
                    price=0.1,  # type: ignore[arg-type]
                    quantity=1,
                )
                for i in range(100)
            ),
        )

        assert calculate_order(order).subtotal == Decimal("10.00")


class TestCalculateOrderPromotions:
    """Tests for promotions applied during calculation."""

    def test_percentage_promotion(
        self,
        ten_thousand_order: CalculationInput,
        make_promotion: Callable[..., Promotion],
    ) -> None:
        """10% off 10,000 with 500 delivery totals 9,500."""
        order = CalculationInput(
            items=ten_thousand_order.items,
            delivery_fee=ten_thousand_order.delivery_fee,
            promotions=(make_promotion(PromotionKind.PERCENTAGE, "10"),),
        )

        result = calculate_order(order)

        assert result.discount_amount == Decimal("1000.00")
        assert result.total_amount == Decimal("9500.00")
        assert result.applied_promotion == order.promotions[0]

    def test_fixed_amount_clamps_to_subtotal(
        self,
        make_item: Callable[..., CalculationItem],
        make_promotion: Callable[..., Promotion],
    ) -> None:
        """A fixed discount larger than the subtotal leaves only delivery."""
        order = CalculationInput(
            items=(make_item("500.00"),),
            delivery_fee=Decimal("300.00"),
            promotions=(make_promotion(PromotionKind.FIXED_AMOUNT, "1000"),),
        )

        result = calculate_order(order)

        assert result.discount_amount == Decimal("500.00")
        assert result.total_amount == result.delivery_fee == Decimal("300.00")

    def test_free_delivery_flag_on_percentage_promotion(
        self,
        make_item: Callable[..., CalculationItem],
        make_promotion: Callable[..., Promotion],
    ) -> None:
        """The free-delivery flag waives delivery whatever the promotion kind."""
        order = CalculationInput(
            items=(make_item("2000.00"),),
            delivery_fee=Decimal("1200.00"),
            promotions=(make_promotion(PromotionKind.PERCENTAGE, "5", free_delivery=True),),
        )

        result = calculate_order(order)

        assert result.delivery_discount == Decimal("1200.00")
        assert result.discount_amount == Decimal("100.00")
        assert result.total_amount == Decimal("1900.00")

    def test_code_selects_lesser_promotion(
        self,
        ten_thousand_order: CalculationInput,
        make_promotion: Callable[..., Promotion],
    ) -> None:
        """A supplied code wins over a more valuable automatic candidate."""
        order = CalculationInput(
            items=ten_thousand_order.items,
            delivery_fee=ten_thousand_order.delivery_fee,
            promotions=(
                make_promotion(PromotionKind.PERCENTAGE, "20", promotion_id="big"),
                make_promotion(PromotionKind.PERCENTAGE, "5", promotion_id="small", code="SAVE5"),
            ),
            promotion_code="SAVE5",
        )

        result = calculate_order(order)

        assert result.applied_promotion is not None
        assert result.applied_promotion.id == "small"
        assert result.discount_amount == Decimal("500.00")


class TestCalculateOrderProperties:
    """Properties that hold for any well-formed input."""

    @pytest.mark.parametrize("seed", range(40))
    def test_deterministic(self, seed: int) -> None:
        """The same input always gives an equal result."""
        order = _random_order(seed)

        assert calculate_order(order) == calculate_order(order)

    @pytest.mark.parametrize("seed", range(40))
    def test_total_invariant(self, seed: int) -> None:
        """total == subtotal + delivery - discount - delivery discount, exactly."""
        result = calculate_order(_random_order(seed))
        ledger = result.breakdown

        assert result.total_amount == (
            result.subtotal
            + result.delivery_fee
            - result.discount_amount
            - result.delivery_discount
        )
        assert ledger.total_minor == (
            ledger.subtotal_minor
            + ledger.delivery_fee_minor
            - ledger.discount_minor
            - ledger.delivery_discount_minor
        )
        assert result.total_amount == to_major_units(ledger.total_minor)

    @pytest.mark.parametrize("seed", range(40))
    def test_total_never_negative(self, seed: int) -> None:
        """Discounts never push the total below zero."""
        assert calculate_order(_random_order(seed)).total_amount >= 0

    @pytest.mark.parametrize("seed", range(40))
    def test_vat_split_drift_is_bounded(self, seed: int) -> None:
        """Per-line VAT rounding stays within one minor unit per unit sold."""
        order = _random_order(seed)
        result = calculate_order(order)
        ledger = result.breakdown

        assert ledger.subtotal_cost_minor + ledger.total_vat_minor == ledger.subtotal_minor

        for item, line in zip(order.items, ledger.items, strict=True):
            rate = Decimal("7.5") if item.vat_rate is None else item.vat_rate
            exact_cost = Decimal(line.total_price_minor) * 100 / (100 + rate)
            assert abs(line.total_cost_minor - round_half_up(exact_cost)) <= item.quantity

    @pytest.mark.parametrize("seed", range(10))
    def test_source_does_not_affect_totals(self, seed: int) -> None:
        """Client and server tags produce equal results."""
        order = _random_order(seed)
        server_order = CalculationInput(
            items=order.items,
            delivery_fee=order.delivery_fee,
            promotions=order.promotions,
            source=CalculationSource.SERVER,
        )

        assert calculate_order(order) == calculate_order(server_order)


class TestValidation:
    """Tests for input guard clauses."""

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_rejects_non_positive_quantity(
        self,
        quantity: int,
        make_item: Callable[..., CalculationItem],
    ) -> None:
        """Quantities must be positive."""
        order = CalculationInput(items=(make_item(quantity=quantity),))

        with pytest.raises(ValidationError, match=r"items\[0\]\.quantity"):
            calculate_order(order)

    def test_rejects_fractional_quantity(self, make_item: Callable[..., CalculationItem]) -> None:
        """Quantities must be integers."""
        order = CalculationInput(items=(make_item(quantity=1.5),))

        with pytest.raises(ValidationError, match="must be an integer"):
            calculate_order(order)

    def test_rejects_negative_price(self, make_item: Callable[..., CalculationItem]) -> None:
        """Prices must not be negative."""
        order = CalculationInput(items=(make_item("-10.00"),))

        with pytest.raises(ValidationError, match=r"items\[0\]\.price"):
            calculate_order(order)

    def test_rejects_non_numeric_price(self) -> None:
        """Prices must be numbers."""
        item = CalculationItem(
            id="x",
            product_id="x",
            product_name="x",
            price="free",  # type: ignore[arg-type]
            quantity=1,
        )

        with pytest.raises(ValidationError):
            calculate_order(CalculationInput(items=(item,)))

    def test_rejects_negative_delivery_fee(self) -> None:
        """Delivery fee must not be negative."""
        with pytest.raises(ValidationError, match="delivery_fee"):
            validate_input(CalculationInput(items=(), delivery_fee=Decimal("-1")))

    def test_rejects_percentage_above_hundred(
        self,
        make_promotion: Callable[..., Promotion],
    ) -> None:
        """Percentage promotions are capped at 100."""
        order = CalculationInput(
            items=(),
            promotions=(make_promotion(PromotionKind.PERCENTAGE, "150"),),
        )

        with pytest.raises(ValidationError, match="percentage"):
            calculate_order(order)

    def test_rejects_negative_promotion_value(
        self,
        make_promotion: Callable[..., Promotion],
    ) -> None:
        """Promotion values must not be negative."""
        order = CalculationInput(
            items=(),
            promotions=(make_promotion(PromotionKind.FIXED_AMOUNT, "-5"),),
        )

        with pytest.raises(ValidationError):
            calculate_order(order)
