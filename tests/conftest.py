"""
Pytest configuration and fixtures for the test suite.

This module contains shared fixtures used across all tests.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from core.logging import configure_logging
from services.orders.types import (
    CalculationInput,
    CalculationItem,
    Promotion,
    PromotionKind,
)

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    """Keep test output free of info-level calculation logs."""
    configure_logging(log_level="WARNING")


def _make_item(
    price: str | Decimal = "1000.00",
    quantity: int = 1,
    item_id: str = "line-1",
    vat_rate: str | Decimal | None = None,
) -> CalculationItem:
    """Build a cart line with sensible defaults."""
    return CalculationItem(
        id=item_id,
        product_id=f"prod-{item_id}",
        product_name=f"Product {item_id}",
        price=Decimal(price),
        quantity=quantity,
        vat_rate=Decimal(vat_rate) if vat_rate is not None else None,
    )


def _make_promotion(
    kind: PromotionKind = PromotionKind.PERCENTAGE,
    value: str | Decimal = "10",
    promotion_id: str = "promo-1",
    code: str | None = None,
    free_delivery: bool = False,
) -> Promotion:
    """Build a promotion with sensible defaults."""
    return Promotion(
        id=promotion_id,
        name=f"Promotion {promotion_id}",
        kind=kind,
        value=Decimal(value),
        code=code,
        free_delivery=free_delivery,
    )


@pytest.fixture()
def make_item() -> Callable[..., CalculationItem]:
    """Factory for cart lines."""
    return _make_item


@pytest.fixture()
def make_promotion() -> Callable[..., Promotion]:
    """Factory for promotions."""
    return _make_promotion


@pytest.fixture()
def ten_thousand_order() -> CalculationInput:
    """One item at 10,000 with a 500 delivery fee and no promotions."""
    return CalculationInput(
        items=(_make_item("10000.00"),),
        delivery_fee=Decimal("500.00"),
    )
