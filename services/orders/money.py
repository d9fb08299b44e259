"""
Minor-unit arithmetic and VAT breakdown.

Amounts enter arithmetic as integer minor units (kobo) and leave as
two-place Decimals in major units (Naira). Halves round away from zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from services.orders.errors import ValidationError

MINOR_UNITS_PER_MAJOR = 100
DEFAULT_VAT_RATE = Decimal("7.5")
# One kobo
CALCULATION_TOLERANCE_MINOR = 1

_CENT = Decimal("0.01")
_ONE = Decimal("1")

type Amount = Decimal | int | float | str


def to_decimal(amount: Amount, field: str = "amount") -> Decimal:
    """
    Convert an amount to Decimal.

    Floats go through str so that 0.1 becomes Decimal("0.1") rather than its
    binary expansion.

    Raises:
        ValidationError: If the amount is not a finite number.
    """
    if isinstance(amount, bool):
        raise ValidationError(field, f"expected a number, got {amount!r}")
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(field, f"expected a number, got {amount!r}") from e
    if not value.is_finite():
        raise ValidationError(field, f"expected a finite number, got {amount!r}")
    return value


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def to_minor_units(amount: Amount) -> int:
    """Convert a major-unit amount to integer minor units."""
    return round_half_up(to_decimal(amount) * MINOR_UNITS_PER_MAJOR)


def to_major_units(minor: int | Decimal) -> Decimal:
    """Convert minor units to a two-place major-unit Decimal."""
    whole = round_half_up(Decimal(minor))
    return (Decimal(whole) / MINOR_UNITS_PER_MAJOR).quantize(_CENT)


def round_currency(amount: Amount) -> Decimal:
    """Round a major-unit amount to two places."""
    return to_decimal(amount).quantize(_CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class VatBreakdown:
    """
    Split of a VAT-inclusive price into cost and VAT.

    Attributes:
        cost_minor: Pre-VAT price in minor units.
        vat_minor: VAT in minor units.
        total_minor: VAT-inclusive price in minor units.
        vat_rate: VAT percentage used.
    """

    cost_minor: int
    vat_minor: int
    total_minor: int
    vat_rate: Decimal

    @property
    def cost_price(self) -> Decimal:
        """Pre-VAT price in major units."""
        return to_major_units(self.cost_minor)

    @property
    def vat_amount(self) -> Decimal:
        """VAT in major units."""
        return to_major_units(self.vat_minor)

    @property
    def total_price(self) -> Decimal:
        """VAT-inclusive price in major units."""
        return to_major_units(self.total_minor)


def vat_breakdown(price: Amount, vat_rate: Amount = DEFAULT_VAT_RATE) -> VatBreakdown:
    """
    Back-calculate cost and VAT from a VAT-inclusive price.

    The price must be gross. Passing a net price is not detected and yields a
    cost/VAT split that is too low.

    Args:
        price: VAT-inclusive price in major units.
        vat_rate: VAT percentage, e.g. 7.5.

    Returns:
        VatBreakdown whose cost and VAT add up to the price exactly.

    Raises:
        ValidationError: If the rate is -100 or lower.
    """
    rate = to_decimal(vat_rate, "vat_rate")
    if rate <= -100:
        raise ValidationError("vat_rate", f"must be greater than -100, got {rate}")
    total_minor = to_minor_units(price)
    cost_minor = round_half_up(Decimal(total_minor) * 100 / (100 + rate))
    return VatBreakdown(
        cost_minor=cost_minor,
        vat_minor=total_minor - cost_minor,
        total_minor=total_minor,
        vat_rate=rate,
    )
