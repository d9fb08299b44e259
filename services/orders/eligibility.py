"""
Promotion eligibility checks.

The calculation applies every candidate it is given, so callers must run
candidates through filter_eligible() first. Skipping it lets expired,
exhausted or below-minimum promotions discount an order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from services.orders.types import Promotion

logger = get_logger(__name__)

ACTIVE_STATUS = "active"
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True, slots=True)
class PromotionRecord:
    """
    A stored promotion with its eligibility rules.

    Attributes:
        promotion: The discount rule handed to the calculation.
        status: Lifecycle status; only "active" promotions apply.
        valid_from: Start of the validity window, inclusive.
        valid_until: End of the validity window, inclusive. None = open ended.
        min_order_amount: Minimum subtotal in major units.
        usage_limit: Maximum number of redemptions. None = unlimited.
        usage_count: Redemptions so far.
        applicable_days: Lower-case weekday names. Empty = every day.
    """

    promotion: Promotion
    status: str = ACTIVE_STATUS
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    min_order_amount: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    applicable_days: tuple[str, ...] = ()


def ineligibility_reason(
    record: PromotionRecord,
    subtotal: Decimal,
    now: datetime,
) -> str | None:
    """
    Explain why a promotion cannot apply.

    Args:
        record: The stored promotion.
        subtotal: Order subtotal in major units.
        now: Evaluation time (timezone-aware).

    Returns:
        A short reason, or None if the promotion is eligible.
    """
    if record.status != ACTIVE_STATUS:
        return f"status is {record.status}"
    if record.valid_from is not None and now < record.valid_from:
        return "not yet valid"
    if record.valid_until is not None and now > record.valid_until:
        return "expired"
    if record.min_order_amount is not None and subtotal < record.min_order_amount:
        return f"subtotal below minimum order of {record.min_order_amount}"
    if record.usage_limit is not None and record.usage_count >= record.usage_limit:
        return "usage limit reached"
    if record.applicable_days:
        weekday = WEEKDAYS[now.weekday()]
        if weekday not in record.applicable_days:
            return f"not valid on {weekday}"
    return None


def is_eligible(record: PromotionRecord, subtotal: Decimal, now: datetime) -> bool:
    """Return True if the promotion may apply to this order now."""
    return ineligibility_reason(record, subtotal, now) is None


def filter_eligible(
    records: Iterable[PromotionRecord],
    subtotal: Decimal,
    now: datetime | None = None,
) -> tuple[Promotion, ...]:
    """
    Keep the promotions that may apply to an order.

    Args:
        records: Stored promotions, in the order they should be tried.
        subtotal: Order subtotal in major units.
        now: Evaluation time; defaults to the current UTC time.

    Returns:
        Eligible promotions, order preserved.
    """
    now = now or datetime.now(UTC)
    eligible: list[Promotion] = []
    for record in records:
        reason = ineligibility_reason(record, subtotal, now)
        if reason is None:
            eligible.append(record.promotion)
        else:
            logger.debug("Promotion skipped", promotion_id=record.promotion.id, reason=reason)
    return tuple(eligible)
