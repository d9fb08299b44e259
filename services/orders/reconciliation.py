"""
Client/server reconciliation.

The client calculation only drives what the customer sees while the order is
being placed. Whenever a server calculation is available it is the amount
charged; the client result is used only when the server could not be
reached, and is then flagged as not authoritative.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Success
from services.orders.money import CALCULATION_TOLERANCE_MINOR, to_major_units
from services.orders.types import ComparisonDetails, ComparisonResult

if TYPE_CHECKING:
    from core.result import Result
    from services.orders.errors import RemoteCalculationError
    from services.orders.types import CalculationResult

logger = get_logger(__name__)

AMOUNT_ADJUSTED_MESSAGE = "amount adjusted"


class CalculationState(str, Enum):
    """Where an order's calculation stands."""

    PENDING = "pending"
    CLIENT_COMPUTED = "client_computed"
    AWAIT_SERVER = "await_server"
    MATCHED = "matched"
    SERVER_OVERRIDE = "server_override"
    CLIENT_FALLBACK = "client_fallback"
    FINAL = "final"


@dataclass(frozen=True, slots=True)
class ReconciliationOutcome:
    """
    Final result of reconciling a client calculation with the server.

    Attributes:
        state: MATCHED, SERVER_OVERRIDE or CLIENT_FALLBACK.
        result: The result to display and persist.
        is_authoritative: False only when the server could not be reached.
        comparison: Comparison of client and server, when both exist.
        adjustment_message: Message for the customer when the total changed.
        remote_error: Why the server result is missing, for CLIENT_FALLBACK.
    """

    state: CalculationState
    result: CalculationResult
    is_authoritative: bool
    comparison: ComparisonResult | None = None
    adjustment_message: str | None = None
    remote_error: RemoteCalculationError | None = None


def compare_calculations(
    first: CalculationResult,
    second: CalculationResult,
    tolerance_minor: int = CALCULATION_TOLERANCE_MINOR,
) -> ComparisonResult:
    """
    Compare two calculation results.

    Differences are taken on the minor-unit ledgers, so the comparison is
    exact and symmetric.

    Args:
        first: One result, usually the client's.
        second: The other result, usually the server's.
        tolerance_minor: Largest total difference that still matches.

    Returns:
        ComparisonResult with the total and per-field differences.
    """
    a, b = first.breakdown, second.breakdown
    total_diff = abs(a.total_minor - b.total_minor)

    details = ComparisonDetails(
        subtotal_diff=to_major_units(abs(a.subtotal_minor - b.subtotal_minor)),
        delivery_diff=to_major_units(abs(a.delivery_fee_minor - b.delivery_fee_minor)),
        discount_diff=to_major_units(abs(a.discount_minor - b.discount_minor)),
        total_diff=to_major_units(total_diff),
    )
    comparison = ComparisonResult(
        matches=total_diff <= tolerance_minor,
        difference=details.total_diff,
        tolerance=to_major_units(tolerance_minor),
        details=details,
    )

    logger.info(
        "Calculation comparison",
        first_total=str(first.total_amount),
        second_total=str(second.total_amount),
        difference=str(comparison.difference),
        tolerance=str(comparison.tolerance),
        matches=comparison.matches,
        subtotal_diff=str(details.subtotal_diff),
        delivery_diff=str(details.delivery_diff),
        discount_diff=str(details.discount_diff),
    )

    return comparison


def resolve_authoritative(
    server_result: CalculationResult,
    client_result: CalculationResult,
    reason: str,
) -> CalculationResult:
    """
    Take the server result over a disagreeing client result.

    Args:
        server_result: Result computed by the backend.
        client_result: Result computed locally.
        reason: Why the override happened, for the audit log.

    Returns:
        Copy of server_result with precision_adjustments incremented by one.
    """
    logger.warning(
        "Using server-authoritative calculation",
        reason=reason,
        server_total=str(server_result.total_amount),
        client_total=str(client_result.total_amount),
        difference=str(abs(server_result.total_amount - client_result.total_amount)),
    )

    breakdown = dataclasses.replace(
        server_result.breakdown,
        precision_adjustments=server_result.breakdown.precision_adjustments + 1,
    )
    return dataclasses.replace(server_result, breakdown=breakdown)


def reconcile(
    client_result: CalculationResult,
    server_outcome: Result[CalculationResult, RemoteCalculationError],
    tolerance_minor: int = CALCULATION_TOLERANCE_MINOR,
) -> ReconciliationOutcome:
    """
    Decide which result an order is charged with.

    Args:
        client_result: Locally computed result.
        server_outcome: The remote calculation, or why it is missing.
        tolerance_minor: Largest total difference that still matches.

    Returns:
        ReconciliationOutcome in state MATCHED, SERVER_OVERRIDE or
        CLIENT_FALLBACK.
    """
    if not isinstance(server_outcome, Success):
        logger.warning(
            "Server calculation unavailable, using client result",
            error=str(server_outcome.error),
            client_total=str(client_result.total_amount),
        )
        return ReconciliationOutcome(
            state=CalculationState.CLIENT_FALLBACK,
            result=client_result,
            is_authoritative=False,
            remote_error=server_outcome.error,
        )

    server_result = server_outcome.value
    comparison = compare_calculations(client_result, server_result, tolerance_minor)

    if comparison.matches:
        return ReconciliationOutcome(
            state=CalculationState.MATCHED,
            result=server_result,
            is_authoritative=True,
            comparison=comparison,
        )

    resolved = resolve_authoritative(
        server_result,
        client_result,
        reason=f"total differs by {comparison.difference}",
    )
    return ReconciliationOutcome(
        state=CalculationState.SERVER_OVERRIDE,
        result=resolved,
        is_authoritative=True,
        comparison=comparison,
        adjustment_message=AMOUNT_ADJUSTED_MESSAGE,
    )
