"""Order calculation service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.logging import bind_context, get_logger, unbind_context
from core.result import Result, failure, success
from services.orders.cache import CalculationCache
from services.orders.calculator import calculate_order
from services.orders.errors import (
    OrderCalculationError,
    RemoteCalculationError,
    RemoteErrorCode,
)
from services.orders.money import CALCULATION_TOLERANCE_MINOR
from services.orders.reconciliation import (
    ReconciliationOutcome,
    compare_calculations,
    reconcile,
    resolve_authoritative,
)
from services.orders.remote import RemoteCalculationClient

if TYPE_CHECKING:
    from core.config import Settings
    from services.orders.types import CalculationInput, CalculationResult, ComparisonResult

logger = get_logger(__name__)


class OrderCalculationService:
    """
    Entry point for order totals.

    Runs the local calculation, optionally memoized, and reconciles it with
    the backend's calculation when a remote client is supplied.

    Example:
        >>> service = OrderCalculationService(remote=RemoteCalculationClient(url, key))
        >>> outcome = (await service.calculate_authoritative(order_input)).unwrap()
        >>> outcome.result.total_amount
        Decimal('9500.00')
    """

    def __init__(
        self,
        remote: RemoteCalculationClient | None = None,
        cache: CalculationCache | None = None,
        tolerance_minor: int = CALCULATION_TOLERANCE_MINOR,
    ) -> None:
        """
        Initialize the service.

        Args:
            remote: Client for the server-side calculation (optional).
            cache: Result cache (optional).
            tolerance_minor: Largest client/server difference that matches.
        """
        self._remote = remote
        self._cache = cache
        self._tolerance_minor = tolerance_minor

    @classmethod
    def from_settings(cls, settings: Settings) -> OrderCalculationService:
        """Build a service wired according to settings."""
        remote = (
            RemoteCalculationClient.from_settings(settings.backend)
            if settings.backend.is_configured
            else None
        )
        cache = (
            CalculationCache(ttl=settings.calculation.cache_ttl_seconds)
            if settings.calculation.cache_enabled
            else None
        )
        return cls(
            remote=remote,
            cache=cache,
            tolerance_minor=settings.calculation.tolerance_minor,
        )

    async def close(self) -> None:
        """Close the remote client, if any."""
        if self._remote is not None:
            await self._remote.close()

    def calculate(
        self,
        calculation_input: CalculationInput,
    ) -> Result[CalculationResult, OrderCalculationError]:
        """
        Calculate order totals locally.

        Any exception, including ValidationError, is wrapped in a single
        OrderCalculationError that keeps the cause. Nothing is retried.

        Args:
            calculation_input: Items, delivery fee and candidate promotions.

        Returns:
            Result containing the CalculationResult or OrderCalculationError.
        """
        try:
            if self._cache is not None:
                result = self._cache.get_or_set(
                    calculation_input,
                    lambda: calculate_order(calculation_input),
                )
            else:
                result = calculate_order(calculation_input)
        except Exception as e:
            logger.error(
                "Order calculation failed",
                source=calculation_input.source.value,
                item_count=len(calculation_input.items),
                promotion_code=calculation_input.promotion_code,
                error=str(e),
                exc_info=True,
            )
            return failure(OrderCalculationError(e))
        return success(result)

    def compare(self, first: CalculationResult, second: CalculationResult) -> ComparisonResult:
        """Compare two results with the configured tolerance."""
        return compare_calculations(first, second, self._tolerance_minor)

    def resolve_authoritative(
        self,
        server_result: CalculationResult,
        client_result: CalculationResult,
        reason: str,
    ) -> CalculationResult:
        """Take the server result, recording the override."""
        return resolve_authoritative(server_result, client_result, reason)

    async def calculate_authoritative(
        self,
        calculation_input: CalculationInput,
        order_ref: str | None = None,
    ) -> Result[ReconciliationOutcome, OrderCalculationError]:
        """
        Calculate locally, fetch the server calculation, and reconcile.

        If no remote client is configured or the call fails, the outcome is
        the client result in state CLIENT_FALLBACK, not authoritative.

        Args:
            calculation_input: Items, delivery fee and candidate promotions.
            order_ref: Optional order reference bound to the log context.

        Returns:
            Result containing the ReconciliationOutcome, or an
            OrderCalculationError if the local calculation failed.
        """
        if order_ref:
            bind_context(order_ref=order_ref)
        try:
            return await self._calculate_authoritative(calculation_input)
        finally:
            if order_ref:
                unbind_context("order_ref")

    async def _calculate_authoritative(
        self,
        calculation_input: CalculationInput,
    ) -> Result[ReconciliationOutcome, OrderCalculationError]:
        local = self.calculate(calculation_input)
        if not local.is_success():
            return local

        client_result = local.unwrap()

        if self._remote is None:
            server_outcome: Result[CalculationResult, RemoteCalculationError] = failure(
                RemoteCalculationError(
                    code=RemoteErrorCode.NOT_CONFIGURED,
                    message="No remote calculation client",
                )
            )
        else:
            server_outcome = await self._remote.calculate(calculation_input)

        outcome = reconcile(client_result, server_outcome, self._tolerance_minor)
        logger.info(
            "Order calculation reconciled",
            state=outcome.state.value,
            total=str(outcome.result.total_amount),
            is_authoritative=outcome.is_authoritative,
        )
        return success(outcome)
