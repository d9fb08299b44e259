"""Order calculation service package."""

from services.orders.cache import CalculationCache
from services.orders.calculator import calculate_order
from services.orders.eligibility import PromotionRecord, filter_eligible, is_eligible
from services.orders.errors import (
    OrderCalculationError,
    RemoteCalculationError,
    RemoteErrorCode,
    ValidationError,
)
from services.orders.mapping import item_from_row, promotion_from_row, result_from_payload
from services.orders.money import (
    DEFAULT_VAT_RATE,
    round_currency,
    to_major_units,
    to_minor_units,
    vat_breakdown,
)
from services.orders.reconciliation import (
    CalculationState,
    ReconciliationOutcome,
    compare_calculations,
    reconcile,
    resolve_authoritative,
)
from services.orders.remote import RemoteCalculationClient
from services.orders.service import OrderCalculationService
from services.orders.types import (
    CalculationInput,
    CalculationItem,
    CalculationResult,
    CalculationSource,
    ComparisonResult,
    Promotion,
    PromotionKind,
)

__all__ = [
    "DEFAULT_VAT_RATE",
    "CalculationCache",
    "CalculationInput",
    "CalculationItem",
    "CalculationResult",
    "CalculationSource",
    "CalculationState",
    "ComparisonResult",
    "OrderCalculationError",
    "OrderCalculationService",
    "Promotion",
    "PromotionKind",
    "PromotionRecord",
    "ReconciliationOutcome",
    "RemoteCalculationClient",
    "RemoteCalculationError",
    "RemoteErrorCode",
    "ValidationError",
    "calculate_order",
    "compare_calculations",
    "filter_eligible",
    "is_eligible",
    "item_from_row",
    "promotion_from_row",
    "reconcile",
    "resolve_authoritative",
    "result_from_payload",
    "round_currency",
    "to_major_units",
    "to_minor_units",
    "vat_breakdown",
]
