"""Error types for order calculation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ValidationError(Exception):
    """Calculation input is malformed."""

    def __init__(self, field: str, message: str) -> None:
        """Initialize with the offending field and a description."""
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class OrderCalculationError(Exception):
    """
    Order calculation failed.

    Wraps whatever went wrong inside a calculation. Calculations are
    deterministic, so callers should not retry on this error.
    """

    def __init__(self, cause: BaseException) -> None:
        """Initialize with the underlying exception."""
        self.cause = cause
        self.message = f"Order calculation failed: {cause}"
        super().__init__(self.message)


class RemoteErrorCode(str, Enum):
    """Error codes for the server-side calculation call."""

    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP = "http"
    PARSE = "parse"


@dataclass(frozen=True, slots=True)
class RemoteCalculationError:
    """
    Failure to obtain a server-side calculation.

    Attributes:
        code: Error code identifying the type of failure.
        message: Human-readable message.
        status_code: HTTP status, when the server answered.
        details: Additional details (truncated response body, exception text).
    """

    code: RemoteErrorCode
    message: str
    status_code: int | None = None
    details: str | None = None

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    @property
    def is_retryable(self) -> bool:
        """Check if a later attempt could succeed."""
        if self.code is RemoteErrorCode.HTTP:
            return self.status_code is not None and self.status_code >= 500
        return self.code in {RemoteErrorCode.TIMEOUT, RemoteErrorCode.NETWORK}
