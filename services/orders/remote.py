"""HTTP client for the server-side order calculation function."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from core.logging import get_logger
from core.result import Result, failure, success
from services.orders.errors import RemoteCalculationError, RemoteErrorCode, ValidationError
from services.orders.mapping import input_to_payload, result_from_payload

if TYPE_CHECKING:
    from core.config import BackendSettings
    from services.orders.types import CalculationInput, CalculationResult

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
FUNCTION_PATH = "/functions/v1/calculate-order-totals"


class RemoteCalculationClient:
    """
    HTTP client for the backend's calculate-order-totals function.

    Network conditions never raise; they come back as a Failure carrying a
    RemoteCalculationError. The client does not retry.

    Attributes:
        base_url: Backend project URL.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        function_path: str = FUNCTION_PATH,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Backend project URL.
            api_key: Public API key, sent as apikey and bearer token.
            timeout: Request timeout in seconds.
            function_path: Path of the calculation function.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.function_path = function_path
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: BackendSettings) -> RemoteCalculationClient:
        """Build a client from the BACKEND_* settings section."""
        return cls(
            base_url=settings.url,
            api_key=settings.anon_key.get_secret_value(),
            timeout=settings.timeout,
            function_path=settings.function_path,
        )

    @property
    def is_configured(self) -> bool:
        """Check if URL and key are set."""
        return bool(self.base_url and self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def calculate(
        self,
        calculation_input: CalculationInput,
    ) -> Result[CalculationResult, RemoteCalculationError]:
        """
        Ask the backend to calculate order totals.

        Args:
            calculation_input: The same input the client calculated from.

        Returns:
            Result containing the server's CalculationResult or a
            RemoteCalculationError.
        """
        if not self.is_configured:
            return failure(
                RemoteCalculationError(
                    code=RemoteErrorCode.NOT_CONFIGURED,
                    message="Backend URL or API key not configured",
                )
            )

        client = await self._get_client()
        payload = input_to_payload(calculation_input)

        logger.info(
            "Requesting server calculation",
            path=self.function_path,
            item_count=len(calculation_input.items),
        )

        try:
            response = await client.post(self.function_path, json=payload)
        except httpx.TimeoutException:
            logger.error("Server calculation timeout", path=self.function_path)
            return failure(
                RemoteCalculationError(code=RemoteErrorCode.TIMEOUT, message="Request timeout")
            )
        except httpx.RequestError as e:
            logger.error("Server calculation request error", error=str(e))
            return failure(
                RemoteCalculationError(
                    code=RemoteErrorCode.NETWORK,
                    message="Request failed",
                    details=str(e),
                )
            )

        if response.status_code >= 400:
            logger.error(
                "Server calculation error",
                status_code=response.status_code,
                response_text=response.text[:500],
            )
            return failure(
                RemoteCalculationError(
                    code=RemoteErrorCode.HTTP,
                    message=f"Function returned status {response.status_code}",
                    status_code=response.status_code,
                    details=response.text[:500],
                )
            )

        try:
            data: dict[str, Any] = response.json()
            return success(result_from_payload(data))
        except (AttributeError, ValueError, TypeError, KeyError, IndexError, ValidationError) as e:
            logger.error("Failed to parse server calculation", error=str(e))
            return failure(
                RemoteCalculationError(
                    code=RemoteErrorCode.PARSE,
                    message="Failed to parse response",
                    status_code=response.status_code,
                    details=str(e),
                )
            )
