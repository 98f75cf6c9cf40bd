"""Wildberries box-tariffs provider client.

Fetches one day's tariffs, validates the payload shape and normalizes it into
a TariffSnapshot. Numeric tariffs arrive as locale strings with a comma
decimal separator ("12,34"); anything that does not parse to a finite number
becomes None instead of failing the fetch.
"""

from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from tariffsync.core.config import Settings, get_settings
from tariffsync.core.exceptions import (
    AuthError,
    BadRequestError,
    RateLimitError,
    TransportError,
    ValidationError,
)
from tariffsync.core.logging import get_logger
from tariffsync.features.tariffs.schemas import TariffSnapshot, WarehouseTariffData

logger = get_logger(__name__)

TARIFFS_BOX_PATH = "/api/v1/tariffs/box"


# =============================================================================
# Provider payload
# =============================================================================


class ProviderWarehouse(BaseModel):
    """One entry of ``warehouseList`` as sent by the provider."""

    model_config = ConfigDict(extra="ignore")

    warehouse_name: str = Field(..., alias="warehouseName", min_length=1)
    box_delivery_and_storage_expr: str | None = Field(None, alias="boxDeliveryAndStorageExpr")
    box_delivery_base: str | None = Field(None, alias="boxDeliveryBase")
    box_delivery_liter: str | None = Field(None, alias="boxDeliveryLiter")
    box_storage_base: str | None = Field(None, alias="boxStorageBase")
    box_storage_liter: str | None = Field(None, alias="boxStorageLiter")


class ProviderTariffsData(BaseModel):
    """``response.data`` of the box tariffs payload."""

    model_config = ConfigDict(extra="ignore")

    dt_next_box: date_type | None = Field(None, alias="dtNextBox")
    dt_till_max: date_type | None = Field(None, alias="dtTillMax")
    warehouse_list: list[ProviderWarehouse] = Field(..., alias="warehouseList")

    @field_validator("dt_next_box", "dt_till_max", mode="before")
    @classmethod
    def parse_boundary_date(cls, v: Any) -> Any:
        """Accept "", "YYYY-MM-DD" or a full ISO datetime; keep only the date."""
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError("boundary date must be a string")
        v = v.strip()
        if not v:
            return None
        return v[:10]


class ProviderTariffsBody(BaseModel):
    """``response`` envelope."""

    data: ProviderTariffsData


class ProviderTariffsResponse(BaseModel):
    """Top-level box tariffs payload."""

    response: ProviderTariffsBody


def parse_decimal(value: str | None) -> Decimal | None:
    """Parse a provider numeric string such as " 12,34 " into a Decimal.

    Args:
        value: Raw string from the provider (may be None or blank).

    Returns:
        Parsed finite Decimal, or None when the value is missing or unusable.
    """
    if value is None:
        return None
    cleaned = "".join(value.split()).replace(",", ".")
    if not cleaned:
        return None
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def to_snapshot(payload: ProviderTariffsResponse, request_date: date_type) -> TariffSnapshot:
    """Transform a validated provider payload into a TariffSnapshot.

    Warehouses keep the provider's order; entries without a coefficient are
    preserved with the field set to None.
    """
    data = payload.response.data
    warehouses = [
        WarehouseTariffData(
            warehouse_name=item.warehouse_name,
            coefficient=parse_decimal(item.box_delivery_and_storage_expr),
            delivery_base=parse_decimal(item.box_delivery_base),
            delivery_per_liter=parse_decimal(item.box_delivery_liter),
            storage_base=parse_decimal(item.box_storage_base),
            storage_per_liter=parse_decimal(item.box_storage_liter),
        )
        for item in data.warehouse_list
    ]
    return TariffSnapshot(
        request_date=request_date,
        next_boundary_date=data.dt_next_box,
        max_boundary_date=data.dt_till_max,
        warehouses=warehouses,
    )


# =============================================================================
# Client
# =============================================================================


class WbTariffsClient:
    """Async client for ``GET /api/v1/tariffs/box``.

    One request per fetch; no retries. The next scheduler tick is the retry.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider client.

        Args:
            base_url: Provider base URL, without trailing slash.
            api_key: Optional bearer token.
            timeout_seconds: Bound on the whole request.
            http_client: Pre-built client (tests inject a MockTransport here).
        """
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._api_key = api_key
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> WbTariffsClient:
        """Build a client from application settings."""
        settings = settings or get_settings()
        return cls(
            base_url=settings.wb_api_url,
            api_key=settings.wb_api_key,
            timeout_seconds=settings.wb_api_timeout_seconds,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, request_date: date_type) -> TariffSnapshot:
        """Fetch and normalize the box tariffs for one date.

        Args:
            request_date: Date to request tariffs for.

        Returns:
            Normalized snapshot.

        Raises:
            ValidationError: Payload does not match the expected shape.
            AuthError: Provider answered 401.
            RateLimitError: Provider answered 429.
            BadRequestError: Provider answered 400.
            TransportError: Any other HTTP or network failure.
        """
        date_str = request_date.isoformat()
        headers: dict[str, str] = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        logger.info("wb_api.fetch_started", request_date=date_str)

        try:
            response = await self._get_client().get(
                TARIFFS_BOX_PATH,
                params={"date": date_str},
                headers=headers,
            )
        except httpx.TimeoutException as e:
            logger.error("wb_api.timeout", request_date=date_str, timeout=self.timeout_seconds)
            raise TransportError(
                f"Tariff provider did not answer within {self.timeout_seconds:g}s"
            ) from e
        except httpx.RequestError as e:
            logger.error("wb_api.request_failed", request_date=date_str, error=str(e))
            raise TransportError(f"Tariff provider request failed: {e}") from e

        if response.is_error:
            self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("wb_api.invalid_json", request_date=date_str)
            raise ValidationError("Tariff provider returned a non-JSON body") from e

        try:
            parsed = ProviderTariffsResponse.model_validate(payload)
        except PydanticValidationError as e:
            errors = e.errors(include_url=False, include_context=False, include_input=False)
            logger.error("wb_api.invalid_payload", request_date=date_str, errors=errors)
            raise ValidationError(
                f"Unexpected tariff payload shape: {e.error_count()} violation(s)",
                details={"errors": [dict(err) for err in errors]},
            ) from e

        snapshot = to_snapshot(parsed, request_date)
        logger.info(
            "wb_api.fetch_completed",
            request_date=date_str,
            warehouse_count=len(snapshot.warehouses),
        )
        return snapshot

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Map a provider error response onto the fetch error taxonomy."""
        status = response.status_code
        message = _error_message(response)

        logger.error("wb_api.http_error", status_code=status, message=message)

        if status == 401:
            raise AuthError(f"Tariff provider rejected the API key: {message}")
        if status == 429:
            raise RateLimitError(f"Tariff provider rate limit exceeded: {message}")
        if status == 400:
            raise BadRequestError(f"Tariff provider rejected the request: {message}")
        raise TransportError(f"Tariff provider error ({status}): {message}", status_code=status)


def _error_message(response: httpx.Response) -> str:
    """Best-effort human-readable message from an error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "title", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    return text[:200] if text else response.reason_phrase
