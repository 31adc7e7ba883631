"""Webhook data models.

Wire shapes for the two webhook families plus the acknowledgment envelope:

- ConsumptionReport (data_type="consumption"): one contract's energy data
  for a period, grouped and sent on a schedule
- BillingEvent (data_type="bills"): a bill became available or was paid
- UnknownEvent: any other data_type, accepted without validation

Variant models are permissive about missing and extra fields but strict
about types of the fields that are present: "12" is not an int.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from webhook_receiver.webhooks.timestamps import parse_rfc3339
from webhook_receiver.webhooks.verification import (
    IDEMPOTENCY_KEY_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    WEBHOOK_ID_HEADER,
)

logger = logging.getLogger(__name__)


_VARIANT_CONFIG = ConfigDict(strict=True, extra="ignore", populate_by_name=True)


def _rfc3339_or_none(value: Any) -> Any:
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError("timestamp must be an RFC3339 string")
    return parse_rfc3339(value)


Rfc3339Datetime = Annotated[Optional[datetime], BeforeValidator(_rfc3339_or_none)]


@dataclass(frozen=True)
class SignedRequest:
    """A received webhook request, as read once from the transport."""

    raw_body: bytes
    signature: str = ""
    timestamp: str = ""
    webhook_id: str = ""
    idempotency_key: str = ""

    @classmethod
    def from_headers(cls, body: bytes, headers: Mapping[str, str]) -> SignedRequest:
        """Build from a raw body and a case-insensitive or lowercase header mapping."""
        return cls(
            raw_body=body,
            signature=headers.get(SIGNATURE_HEADER, ""),
            timestamp=headers.get(TIMESTAMP_HEADER, ""),
            webhook_id=headers.get(WEBHOOK_ID_HEADER, ""),
            idempotency_key=headers.get(IDEMPOTENCY_KEY_HEADER, ""),
        )


# ---------------------------------------------------------------------------
# Consumption
# ---------------------------------------------------------------------------


class Period(BaseModel):
    model_config = _VARIANT_CONFIG

    start_date: str = ""  # "2025-10-08"
    end_date: str = ""


class EnergyMetrics(BaseModel):
    """Energy readings shared by every consumption row shape."""

    active_energy: float | None = None
    active_export: float | None = None
    inductive_penalized: float | None = None
    reactive_capacitive: float | None = None


class MonthlyConsumption(EnergyMetrics):
    month: str  # "2025-10"


class DailyConsumption(EnergyMetrics):
    date: str  # "2025-10-08"


class HourlyConsumption(EnergyMetrics):
    hour: int = Field(ge=0, le=23)


class DateHourlyConsumption(BaseModel):
    """One day with its hourly breakdown."""

    date: str
    hours: list[HourlyConsumption] = Field(default_factory=list)


ConsumptionRow = Union[
    DateHourlyConsumption, HourlyConsumption, DailyConsumption, MonthlyConsumption
]


def _row_model(item: Mapping[str, Any]) -> type[BaseModel] | None:
    if "hours" in item:
        return DateHourlyConsumption
    if "hour" in item:
        return HourlyConsumption
    if "date" in item:
        return DailyConsumption
    if "month" in item:
        return MonthlyConsumption
    return None


def interpret_consumption(raw: Any) -> list[ConsumptionRow]:
    """Interpret an opaque consumption value as typed rows.

    Accepts a single row object or a list of rows. Items that match no known
    shape are skipped; this never raises.
    """
    items = raw if isinstance(raw, list) else [raw]
    rows: list[ConsumptionRow] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        model = _row_model(item)
        if model is None:
            continue
        try:
            rows.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug("Skipping consumption row %r: %s", item, e)
    return rows


class ContractConsumption(BaseModel):
    """Consumption for a single contract. ``consumption`` shape depends on group_by."""

    model_config = _VARIANT_CONFIG

    contract_id: int = 0
    contract_name: str = ""
    sic: str = ""
    consumption: Any = None


class ConsumptionReport(BaseModel):
    """data_type="consumption" webhook."""

    model_config = _VARIANT_CONFIG

    webhook_id: int = 0
    data_type: str = "consumption"
    group_by: str = ""
    send_interval: str = ""
    period: Period = Field(default_factory=Period)
    contract: ContractConsumption = Field(default_factory=ContractConsumption, alias="data")
    timestamp: Rfc3339Datetime = Field(default=None, strict=False)

    def consumption_rows(self) -> list[ConsumptionRow]:
        return interpret_consumption(self.contract.consumption)

    def total_active_energy(self) -> float:
        """Sum of active_energy over all interpretable rows (0.0 if none)."""
        total = 0.0
        for row in self.consumption_rows():
            readings = row.hours if isinstance(row, DateHourlyConsumption) else [row]
            total += sum(r.active_energy or 0.0 for r in readings)
        return total


# ---------------------------------------------------------------------------
# Bills
# ---------------------------------------------------------------------------


class Bill(BaseModel):
    model_config = _VARIANT_CONFIG

    bill_id: int = 0
    contract_id: int = 0
    period: str = ""  # "2024-01"
    total: Decimal = Field(default=Decimal("0"), strict=False)
    status: str = ""
    xml_url: str = ""

    @field_validator("total", mode="before")
    @classmethod
    def total_is_number(cls, value: Any) -> Any:
        # JSON numbers only; never parse numeric strings. decode() swaps in
        # the exact source digits afterwards.
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
            raise ValueError("total must be a number")
        return Decimal(str(value))


class Payment(BaseModel):
    """Only sent with trigger_type="paid"."""

    model_config = _VARIANT_CONFIG

    payment_date: Rfc3339Datetime = Field(default=None, strict=False)
    transaction_id: int | None = None
    payment_method: str = ""


class BillingEvent(BaseModel):
    """data_type="bills" webhook."""

    model_config = _VARIANT_CONFIG

    webhook_id: int = 0
    data_type: str = "bills"
    trigger_type: str = ""  # available | paid
    bill: Bill = Field(default_factory=Bill)
    payment: Payment | None = None
    timestamp: Rfc3339Datetime = Field(default=None, strict=False)


# ---------------------------------------------------------------------------
# Unknown + envelope
# ---------------------------------------------------------------------------


class UnknownEvent(BaseModel):
    """Any data_type this receiver does not decode."""

    data_type: str = ""


WebhookEnvelope = Union[ConsumptionReport, BillingEvent, UnknownEvent]


class AcknowledgmentResponse(BaseModel):
    """Response body for every webhook request."""

    success: bool
    message: str = ""
    processed: bool
    timestamp: datetime
