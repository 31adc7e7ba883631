"""Two-phase payload decoding: peek at data_type, then decode the variant.

classify() only looks at the discriminator so a body with a broken
remainder still routes correctly; decode() then validates the full body
against the variant model selected for that data_type. Bodies are decoded
from the same raw bytes the signature was verified over.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from webhook_receiver.webhooks.errors import MalformedPayloadError, PayloadDecodeError
from webhook_receiver.webhooks.models import (
    BillingEvent,
    ConsumptionReport,
    UnknownEvent,
    WebhookEnvelope,
)

logger = logging.getLogger(__name__)

CONSUMPTION = "consumption"
BILLS = "bills"

# data_type -> variant model
_VARIANT_MODELS: dict[str, type[BaseModel]] = {
    CONSUMPTION: ConsumptionReport,
    BILLS: BillingEvent,
}


class _Discriminator(BaseModel):
    """Just the routing field; pydantic's parser bounds nesting depth."""

    model_config = ConfigDict(strict=True, extra="ignore")

    data_type: Optional[str] = None


def _describe(error: ValidationError) -> str:
    """Collapse a ValidationError into one line: 'loc: msg; loc: msg'."""
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def classify(body: bytes) -> str:
    """Return the body's data_type ("" when absent).

    Raises:
        MalformedPayloadError: body is not a JSON object (including input
            nested too deeply to parse), or data_type is present but not
            a string
    """
    try:
        peek = _Discriminator.model_validate_json(body)
    except ValidationError as e:
        raise MalformedPayloadError(f"Invalid JSON payload: {_describe(e)}") from e
    return peek.data_type or ""


def _with_exact_total(event: BillingEvent, body: bytes) -> BillingEvent:
    """Rebuild bill.total from the number's source digits.

    The validated model only ever sees a float for a fractional total, so
    the body is re-read with Decimal floats and the exact value swapped in.
    """
    payload = json.loads(body, parse_float=Decimal)
    bill = payload.get("bill")
    if not isinstance(bill, dict) or "total" not in bill:
        return event
    exact = Decimal(bill["total"])
    return event.model_copy(update={"bill": event.bill.model_copy(update={"total": exact})})


def decode(data_type: str, body: bytes) -> WebhookEnvelope:
    """Decode ``body`` into the variant for ``data_type``.

    Unrecognized data types are not decoded and come back as UnknownEvent.

    Raises:
        PayloadDecodeError: a present field has the wrong type for its variant
    """
    model = _VARIANT_MODELS.get(data_type)
    if model is None:
        logger.info("Unrecognized data_type %r, accepting without decoding", data_type)
        return UnknownEvent(data_type=data_type)

    try:
        event = model.model_validate_json(body)
    except ValidationError as e:
        raise PayloadDecodeError(data_type, ValueError(_describe(e))) from e

    if isinstance(event, BillingEvent):
        event = _with_exact_total(event, body)
    return event
