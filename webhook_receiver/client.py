"""Signed webhook sender.

Produces requests the receiver accepts: JSON body, hex HMAC-SHA256 of the
exact bytes sent, RFC3339 UTC timestamp, webhook id and idempotency key.
Used by the CLI to exercise a running receiver.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError

from webhook_receiver.webhooks.models import AcknowledgmentResponse
from webhook_receiver.webhooks.timestamps import format_rfc3339, utcnow
from webhook_receiver.webhooks.verification import compute_signature

logger = logging.getLogger(__name__)


@dataclass
class Delivery:
    """Result of sending one webhook."""

    status_code: int
    ack: AcknowledgmentResponse | None

    @property
    def ok(self) -> bool:
        return self.status_code == 200 and self.ack is not None and self.ack.success


class WebhookClient:
    """Sends signed webhooks to a receiver URL."""

    def __init__(
        self,
        url: str,
        secret: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self._secret = secret
        self._timeout = timeout
        self._transport = transport

    def signed_headers(
        self,
        body: bytes,
        webhook_id: str = "",
        idempotency_key: str | None = None,
        timestamp: datetime | None = None,
    ) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Signature": compute_signature(self._secret, body),
            "X-Webhook-Timestamp": format_rfc3339(timestamp or utcnow()),
            "X-Idempotency-Key": idempotency_key or f"webhook-{int(time.time())}",
        }
        if webhook_id:
            headers["X-Webhook-ID"] = webhook_id
        return headers

    def send(
        self,
        payload: dict[str, Any],
        idempotency_key: str | None = None,
        timestamp: datetime | None = None,
    ) -> Delivery:
        """Serialize, sign and POST ``payload``."""
        body = json.dumps(payload).encode("utf-8")
        webhook_id = str(payload.get("webhook_id", ""))
        headers = self.signed_headers(body, webhook_id, idempotency_key, timestamp)

        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            response = client.post(self.url, content=body, headers=headers)

        try:
            ack = AcknowledgmentResponse.model_validate_json(response.content)
        except ValidationError:
            logger.warning("Unparseable webhook response (status=%d)", response.status_code)
            ack = None
        return Delivery(status_code=response.status_code, ack=ack)


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


def sample_consumption_payload(webhook_id: int = 12345) -> dict[str, Any]:
    """Hourly consumption report for one contract."""
    return {
        "webhook_id": webhook_id,
        "data_type": "consumption",
        "group_by": "hour",
        "send_interval": "daily",
        "period": {"start_date": "2024-01-15", "end_date": "2024-01-16"},
        "data": {
            "contract_id": 1001,
            "contract_name": "Contrato Demo",
            "sic": "123456789",
            "consumption": [
                {
                    "hour": 0,
                    "active_energy": 150.5,
                    "active_export": 0.0,
                    "inductive_penalized": 10.2,
                    "reactive_capacitive": 5.1,
                },
                {
                    "hour": 1,
                    "active_energy": 145.3,
                    "active_export": 0.0,
                    "inductive_penalized": 9.8,
                    "reactive_capacitive": 4.9,
                },
            ],
        },
        "timestamp": format_rfc3339(utcnow()),
    }


def sample_bills_payload(webhook_id: int = 67890, trigger_type: str = "available") -> dict[str, Any]:
    """Bill event; "paid" events carry a payment block."""
    payload: dict[str, Any] = {
        "webhook_id": webhook_id,
        "data_type": "bills",
        "trigger_type": trigger_type,
        "bill": {
            "bill_id": 1001,
            "contract_id": 2001,
            "period": "2024-01",
            "total": 1250.75,
            "status": "paid" if trigger_type == "paid" else "pending",
            "xml_url": "https://example.com/bill_1001.xml",
        },
        "timestamp": format_rfc3339(utcnow()),
    }
    if trigger_type == "paid":
        payload["payment"] = {
            "payment_date": format_rfc3339(utcnow()),
            "transaction_id": 555001,
            "payment_method": "transfer",
        }
    return payload
