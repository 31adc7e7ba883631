"""Shared fixtures for the webhook receiver test suite."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from webhook_receiver.config import Settings
from webhook_receiver.serve import create_app
from webhook_receiver.webhooks.timestamps import format_rfc3339, utcnow
from webhook_receiver.webhooks.verification import compute_signature

SECRET = "test-secret"


@pytest.fixture()
def settings() -> Settings:
    """Test settings; never reads .env."""
    return Settings(_env_file=None, webhook_secret_key=SECRET, app_env="test")


@pytest.fixture()
def app(settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture()
def sign() -> Callable[..., tuple[bytes, dict[str, str]]]:
    """Factory: payload (dict or raw bytes) -> (body, signed headers).

    Options: secret, timestamp (datetime or raw header string), webhook_id,
    idempotency_key.
    """

    def _sign(
        payload: dict[str, Any] | bytes,
        secret: str = SECRET,
        timestamp: datetime | str | None = None,
        webhook_id: str = "1",
        idempotency_key: str = "test-key",
    ) -> tuple[bytes, dict[str, str]]:
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        if isinstance(timestamp, str):
            ts = timestamp
        else:
            ts = format_rfc3339(timestamp or utcnow())
        headers = {
            "Content-Type": "application/json",
            "X-Webhook-Signature": compute_signature(secret, body),
            "X-Webhook-Timestamp": ts,
            "X-Webhook-ID": webhook_id,
            "X-Idempotency-Key": idempotency_key,
        }
        return body, headers

    return _sign


@pytest.fixture()
def consumption_payload() -> dict[str, Any]:
    return {
        "webhook_id": 12345,
        "data_type": "consumption",
        "group_by": "hour",
        "send_interval": "daily",
        "period": {"start_date": "2025-10-08", "end_date": "2025-10-09"},
        "data": {
            "contract_id": 1001,
            "contract_name": "Contrato Demo",
            "sic": "123456789",
            "consumption": [
                {"hour": 0, "active_energy": 150.5, "active_export": 0.0},
                {"hour": 1, "active_energy": 145.5, "active_export": 0.0},
            ],
        },
        "timestamp": "2025-10-09T00:05:00Z",
    }


@pytest.fixture()
def bills_payload() -> dict[str, Any]:
    return {
        "webhook_id": 67890,
        "data_type": "bills",
        "trigger_type": "available",
        "bill": {
            "bill_id": 1001,
            "contract_id": 2001,
            "period": "2024-01",
            "total": 1250.75,
            "status": "pending",
            "xml_url": "https://example.com/bill_1001.xml",
        },
        "timestamp": "2024-02-01T10:00:00Z",
    }
