"""Webhook pipeline exceptions.

Raised by verification, classification and decoding; mapped to HTTP
responses only in ``handlers``.
"""

from __future__ import annotations

from enum import StrEnum


class VerificationFailure(StrEnum):
    """Reasons a signed request is rejected."""

    MISSING_SIGNATURE = "missing_signature"
    MISSING_TIMESTAMP = "missing_timestamp"
    INVALID_TIMESTAMP_FORMAT = "invalid_timestamp_format"
    STALE_TIMESTAMP = "stale_timestamp"
    SIGNATURE_MISMATCH = "signature_mismatch"
    SECRET_NOT_CONFIGURED = "secret_not_configured"


_FAILURE_MESSAGES: dict[VerificationFailure, str] = {
    VerificationFailure.MISSING_SIGNATURE: "Missing X-Webhook-Signature header",
    VerificationFailure.MISSING_TIMESTAMP: "Missing X-Webhook-Timestamp header",
    VerificationFailure.INVALID_TIMESTAMP_FORMAT: "Invalid timestamp format",
    VerificationFailure.STALE_TIMESTAMP: "Webhook timestamp outside freshness window",
    VerificationFailure.SIGNATURE_MISMATCH: "Invalid signature",
    VerificationFailure.SECRET_NOT_CONFIGURED: "Webhook secret not configured",
}


class WebhookError(Exception):
    """Base class for webhook pipeline failures."""

    pass


class SignatureVerificationError(WebhookError):
    """Raised when a request fails signature or freshness verification."""

    def __init__(self, reason: VerificationFailure) -> None:
        self.reason = reason
        super().__init__(_FAILURE_MESSAGES[reason])


class MalformedPayloadError(WebhookError):
    """Raised when the body is not a JSON object with a usable data_type."""

    pass


class PayloadDecodeError(WebhookError):
    """Raised when a classified body does not match its variant schema."""

    def __init__(self, data_type: str, cause: Exception) -> None:
        self.data_type = data_type
        self.cause = cause
        super().__init__(f"Failed to parse {data_type} payload: {cause}")
