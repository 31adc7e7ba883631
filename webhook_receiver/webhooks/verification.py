"""Webhook signature verification: constant-time HMAC with a freshness window.

Security contract:
- Signature is HMAC-SHA256 over the exact raw body, hex-encoded
- All comparisons use hmac.compare_digest() (constant-time, no timing attacks)
- Timestamp must be RFC3339 and within the tolerance window (past or future)
- Empty secret -> verification always fails (fail-closed)
- The body is never parsed here; callers decode the same bytes afterwards
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timedelta

from webhook_receiver.webhooks.errors import (
    SignatureVerificationError,
    VerificationFailure,
)
from webhook_receiver.webhooks.timestamps import format_rfc3339, parse_rfc3339, utcnow

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-webhook-signature"
TIMESTAMP_HEADER = "x-webhook-timestamp"
WEBHOOK_ID_HEADER = "x-webhook-id"
IDEMPOTENCY_KEY_HEADER = "x-idempotency-key"

DEFAULT_TOLERANCE_SECONDS = 300


def compute_signature(secret: str, body: bytes) -> str:
    """Return the hex HMAC-SHA256 of ``body`` keyed with ``secret``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class SignatureVerifier:
    """Verifies X-Webhook-Signature / X-Webhook-Timestamp for a raw body.

    The secret and tolerance are injected once at construction and never
    read from the environment here.
    """

    def __init__(self, secret: str, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS):
        self._secret = secret
        self._tolerance = timedelta(seconds=tolerance_seconds)

    @property
    def tolerance(self) -> timedelta:
        return self._tolerance

    def verify(
        self,
        body: bytes,
        signature: str | None,
        timestamp: str | None,
        now: datetime | None = None,
    ) -> None:
        """Verify a signed request.

        Args:
            body: Raw request body bytes (not modified)
            signature: Value of X-Webhook-Signature
            timestamp: Value of X-Webhook-Timestamp (RFC3339)
            now: Reference time, defaults to the current UTC time

        Raises:
            SignatureVerificationError: with the first failing check as reason
        """
        if not signature:
            raise SignatureVerificationError(VerificationFailure.MISSING_SIGNATURE)
        if not timestamp:
            raise SignatureVerificationError(VerificationFailure.MISSING_TIMESTAMP)

        try:
            sent_at = parse_rfc3339(timestamp)
        except ValueError:
            raise SignatureVerificationError(VerificationFailure.INVALID_TIMESTAMP_FORMAT) from None

        current = now or utcnow()
        # Equal to the tolerance is still fresh
        if abs(current - sent_at) > self._tolerance:
            logger.warning(
                "Webhook timestamp outside tolerance: %s (now=%s, tolerance=%ss)",
                timestamp,
                format_rfc3339(current),
                int(self._tolerance.total_seconds()),
            )
            raise SignatureVerificationError(VerificationFailure.STALE_TIMESTAMP)

        if not self._secret:
            logger.warning("Webhook secret not configured, rejecting webhook")
            raise SignatureVerificationError(VerificationFailure.SECRET_NOT_CONFIGURED)

        expected = compute_signature(self._secret, body)
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            raise SignatureVerificationError(VerificationFailure.SIGNATURE_MISMATCH)

    def is_valid(
        self,
        body: bytes,
        signature: str | None,
        timestamp: str | None,
        now: datetime | None = None,
    ) -> bool:
        """Boolean form of verify()."""
        try:
            self.verify(body, signature, timestamp, now=now)
        except SignatureVerificationError:
            return False
        return True
