"""Webhook HTTP handlers: FastAPI route for inbound signed webhooks.

The handler:
1. Reads the raw body once (the same bytes are verified and decoded)
2. Verifies timestamp freshness and HMAC signature
3. Classifies the body by data_type
4. Decodes and processes the matching variant
5. Returns the acknowledgment envelope

Status contract:
- 200 for every handled request, including unknown data_type, failed
  validation and undecodable variants (processed=False)
- 400 for an unreadable body or malformed JSON
- 401 for any verification failure, before any decoding
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.requests import ClientDisconnect

from webhook_receiver.webhooks.decoding import classify, decode
from webhook_receiver.webhooks.errors import (
    MalformedPayloadError,
    PayloadDecodeError,
    SignatureVerificationError,
)
from webhook_receiver.webhooks.models import SignedRequest
from webhook_receiver.webhooks.processor import Processor
from webhook_receiver.webhooks.responses import ack_response, error_response
from webhook_receiver.webhooks.verification import SignatureVerifier

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/webhook"


def _log_webhook(req: SignedRequest, data_type: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT data_type=%s id=%s idempotency_key=%s status=%s",
        data_type or "-",
        req.webhook_id or "-",
        req.idempotency_key or "-",
        status,
    )


async def handle_webhook(
    request: Request,
    verifier: SignatureVerifier,
    processor: Processor,
) -> JSONResponse:
    """Run one request through verify -> classify -> decode -> process."""
    start = time.monotonic()

    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning("Client disconnected while sending webhook body")
        return error_response("Failed to read request body", 400)

    req = SignedRequest.from_headers(body, request.headers)

    # 1. Verify signature over the raw bytes
    try:
        verifier.verify(req.raw_body, req.signature, req.timestamp)
    except SignatureVerificationError as e:
        _log_webhook(req, "", f"unauthorized:{e.reason}")
        return error_response(str(e), 401)

    # 2. Classify
    try:
        data_type = classify(req.raw_body)
    except MalformedPayloadError as e:
        _log_webhook(req, "", "invalid_json")
        return error_response(str(e), 400)

    # 3. Decode + process
    try:
        event = decode(data_type, req.raw_body)
    except PayloadDecodeError as e:
        result = Processor.decode_failure(e)
        _log_webhook(req, data_type, "decode_failed")
    else:
        result = processor.process(event)
        _log_webhook(req, data_type, "processed" if result.processed else "rejected")

    elapsed_ms = (time.monotonic() - start) * 1000
    logger.debug("Webhook handled in %.1fms: data_type=%s", elapsed_ms, data_type)

    return ack_response(result)


def register_webhook_routes(
    app: FastAPI,
    verifier: SignatureVerifier,
    processor: Processor,
) -> None:
    """Register the signed webhook endpoint on the FastAPI app."""

    @app.post(WEBHOOK_PATH)
    async def receive_webhook(request: Request):
        """Receive consumption and bills webhooks (signature-verified)."""
        return await handle_webhook(request, verifier, processor)

    logger.info("Webhook route registered: POST %s", WEBHOOK_PATH)
