"""Acknowledgment envelopes returned to webhook senders."""

from __future__ import annotations

from fastapi.responses import JSONResponse

from webhook_receiver.webhooks.models import AcknowledgmentResponse
from webhook_receiver.webhooks.processor import ProcessingResult
from webhook_receiver.webhooks.timestamps import utcnow

RECEIVED_HEADER = "X-Webhook-Received"


def build_acknowledgment(result: ProcessingResult) -> AcknowledgmentResponse:
    """Wrap a processing result; success is always True at this stage."""
    return AcknowledgmentResponse(
        success=True,
        message=result.message,
        processed=result.processed,
        timestamp=utcnow(),
    )


def build_error(message: str) -> AcknowledgmentResponse:
    """Envelope for requests rejected before processing (bad body, bad signature)."""
    return AcknowledgmentResponse(
        success=False,
        message=message,
        processed=False,
        timestamp=utcnow(),
    )


def ack_response(result: ProcessingResult) -> JSONResponse:
    ack = build_acknowledgment(result)
    return JSONResponse(
        ack.model_dump(mode="json"),
        status_code=200,
        headers={RECEIVED_HEADER: "true"},
    )


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(build_error(message).model_dump(mode="json"), status_code=status_code)
