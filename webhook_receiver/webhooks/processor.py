"""Webhook processing: minimal per-variant validation and hand-off.

Validation contract:
- consumption: group_by and send_interval must be non-empty
- bills: trigger_type must be non-empty; payment is optional even for "paid"
- unknown data_type: always processed (forward compatibility), never validated

A payload that decodes but fails validation is still a successful receipt
(processed=False with the reason). Processed events are handed to an
EventSink; sink failures are logged and never change the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from webhook_receiver.webhooks.errors import PayloadDecodeError
from webhook_receiver.webhooks.models import (
    BillingEvent,
    ConsumptionReport,
    UnknownEvent,
    WebhookEnvelope,
)

logger = logging.getLogger(__name__)

_KNOWN_TRIGGERS = {"available", "paid"}


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of processing one webhook."""

    processed: bool
    message: str


@runtime_checkable
class EventSink(Protocol):
    """Downstream consumer of processed webhook events."""

    def handle(self, event: WebhookEnvelope) -> None: ...


class LoggingSink:
    """Default sink: records each processed event in the log."""

    def handle(self, event: WebhookEnvelope) -> None:
        if isinstance(event, ConsumptionReport):
            logger.info(
                "Consumption webhook: id=%d contract=%d group_by=%s interval=%s rows=%d active_energy=%.3f",
                event.webhook_id,
                event.contract.contract_id,
                event.group_by,
                event.send_interval,
                len(event.consumption_rows()),
                event.total_active_energy(),
            )
        elif isinstance(event, BillingEvent):
            logger.info(
                "Bills webhook: id=%d trigger=%s bill=%d contract=%d total=%s",
                event.webhook_id,
                event.trigger_type,
                event.bill.bill_id,
                event.bill.contract_id,
                event.bill.total,
            )
        else:
            logger.info("Unknown webhook accepted: data_type=%r", event.data_type)


def _missing(*fields: tuple[str, str]) -> list[str]:
    return [name for name, value in fields if not value]


def process_consumption(report: ConsumptionReport) -> ProcessingResult:
    missing = _missing(("group_by", report.group_by), ("send_interval", report.send_interval))
    if missing:
        return ProcessingResult(
            processed=False,
            message=f"Missing required fields for consumption webhook: {', '.join(missing)}",
        )
    return ProcessingResult(
        processed=True,
        message=(
            f"Consumption webhook processed successfully for contract "
            f"{report.contract.contract_id} ({report.contract.contract_name})"
        ),
    )


def process_bills(event: BillingEvent) -> ProcessingResult:
    if not event.trigger_type:
        return ProcessingResult(
            processed=False,
            message="Missing required fields for bills webhook: trigger_type",
        )
    if event.trigger_type not in _KNOWN_TRIGGERS:
        logger.warning("Unexpected bills trigger_type %r (bill %d)", event.trigger_type, event.bill.bill_id)
    if event.trigger_type == "paid" and event.payment is None:
        logger.info("Bills 'paid' webhook without payment block (bill %d)", event.bill.bill_id)
    return ProcessingResult(
        processed=True,
        message=(
            f"Bills webhook processed successfully: {event.trigger_type} "
            f"event for bill {event.bill.bill_id}"
        ),
    )


def process_unknown(event: UnknownEvent) -> ProcessingResult:
    return ProcessingResult(
        processed=True,
        message=f"Unrecognized data_type '{event.data_type}' accepted without processing",
    )


class Processor:
    """Validates decoded webhooks and forwards processed ones to a sink."""

    def __init__(self, sink: EventSink | None = None):
        self._sink = sink or LoggingSink()

    def process(self, event: WebhookEnvelope) -> ProcessingResult:
        if isinstance(event, ConsumptionReport):
            result = process_consumption(event)
        elif isinstance(event, BillingEvent):
            result = process_bills(event)
        else:
            result = process_unknown(event)

        if result.processed:
            try:
                self._sink.handle(event)
            except Exception:
                logger.exception("Event sink failed for data_type=%r", event.data_type)
        return result

    @staticmethod
    def decode_failure(error: PayloadDecodeError) -> ProcessingResult:
        """Result for a body whose data_type was known but failed to decode."""
        logger.warning("%s", error)
        return ProcessingResult(processed=False, message=str(error))
