"""Tests for webhook processing and the acknowledgment builder."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

from freezegun import freeze_time

from webhook_receiver.webhooks.errors import PayloadDecodeError
from webhook_receiver.webhooks.models import (
    Bill,
    BillingEvent,
    ConsumptionReport,
    ContractConsumption,
    UnknownEvent,
)
from webhook_receiver.webhooks.processor import (
    EventSink,
    LoggingSink,
    ProcessingResult,
    Processor,
)
from webhook_receiver.webhooks.responses import build_acknowledgment, build_error


def _report(**overrides) -> ConsumptionReport:
    fields = {
        "webhook_id": 1,
        "group_by": "hour",
        "send_interval": "daily",
        "contract": ContractConsumption(contract_id=1001, contract_name="Contrato Demo"),
    }
    fields.update(overrides)
    return ConsumptionReport(**fields)


def _bills(**overrides) -> BillingEvent:
    fields = {"webhook_id": 2, "trigger_type": "available", "bill": Bill(bill_id=77, contract_id=5)}
    fields.update(overrides)
    return BillingEvent(**fields)


class TestConsumptionProcessing:
    def test_valid_report_processed(self):
        result = Processor().process(_report())
        assert result.processed is True
        assert "1001" in result.message
        assert "Contrato Demo" in result.message

    def test_missing_group_by(self):
        result = Processor().process(_report(group_by=""))
        assert result.processed is False
        assert "group_by" in result.message
        assert "send_interval" not in result.message

    def test_missing_send_interval(self):
        result = Processor().process(_report(send_interval=""))
        assert result.processed is False
        assert "send_interval" in result.message

    def test_missing_both(self):
        result = Processor().process(_report(group_by="", send_interval=""))
        assert result.message.endswith("group_by, send_interval")


class TestBillsProcessing:
    def test_available_processed(self):
        result = Processor().process(_bills())
        assert result.processed is True
        assert "available" in result.message
        assert "77" in result.message

    def test_paid_without_payment_processed(self):
        """Absence of the payment block is not an error."""
        result = Processor().process(_bills(trigger_type="paid"))
        assert result.processed is True
        assert "paid" in result.message

    def test_empty_trigger_type(self):
        result = Processor().process(_bills(trigger_type=""))
        assert result.processed is False
        assert "trigger_type" in result.message

    def test_unexpected_trigger_still_processed(self):
        result = Processor().process(_bills(trigger_type="overdue"))
        assert result.processed is True


class TestUnknownProcessing:
    def test_unknown_always_processed(self):
        result = Processor().process(UnknownEvent(data_type="xyz"))
        assert result.processed is True
        assert "xyz" in result.message

    def test_missing_data_type_processed(self):
        assert Processor().process(UnknownEvent()).processed is True


class TestDecodeFailure:
    def test_decode_failure_not_processed(self):
        error = PayloadDecodeError("bills", ValueError("bill.total: total must be a number"))
        result = Processor.decode_failure(error)
        assert result.processed is False
        assert result.message.startswith("Failed to parse bills payload:")


class TestSink:
    def test_sink_receives_processed_events(self):
        sink = MagicMock()
        event = _report()
        Processor(sink).process(event)
        sink.handle.assert_called_once_with(event)

    def test_sink_skipped_for_unprocessed(self):
        sink = MagicMock()
        Processor(sink).process(_bills(trigger_type=""))
        sink.handle.assert_not_called()

    def test_sink_failure_does_not_change_result(self):
        sink = MagicMock()
        sink.handle.side_effect = RuntimeError("downstream down")
        result = Processor(sink).process(_report())
        assert result.processed is True

    def test_logging_sink_is_event_sink(self):
        assert isinstance(LoggingSink(), EventSink)

    def test_logging_sink_handles_every_variant(self, caplog):
        sink = LoggingSink()
        with caplog.at_level("INFO", logger="webhook_receiver.webhooks.processor"):
            sink.handle(_report())
            sink.handle(_bills())
            sink.handle(UnknownEvent(data_type="xyz"))
        assert len(caplog.records) == 3


class TestAcknowledgment:
    @freeze_time("2025-10-08T12:00:00Z")
    def test_success_envelope(self):
        ack = build_acknowledgment(ProcessingResult(processed=False, message="Missing"))
        assert ack.success is True
        assert ack.processed is False
        assert ack.message == "Missing"
        assert ack.timestamp == datetime(2025, 10, 8, 12, tzinfo=timezone.utc)

    def test_error_envelope(self):
        ack = build_error("Invalid signature")
        assert ack.success is False
        assert ack.processed is False
        assert ack.message == "Invalid signature"

    def test_json_shape(self):
        data = build_acknowledgment(ProcessingResult(True, "ok")).model_dump(mode="json")
        assert set(data) == {"success", "message", "processed", "timestamp"}
