"""Unit tests for ReconcileGatewayEvent use case

The ledger use cases are mocked; these tests cover event routing and the
acknowledgement contract.
"""

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from libs.result import Error, Return
from src.app.use_cases.invoicing.reconcile_gateway_event import ReconcileGatewayEvent
from src.app.use_cases.invoicing.dtos import (
    GatewayWebhookEventDTO,
    PaymentDTO,
    PaymentRecordedDTO,
)
from src.domain.payment import Payment, PaymentMethod


@pytest.fixture
def mock_invoice_repo():
    return MagicMock()


@pytest.fixture
def mock_record_payment():
    return MagicMock()


@pytest.fixture
def mock_reverse_payment():
    return MagicMock()


@pytest.fixture
def mock_notification_service():
    service = MagicMock()
    service.send_receipt_notice = AsyncMock(return_value=True)
    return service


@pytest.fixture
def reconcile_use_case(mock_invoice_repo, mock_record_payment, mock_reverse_payment, mock_notification_service):
    return ReconcileGatewayEvent(
        invoice_repo=mock_invoice_repo,
        record_payment=mock_record_payment,
        reverse_payment=mock_reverse_payment,
        notification_service=mock_notification_service,
    )


def recorded(invoice, amount="30000.00", duplicate=False) -> PaymentRecordedDTO:
    payment = Payment(
        id="pay_1",
        user_id=invoice.user_id,
        invoice_id=invoice.id,
        amount=Decimal(amount),
        method=PaymentMethod.MOBILE_MONEY,
        external_reference="R1",
    )
    return PaymentRecordedDTO(
        payment=PaymentDTO.from_entity(payment),
        invoice_id=invoice.id,
        invoice_number=invoice.invoice_number,
        invoice_status="partially_paid",
        total=invoice.total,
        paid_amount=Decimal(amount),
        outstanding=invoice.total - Decimal(amount),
        duplicate=duplicate,
    )


def event(**overrides) -> GatewayWebhookEventDTO:
    fields = dict(
        event="payment_successful",
        invoice_number="INV-20240131-1A2B",
        checkout_id="chk_789",
        state="COMPLETE",
        amount="30000.00",
        reference="R1",
    )
    fields.update(overrides)
    return GatewayWebhookEventDTO(**fields)


@pytest.mark.asyncio
class TestPaymentEvents:

    async def test_payment_event_records_payment(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment,
        mock_notification_service, make_invoice
    ):
        """
        Given: A known invoice
        When: payment_successful arrives with amount 30,000 and reference R1
        Then: RecordPayment is called with the parsed amount and reference,
              a receipt is sent and the event is acknowledged as received
        """
        invoice = make_invoice()
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=invoice)
        mock_record_payment.execute = AsyncMock(return_value=Return.ok(recorded(invoice)))

        result = await reconcile_use_case.execute(event())

        assert result.is_ok()
        ack = result.value
        assert ack.status == "received"
        assert ack.invoice_number == "INV-20240131-1A2B"
        assert ack.payment_id == "pay_1"

        command = mock_record_payment.execute.call_args[0][0]
        assert command.invoice_id == "inv_1"
        assert command.user_id == "acc_123"
        assert command.amount == Decimal("30000.00")
        assert command.external_reference == "R1"
        assert command.method == PaymentMethod.MOBILE_MONEY
        mock_notification_service.send_receipt_notice.assert_called_once()

    async def test_unparsable_amount_settles_outstanding(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment, make_invoice
    ):
        invoice = make_invoice()
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=invoice)
        mock_record_payment.execute = AsyncMock(return_value=Return.ok(recorded(invoice)))

        await reconcile_use_case.execute(event(amount="not-a-number"))

        assert mock_record_payment.execute.call_args[0][0].amount is None

    async def test_checkout_id_used_when_reference_missing(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment, make_invoice
    ):
        invoice = make_invoice()
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=invoice)
        mock_record_payment.execute = AsyncMock(return_value=Return.ok(recorded(invoice)))

        await reconcile_use_case.execute(event(reference=None))

        assert mock_record_payment.execute.call_args[0][0].external_reference == "chk_789"

    async def test_redelivery_is_acknowledged_as_duplicate(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment,
        mock_notification_service, make_invoice
    ):
        invoice = make_invoice()
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=invoice)
        mock_record_payment.execute = AsyncMock(
            return_value=Return.ok(recorded(invoice, duplicate=True))
        )

        result = await reconcile_use_case.execute(event())

        assert result.value.status == "duplicate"
        mock_notification_service.send_receipt_notice.assert_not_called()

    async def test_receipt_failure_does_not_fail_the_event(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment,
        mock_notification_service, make_invoice
    ):
        invoice = make_invoice()
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=invoice)
        mock_record_payment.execute = AsyncMock(return_value=Return.ok(recorded(invoice)))
        mock_notification_service.send_receipt_notice = AsyncMock(side_effect=Exception("smtp down"))

        result = await reconcile_use_case.execute(event())

        assert result.is_ok()
        assert result.value.status == "received"


@pytest.mark.asyncio
class TestIgnoredEvents:

    async def test_unknown_invoice_is_ignored(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment
    ):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=None)
        mock_record_payment.execute = AsyncMock()

        result = await reconcile_use_case.execute(event(invoice_number="INV-DOES-NOT-EXIST"))

        assert result.is_ok()
        assert result.value.status == "ignored"
        mock_record_payment.execute.assert_not_called()

    async def test_missing_invoice_number_is_ignored(self, reconcile_use_case, mock_invoice_repo):
        mock_invoice_repo.get_by_invoice_number = AsyncMock()

        result = await reconcile_use_case.execute(event(invoice_number=None))

        assert result.value.status == "ignored"
        mock_invoice_repo.get_by_invoice_number.assert_not_called()

    async def test_unhandled_event_type_is_ignored(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment, make_invoice
    ):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=make_invoice())
        mock_record_payment.execute = AsyncMock()

        result = await reconcile_use_case.execute(event(event="checkout_created"))

        assert result.value.status == "ignored"
        mock_record_payment.execute.assert_not_called()

    async def test_business_rejection_is_acknowledged(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment, make_invoice
    ):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=make_invoice())
        mock_record_payment.execute = AsyncMock(
            return_value=Return.err(Error(code="INVOICE_CANCELLED", message="Invoice is cancelled"))
        )

        result = await reconcile_use_case.execute(event())

        assert result.is_ok()
        assert result.value.status == "ignored"
        assert result.value.detail == "INVOICE_CANCELLED"


@pytest.mark.asyncio
class TestReversalAndFailures:

    async def test_chargeback_reverses_payment(
        self, reconcile_use_case, mock_invoice_repo, mock_reverse_payment, make_invoice
    ):
        invoice = make_invoice()
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=invoice)
        mock_reverse_payment.execute = AsyncMock(return_value=Return.ok(recorded(invoice)))

        result = await reconcile_use_case.execute(event(event="chargeback"))

        assert result.value.status == "received"
        command = mock_reverse_payment.execute.call_args[0][0]
        assert command.external_reference == "R1"
        assert command.amount == Decimal("30000.00")

    async def test_store_failure_is_surfaced_for_redelivery(
        self, reconcile_use_case, mock_invoice_repo, mock_record_payment, make_invoice
    ):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(return_value=make_invoice())
        mock_record_payment.execute = AsyncMock(
            return_value=Return.err(
                Error(code="RECORD_PAYMENT_FAILED", message="Failed to record payment", reason="db down")
            )
        )

        result = await reconcile_use_case.execute(event())

        assert result.is_err()
        assert result.error.code == "RECORD_PAYMENT_FAILED"

    async def test_lookup_failure(self, reconcile_use_case, mock_invoice_repo):
        mock_invoice_repo.get_by_invoice_number = AsyncMock(side_effect=Exception("db down"))

        result = await reconcile_use_case.execute(event())

        assert result.error.code == "RECONCILE_FAILED"


class TestGatewayEventParsing:

    def test_numeric_fields_are_stringified(self):
        parsed = GatewayWebhookEventDTO.model_validate(
            {"event": "payment_successful", "invoice_number": 1001, "amount": 30000.5, "reference": 42}
        )

        assert parsed.invoice_number == "1001"
        assert parsed.amount == "30000.5"
        assert parsed.reference == "42"

    def test_null_event_reads_as_empty(self):
        parsed = GatewayWebhookEventDTO.model_validate(
            {"event": None, "invoice_number": "INV-20240131-1A2B"}
        )

        assert parsed.event == ""

    def test_every_text_field_accepts_json_scalars(self):
        parsed = GatewayWebhookEventDTO.model_validate({
            "event": "payment_successful",
            "state": 1,
            "currency": 404,
            "customer_email": False,
            "customer_phone": 254712345678,
        })

        assert parsed.state == "1"
        assert parsed.currency == "404"
        assert parsed.customer_email == "False"
        assert parsed.customer_phone == "254712345678"
