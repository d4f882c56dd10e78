"""Unit tests for RecordPayment use case

Tests cover:
- Partial and full settlement (58,000 KES scenario)
- Overpayment absorbed at total
- Idempotency on external reference
- Cancelled invoices and store failures
"""

import logging
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoicing.record_payment import RecordPayment
from src.app.use_cases.invoicing.dtos import RecordPaymentCommandDTO
from src.domain.invoice import InvoiceStatus
from src.domain.payment import Payment, PaymentMethod, PaymentStatus


@pytest.fixture
def mock_invoice_repo():
    repo = MagicMock()
    repo.update = AsyncMock(side_effect=lambda invoice: invoice)
    return repo


@pytest.fixture
def mock_payment_repo():
    repo = MagicMock()
    repo.get_by_external_reference = AsyncMock(return_value=None)
    repo.create = AsyncMock(side_effect=lambda payment: payment)
    return repo


@pytest.fixture
def record_use_case(mock_uow, mock_invoice_repo, mock_payment_repo, mock_audit_repo):
    return RecordPayment(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        payment_repo=mock_payment_repo,
        audit_repo=mock_audit_repo,
    )


def payment_command(amount="30000.00", **overrides) -> RecordPaymentCommandDTO:
    fields = dict(
        invoice_id="inv_1",
        user_id="acc_123",
        amount=Decimal(amount) if amount is not None else None,
        method=PaymentMethod.MOBILE_MONEY,
    )
    fields.update(overrides)
    return RecordPaymentCommandDTO(**fields)


@pytest.mark.asyncio
class TestRecordPaymentSettlement:

    async def test_partial_then_full_payment(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, mock_uow, make_invoice
    ):
        """
        Given: A sent invoice totalling 58,000
        When: 30,000 and then 28,000 are recorded
        Then: partially_paid with 28,000 outstanding, then paid with paid_at set
        """
        invoice = make_invoice(status=InvoiceStatus.SENT)
        mock_invoice_repo.get_by_id = AsyncMock(return_value=invoice)

        first = await record_use_case.execute(payment_command("30000.00", external_reference="R1"))

        assert first.is_ok()
        assert first.value.invoice_status == "partially_paid"
        assert first.value.paid_amount == Decimal("30000.00")
        assert first.value.outstanding == Decimal("28000.00")
        assert first.value.paid_at is None
        assert first.value.payment.status == "completed"

        second = await record_use_case.execute(payment_command("28000.00", external_reference="R2"))

        assert second.is_ok()
        assert second.value.invoice_status == "paid"
        assert second.value.paid_amount == Decimal("58000.00")
        assert second.value.outstanding == Decimal("0")
        assert isinstance(second.value.paid_at, datetime)
        assert mock_payment_repo.create.call_count == 2
        assert mock_uow.commit.call_count == 2

    async def test_overpayment_is_capped_at_total(self, record_use_case, mock_invoice_repo, make_invoice):
        invoice = make_invoice(status=InvoiceStatus.SENT)
        mock_invoice_repo.get_by_id = AsyncMock(return_value=invoice)

        result = await record_use_case.execute(payment_command("60000.00"))

        assert result.value.invoice_status == "paid"
        assert result.value.paid_amount == Decimal("58000.00")
        assert result.value.payment.amount == Decimal("60000.00")

    async def test_missing_amount_settles_outstanding(self, record_use_case, mock_invoice_repo, make_invoice):
        invoice = make_invoice(status=InvoiceStatus.PARTIALLY_PAID, paid_amount="30000.00")
        mock_invoice_repo.get_by_id = AsyncMock(return_value=invoice)

        result = await record_use_case.execute(payment_command(amount=None))

        assert result.value.payment.amount == Decimal("28000.00")
        assert result.value.invoice_status == "paid"

    async def test_payment_on_overdue_invoice(self, record_use_case, mock_invoice_repo, make_invoice):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.OVERDUE))

        result = await record_use_case.execute(payment_command("1000.00"))

        assert result.value.invoice_status == "partially_paid"

    async def test_audit_entry_written(self, record_use_case, mock_invoice_repo, mock_audit_repo, make_invoice):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        await record_use_case.execute(payment_command("1000.00"))

        entry = mock_audit_repo.create.call_args[0][0]
        assert entry.action == "payment.received"
        assert entry.entity_id == "inv_1"


@pytest.mark.asyncio
class TestRecordPaymentIdempotency:

    async def test_repeated_reference_is_not_credited_twice(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, mock_uow, make_invoice
    ):
        """
        Given: Reference R1 was already applied
        When: The same reference arrives again
        Then: duplicate=True, no new payment, paid amount unchanged
        """
        invoice = make_invoice(status=InvoiceStatus.PARTIALLY_PAID, paid_amount="30000.00")
        mock_invoice_repo.get_by_id = AsyncMock(return_value=invoice)
        mock_payment_repo.get_by_external_reference = AsyncMock(
            return_value=Payment(
                id="pay_1",
                user_id="acc_123",
                invoice_id="inv_1",
                amount=Decimal("30000.00"),
                method=PaymentMethod.MOBILE_MONEY,
                status=PaymentStatus.COMPLETED,
                external_reference="R1",
            )
        )

        result = await record_use_case.execute(payment_command("30000.00", external_reference="R1"))

        assert result.is_ok()
        assert result.value.duplicate is True
        assert result.value.payment.id == "pay_1"
        assert result.value.paid_amount == Decimal("30000.00")
        mock_payment_repo.create.assert_not_called()
        mock_invoice_repo.update.assert_not_called()
        mock_uow.commit.assert_not_called()

    async def test_dedup_check_happens_under_lock(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        calls = []
        invoice = make_invoice()

        async def lock(*args, **kwargs):
            calls.append("lock")
            return invoice

        async def lookup(reference):
            calls.append("dedup")
            return None

        mock_invoice_repo.get_by_id = AsyncMock(side_effect=lock)
        mock_payment_repo.get_by_external_reference = AsyncMock(side_effect=lookup)

        await record_use_case.execute(payment_command("1000.00", external_reference="R9"))

        assert calls == ["lock", "dedup"]
        mock_invoice_repo.get_by_id.assert_called_once_with("inv_1", user_id="acc_123", for_update=True)

    async def test_reference_used_on_another_invoice_is_warned(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, make_invoice, caplog
    ):
        """
        Given: Reference R1 was already applied to invoice inv_other
        When: R1 arrives for invoice inv_1
        Then: Nothing is credited and a warning names both invoices
        """
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())
        mock_payment_repo.get_by_external_reference = AsyncMock(
            return_value=Payment(
                id="pay_other",
                user_id="acc_123",
                invoice_id="inv_other",
                amount=Decimal("1000.00"),
                method=PaymentMethod.MOBILE_MONEY,
                status=PaymentStatus.COMPLETED,
                external_reference="R1",
            )
        )

        with caplog.at_level(logging.WARNING, logger="src.app.use_cases.invoicing.record_payment"):
            result = await record_use_case.execute(payment_command("1000.00", external_reference="R1"))

        assert result.value.duplicate is True
        mock_payment_repo.create.assert_not_called()
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "inv_other" in warnings[0].getMessage()
        assert "inv_1" in warnings[0].getMessage()

    async def test_same_invoice_redelivery_is_not_warned(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, make_invoice, caplog
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())
        mock_payment_repo.get_by_external_reference = AsyncMock(
            return_value=Payment(
                id="pay_1",
                user_id="acc_123",
                invoice_id="inv_1",
                amount=Decimal("1000.00"),
                method=PaymentMethod.MOBILE_MONEY,
                status=PaymentStatus.COMPLETED,
                external_reference="R1",
            )
        )

        with caplog.at_level(logging.WARNING, logger="src.app.use_cases.invoicing.record_payment"):
            await record_use_case.execute(payment_command("1000.00", external_reference="R1"))

        assert [r for r in caplog.records if r.levelno == logging.WARNING] == []


@pytest.mark.asyncio
class TestRecordPaymentErrors:

    async def test_cancelled_invoice_rejects_payment(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.CANCELLED))

        result = await record_use_case.execute(payment_command())

        assert result.error.code == "INVOICE_CANCELLED"
        mock_payment_repo.create.assert_not_called()

    async def test_unknown_invoice(self, record_use_case, mock_invoice_repo):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await record_use_case.execute(payment_command())

        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_zero_total_with_no_amount_is_invalid(self, record_use_case, mock_invoice_repo, make_invoice):
        mock_invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(total="0.00", subtotal=Decimal("0.00"), tax_amount=Decimal("0.00"))
        )

        result = await record_use_case.execute(payment_command(amount=None))

        assert result.error.code == "INVALID_AMOUNT"

    async def test_store_failure_rolls_back(
        self, record_use_case, mock_invoice_repo, mock_payment_repo, mock_uow, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())
        mock_payment_repo.create = AsyncMock(side_effect=Exception("deadlock detected"))

        result = await record_use_case.execute(payment_command())

        assert result.error.code == "RECORD_PAYMENT_FAILED"
        assert "deadlock detected" in result.error.reason
        mock_uow.rollback.assert_called_once()
