"""Integration tests for the payment ledger

Tests cover:
- Partial then full settlement persisted through the repositories
- Redelivered references are not credited twice
- Reversal keeps paid_amount consistent with status
"""

import asyncio
import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyInvoiceItemRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.invoicing import (
    CreateInvoice,
    RecordPayment,
    ReversePayment,
    SendInvoice,
)
from src.app.use_cases.invoicing.dtos import (
    CreateInvoiceCommandDTO,
    InvoiceItemInputDTO,
    RecordPaymentCommandDTO,
    ReversePaymentCommandDTO,
)
from src.domain.audit_log import AuditLog
from src.domain.invoice import InvoiceStatus
from src.domain.payment import Payment, PaymentMethod, PaymentStatus


async def create_sent_invoice(db_session: AsyncSession, client_record) -> str:
    uow = SqlAlchemyUnitOfWork(db_session)
    invoice_repo = SqlAlchemyInvoiceRepository(db_session)
    item_repo = SqlAlchemyInvoiceItemRepository(db_session)
    audit_repo = SqlAlchemyAuditLogRepository(db_session)

    created = await CreateInvoice(
        uow, invoice_repo, item_repo, SqlAlchemyClientRepository(db_session), audit_repo
    ).execute(
        CreateInvoiceCommandDTO(
            user_id=client_record.user_id,
            client_id=client_record.id,
            items=[InvoiceItemInputDTO(description="Website build", unit_price=Decimal("50000"))],
            due_date=datetime.utcnow() + timedelta(days=14),
            tax_rate=Decimal("16"),
        )
    )
    assert created.is_ok()

    sent = await SendInvoice(uow, invoice_repo, item_repo, audit_repo).execute(
        created.value.invoice_id, client_record.user_id
    )
    assert sent.is_ok()
    return created.value.invoice_id


def ledger(db_session: AsyncSession):
    uow = SqlAlchemyUnitOfWork(db_session)
    invoice_repo = SqlAlchemyInvoiceRepository(db_session)
    payment_repo = SqlAlchemyPaymentRepository(db_session)
    audit_repo = SqlAlchemyAuditLogRepository(db_session)
    return (
        RecordPayment(uow, invoice_repo, payment_repo, audit_repo),
        ReversePayment(uow, invoice_repo, payment_repo, audit_repo),
    )


@pytest.mark.asyncio
class TestPaymentLedgerIntegration:
    """Integration tests with real database"""

    async def test_partial_then_full_settlement(self, db_session: AsyncSession, client_record):
        """
        Test complete flow: 58,000 invoice paid 30,000 then 28,000
        """
        invoice_id = await create_sent_invoice(db_session, client_record)
        record_payment, _ = ledger(db_session)

        first = await record_payment.execute(
            RecordPaymentCommandDTO(
                invoice_id=invoice_id, user_id=client_record.user_id, amount=Decimal("30000"),
                method=PaymentMethod.MOBILE_MONEY, external_reference="R1",
            )
        )
        assert first.value.invoice_status == "partially_paid"
        assert first.value.outstanding == Decimal("28000.00")

        second = await record_payment.execute(
            RecordPaymentCommandDTO(
                invoice_id=invoice_id, user_id=client_record.user_id, amount=Decimal("28000"),
                method=PaymentMethod.MOBILE_MONEY, external_reference="R2",
            )
        )
        assert second.value.invoice_status == "paid"
        assert second.value.paid_at is not None

        invoice = await SqlAlchemyInvoiceRepository(db_session).get_by_id(invoice_id)
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_amount == Decimal("58000.00")

        payments = (await db_session.execute(
            select(Payment).where(Payment.invoice_id == invoice_id)
        )).scalars().all()
        assert sorted(p.amount for p in payments) == [Decimal("28000.00"), Decimal("30000.00")]

        actions = (await db_session.execute(
            select(AuditLog.action).where(AuditLog.entity_id == invoice_id)
        )).scalars().all()
        assert actions.count("payment.received") == 2
        assert "invoice.created" in actions
        assert "invoice.sent" in actions

    async def test_redelivered_reference_is_credited_once(self, db_session: AsyncSession, client_record):
        invoice_id = await create_sent_invoice(db_session, client_record)
        record_payment, _ = ledger(db_session)
        command = RecordPaymentCommandDTO(
            invoice_id=invoice_id, user_id=client_record.user_id, amount=Decimal("30000"),
            method=PaymentMethod.MOBILE_MONEY, external_reference="R1",
        )

        await record_payment.execute(command)
        again = await record_payment.execute(command)

        assert again.value.duplicate is True
        invoice = await SqlAlchemyInvoiceRepository(db_session).get_by_id(invoice_id)
        assert invoice.paid_amount == Decimal("30000.00")
        count = len((await db_session.execute(
            select(Payment).where(Payment.invoice_id == invoice_id)
        )).scalars().all())
        assert count == 1

    async def test_reversal_reopens_paid_invoice(self, db_session: AsyncSession, client_record):
        invoice_id = await create_sent_invoice(db_session, client_record)
        record_payment, reverse_payment = ledger(db_session)
        for amount, reference in (("30000", "R1"), ("28000", "R2")):
            await record_payment.execute(
                RecordPaymentCommandDTO(
                    invoice_id=invoice_id, user_id=client_record.user_id, amount=Decimal(amount),
                    method=PaymentMethod.MOBILE_MONEY, external_reference=reference,
                )
            )

        result = await reverse_payment.execute(
            ReversePaymentCommandDTO(
                invoice_id=invoice_id, user_id=client_record.user_id, external_reference="R2"
            )
        )

        assert result.value.invoice_status == "partially_paid"
        assert result.value.paid_amount == Decimal("30000.00")
        assert result.value.paid_at is None
        reversed_payment = await SqlAlchemyPaymentRepository(db_session).get_by_external_reference("R2")
        assert reversed_payment.status == PaymentStatus.REFUNDED

    async def test_other_owner_cannot_record(self, db_session: AsyncSession, client_record):
        invoice_id = await create_sent_invoice(db_session, client_record)
        record_payment, _ = ledger(db_session)

        result = await record_payment.execute(
            RecordPaymentCommandDTO(invoice_id=invoice_id, user_id="acc_other", amount=Decimal("100"))
        )

        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_concurrent_payments_are_both_applied(
        self, db_session: AsyncSession, session_factory, client_record
    ):
        """
        Given: A sent 58,000 invoice
        When: 10,000 and 20,000 are recorded at the same time on separate sessions
        Then: Both payments land and paid_amount is 30,000
        """
        invoice_id = await create_sent_invoice(db_session, client_record)
        await db_session.commit()

        async def pay(amount: str, reference: str):
            async with session_factory() as session:
                record_payment, _ = ledger(session)
                return await record_payment.execute(
                    RecordPaymentCommandDTO(
                        invoice_id=invoice_id, user_id=client_record.user_id,
                        amount=Decimal(amount), method=PaymentMethod.MOBILE_MONEY,
                        external_reference=reference,
                    )
                )

        results = await asyncio.gather(pay("10000", "C1"), pay("20000", "C2"))

        assert all(result.is_ok() for result in results)
        assert sorted(result.value.paid_amount for result in results) == [
            Decimal("10000.00"), Decimal("30000.00")
        ]

        async with session_factory() as session:
            invoice = await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)
            assert invoice.paid_amount == Decimal("30000.00")
            assert invoice.status == InvoiceStatus.PARTIALLY_PAID
            payments = (await session.execute(
                select(Payment).where(Payment.invoice_id == invoice_id)
            )).scalars().all()
            assert len(payments) == 2
