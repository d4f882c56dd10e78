"""Integration tests for the collection scheduler against a real database

Tests cover:
- due_soon fired once across consecutive ticks
- Overdue tier plus late fee applied exactly once
- Hard-threshold batch overdue label
- Notices go out after the invoice transaction commits
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from sqlmodel import select
from src.app.services.notification_service import NotificationService, NoticePayload
from src.app.use_cases.invoicing import ReminderConfig
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.reminder_log import ReminderDeliveryStatus, ReminderLogEntry
from src.worker.collection_scheduler import CollectionSchedulerWorker

NOW = datetime(2024, 3, 1, 9, 0, 0)


class RecordingNotificationService(NotificationService):
    """Keeps every notice in memory"""

    def __init__(self):
        self.sent = []

    async def send_due_soon_notice(self, payload: NoticePayload) -> bool:
        self.sent.append(payload)
        return True

    async def send_overdue_notice(self, payload: NoticePayload) -> bool:
        self.sent.append(payload)
        return True

    async def send_receipt_notice(self, payload: NoticePayload) -> bool:
        self.sent.append(payload)
        return True


async def seed_invoice(session_factory, client_record, due_date, total="20000.00", **fields):
    async with session_factory() as session:
        invoice = Invoice(
            user_id=client_record.user_id,
            client_id=client_record.id,
            subtotal=Decimal(total),
            total=Decimal(total),
            status=fields.pop("status", InvoiceStatus.SENT),
            due_date=due_date,
            **fields,
        )
        session.add(invoice)
        await session.commit()
        return invoice.id


async def reload(session_factory, invoice_id):
    async with session_factory() as session:
        return await session.get(Invoice, invoice_id)


async def reminder_types(session_factory, invoice_id):
    async with session_factory() as session:
        result = await session.execute(
            select(ReminderLogEntry.reminder_type).where(ReminderLogEntry.invoice_id == invoice_id)
        )
        return list(result.scalars().all())


@pytest.fixture
def notifications():
    return RecordingNotificationService()


@pytest.fixture
def make_worker(session_factory, notifications):
    def _make(config: ReminderConfig = None) -> CollectionSchedulerWorker:
        return CollectionSchedulerWorker(
            session_factory=session_factory,
            reminder_config=config or ReminderConfig(),
            notification_service=notifications,
            invoice_timeout_seconds=10,
        )

    return _make


@pytest.mark.asyncio
class TestCollectionSchedulerIntegration:

    async def test_due_soon_fires_once_across_ticks(
        self, session_factory, client_record, make_worker, notifications
    ):
        """
        Given: A sent invoice due in 2 days
        When: The scheduler ticks twice, an hour apart
        Then: Exactly one due_soon notice and one log entry exist
        """
        invoice_id = await seed_invoice(session_factory, client_record, NOW + timedelta(days=2))
        worker = make_worker()

        first = await worker.run_once(now=NOW)
        second = await worker.run_once(now=NOW + timedelta(hours=1))

        assert first.due_soon_sent == 1
        assert second.due_soon_sent == 0
        assert len(notifications.sent) == 1
        assert notifications.sent[0].client_name == "Acme Ltd"
        assert await reminder_types(session_factory, invoice_id) == ["due_soon"]

    async def test_due_soon_fires_again_after_window(
        self, session_factory, client_record, make_worker, notifications
    ):
        await seed_invoice(session_factory, client_record, NOW + timedelta(days=3))
        worker = make_worker()

        await worker.run_once(now=NOW)
        later = await worker.run_once(now=NOW + timedelta(hours=25))

        assert later.due_soon_sent == 1
        assert len(notifications.sent) == 2

    async def test_overdue_tier_and_late_fee_applied_once(
        self, session_factory, client_record, make_worker, notifications
    ):
        """
        Given: 20,000 outstanding, 7 days overdue, 5% fee capped at 5,000
        When: The scheduler ticks twice
        Then: overdue_7 fires once and the total becomes 21,000 once
        """
        invoice_id = await seed_invoice(
            session_factory, client_record, NOW - timedelta(days=7, hours=1)
        )
        worker = make_worker(
            ReminderConfig(late_fee_percent=Decimal("5"), late_fee_cap=Decimal("5000"))
        )

        first = await worker.run_once(now=NOW)
        second = await worker.run_once(now=NOW + timedelta(hours=2))

        assert first.overdue_sent == 1
        assert first.late_fees_applied == 1
        assert second.overdue_sent == 0
        assert second.late_fees_applied == 0

        invoice = await reload(session_factory, invoice_id)
        assert invoice.total == Decimal("21000.00")
        assert invoice.tax_amount == Decimal("1000.00")
        assert invoice.late_fee_applied_at is not None
        assert await reminder_types(session_factory, invoice_id) == ["overdue_7"]

    async def test_paid_and_cancelled_invoices_are_not_chased(
        self, session_factory, client_record, make_worker, notifications
    ):
        await seed_invoice(
            session_factory, client_record, NOW - timedelta(days=7),
            status=InvoiceStatus.PAID, paid_amount=Decimal("20000.00"),
        )
        await seed_invoice(
            session_factory, client_record, NOW - timedelta(days=7), status=InvoiceStatus.CANCELLED
        )

        summary = await make_worker().run_once(now=NOW)

        assert summary.invoices_checked == 0
        assert notifications.sent == []

    async def test_long_overdue_invoices_are_labelled(self, session_factory, client_record, make_worker):
        invoice_id = await seed_invoice(session_factory, client_record, NOW - timedelta(days=61))

        summary = await make_worker().run_once(now=NOW)

        assert summary.marked_overdue == 1
        invoice = await reload(session_factory, invoice_id)
        assert invoice.status == InvoiceStatus.OVERDUE

    async def test_notice_sent_while_database_is_free(
        self, session_factory, client_record
    ):
        """
        Given: A transport that opens its own database session while sending
        When: The scheduler fires a due_soon notice
        Then: The transport sees the committed pending log entry without waiting
              on the invoice lock, and the entry ends up marked sent
        """

        class ObservingNotificationService(RecordingNotificationService):
            def __init__(self):
                super().__init__()
                self.seen_statuses = []

            async def send_due_soon_notice(self, payload: NoticePayload) -> bool:
                async with session_factory() as session:
                    result = await session.execute(select(ReminderLogEntry.delivery_status))
                    self.seen_statuses = list(result.scalars().all())
                return await super().send_due_soon_notice(payload)

        invoice_id = await seed_invoice(session_factory, client_record, NOW + timedelta(days=2))
        notifications = ObservingNotificationService()
        worker = CollectionSchedulerWorker(
            session_factory=session_factory,
            reminder_config=ReminderConfig(),
            notification_service=notifications,
            invoice_timeout_seconds=5,
        )

        summary = await worker.run_once(now=NOW)

        assert summary.failures == 0
        assert summary.due_soon_sent == 1
        assert notifications.seen_statuses == [ReminderDeliveryStatus.PENDING]
        async with session_factory() as session:
            result = await session.execute(
                select(ReminderLogEntry.delivery_status).where(ReminderLogEntry.invoice_id == invoice_id)
            )
            assert list(result.scalars().all()) == [ReminderDeliveryStatus.SENT]
