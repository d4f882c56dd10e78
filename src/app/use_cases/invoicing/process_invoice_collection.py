"""ProcessInvoiceCollection Use Case

One scheduler unit of work: re-reads a single invoice under lock and
decides which collection notice (if any) to fire and whether a late fee
is due. The notice is sent only after that transaction commits, so a slow
notification transport never holds the invoice lock.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import (
    NotificationService,
    NoticeKind,
    NoticePayload,
)
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.reminder_log_repository import ReminderLogRepository
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import audit_entry
from src.domain.invoice import Invoice, COLLECTIBLE_STATUSES
from src.domain.late_fee import apply_late_fee
from src.domain.reminder_log import (
    DUE_SOON,
    ReminderDeliveryStatus,
    ReminderLogEntry,
    overdue_reminder_type,
)
from .dtos import InvoiceCollectionOutcomeDTO
from .reminder_config import ReminderConfig

logger = logging.getLogger(__name__)


def days_overdue(due_date: datetime, now: datetime) -> int:
    """Whole days elapsed since the due date (0 if not yet due)"""
    if now <= due_date:
        return 0
    return (now - due_date) // timedelta(days=1)


class ProcessInvoiceCollection:
    """
    Use Case: Run collection checks for one invoice

    Business Rules:
    1. Only sent/viewed invoices are escalated; anything else is skipped
    2. Due within days_before_due -> one due_soon notice per suppression window
    3. Overdue by exactly a ladder day -> that tier's notice, once per window
    4. Overdue past the grace period with a late fee configured and not yet
       applied -> late fee folded into tax and total
    5. The log entry is committed as pending before dispatch and then marked
       sent or failed, so a notice is never re-fired on the next tick
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        reminder_repo: ReminderLogRepository,
        client_repo: ClientRepository,
        account_repo: AccountRepository,
        audit_repo: AuditLogRepository,
        notification_service: NotificationService,
        config: Optional[ReminderConfig] = None,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.reminder_repo = reminder_repo
        self.client_repo = client_repo
        self.account_repo = account_repo
        self.audit_repo = audit_repo
        self.notification_service = notification_service
        self.config = config or ReminderConfig()

    async def execute(
        self, invoice_id: str, now: Optional[datetime] = None
    ) -> Result[InvoiceCollectionOutcomeDTO]:
        """
        Execute collection checks

        Args:
            invoice_id: Invoice ID selected by the scheduler
            now: Reference time for this run (defaults to utcnow)

        Returns:
            Result[InvoiceCollectionOutcomeDTO]: What was fired or charged
        """
        now = now or datetime.utcnow()

        try:
            # Step 1: Re-read invoice under lock
            invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            outcome = InvoiceCollectionOutcomeDTO(
                invoice_id=invoice.id, invoice_number=invoice.invoice_number
            )

            if invoice.status not in COLLECTIBLE_STATUSES:
                outcome.skipped = True
                return Return.ok(outcome)

            # Step 2: Decide which notice applies and claim it in the log
            overdue_days = days_overdue(invoice.due_date, now)
            due_soon_cutoff = now + timedelta(days=self.config.days_before_due)

            pending = None
            if invoice.due_date >= now and invoice.due_date <= due_soon_cutoff:
                pending = await self._claim_notice(
                    invoice, DUE_SOON, NoticeKind.DUE_SOON, self.config.due_soon_window, now,
                )
            elif overdue_days in self.config.escalation_days:
                pending = await self._claim_notice(
                    invoice, overdue_reminder_type(overdue_days), NoticeKind.OVERDUE,
                    self.config.overdue_window, now, overdue_days,
                )

            # Step 3: Late fee after the grace period
            if (
                self.config.late_fee_enabled
                and overdue_days > self.config.grace_period_days
                and invoice.late_fee_applied_at is None
            ):
                fee = apply_late_fee(
                    invoice, self.config.late_fee_percent, self.config.late_fee_cap, now
                )
                if fee.is_ok():
                    await self.invoice_repo.update(invoice)
                    await self.audit_repo.create(
                        audit_entry(
                            invoice.user_id,
                            "invoice.late_fee_applied",
                            "invoice",
                            invoice.id,
                            fee=fee.value,
                            days_overdue=overdue_days,
                            new_total=invoice.total,
                        )
                    )
                    outcome.late_fee = fee.value
                    logger.info(
                        f"Late fee {fee.value} applied to {invoice.invoice_number} "
                        f"(day {overdue_days}), new total {invoice.total}"
                    )
                else:
                    logger.info(
                        f"No late fee for {invoice.invoice_number}: {fee.error.code}"
                    )

            # Step 4: Commit transaction, releasing the invoice lock
            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="COLLECTION_FAILED",
                    message=f"Collection checks failed for invoice {invoice_id}",
                    reason=str(e),
                )
            )

        # Step 5: Dispatch outside the transaction
        if pending is not None:
            await self._deliver(invoice, outcome, *pending)

        return Return.ok(outcome)

    async def _claim_notice(
        self,
        invoice: Invoice,
        reminder_type: str,
        kind: NoticeKind,
        window: timedelta,
        now: datetime,
        overdue_days: int = 0,
    ) -> Optional[Tuple[ReminderLogEntry, NoticeKind, NoticePayload]]:
        # Suppression check
        if await self.reminder_repo.exists_since(invoice.id, reminder_type, now - window):
            return None

        client = await self.client_repo.get_by_id(invoice.client_id, user_id=invoice.user_id)
        account = await self.account_repo.get_by_id(invoice.user_id)
        payload = NoticePayload.for_invoice(
            kind,
            invoice,
            client=client,
            account=account,
            reminder_type=reminder_type,
            days_overdue=overdue_days,
        )

        entry = await self.reminder_repo.create(
            ReminderLogEntry(
                user_id=invoice.user_id,
                invoice_id=invoice.id,
                reminder_type=reminder_type,
                delivery_status=ReminderDeliveryStatus.PENDING,
                created_at=now,
            )
        )
        return entry, kind, payload

    async def _deliver(
        self,
        invoice: Invoice,
        outcome: InvoiceCollectionOutcomeDTO,
        entry: ReminderLogEntry,
        kind: NoticeKind,
        payload: NoticePayload,
    ):
        try:
            if kind == NoticeKind.DUE_SOON:
                delivered = await self.notification_service.send_due_soon_notice(payload)
            else:
                delivered = await self.notification_service.send_overdue_notice(payload)
        except Exception as e:
            logger.error(f"Notice {entry.reminder_type} for {invoice.invoice_number} failed: {e}")
            delivered = False

        outcome.reminder_type = entry.reminder_type
        outcome.notice_delivered = delivered
        logger.info(
            f"Notice {entry.reminder_type} for {invoice.invoice_number}: "
            f"{'sent' if delivered else 'failed'}"
        )

        status = ReminderDeliveryStatus.SENT if delivered else ReminderDeliveryStatus.FAILED
        try:
            await self.reminder_repo.set_delivery_status(entry.id, status)
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Could not record {status.value} for reminder {entry.id} "
                f"on {invoice.invoice_number}: {e}"
            )
