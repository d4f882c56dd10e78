"""MarkOverdueInvoices Use Case"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import COLLECTIBLE_STATUSES

logger = logging.getLogger(__name__)


class MarkOverdueInvoices:
    """
    Use Case: Batch-label invoices overdue beyond a hard threshold

    sent/viewed invoices whose due date is more than threshold_days in the
    past become overdue, whether or not any reminder succeeded. The label
    does not block payments.
    """

    def __init__(self, uow: UnitOfWork, invoice_repo: InvoiceRepository):
        self.uow = uow
        self.invoice_repo = invoice_repo

    async def execute(self, threshold_days: int, now: Optional[datetime] = None) -> Result[int]:
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=threshold_days)

        try:
            updated = await self.invoice_repo.mark_overdue(COLLECTIBLE_STATUSES, due_before=cutoff)
            await self.uow.commit()

            if updated:
                logger.info(f"Marked {updated} invoices overdue (due before {cutoff.isoformat()})")

            return Return.ok(updated)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="MARK_OVERDUE_FAILED",
                    message="Failed to mark invoices overdue",
                    reason=str(e),
                )
            )
