"""GetReminderHistory Use Case"""

from typing import List
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.reminder_log_repository import ReminderLogRepository
from .dtos import ReminderLogDTO


class GetReminderHistory:
    """Use Case: List the collection notices fired for an invoice, newest first"""

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        reminder_repo: ReminderLogRepository,
    ):
        self.invoice_repo = invoice_repo
        self.reminder_repo = reminder_repo

    async def execute(self, invoice_id: str, user_id: str) -> Result[List[ReminderLogDTO]]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, user_id=user_id)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            entries = await self.reminder_repo.get_by_invoice_id(invoice.id)
            return Return.ok([ReminderLogDTO.from_entity(e) for e in entries])

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_REMINDERS_FAILED",
                    message="Failed to load reminder history",
                    reason=str(e),
                )
            )
