"""SendInvoice Use Case

Marks an invoice as sent to the client.
"""

from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import audit_entry
from src.domain.invoice_transitions import ALREADY_SENT, InvoiceAction, resolve_transition
from .dtos import InvoiceResponseDTO, SendInvoiceResponseDTO


class SendInvoice:
    """
    Use Case: Send an invoice

    Business Rules:
    1. Allowed from draft and viewed; sets status=sent and sent_at
    2. Already sent (sent, partially_paid, paid, overdue) is reported, not failed
    3. Cancelled invoices cannot be sent (CANNOT_SEND_CANCELLED)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        audit_repo: AuditLogRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.audit_repo = audit_repo

    async def execute(self, invoice_id: str, user_id: str) -> Result[SendInvoiceResponseDTO]:
        """
        Execute send

        Args:
            invoice_id: Invoice ID
            user_id: Owning account ID

        Returns:
            Result[SendInvoiceResponseDTO]: Invoice and whether it was already sent
        """
        try:
            # Step 1: Lock invoice in owner scope
            invoice = await self.invoice_repo.get_by_id(invoice_id, user_id=user_id, for_update=True)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            items = await self.item_repo.get_by_invoice_id(invoice.id)

            # Step 2: Resolve transition
            transition = resolve_transition(invoice.status, InvoiceAction.SEND)
            if transition.is_err():
                if transition.error.code == ALREADY_SENT.code:
                    return Return.ok(
                        SendInvoiceResponseDTO(
                            invoice=InvoiceResponseDTO.from_entity(invoice, items=items),
                            already_sent=True,
                        )
                    )
                return Return.err(transition.error)

            # Step 3: Apply status and timestamp
            invoice.status = transition.value
            invoice.sent_at = datetime.utcnow()
            updated = await self.invoice_repo.update(invoice)

            await self.audit_repo.create(
                audit_entry(user_id, "invoice.sent", "invoice", invoice.id,
                            invoice_number=invoice.invoice_number)
            )

            # Step 4: Commit transaction
            await self.uow.commit()

            return Return.ok(
                SendInvoiceResponseDTO(invoice=InvoiceResponseDTO.from_entity(updated, items=items))
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SEND_INVOICE_FAILED",
                    message="Failed to send invoice",
                    reason=str(e),
                )
            )
