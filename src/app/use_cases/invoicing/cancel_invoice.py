"""CancelInvoice Use Case"""

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import audit_entry
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from .dtos import InvoiceResponseDTO


class CancelInvoice:
    """
    Use Case: Cancel an invoice (irreversible)

    Business Rules:
    1. Paid invoices cannot be cancelled (CANNOT_CANCEL_PAID)
    2. Cancelling twice fails (ALREADY_CANCELLED)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        audit_repo: AuditLogRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.audit_repo = audit_repo

    async def execute(self, invoice_id: str, user_id: str) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, user_id=user_id, for_update=True)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            transition = resolve_transition(invoice.status, InvoiceAction.CANCEL)
            if transition.is_err():
                return Return.err(transition.error)

            previous_status = invoice.status
            invoice.status = transition.value
            updated = await self.invoice_repo.update(invoice)

            await self.audit_repo.create(
                audit_entry(user_id, "invoice.cancelled", "invoice", invoice.id,
                            previous_status=previous_status)
            )

            await self.uow.commit()

            return Return.ok(InvoiceResponseDTO.from_entity(updated))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CANCEL_INVOICE_FAILED",
                    message="Failed to cancel invoice",
                    reason=str(e),
                )
            )
