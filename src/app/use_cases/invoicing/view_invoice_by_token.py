"""ViewInvoiceByToken Use Case

Client-portal lookup by the invoice's unguessable access token. The first
view of a sent invoice moves it to viewed.
"""

from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.invoice import InvoiceStatus
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from .dtos import InvoiceResponseDTO


class ViewInvoiceByToken:
    """
    Use Case: Open an invoice from the client portal

    Business Rules:
    1. Drafts are not visible through the portal (INVOICE_NOT_FOUND)
    2. sent -> viewed, stamping viewed_at once; other statuses are unchanged
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo

    async def execute(self, access_token: str) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_access_token(access_token, for_update=True)
            if not invoice or invoice.status == InvoiceStatus.DRAFT:
                return Return.err(Error(code="INVOICE_NOT_FOUND", message="Invoice not found"))

            transition = resolve_transition(invoice.status, InvoiceAction.VIEW)
            if transition.is_ok() and transition.value != invoice.status:
                invoice.status = transition.value
                if invoice.viewed_at is None:
                    invoice.viewed_at = datetime.utcnow()
                invoice = await self.invoice_repo.update(invoice)
                await self.uow.commit()

            items = await self.item_repo.get_by_invoice_id(invoice.id)

            return Return.ok(InvoiceResponseDTO.from_entity(invoice, items=items))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="VIEW_INVOICE_FAILED",
                    message="Failed to load invoice",
                    reason=str(e),
                )
            )
