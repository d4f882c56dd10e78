"""GetInvoice and ListInvoices Use Cases

Read-only lookups; no locks are taken.
"""

from datetime import datetime
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceResponseDTO, InvoiceSummaryDTO, ListInvoicesResponseDTO

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class GetInvoice:
    """
    Use Case: Fetch one invoice with items and payments

    Another owner's invoice is reported exactly like a missing one.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        payment_repo: PaymentRepository,
    ):
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.payment_repo = payment_repo

    async def execute(self, invoice_id: str, user_id: str) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, user_id=user_id)
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {invoice_id} not found")
                )

            items = await self.item_repo.get_by_invoice_id(invoice.id)
            payments = await self.payment_repo.get_by_invoice_id(invoice.id)

            return Return.ok(InvoiceResponseDTO.from_entity(invoice, items=items, payments=payments))

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_INVOICE_FAILED",
                    message="Failed to get invoice",
                    reason=str(e),
                )
            )


class ListInvoices:
    """
    Use Case: Page through an owner's invoices, newest first

    limit is clamped to [1, 100] (default 20); negative offsets become 0.
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(
        self,
        user_id: str,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        search: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Result[ListInvoicesResponseDTO]:
        limit = DEFAULT_PAGE_SIZE if limit is None or limit <= 0 else min(limit, MAX_PAGE_SIZE)
        offset = max(0, offset or 0)
        search = (search or "").strip() or None

        try:
            invoices, total = await self.invoice_repo.list_by_user(
                user_id,
                status=status,
                client_id=client_id,
                created_from=created_from,
                created_to=created_to,
                search=search,
                limit=limit,
                offset=offset,
            )

            return Return.ok(
                ListInvoicesResponseDTO(
                    invoices=[InvoiceSummaryDTO.from_entity(i) for i in invoices],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_INVOICES_FAILED",
                    message="Failed to list invoices",
                    reason=str(e),
                )
            )
