"""CreateInvoice Use Case

Creates a draft invoice with its line items for one of the owner's clients.
"""

from datetime import datetime, timedelta
from typing import Iterable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import audit_entry
from src.domain.base import to_naive_utc
from src.domain.invoice import Invoice, InvoiceStatus, generate_invoice_number
from src.domain import money
from .dtos import CreateInvoiceCommandDTO, InvoiceResponseDTO
from .line_items import build_line_items

INVOICE_NUMBER_ATTEMPTS = 5


class CreateInvoice:
    """
    Use Case: Create a draft invoice

    Business Rules:
    1. At least one item is required; negative quantities are rejected
    2. Due date is required and may not be more than a day in the past
    3. The client must belong to the owner (otherwise CLIENT_NOT_FOUND)
    4. Unknown currency codes fall back to the default currency
    5. Invoice starts as draft with paid_amount=0 and a fresh access token

    Flow:
    1. Validate items and due date (before any store access)
    2. Resolve the client in the owner's scope
    3. Compute totals through the Money Model
    4. Pick an unused invoice number
    5. Persist invoice, items and audit entry
    6. Commit transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        client_repo: ClientRepository,
        audit_repo: AuditLogRepository,
        default_currency: str = money.DEFAULT_CURRENCY,
        supported_currencies: Iterable[str] = money.SUPPORTED_CURRENCIES,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.client_repo = client_repo
        self.audit_repo = audit_repo
        self.default_currency = default_currency
        self.supported_currencies = tuple(supported_currencies)

    async def execute(self, command: CreateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        """
        Execute invoice creation

        Args:
            command: CreateInvoiceCommandDTO with client, items and due date

        Returns:
            Result[InvoiceResponseDTO]: Created draft invoice or error
        """
        # Step 1: Validate input before touching the store
        if not command.items:
            return Return.err(
                Error(code="EMPTY_ITEMS", message="Invoice must have at least one item")
            )

        if command.due_date is None:
            return Return.err(
                Error(code="MISSING_DUE_DATE", message="Due date is required")
            )

        now = datetime.utcnow()
        due_date = to_naive_utc(command.due_date)
        if due_date < now - timedelta(days=1):
            return Return.err(
                Error(
                    code="DUE_DATE_IN_PAST",
                    message="Due date cannot be in the past",
                    reason=f"due_date={due_date.isoformat()}",
                )
            )

        try:
            # Step 2: Resolve client in owner scope
            client = await self.client_repo.get_by_id(command.client_id, user_id=command.user_id)
            if not client:
                return Return.err(
                    Error(
                        code="CLIENT_NOT_FOUND",
                        message=f"Client {command.client_id} not found",
                    )
                )

            # Step 3: Build items and totals
            invoice = Invoice(
                user_id=command.user_id,
                client_id=client.id,
                reference=command.reference.strip(),
                currency=money.normalize_currency(
                    command.currency or client.currency,
                    default=self.default_currency,
                    supported=self.supported_currencies,
                ),
                status=InvoiceStatus.DRAFT,
                due_date=due_date,
                notes=command.notes,
                terms=command.terms,
            )

            try:
                items = build_line_items(invoice.id, command.items)
            except money.InvalidLineItem as e:
                return Return.err(Error(code=e.code, message=e.message))

            totals = money.compute_totals(items, command.tax_rate, command.discount)
            invoice.subtotal = totals.subtotal
            invoice.tax_rate = totals.tax_rate
            invoice.tax_amount = totals.tax_amount
            invoice.discount = totals.discount
            invoice.total = totals.total
            invoice.paid_amount = money.ZERO

            # Step 4: Pick an unused invoice number
            invoice.invoice_number = await self._unused_invoice_number(now)

            # Step 5: Persist invoice, items and audit entry
            created_invoice = await self.invoice_repo.create(invoice)
            created_items = await self.item_repo.create_many(items)
            await self.audit_repo.create(
                audit_entry(
                    command.user_id,
                    "invoice.created",
                    "invoice",
                    created_invoice.id,
                    invoice_number=created_invoice.invoice_number,
                    total=created_invoice.total,
                )
            )

            # Step 6: Commit transaction
            await self.uow.commit()

            return Return.ok(InvoiceResponseDTO.from_entity(created_invoice, items=created_items))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_INVOICE_FAILED",
                    message="Failed to create invoice",
                    reason=str(e),
                )
            )

    async def _unused_invoice_number(self, now: datetime) -> str:
        for _ in range(INVOICE_NUMBER_ATTEMPTS):
            candidate = generate_invoice_number(now)
            if not await self.invoice_repo.invoice_number_exists(candidate):
                return candidate
        raise RuntimeError("Could not allocate a unique invoice number")
