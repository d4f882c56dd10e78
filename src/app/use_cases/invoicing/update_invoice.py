"""UpdateInvoice Use Case

Edits a draft invoice's fields and recomputes its totals.
"""

from datetime import datetime, timedelta
from typing import Iterable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.base import to_naive_utc
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from src.domain import money
from .dtos import UpdateInvoiceCommandDTO, InvoiceResponseDTO


class UpdateInvoice:
    """
    Use Case: Edit a draft invoice's fields

    Business Rules:
    1. Only draft invoices can be edited (CANNOT_EDIT_INVOICE otherwise)
    2. Fields left as None are unchanged
    3. Tax rate and discount are clamped; total is recomputed from the items
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        default_currency: str = money.DEFAULT_CURRENCY,
        supported_currencies: Iterable[str] = money.SUPPORTED_CURRENCIES,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.default_currency = default_currency
        self.supported_currencies = tuple(supported_currencies)

    async def execute(self, command: UpdateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        due_date = to_naive_utc(command.due_date)
        if due_date is not None and due_date < datetime.utcnow() - timedelta(days=1):
            return Return.err(
                Error(code="DUE_DATE_IN_PAST", message="Due date cannot be in the past")
            )

        try:
            # Step 1: Lock invoice in owner scope
            invoice = await self.invoice_repo.get_by_id(
                command.invoice_id, user_id=command.user_id, for_update=True
            )
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {command.invoice_id} not found")
                )

            # Step 2: Check the edit is allowed in the current status
            transition = resolve_transition(invoice.status, InvoiceAction.EDIT)
            if transition.is_err():
                return Return.err(transition.error)

            # Step 3: Apply changed fields
            if due_date is not None:
                invoice.due_date = due_date
            if command.reference is not None:
                invoice.reference = command.reference.strip()
            if command.currency is not None:
                invoice.currency = money.normalize_currency(
                    command.currency,
                    default=self.default_currency,
                    supported=self.supported_currencies,
                )
            if command.notes is not None:
                invoice.notes = command.notes
            if command.terms is not None:
                invoice.terms = command.terms

            tax_rate = invoice.tax_rate if command.tax_rate is None else command.tax_rate
            discount = invoice.discount if command.discount is None else command.discount

            # Step 4: Recompute totals from stored items
            items = await self.item_repo.get_by_invoice_id(invoice.id)
            totals = money.compute_totals(items, tax_rate, discount)
            invoice.subtotal = totals.subtotal
            invoice.tax_rate = totals.tax_rate
            invoice.tax_amount = totals.tax_amount
            invoice.discount = totals.discount
            invoice.total = totals.total
            invoice.status = transition.value

            updated = await self.invoice_repo.update(invoice)

            # Step 5: Commit transaction
            await self.uow.commit()

            return Return.ok(InvoiceResponseDTO.from_entity(updated, items=items))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_INVOICE_FAILED",
                    message="Failed to update invoice",
                    reason=str(e),
                )
            )
