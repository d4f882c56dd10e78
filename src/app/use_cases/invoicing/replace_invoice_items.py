"""ReplaceInvoiceItems Use Case

Replaces a draft invoice's items wholesale (delete-all, then insert) and
recomputes totals, inside one transaction.
"""

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from src.domain import money
from .dtos import ReplaceInvoiceItemsCommandDTO, InvoiceResponseDTO
from .line_items import build_line_items


class ReplaceInvoiceItems:
    """
    Use Case: Replace all items of a draft invoice

    Business Rules:
    1. Only draft invoices can be edited
    2. At least one item is required
    3. Negative quantities are rejected, same as on creation
    4. Items are never diffed; the old set is deleted and the new set inserted
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

    async def execute(self, command: ReplaceInvoiceItemsCommandDTO) -> Result[InvoiceResponseDTO]:
        if not command.items:
            return Return.err(
                Error(code="EMPTY_ITEMS", message="Invoice must have at least one item")
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

            # Step 2: Check the edit is allowed
            transition = resolve_transition(invoice.status, InvoiceAction.EDIT)
            if transition.is_err():
                return Return.err(transition.error)

            # Step 3: Validate and build the new item set
            try:
                items = build_line_items(invoice.id, command.items)
            except money.InvalidLineItem as e:
                return Return.err(Error(code=e.code, message=e.message))

            # Step 4: Delete-all then insert
            await self.item_repo.delete_by_invoice_id(invoice.id)
            created_items = await self.item_repo.create_many(items)

            # Step 5: Recompute totals
            totals = money.compute_totals(created_items, invoice.tax_rate, invoice.discount)
            invoice.subtotal = totals.subtotal
            invoice.tax_amount = totals.tax_amount
            invoice.total = totals.total
            updated = await self.invoice_repo.update(invoice)

            # Step 6: Commit transaction
            await self.uow.commit()

            return Return.ok(InvoiceResponseDTO.from_entity(updated, items=created_items))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="REPLACE_ITEMS_FAILED",
                    message="Failed to replace invoice items",
                    reason=str(e),
                )
            )
