"""ReversePayment Use Case

Applies a gateway reversal or chargeback. Payment rows are never deleted;
the reversed payment is flagged refunded and paid_amount is reduced so it
stays consistent with the invoice status.
"""

import logging
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import audit_entry
from src.domain.invoice import InvoiceStatus
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from src.domain.payment import Payment, PaymentStatus
from src.domain import money
from .dtos import ReversePaymentCommandDTO, PaymentRecordedDTO, PaymentDTO

logger = logging.getLogger(__name__)


class ReversePayment:
    """
    Use Case: Reverse a payment on an invoice

    Business Rules:
    1. Reversed amount: the referenced payment's amount, else the given
       amount, else everything paid so far
    2. paid_amount is reduced by that amount, never below zero
    3. Status becomes partially_paid if money remains, otherwise sent;
       paid_at is cleared
    4. Reversing an already-refunded payment is a no-op
    5. Only paid or partially paid invoices can be reversed (NOTHING_TO_REVERSE)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
        audit_repo: AuditLogRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo
        self.audit_repo = audit_repo

    async def execute(self, command: ReversePaymentCommandDTO) -> Result[PaymentRecordedDTO]:
        try:
            # Step 1: Lock invoice in owner scope
            invoice = await self.invoice_repo.get_by_id(
                command.invoice_id, user_id=command.user_id, for_update=True
            )
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {command.invoice_id} not found")
                )

            # Step 2: Find the referenced payment, if any
            payment: Optional[Payment] = None
            if command.external_reference:
                payment = await self.payment_repo.get_by_external_reference(
                    command.external_reference
                )
                if payment and payment.invoice_id != invoice.id:
                    payment = None
                if payment and payment.status == PaymentStatus.REFUNDED:
                    logger.info(f"Payment {payment.id} already reversed, skipping")
                    return Return.ok(self._to_response_dto(invoice, payment, duplicate=True))

            # Step 3: Check the reversal is allowed
            transition = resolve_transition(invoice.status, InvoiceAction.REVERSE_PAYMENT)
            if transition.is_err():
                return Return.err(transition.error)

            # Step 4: Resolve reversed amount
            if payment and payment.status == PaymentStatus.COMPLETED:
                reversed_amount = payment.amount
            elif command.amount is not None:
                reversed_amount = command.amount
            else:
                reversed_amount = invoice.paid_amount
            reversed_amount = money.round2(min(Decimal(reversed_amount), invoice.paid_amount))

            # Step 5: Flag the payment and reduce paid amount
            if payment:
                payment.status = PaymentStatus.REFUNDED
                payment.failure_reason = "reversed"
                payment = await self.payment_repo.update(payment)

            invoice.paid_amount = money.round2(max(money.ZERO, invoice.paid_amount - reversed_amount))
            invoice.status = (
                InvoiceStatus.PARTIALLY_PAID if invoice.paid_amount > 0 else transition.value
            )
            invoice.paid_at = None
            updated = await self.invoice_repo.update(invoice)

            await self.audit_repo.create(
                audit_entry(
                    invoice.user_id,
                    "payment.reversed",
                    "invoice",
                    invoice.id,
                    payment_id=payment.id if payment else None,
                    amount=reversed_amount,
                    external_reference=command.external_reference,
                )
            )

            # Step 6: Commit transaction
            await self.uow.commit()

            return Return.ok(self._to_response_dto(updated, payment))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="REVERSE_PAYMENT_FAILED",
                    message="Failed to reverse payment",
                    reason=str(e),
                )
            )

    def _to_response_dto(self, invoice, payment: Optional[Payment], duplicate: bool = False):
        return PaymentRecordedDTO(
            payment=PaymentDTO.from_entity(payment) if payment else None,
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            invoice_status=InvoiceStatus(invoice.status).value,
            total=invoice.total,
            paid_amount=invoice.paid_amount,
            outstanding=invoice.outstanding,
            paid_at=invoice.paid_at,
            duplicate=duplicate,
        )
