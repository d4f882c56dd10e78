"""RecordPayment Use Case

Appends a payment to an invoice and recomputes paid amount and status,
with deduplication on the gateway reference and pessimistic locking so
concurrent payments against the same invoice serialize.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import audit_entry
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_transitions import InvoiceAction, resolve_transition
from src.domain.payment import Payment, PaymentStatus
from src.domain import money
from .dtos import RecordPaymentCommandDTO, PaymentRecordedDTO, PaymentDTO

logger = logging.getLogger(__name__)


class RecordPayment:
    """
    Use Case: Record money received against an invoice

    Business Rules:
    1. Invoice is loaded in the owner's scope; otherwise INVOICE_NOT_FOUND
    2. Cancelled invoices reject payments (INVOICE_CANCELLED)
    3. Idempotency: a repeated external_reference is not credited twice
    4. paid_amount >= total settles the invoice: status=paid, paid_amount
       capped at total, paid_at set; otherwise status=partially_paid
    5. Pessimistic locking: SELECT FOR UPDATE on the invoice row

    Flow:
    1. Lock invoice (SELECT FOR UPDATE)
    2. Check the payment is allowed in the current status
    3. Check idempotency (under the lock, so redeliveries serialize)
    4. Resolve amount (None settles the outstanding balance)
    5. Append payment row
    6. Recompute paid amount and status
    7. Persist invoice and audit entry, commit
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

    async def execute(self, command: RecordPaymentCommandDTO) -> Result[PaymentRecordedDTO]:
        """
        Execute payment recording

        Args:
            command: RecordPaymentCommandDTO with invoice, amount and method

        Returns:
            Result[PaymentRecordedDTO]: Payment and resulting invoice state
        """
        try:
            # Step 1: Lock invoice in owner scope
            invoice = await self.invoice_repo.get_by_id(
                command.invoice_id, user_id=command.user_id, for_update=True
            )
            if not invoice:
                return Return.err(
                    Error(code="INVOICE_NOT_FOUND", message=f"Invoice {command.invoice_id} not found")
                )

            # Step 2: Check the payment is allowed
            transition = resolve_transition(invoice.status, InvoiceAction.RECORD_PAYMENT)
            if transition.is_err():
                return Return.err(transition.error)

            # Step 3: Check idempotency
            if command.external_reference:
                existing = await self.payment_repo.get_by_external_reference(
                    command.external_reference
                )
                if existing:
                    if existing.invoice_id != invoice.id:
                        logger.warning(
                            f"Payment reference {command.external_reference} for invoice "
                            f"{invoice.id} was already used on invoice {existing.invoice_id}, "
                            f"not crediting it again"
                        )
                    logger.info(
                        f"Payment reference {command.external_reference} already applied "
                        f"to invoice {existing.invoice_id}, skipping"
                    )
                    return Return.ok(self._to_response_dto(invoice, existing, duplicate=True))

            # Step 4: Resolve amount
            amount = command.amount
            if amount is None:
                amount = invoice.outstanding if invoice.outstanding > 0 else invoice.total
            amount = money.round2(amount)
            if amount <= 0:
                return Return.err(
                    Error(
                        code="INVALID_AMOUNT",
                        message="Payment amount must be greater than zero",
                        reason=f"amount={amount}",
                    )
                )

            # Step 5: Append payment row
            now = datetime.utcnow()
            payment = await self.payment_repo.create(
                Payment(
                    user_id=invoice.user_id,
                    invoice_id=invoice.id,
                    amount=amount,
                    currency=(command.currency or invoice.currency).upper(),
                    method=command.method,
                    status=PaymentStatus.COMPLETED,
                    external_reference=command.external_reference,
                    phone_number=command.phone_number,
                    completed_at=now,
                )
            )

            # Step 6: Recompute paid amount and status
            paid_amount = money.round2(invoice.paid_amount + amount)
            if paid_amount >= invoice.total:
                paid_amount = invoice.total
                if invoice.status != InvoiceStatus.PAID or invoice.paid_at is None:
                    invoice.paid_at = now
                invoice.status = InvoiceStatus.PAID
            elif paid_amount > 0:
                invoice.status = transition.value
            invoice.paid_amount = paid_amount

            # Step 7: Persist invoice and audit entry, commit
            updated = await self.invoice_repo.update(invoice)
            await self.audit_repo.create(
                audit_entry(
                    invoice.user_id,
                    "payment.received",
                    "invoice",
                    invoice.id,
                    payment_id=payment.id,
                    amount=amount,
                    method=command.method,
                    external_reference=command.external_reference,
                )
            )

            await self.uow.commit()

            return Return.ok(self._to_response_dto(updated, payment))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="RECORD_PAYMENT_FAILED",
                    message="Failed to record payment",
                    reason=str(e),
                )
            )

    def _to_response_dto(
        self, invoice: Invoice, payment: Payment, duplicate: bool = False
    ) -> PaymentRecordedDTO:
        return PaymentRecordedDTO(
            payment=PaymentDTO.from_entity(payment),
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            invoice_status=InvoiceStatus(invoice.status).value,
            total=invoice.total,
            paid_amount=invoice.paid_amount,
            outstanding=invoice.outstanding,
            paid_at=invoice.paid_at,
            duplicate=duplicate,
        )
