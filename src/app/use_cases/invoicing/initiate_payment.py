"""InitiatePayment Use Case

Asks the payment gateway to push a mobile-money prompt for an invoice's
outstanding balance. Nothing is recorded here; settlement arrives later as
a gateway webhook.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.client_repository import ClientRepository
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitiationRequest,
)
from src.domain.invoice import InvoiceStatus
from src.domain.invoice_transitions import INVOICE_CANCELLED
from .dtos import InitiatePaymentCommandDTO, PaymentInitiationResultDTO

logger = logging.getLogger(__name__)


class InitiatePayment:
    """
    Use Case: Start a mobile-money collection for an invoice

    Business Rules:
    1. Paid invoices are rejected (INVOICE_ALREADY_PAID)
    2. Cancelled invoices are rejected (INVOICE_CANCELLED)
    3. Phone defaults to the client's phone
    4. Without a configured gateway or phone, the request is accepted and
       left for the client to pay by other means
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        client_repo: ClientRepository,
        gateway: Optional[PaymentGateway] = None,
    ):
        self.invoice_repo = invoice_repo
        self.client_repo = client_repo
        self.gateway = gateway

    async def execute(self, command: InitiatePaymentCommandDTO) -> Result[PaymentInitiationResultDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(command.invoice_id, user_id=command.user_id)
        except Exception as e:
            return Return.err(
                Error(code="INITIATE_PAYMENT_FAILED", message="Failed to load invoice", reason=str(e))
            )

        if not invoice:
            return Return.err(
                Error(code="INVOICE_NOT_FOUND", message=f"Invoice {command.invoice_id} not found")
            )

        if invoice.status == InvoiceStatus.PAID:
            return Return.err(Error(code="INVOICE_ALREADY_PAID", message="Invoice already paid"))

        if invoice.status == InvoiceStatus.CANCELLED:
            return Return.err(Error(code=INVOICE_CANCELLED.code, message=INVOICE_CANCELLED.message))

        amount = invoice.outstanding if invoice.outstanding > 0 else invoice.total

        phone = (command.phone_number or "").strip()
        if not phone:
            client = await self.client_repo.get_by_id(invoice.client_id, user_id=invoice.user_id)
            phone = client.phone if client else ""

        result = PaymentInitiationResultDTO(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            amount=amount,
            currency=invoice.currency,
            message="Payment initiated",
        )

        if not self.gateway or not phone:
            logger.info(
                f"No gateway push for {invoice.invoice_number} "
                f"(gateway={'yes' if self.gateway else 'no'}, phone={'yes' if phone else 'no'})"
            )
            return Return.ok(result)

        try:
            response = await self.gateway.initiate_payment(
                PaymentInitiationRequest(
                    amount=amount,
                    currency=invoice.currency,
                    phone_number=phone,
                    api_ref=invoice.invoice_number,
                    invoice_number=invoice.invoice_number,
                )
            )
        except PaymentGatewayError as e:
            logger.error(f"Payment push failed for {invoice.invoice_number}: {e}")
            return Return.err(
                Error(
                    code="PAYMENT_INITIATION_FAILED",
                    message="Payment gateway rejected the request",
                    reason=str(e),
                )
            )

        result.checkout_id = response.checkout_id
        result.message = "Payment request sent to your phone"
        return Return.ok(result)
