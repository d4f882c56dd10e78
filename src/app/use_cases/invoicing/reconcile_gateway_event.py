"""ReconcileGatewayEvent Use Case

Maps an inbound payment-gateway event onto the payment ledger. Bad or
unknown external data is acknowledged and logged, never fatal, so the
gateway does not retry-storm on data it cannot fix.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.account_repository import AccountRepository
from src.app.services.notification_service import (
    NotificationService,
    NoticeKind,
    NoticePayload,
)
from src.domain.invoice import Invoice
from src.domain.payment import PaymentMethod
from src.domain import money
from .dtos import (
    GatewayWebhookEventDTO,
    PaymentRecordedDTO,
    RecordPaymentCommandDTO,
    ReversePaymentCommandDTO,
    WebhookAckDTO,
)
from .record_payment import RecordPayment
from .reverse_payment import ReversePayment

logger = logging.getLogger(__name__)

PAYMENT_EVENTS = frozenset({"payment_successful", "invoice_payment_signed"})
REVERSAL_EVENTS = frozenset({"payment_reversed", "chargeback"})

ACK_RECEIVED = "received"
ACK_IGNORED = "ignored"
ACK_DUPLICATE = "duplicate"

# Ledger errors caused by the store, not by the event; surfaced so the
# gateway redelivers
STORE_FAILURE_CODES = frozenset({"RECORD_PAYMENT_FAILED", "REVERSE_PAYMENT_FAILED"})


class ReconcileGatewayEvent:
    """
    Use Case: Apply a gateway webhook event

    Business Rules:
    1. Missing or unknown invoice_number -> ignored, nothing mutated
    2. payment_successful / invoice_payment_signed -> RecordPayment; an
       unparsable or non-positive amount settles the outstanding balance
    3. payment_reversed / chargeback -> ReversePayment
    4. Any other event -> ignored
    5. Redelivery of an applied reference -> duplicate, nothing mutated
    6. A receipt notice follows a newly applied payment; its failure is
       logged only
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        record_payment: RecordPayment,
        reverse_payment: ReversePayment,
        client_repo: Optional[ClientRepository] = None,
        account_repo: Optional[AccountRepository] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        self.invoice_repo = invoice_repo
        self.record_payment = record_payment
        self.reverse_payment = reverse_payment
        self.client_repo = client_repo
        self.account_repo = account_repo
        self.notification_service = notification_service

    async def execute(self, event: GatewayWebhookEventDTO) -> Result[WebhookAckDTO]:
        """
        Execute reconciliation

        Args:
            event: Parsed gateway event

        Returns:
            Result[WebhookAckDTO]: Acknowledgement; an error only when the
            store failed and the event should be redelivered
        """
        event_type = (event.event or "").strip().lower()
        logger.info(
            f"Gateway event received: event={event_type}, "
            f"checkout={event.checkout_id}, state={event.state}"
        )

        # Step 1: Resolve the invoice by its public number
        if not event.invoice_number:
            logger.warning("Gateway event without invoice_number, ignoring")
            return Return.ok(self._ack(ACK_IGNORED, event_type, detail="missing invoice_number"))

        try:
            invoice = await self.invoice_repo.get_by_invoice_number(event.invoice_number)
        except Exception as e:
            return Return.err(
                Error(
                    code="RECONCILE_FAILED",
                    message="Failed to look up invoice for gateway event",
                    reason=str(e),
                )
            )
        if not invoice:
            logger.warning(f"Gateway event for unknown invoice {event.invoice_number}, ignoring")
            return Return.ok(
                self._ack(ACK_IGNORED, event_type, event.invoice_number, detail="unknown invoice")
            )

        reference = event.reference or event.checkout_id

        # Step 2: Dispatch by event type
        if event_type in PAYMENT_EVENTS:
            amount = money.parse_amount(event.amount)
            if amount is None:
                logger.warning(
                    f"Unusable amount {event.amount!r} for invoice {invoice.invoice_number}, "
                    f"settling outstanding balance"
                )
            if not reference:
                logger.warning(
                    f"Payment event for {invoice.invoice_number} has no reference; "
                    f"redeliveries cannot be detected"
                )
            result = await self.record_payment.execute(
                RecordPaymentCommandDTO(
                    invoice_id=invoice.id,
                    user_id=invoice.user_id,
                    amount=amount,
                    method=PaymentMethod.MOBILE_MONEY,
                    currency=event.currency or invoice.currency,
                    external_reference=reference,
                    phone_number=event.customer_phone or "",
                )
            )
        elif event_type in REVERSAL_EVENTS:
            result = await self.reverse_payment.execute(
                ReversePaymentCommandDTO(
                    invoice_id=invoice.id,
                    user_id=invoice.user_id,
                    external_reference=reference,
                    amount=money.parse_amount(event.amount),
                )
            )
        else:
            logger.info(f"Unhandled gateway event {event_type!r} for {invoice.invoice_number}")
            return Return.ok(
                self._ack(ACK_IGNORED, event_type, invoice.invoice_number, detail="unhandled event")
            )

        # Step 3: Translate the ledger outcome into an acknowledgement
        if result.is_err():
            if result.error.code in STORE_FAILURE_CODES:
                logger.error(
                    f"Ledger failure for {invoice.invoice_number}: {result.error.reason}"
                )
                return Return.err(result.error)
            logger.warning(
                f"Gateway event {event_type} for {invoice.invoice_number} not applied: "
                f"{result.error.code}"
            )
            return Return.ok(
                self._ack(ACK_IGNORED, event_type, invoice.invoice_number, detail=result.error.code)
            )

        recorded: PaymentRecordedDTO = result.value
        payment_id = recorded.payment.id if recorded.payment else None
        if recorded.duplicate:
            return Return.ok(
                self._ack(ACK_DUPLICATE, event_type, invoice.invoice_number, payment_id=payment_id)
            )

        logger.info(
            f"Gateway event {event_type} applied to {invoice.invoice_number}: "
            f"status={recorded.invoice_status}, paid={recorded.paid_amount}"
        )

        # Step 4: Receipt notice (fire-and-forget)
        if event_type in PAYMENT_EVENTS and recorded.payment:
            await self._send_receipt(invoice, recorded)

        return Return.ok(
            self._ack(ACK_RECEIVED, event_type, invoice.invoice_number, payment_id=payment_id)
        )

    async def _send_receipt(self, invoice: Invoice, recorded: PaymentRecordedDTO):
        if not self.notification_service:
            return
        try:
            client = None
            account = None
            if self.client_repo:
                client = await self.client_repo.get_by_id(invoice.client_id)
            if self.account_repo:
                account = await self.account_repo.get_by_id(invoice.user_id)
            payload = NoticePayload.for_invoice(
                NoticeKind.RECEIPT,
                invoice,
                client=client,
                account=account,
                amount=recorded.payment.amount,
            )
            delivered = await self.notification_service.send_receipt_notice(payload)
            if not delivered:
                logger.warning(f"Receipt notice for {invoice.invoice_number} was not delivered")
        except Exception as e:
            logger.error(f"Receipt notice for {invoice.invoice_number} failed: {e}")

    @staticmethod
    def _ack(
        status: str,
        event_type: str,
        invoice_number: Optional[str] = None,
        payment_id: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> WebhookAckDTO:
        return WebhookAckDTO(
            status=status,
            event=event_type,
            invoice_number=invoice_number,
            payment_id=payment_id,
            detail=detail,
        )
