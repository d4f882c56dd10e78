"""Data Transfer Objects for Invoicing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_item import InvoiceItem
from src.domain.payment import Payment, PaymentMethod, PaymentStatus
from src.domain.reminder_log import ReminderDeliveryStatus, ReminderLogEntry


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class InvoiceItemInputDTO(BaseModel):
    """
    One line item as submitted by the caller

    Quantity sign and unit-price sign are normalized by the Money Model,
    not here, so the same rules apply to creation and replacement.
    """

    description: str = Field(default="", description="Line item description")
    quantity: Decimal = Field(default=Decimal("1"), description="Quantity (must not be negative)")
    unit_price: Decimal = Field(..., description="Price per unit (negative is coerced to 0)")
    unit: str = Field(default="", description="Unit label, e.g. 'hours'")


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for creating a draft invoice

    Used as input to CreateInvoice use case.
    """

    user_id: str = Field(..., description="Owning account ID")
    client_id: str = Field(..., description="Client ID (must belong to the owner)")
    items: List[InvoiceItemInputDTO] = Field(default_factory=list)
    due_date: Optional[datetime] = Field(default=None, description="Due date (required, not in the past)")
    currency: Optional[str] = Field(default=None, description="ISO 4217 code; unknown codes fall back to the default")
    tax_rate: Decimal = Field(default=Decimal("0"), description="Tax percentage, clamped to [0, 100]")
    discount: Decimal = Field(default=Decimal("0"), description="Flat discount, clamped to >= 0")
    reference: str = Field(default="")
    notes: str = Field(default="")
    terms: str = Field(default="")

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "acc_123",
                "client_id": "cli_456",
                "items": [
                    {"description": "Website build", "quantity": "1", "unit_price": "50000.00"}
                ],
                "due_date": "2024-02-29T00:00:00Z",
                "currency": "KES",
                "tax_rate": "16",
                "discount": "0",
            }
        }


class UpdateInvoiceCommandDTO(BaseModel):
    """Partial update of a draft invoice's fields; None means unchanged"""

    invoice_id: str
    user_id: str
    due_date: Optional[datetime] = None
    reference: Optional[str] = None
    currency: Optional[str] = None
    tax_rate: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class ReplaceInvoiceItemsCommandDTO(BaseModel):
    invoice_id: str
    user_id: str
    items: List[InvoiceItemInputDTO] = Field(default_factory=list)


class RecordPaymentCommandDTO(BaseModel):
    """
    Command DTO for recording a payment against an invoice

    amount=None settles the outstanding balance as read under the invoice
    lock (used by the gateway reconciler when the event amount is unusable).
    """

    invoice_id: str = Field(..., description="Invoice ID")
    user_id: str = Field(..., description="Owning account ID")
    amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Amount received (> 0); None settles the outstanding balance"
    )
    method: PaymentMethod = Field(default=PaymentMethod.CASH)
    currency: Optional[str] = Field(default=None, description="Defaults to the invoice currency")
    external_reference: Optional[str] = Field(
        default=None,
        description="Gateway receipt id; repeated references are not credited twice"
    )
    phone_number: str = Field(default="")


class ReversePaymentCommandDTO(BaseModel):
    invoice_id: str
    user_id: str
    external_reference: Optional[str] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)


class InitiatePaymentCommandDTO(BaseModel):
    invoice_id: str
    user_id: str
    phone_number: Optional[str] = None


class GatewayWebhookEventDTO(BaseModel):
    """
    Inbound gateway event

    invoice_number is the only link to our data; the gateway never sees
    internal ids. amount is free text; unparsable values become None.
    Every field arrives as whatever JSON type the gateway chose and is
    coerced to text; a null event reads as an empty one.
    """

    event: str = Field(default="")
    invoice_number: Optional[str] = None
    checkout_id: Optional[str] = None
    state: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    reference: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    @field_validator(
        "amount", "invoice_number", "reference", "checkout_id", "state", "currency",
        "customer_email", "customer_phone",
        mode="before",
    )
    @classmethod
    def stringify(cls, v):
        """Gateways send some of these as JSON numbers"""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("event", mode="before")
    @classmethod
    def event_name(cls, v):
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    class Config:
        json_schema_extra = {
            "example": {
                "event": "payment_successful",
                "invoice_number": "INV-20240131-1A2B",
                "checkout_id": "chk_789",
                "state": "COMPLETE",
                "amount": "30000.00",
                "currency": "KES",
                "reference": "QWE123RTY",
            }
        }


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class InvoiceItemDTO(BaseModel):
    id: str
    description: str
    quantity: Decimal
    unit_price: Decimal
    unit: str
    line_total: Decimal
    sort_order: int

    @classmethod
    def from_entity(cls, item: InvoiceItem) -> "InvoiceItemDTO":
        return cls(
            id=item.id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            unit=item.unit,
            line_total=item.line_total,
            sort_order=item.sort_order,
        )


class PaymentDTO(BaseModel):
    id: str
    invoice_id: str
    amount: Decimal
    currency: str
    method: str
    status: str
    external_reference: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            currency=payment.currency,
            method=PaymentMethod(payment.method).value,
            status=PaymentStatus(payment.status).value,
            external_reference=payment.external_reference,
            completed_at=payment.completed_at,
            created_at=payment.created_at,
        )


class InvoiceSummaryDTO(BaseModel):
    """Invoice without items or payments, for lists and the dashboard"""

    invoice_id: str
    invoice_number: str
    client_id: str
    status: str
    currency: str
    total: Decimal
    paid_amount: Decimal
    outstanding: Decimal
    due_date: datetime
    created_at: datetime

    @classmethod
    def from_entity(cls, invoice: Invoice) -> "InvoiceSummaryDTO":
        return cls(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            client_id=invoice.client_id,
            status=InvoiceStatus(invoice.status).value,
            currency=invoice.currency,
            total=invoice.total,
            paid_amount=invoice.paid_amount,
            outstanding=invoice.outstanding,
            due_date=invoice.due_date,
            created_at=invoice.created_at,
        )


class InvoiceResponseDTO(BaseModel):
    """
    Response DTO for invoice operations

    Returned by CreateInvoice, UpdateInvoice, SendInvoice, CancelInvoice,
    GetInvoice and the portal lookup.
    """

    invoice_id: str
    user_id: str
    client_id: str
    invoice_number: str
    reference: str
    status: str
    currency: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    late_fee_amount: Decimal
    total: Decimal
    paid_amount: Decimal
    outstanding: Decimal
    due_date: datetime
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    late_fee_applied_at: Optional[datetime] = None
    notes: str = ""
    terms: str = ""
    access_token: str
    items: List[InvoiceItemDTO] = Field(default_factory=list)
    payments: List[PaymentDTO] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(
        cls,
        invoice: Invoice,
        items: Optional[List[InvoiceItem]] = None,
        payments: Optional[List[Payment]] = None,
    ) -> "InvoiceResponseDTO":
        return cls(
            invoice_id=invoice.id,
            user_id=invoice.user_id,
            client_id=invoice.client_id,
            invoice_number=invoice.invoice_number,
            reference=invoice.reference,
            status=InvoiceStatus(invoice.status).value,
            currency=invoice.currency,
            subtotal=invoice.subtotal,
            tax_rate=invoice.tax_rate,
            tax_amount=invoice.tax_amount,
            discount=invoice.discount,
            late_fee_amount=invoice.late_fee_amount,
            total=invoice.total,
            paid_amount=invoice.paid_amount,
            outstanding=invoice.outstanding,
            due_date=invoice.due_date,
            sent_at=invoice.sent_at,
            viewed_at=invoice.viewed_at,
            paid_at=invoice.paid_at,
            late_fee_applied_at=invoice.late_fee_applied_at,
            notes=invoice.notes,
            terms=invoice.terms,
            access_token=invoice.access_token,
            items=[InvoiceItemDTO.from_entity(i) for i in (items or [])],
            payments=[PaymentDTO.from_entity(p) for p in (payments or [])],
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
        )


class SendInvoiceResponseDTO(BaseModel):
    """
    Response DTO for SendInvoice

    already_sent=True is the non-fatal "already sent" report: nothing changed.
    """

    invoice: InvoiceResponseDTO
    already_sent: bool = False


class ListInvoicesResponseDTO(BaseModel):
    invoices: List[InvoiceSummaryDTO]
    total: int
    limit: int
    offset: int


class PaymentRecordedDTO(BaseModel):
    """
    Response DTO for RecordPayment and ReversePayment

    duplicate=True means the external reference was already applied and
    nothing changed.
    """

    payment: Optional[PaymentDTO] = None
    invoice_id: str
    invoice_number: str
    invoice_status: str
    total: Decimal
    paid_amount: Decimal
    outstanding: Decimal
    paid_at: Optional[datetime] = None
    duplicate: bool = False


class WebhookAckDTO(BaseModel):
    """Acknowledgement returned to the gateway (always HTTP 200)"""

    status: str = Field(..., description="received, ignored or duplicate")
    event: str = ""
    invoice_number: Optional[str] = None
    payment_id: Optional[str] = None
    detail: Optional[str] = None


class PaymentInitiationResultDTO(BaseModel):
    invoice_id: str
    invoice_number: str
    amount: Decimal
    currency: str
    status: str = "pending"
    checkout_id: Optional[str] = None
    message: str


class ReminderLogDTO(BaseModel):
    id: str
    invoice_id: str
    reminder_type: str
    delivery_status: str
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: ReminderLogEntry) -> "ReminderLogDTO":
        return cls(
            id=entry.id,
            invoice_id=entry.invoice_id,
            reminder_type=entry.reminder_type,
            delivery_status=ReminderDeliveryStatus(entry.delivery_status).value,
            created_at=entry.created_at,
        )


class InvoiceCollectionOutcomeDTO(BaseModel):
    """What one scheduler unit of work did for a single invoice"""

    invoice_id: str
    invoice_number: str = ""
    skipped: bool = False
    reminder_type: Optional[str] = None
    notice_delivered: Optional[bool] = None
    late_fee: Optional[Decimal] = None


class CollectionRunResultDTO(BaseModel):
    """Summary of one scheduler tick"""

    invoices_checked: int = 0
    due_soon_sent: int = 0
    overdue_sent: int = 0
    late_fees_applied: int = 0
    marked_overdue: int = 0
    failures: int = 0
    run_time: datetime
    execution_time_ms: int = 0


class DashboardResponseDTO(BaseModel):
    """
    Response DTO for GetDashboard

    Read model only; may lag in-flight writes.
    """

    period: str
    period_start: datetime
    total_revenue: Decimal
    revenue_this_period: Decimal
    outstanding: Decimal
    status_counts: Dict[str, int]
    draft_count: int
    sent_count: int
    paid_count: int
    overdue_count: int
    total_clients: int
    total_invoices: int
    recent_invoices: List[InvoiceSummaryDTO]
