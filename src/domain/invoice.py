"""Invoice Domain Entity

Owns an invoice's money state: subtotal, tax, discount, total, paid amount
and status across its lifecycle.
"""

import secrets
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# Statuses that still carry an outstanding balance
UNSETTLED_STATUSES = (
    InvoiceStatus.SENT,
    InvoiceStatus.VIEWED,
    InvoiceStatus.PARTIALLY_PAID,
    InvoiceStatus.OVERDUE,
)

# Statuses the collection scheduler escalates
COLLECTIBLE_STATUSES = (
    InvoiceStatus.SENT,
    InvoiceStatus.VIEWED,
)


def generate_access_token() -> str:
    """Unguessable token for the public client portal"""
    return secrets.token_urlsafe(32)


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """INV-YYYYMMDD-XXXX with a random hex suffix"""
    now = now or datetime.utcnow()
    return f"INV-{now.strftime('%Y%m%d')}-{secrets.token_hex(2).upper()}"


class Invoice(BaseModel, table=True):
    """
    Invoice - Billable document issued by an owner to one of their clients

    Domain Rules:
    - total == round2(subtotal + tax_amount - discount), never negative
    - paid_amount <= total once status is paid (overpayment is absorbed)
    - Items and fields are mutable only while status is draft
    - paid_amount/status change only through the payment ledger
    - tax_amount/total change after issue only when a late fee is applied,
      which stamps late_fee_applied_at exactly once
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_user_id', 'user_id'),
        Index('ix_invoices_client_id', 'client_id'),
        Index('ix_invoices_status_due_date', 'status', 'due_date'),
        Index('ix_invoices_invoice_number', 'invoice_number', unique=True),
        Index('ix_invoices_access_token', 'access_token', unique=True),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique invoice identifier (UUID)"
    )

    user_id: str = Field(
        description="Owning account ID"
    )

    client_id: str = Field(
        description="Client the invoice is addressed to"
    )

    invoice_number: str = Field(
        default_factory=generate_invoice_number,
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Public invoice number (e.g., INV-20240131-1A2B)"
    )

    reference: str = Field(
        default="",
        description="Free-text reference (PO number, project code)"
    )

    currency: str = Field(
        default="KES",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    subtotal: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Sum of quantity * unit_price over all items"
    )

    tax_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(5, 2), nullable=False),
        description="Tax rate percentage, clamped to [0, 100]"
    )

    tax_amount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Tax amount, including any applied late fee"
    )

    discount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Flat discount, never negative"
    )

    total: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Amount due: subtotal + tax_amount - discount, clamped at 0"
    )

    paid_amount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Net amount received so far"
    )

    late_fee_amount: Decimal = Field(
        default=Decimal("0.00"),
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Late fee folded into tax_amount"
    )

    late_fee_applied_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp when the late fee was applied (at most once)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Invoice status"
    )

    due_date: datetime = Field(
        description="Payment due date (UTC)"
    )

    sent_at: Optional[datetime] = Field(default=None)
    viewed_at: Optional[datetime] = Field(default=None)
    paid_at: Optional[datetime] = Field(default=None)

    notes: str = Field(
        default="",
        sa_column=Column(Text, nullable=False, default=""),
    )

    terms: str = Field(
        default="",
        sa_column=Column(Text, nullable=False, default=""),
    )

    access_token: str = Field(
        default_factory=generate_access_token,
        sa_column=Column(String(64), nullable=False, unique=True),
        description="Unguessable token for the client portal"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def outstanding(self) -> Decimal:
        """total - paid_amount, never negative"""
        balance = self.total - self.paid_amount
        return balance if balance > 0 else Decimal("0.00")

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "4d9b6c6e-3f0a-4e9f-9a51-1f2b2f9c7a10",
                "user_id": "acc_123",
                "client_id": "cli_456",
                "invoice_number": "INV-20240131-1A2B",
                "currency": "KES",
                "subtotal": "50000.00",
                "tax_rate": "16.00",
                "tax_amount": "8000.00",
                "discount": "0.00",
                "total": "58000.00",
                "paid_amount": "0.00",
                "status": "sent",
                "due_date": "2024-02-29T00:00:00Z",
            }
        }
