"""Payment Domain Entity

Append-only record of money received against an invoice.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class PaymentMethod(str, Enum):
    """How the money arrived"""
    MOBILE_MONEY = "mobile_money"
    CARD = "card"
    BANK = "bank"
    CASH = "cash"
    GATEWAY = "gateway"


class PaymentStatus(str, Enum):
    """Payment status types"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class Payment(BaseModel, table=True):
    """
    Payment - Money received against an invoice

    Domain Rules:
    - amount > 0 and never edited after creation
    - external_reference (gateway receipt id) is unique when present and is
      the dedup key for redelivered gateway events
    - a reversal flips status to refunded; corrections are new records
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint('amount > 0', name='payment_amount_positive'),
        Index('ix_payments_invoice_id', 'invoice_id'),
        Index('ix_payments_external_reference', 'external_reference', unique=True),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique payment identifier (UUID)"
    )

    user_id: str = Field(
        description="Owning account ID"
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id"), nullable=False),
        description="Foreign key to Invoice"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Amount received (> 0)"
    )

    currency: str = Field(
        default="KES",
        sa_column=Column(String(3), nullable=False),
    )

    method: PaymentMethod = Field(
        description="Payment method"
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.COMPLETED,
        description="Payment status"
    )

    external_reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Gateway receipt id used for deduplication"
    )

    phone_number: str = Field(default="")

    failure_reason: str = Field(default="")

    completed_at: Optional[datetime] = Field(
        default=None,
        description="When the payment completed"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Record creation timestamp (immutable)"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
    )
