"""Client Domain Entity

Customer of an account; invoices are addressed to clients.
"""

from datetime import datetime
from sqlmodel import Field, Column, Index
from sqlalchemy import String
from src.domain.base import BaseModel, generate_uuid


class Client(BaseModel, table=True):
    """
    Client - Billable customer scoped to one owning account

    Domain Rules:
    - Visible only to its owner (user_id)
    - currency is the default for new invoices
    - payment_terms is the default number of days until due, clamped to
      [0, 365] with 0 meaning the 30 day default
    - A client with invoices cannot be deleted
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index('ix_clients_user_id', 'user_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    user_id: str = Field(
        description="Owning account ID"
    )

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
    )

    email: str = Field(default="")

    phone: str = Field(default="")

    currency: str = Field(
        default="KES",
        sa_column=Column(String(3), nullable=False),
    )

    payment_terms: int = Field(
        default=30,
        description="Default days until due"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)


DEFAULT_PAYMENT_TERMS = 30
MAX_PAYMENT_TERMS = 365


def clamp_payment_terms(terms: int) -> int:
    """Days until due: 0 means the default, negatives 0, capped at a year"""
    if terms < 0:
        return 0
    if terms == 0:
        return DEFAULT_PAYMENT_TERMS
    return min(terms, MAX_PAYMENT_TERMS)
