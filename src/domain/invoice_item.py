"""Invoice Item Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, generate_uuid


class InvoiceItem(BaseModel, table=True):
    """
    Invoice Item - Individual line item within an invoice

    Domain Rules:
    - Each item belongs to exactly one invoice
    - line_total = quantity * unit_price
    - Items are replaced wholesale (delete-all-then-insert), never diffed
    - sort_order preserves the order items were submitted in
    """

    __tablename__ = "invoice_items"
    __table_args__ = (
        Index('ix_invoice_items_invoice_id', 'invoice_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique item identifier (UUID)"
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description"
    )

    quantity: Decimal = Field(
        sa_column=Column(Numeric(18, 4), nullable=False),
        description="Quantity (hours, units, pieces)"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Price per unit, never negative"
    )

    unit: str = Field(
        default="",
        description="Unit label (e.g., 'hours')"
    )

    line_total: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="quantity * unit_price"
    )

    sort_order: int = Field(
        default=0,
        description="Display order within the invoice"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Item creation timestamp"
    )
