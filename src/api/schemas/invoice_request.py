"""Request schemas for Invoicing API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from src.domain.payment import PaymentMethod


class InvoiceItemRequestSchema(BaseModel):
    description: str = Field(default="", max_length=500)
    quantity: Decimal = Field(default=Decimal("1"), description="Must not be negative")
    unit_price: Decimal = Field(..., description="Negative prices are treated as 0")
    unit: str = Field(default="", max_length=50)


class CreateInvoiceRequestSchema(BaseModel):
    """
    Request schema for creating a draft invoice

    Used for POST /invoices endpoint.
    """

    client_id: str = Field(..., min_length=1, description="Client identifier")
    items: List[InvoiceItemRequestSchema] = Field(
        default_factory=list,
        description="Line items (at least one)"
    )
    due_date: Optional[datetime] = Field(default=None, description="Due date (required)")
    currency: Optional[str] = Field(default=None, max_length=3)
    tax_rate: Decimal = Field(default=Decimal("0"), description="Percentage, clamped to [0, 100]")
    discount: Decimal = Field(default=Decimal("0"), description="Flat discount, clamped to >= 0")
    reference: str = Field(default="", max_length=100)
    notes: str = Field(default="")
    terms: str = Field(default="")

    class Config:
        json_schema_extra = {
            "example": {
                "client_id": "cli_456",
                "items": [
                    {"description": "Website build", "quantity": "1", "unit_price": "50000.00"}
                ],
                "due_date": "2024-02-29T00:00:00Z",
                "currency": "KES",
                "tax_rate": "16",
            }
        }


class UpdateInvoiceRequestSchema(BaseModel):
    """Fields omitted from the body are left unchanged"""

    due_date: Optional[datetime] = None
    currency: Optional[str] = Field(default=None, max_length=3)
    tax_rate: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None
    terms: Optional[str] = None


class ReplaceItemsRequestSchema(BaseModel):
    items: List[InvoiceItemRequestSchema] = Field(default_factory=list)


class RecordPaymentRequestSchema(BaseModel):
    """
    Request schema for recording a manual payment

    Used for POST /invoices/{invoice_id}/payments endpoint.
    """

    amount: Decimal = Field(..., gt=0, description="Amount received (must be > 0)")
    method: PaymentMethod = Field(default=PaymentMethod.CASH)
    currency: Optional[str] = Field(default=None, max_length=3)
    reference: Optional[str] = Field(
        default=None,
        max_length=255,
        description="External receipt id; repeated references are not credited twice"
    )
    phone_number: str = Field(default="", max_length=20)


class InitiatePaymentRequestSchema(BaseModel):
    phone: Optional[str] = Field(default=None, max_length=20, description="Defaults to the client's phone")


class CreateClientRequestSchema(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=20)
    currency: Optional[str] = Field(default=None, max_length=3)
    payment_terms: int = Field(default=30, ge=0, le=365)


class UpdateClientRequestSchema(BaseModel):
    """Omitted fields are left unchanged"""
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=20)
    currency: Optional[str] = Field(default=None, max_length=3)
    payment_terms: Optional[int] = Field(default=None, description="Clamped to 0..365; 0 means 30")
