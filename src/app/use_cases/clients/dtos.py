"""Data Transfer Objects for Client Use Cases"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from src.domain.client import Client


class CreateClientCommandDTO(BaseModel):
    user_id: str = Field(..., description="Owning account ID")
    name: str
    email: str = ""
    phone: str = ""
    currency: Optional[str] = Field(default=None, description="Default currency for new invoices")
    payment_terms: int = Field(default=30, description="Default days until due")


class ClientResponseDTO(BaseModel):
    client_id: str
    user_id: str
    name: str
    email: str
    phone: str
    currency: str
    payment_terms: int
    created_at: datetime

    @classmethod
    def from_entity(cls, client: Client) -> "ClientResponseDTO":
        return cls(
            client_id=client.id,
            user_id=client.user_id,
            name=client.name,
            email=client.email,
            phone=client.phone,
            currency=client.currency,
            payment_terms=client.payment_terms,
            created_at=client.created_at,
        )


class UpdateClientCommandDTO(BaseModel):
    """Partial update; None leaves a field unchanged"""
    client_id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    currency: Optional[str] = None
    payment_terms: Optional[int] = None


class ClientSummaryDTO(ClientResponseDTO):
    total_billed: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")


class ListClientsResponseDTO(BaseModel):
    clients: List[ClientSummaryDTO]
    total: int
    limit: int
    offset: int


class ClientStatsDTO(BaseModel):
    client: ClientResponseDTO
    total_invoices: int
    paid_invoices: int
    overdue_invoices: int
    average_payment_days: int = Field(
        default=0, description="Mean whole days from invoice creation to completed payment"
    )
