"""Notification Service Interface

Defines the contract for dispatching collection notices. The engine decides
what to send and when; implementations own transport and retries.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, TYPE_CHECKING
from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from src.domain.account import Account
    from src.domain.client import Client
    from src.domain.invoice import Invoice


class NoticeKind(str, Enum):
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"
    RECEIPT = "receipt"


class NoticePayload(BaseModel):
    """Flat payload handed to the notification collaborator"""

    kind: NoticeKind
    reminder_type: Optional[str] = Field(
        default=None,
        description="Scheduler tag (due_soon, overdue_7, ...)"
    )
    company_name: str = ""
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    invoice_number: str
    amount: Decimal = Field(..., description="Amount the notice refers to")
    currency: str
    due_date: datetime
    days_overdue: int = 0

    @classmethod
    def for_invoice(
        cls,
        kind: NoticeKind,
        invoice: "Invoice",
        client: Optional["Client"] = None,
        account: Optional["Account"] = None,
        amount: Optional[Decimal] = None,
        reminder_type: Optional[str] = None,
        days_overdue: int = 0,
    ) -> "NoticePayload":
        """Flatten an invoice and its parties; amount defaults to the outstanding balance"""
        return cls(
            kind=kind,
            reminder_type=reminder_type,
            company_name=account.company_name if account else "",
            client_name=client.name if client else "",
            client_email=client.email if client else "",
            client_phone=client.phone if client else "",
            invoice_number=invoice.invoice_number,
            amount=invoice.outstanding if amount is None else amount,
            currency=invoice.currency,
            due_date=invoice.due_date,
            days_overdue=days_overdue,
        )


class NotificationService(ABC):
    """
    Abstract notification service for collection notices

    Implementations can send notifications via:
    - Webhook (HTTP POST)
    - Email
    - WhatsApp / SMS
    """

    @abstractmethod
    async def send_due_soon_notice(self, payload: NoticePayload) -> bool:
        """
        Notify a client that an invoice is due soon

        Returns:
            True if the notice was handed off successfully, False otherwise
        """
        pass

    @abstractmethod
    async def send_overdue_notice(self, payload: NoticePayload) -> bool:
        """Notify a client that an invoice is overdue (one ladder tier)"""
        pass

    @abstractmethod
    async def send_receipt_notice(self, payload: NoticePayload) -> bool:
        """Confirm a received payment to the client"""
        pass
