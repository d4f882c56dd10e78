"""Reminder Log Domain Entity

Write-once marker that a collection notice fired for an invoice.
"""

from datetime import datetime
from enum import Enum
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, String
from src.domain.base import BaseModel, generate_uuid


DUE_SOON = "due_soon"


def overdue_reminder_type(days_overdue: int) -> str:
    """Tag for a tier of the escalation ladder (e.g. overdue_7)"""
    return f"overdue_{days_overdue}"


class ReminderDeliveryStatus(str, Enum):
    """Outcome reported by the notification collaborator"""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class ReminderLogEntry(BaseModel, table=True):
    """
    Reminder Log Entry - Idempotency record for the collection scheduler

    Domain Rules:
    - At most one entry per (invoice, reminder_type) within the suppression
      window; the scheduler checks before dispatching
    - Written as pending before dispatch, then marked sent or failed
    - Failed deliveries still suppress re-firing
    """

    __tablename__ = "reminder_logs"
    __table_args__ = (
        Index('ix_reminder_logs_invoice_type', 'invoice_id', 'reminder_type', 'created_at'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    user_id: str = Field(
        description="Owning account ID"
    )

    invoice_id: str = Field(
        sa_column=Column(String(36), ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
    )

    reminder_type: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="due_soon, overdue_1, overdue_7, overdue_14, overdue_30"
    )

    delivery_status: ReminderDeliveryStatus = Field(
        default=ReminderDeliveryStatus.SENT,
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the notice was dispatched"
    )
