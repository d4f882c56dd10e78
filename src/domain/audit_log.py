"""Audit Log Domain Entity

Immutable append-only trail of invoice and payment mutations.
"""

import json
from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Text
from src.domain.base import BaseModel, generate_uuid


class AuditLog(BaseModel, table=True):
    """
    Audit Log - Who changed what

    action examples: invoice.created, invoice.sent, invoice.cancelled,
    payment.received, payment.reversed, invoice.late_fee_applied
    """

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index('ix_audit_logs_entity', 'entity_type', 'entity_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    user_id: Optional[str] = Field(default=None, index=True)

    action: str = Field(
        sa_column=Column(String(64), nullable=False),
    )

    entity_type: str = Field(
        sa_column=Column(String(32), nullable=False),
    )

    entity_id: str = Field(
        sa_column=Column(String(36), nullable=False),
    )

    details: str = Field(
        default="{}",
        sa_column=Column(Text, nullable=False, default="{}"),
        description="JSON blob with action context"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)


def audit_entry(user_id: Optional[str], action: str, entity_type: str,
                entity_id: str, **details) -> AuditLog:
    """Build an AuditLog row; details are stored as JSON"""
    return AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=json.dumps(details, default=str),
    )
