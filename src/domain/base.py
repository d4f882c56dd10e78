"""Shared base for domain entities"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel


def generate_uuid() -> str:
    """Generate a string UUID4 primary key"""
    return str(uuid.uuid4())


class BaseModel(SQLModel):
    """Base class for all persisted domain entities"""
    pass


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC; naive values are taken as UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
