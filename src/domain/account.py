"""Account Domain Entity

The business that owns clients and invoices.
"""

from datetime import datetime
from sqlmodel import Field
from src.domain.base import BaseModel, generate_uuid


class Account(BaseModel, table=True):
    """
    Account - Owner of clients and invoices

    Only the fields the billing engine reads are modeled here; identity and
    credentials live with the authentication service.
    """

    __tablename__ = "accounts"

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
    )

    email: str = Field(default="", index=True)

    company_name: str = Field(default="")

    phone: str = Field(default="")

    created_at: datetime = Field(default_factory=datetime.utcnow)
