"""Shared fixtures for unit tests"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.domain.client import Client
from src.domain.invoice import Invoice, InvoiceStatus


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_audit_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda entry: entry)
    return repo


@pytest.fixture
def sample_client():
    return Client(
        id="cli_456",
        user_id="acc_123",
        name="Acme Ltd",
        email="billing@acme.test",
        phone="0712345678",
        currency="KES",
    )


@pytest.fixture
def make_invoice():
    """Factory for invoices in a given state (58,000 KES by default)"""

    def _make(
        status: InvoiceStatus = InvoiceStatus.SENT,
        total: str = "58000.00",
        paid_amount: str = "0.00",
        due_date: datetime = None,
        **overrides,
    ) -> Invoice:
        total_value = Decimal(total)
        fields = dict(
            id="inv_1",
            user_id="acc_123",
            client_id="cli_456",
            invoice_number="INV-20240131-1A2B",
            currency="KES",
            subtotal=Decimal("50000.00"),
            tax_rate=Decimal("16"),
            tax_amount=total_value - Decimal("50000.00"),
            discount=Decimal("0.00"),
            total=total_value,
            paid_amount=Decimal(paid_amount),
            status=status,
            due_date=due_date or datetime.utcnow() + timedelta(days=14),
        )
        fields.update(overrides)
        return Invoice(**fields)

    return _make
