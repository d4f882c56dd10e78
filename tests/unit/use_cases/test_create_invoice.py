"""Unit tests for CreateInvoice use case

Tests cover:
- Totals computed through the Money Model
- Validation before any store access
- Client scoping and currency fallback
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoicing.create_invoice import CreateInvoice
from src.app.use_cases.invoicing.dtos import CreateInvoiceCommandDTO, InvoiceItemInputDTO


@pytest.fixture
def mock_invoice_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda invoice: invoice)
    repo.invoice_number_exists = AsyncMock(return_value=False)
    return repo


@pytest.fixture
def mock_item_repo():
    repo = MagicMock()
    repo.create_many = AsyncMock(side_effect=lambda items: items)
    return repo


@pytest.fixture
def mock_client_repo(sample_client):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=sample_client)
    return repo


@pytest.fixture
def create_use_case(mock_uow, mock_invoice_repo, mock_item_repo, mock_client_repo, mock_audit_repo):
    return CreateInvoice(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        item_repo=mock_item_repo,
        client_repo=mock_client_repo,
        audit_repo=mock_audit_repo,
    )


def command(**overrides) -> CreateInvoiceCommandDTO:
    fields = dict(
        user_id="acc_123",
        client_id="cli_456",
        items=[InvoiceItemInputDTO(description="Website build", quantity=Decimal("1"),
                                   unit_price=Decimal("50000"))],
        due_date=datetime.utcnow() + timedelta(days=30),
        tax_rate=Decimal("16"),
    )
    fields.update(overrides)
    return CreateInvoiceCommandDTO(**fields)


@pytest.mark.asyncio
class TestCreateInvoiceSuccess:

    async def test_creates_draft_with_computed_totals(
        self, create_use_case, mock_invoice_repo, mock_item_repo, mock_audit_repo, mock_uow
    ):
        """
        Given: One 50,000 item at 16% tax
        When: CreateInvoice is executed
        Then: Draft invoice totals 58,000 with nothing paid
        """
        result = await create_use_case.execute(command())

        assert result.is_ok()
        invoice = result.value
        assert invoice.status == "draft"
        assert invoice.subtotal == Decimal("50000.00")
        assert invoice.tax_amount == Decimal("8000.00")
        assert invoice.total == Decimal("58000.00")
        assert invoice.paid_amount == Decimal("0")
        assert invoice.outstanding == Decimal("58000.00")
        assert invoice.currency == "KES"
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.access_token
        assert len(invoice.items) == 1
        assert invoice.items[0].line_total == Decimal("50000.00")

        mock_invoice_repo.create.assert_called_once()
        mock_item_repo.create_many.assert_called_once()
        mock_audit_repo.create.assert_called_once()
        assert mock_audit_repo.create.call_args[0][0].action == "invoice.created"
        mock_uow.commit.assert_called_once()

    async def test_items_keep_submission_order_and_normalization(self, create_use_case):
        items = [
            InvoiceItemInputDTO(description="", quantity=Decimal("2"), unit_price=Decimal("-5")),
            InvoiceItemInputDTO(description="Hosting", quantity=Decimal("3"), unit_price=Decimal("10")),
        ]

        result = await create_use_case.execute(command(items=items, tax_rate=Decimal("0")))

        assert result.is_ok()
        created = result.value.items
        assert [i.sort_order for i in created] == [0, 1]
        assert created[0].description == "Item"
        assert created[0].unit_price == Decimal("0")
        assert result.value.total == Decimal("30.00")

    async def test_unknown_currency_falls_back_to_default(self, create_use_case):
        result = await create_use_case.execute(command(currency="XYZ"))

        assert result.is_ok()
        assert result.value.currency == "KES"

    async def test_retries_taken_invoice_number(self, create_use_case, mock_invoice_repo):
        mock_invoice_repo.invoice_number_exists = AsyncMock(side_effect=[True, False])

        result = await create_use_case.execute(command())

        assert result.is_ok()
        assert mock_invoice_repo.invoice_number_exists.call_count == 2


@pytest.mark.asyncio
class TestCreateInvoiceValidation:

    async def test_empty_items_rejected_before_store_access(
        self, create_use_case, mock_client_repo, mock_invoice_repo
    ):
        result = await create_use_case.execute(command(items=[]))

        assert result.is_err()
        assert result.error.code == "EMPTY_ITEMS"
        mock_client_repo.get_by_id.assert_not_called()
        mock_invoice_repo.create.assert_not_called()

    async def test_missing_due_date(self, create_use_case):
        result = await create_use_case.execute(command(due_date=None))

        assert result.error.code == "MISSING_DUE_DATE"

    async def test_due_date_in_past(self, create_use_case, mock_invoice_repo):
        result = await create_use_case.execute(
            command(due_date=datetime.utcnow() - timedelta(days=3))
        )

        assert result.error.code == "DUE_DATE_IN_PAST"
        mock_invoice_repo.create.assert_not_called()

    async def test_negative_quantity_rejected(self, create_use_case, mock_invoice_repo, mock_uow):
        items = [InvoiceItemInputDTO(description="Refund", quantity=Decimal("-1"),
                                     unit_price=Decimal("100"))]

        result = await create_use_case.execute(command(items=items))

        assert result.error.code == "INVALID_QUANTITY"
        mock_invoice_repo.create.assert_not_called()
        mock_uow.commit.assert_not_called()

    async def test_client_of_another_owner_is_not_found(self, create_use_case, mock_client_repo):
        mock_client_repo.get_by_id = AsyncMock(return_value=None)

        result = await create_use_case.execute(command(user_id="acc_other"))

        assert result.error.code == "CLIENT_NOT_FOUND"
        mock_client_repo.get_by_id.assert_called_once_with("cli_456", user_id="acc_other")


@pytest.mark.asyncio
class TestCreateInvoiceErrors:

    async def test_store_failure_rolls_back(self, create_use_case, mock_invoice_repo, mock_uow):
        mock_invoice_repo.create = AsyncMock(side_effect=Exception("Database connection lost"))

        result = await create_use_case.execute(command())

        assert result.is_err()
        assert result.error.code == "CREATE_INVOICE_FAILED"
        assert "Database connection lost" in result.error.reason
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()
