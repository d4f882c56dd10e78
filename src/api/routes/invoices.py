"""Invoice API Routes

FastAPI routes for the invoice lifecycle and the payment ledger.
"""

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.invoice_request import (
    CreateInvoiceRequestSchema,
    InitiatePaymentRequestSchema,
    RecordPaymentRequestSchema,
    ReplaceItemsRequestSchema,
    UpdateInvoiceRequestSchema,
)
from src.app.use_cases.invoicing import (
    CancelInvoice,
    CreateInvoice,
    GetInvoice,
    GetReminderHistory,
    InitiatePayment,
    ListInvoices,
    RecordPayment,
    ReplaceInvoiceItems,
    SendInvoice,
    UpdateInvoice,
)
from src.app.use_cases.invoicing.dtos import (
    CreateInvoiceCommandDTO,
    InitiatePaymentCommandDTO,
    InvoiceItemInputDTO,
    InvoiceResponseDTO,
    ListInvoicesResponseDTO,
    PaymentInitiationResultDTO,
    PaymentRecordedDTO,
    RecordPaymentCommandDTO,
    ReminderLogDTO,
    ReplaceInvoiceItemsCommandDTO,
    SendInvoiceResponseDTO,
    UpdateInvoiceCommandDTO,
)
from src.app.services.payment_gateway import PaymentGateway
from src.adapter.repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyInvoiceItemRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
    SqlAlchemyReminderLogRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.invoice import InvoiceStatus
from src.depends import get_current_user_id, get_payment_gateway, get_session
from src.api.error import raise_for_error

router = APIRouter(prefix="/invoices", tags=["Invoices"])

NOT_FOUND_RESPONSE = {
    "description": "Invoice not found (or owned by another account)",
    "content": {
        "application/json": {
            "example": {
                "error": {
                    "code": "INVOICE_NOT_FOUND",
                    "message": "Invoice 4d9b6c6e-3f0a-4e9f-9a51-1f2b2f9c7a10 not found"
                }
            }
        }
    }
}


def _conflict_response(code: str, message: str) -> dict:
    return {
        "description": "Invoice status forbids the operation",
        "content": {"application/json": {"example": {"error": {"code": code, "message": message}}}},
    }


def _items(schema_items) -> List[InvoiceItemInputDTO]:
    return [InvoiceItemInputDTO(**item.model_dump()) for item in schema_items]


@router.post(
    "",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Validation failed",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "EMPTY_ITEMS",
                            "message": "Invoice must have at least one item"
                        }
                    }
                }
            }
        },
        404: {
            "description": "Client not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {"code": "CLIENT_NOT_FOUND", "message": "Client cli_456 not found"}
                    }
                }
            }
        },
    }
)
async def create_invoice(
    request: CreateInvoiceRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Create a draft invoice.

    Totals are computed server-side: subtotal = sum(quantity * unit_price),
    tax = subtotal * tax_rate / 100, total = max(0, subtotal + tax - discount).
    Unknown currency codes fall back to the default currency.

    **Returns:**
    - 201: Draft invoice created
    - 400: Empty items, negative quantity, missing or past due date
    - 404: Client not found
    """
    command = CreateInvoiceCommandDTO(
        user_id=user_id,
        client_id=request.client_id,
        items=_items(request.items),
        due_date=request.due_date,
        currency=request.currency,
        tax_rate=request.tax_rate,
        discount=request.discount,
        reference=request.reference,
        notes=request.notes,
        terms=request.terms,
    )

    use_case = CreateInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyAuditLogRepository(session),
        default_currency=ApplicationConfig.DEFAULT_CURRENCY,
        supported_currencies=ApplicationConfig.SUPPORTED_CURRENCIES,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "",
    response_model=ListInvoicesResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_invoices(
    status_filter: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    client_id: Optional[str] = Query(default=None),
    created_from: Optional[datetime] = Query(default=None),
    created_to: Optional[datetime] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Matches invoice number or reference"),
    limit: int = Query(default=20),
    offset: int = Query(default=0),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    List the caller's invoices, newest first.

    `limit` is clamped to 1..100 (default 20).
    """
    use_case = ListInvoices(SqlAlchemyInvoiceRepository(session))
    result = await use_case.execute(
        user_id,
        status=status_filter,
        client_id=client_id,
        created_from=created_from,
        created_to=created_to,
        search=search,
        limit=limit,
        offset=offset,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_invoice(
    invoice_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Get an invoice with its items and payments."""
    use_case = GetInvoice(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(invoice_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={
        404: NOT_FOUND_RESPONSE,
        409: _conflict_response("CANNOT_EDIT_INVOICE", "Only draft invoices can be edited"),
    },
)
async def update_invoice(
    invoice_id: str,
    request: UpdateInvoiceRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Edit a draft invoice's fields; totals are recomputed."""
    command = UpdateInvoiceCommandDTO(
        invoice_id=invoice_id,
        user_id=user_id,
        **request.model_dump(exclude_unset=True),
    )

    use_case = UpdateInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        default_currency=ApplicationConfig.DEFAULT_CURRENCY,
        supported_currencies=ApplicationConfig.SUPPORTED_CURRENCIES,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.put(
    "/{invoice_id}/items",
    response_model=InvoiceResponseDTO,
    responses={
        404: NOT_FOUND_RESPONSE,
        409: _conflict_response("CANNOT_EDIT_INVOICE", "Only draft invoices can be edited"),
    },
)
async def replace_invoice_items(
    invoice_id: str,
    request: ReplaceItemsRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Replace all items of a draft invoice and recompute totals."""
    command = ReplaceInvoiceItemsCommandDTO(
        invoice_id=invoice_id,
        user_id=user_id,
        items=_items(request.items),
    )

    use_case = ReplaceInvoiceItems(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{invoice_id}/send",
    response_model=SendInvoiceResponseDTO,
    responses={
        404: NOT_FOUND_RESPONSE,
        409: _conflict_response("CANNOT_SEND_CANCELLED", "Cannot send a cancelled invoice"),
    },
)
async def send_invoice(
    invoice_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Mark an invoice as sent.

    An invoice that was already sent is reported with `already_sent: true`
    and left unchanged.
    """
    use_case = SendInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(invoice_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{invoice_id}/cancel",
    response_model=InvoiceResponseDTO,
    responses={
        404: NOT_FOUND_RESPONSE,
        409: _conflict_response("CANNOT_CANCEL_PAID", "Cannot cancel a paid invoice"),
    },
)
async def cancel_invoice(
    invoice_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Cancel an invoice. Irreversible; paid invoices cannot be cancelled."""
    use_case = CancelInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(invoice_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{invoice_id}/payments",
    response_model=PaymentRecordedDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: NOT_FOUND_RESPONSE,
        409: _conflict_response("INVOICE_CANCELLED", "Invoice is cancelled"),
    },
)
async def record_payment(
    invoice_id: str,
    request: RecordPaymentRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Record a payment received outside the gateway (cash, bank, card).

    Overpayment settles the invoice with paid_amount capped at total.
    """
    command = RecordPaymentCommandDTO(
        invoice_id=invoice_id,
        user_id=user_id,
        amount=request.amount,
        method=request.method,
        currency=request.currency,
        external_reference=request.reference,
        phone_number=request.phone_number,
    )

    use_case = RecordPayment(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
        SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/{invoice_id}/pay",
    response_model=PaymentInitiationResultDTO,
    responses={
        404: NOT_FOUND_RESPONSE,
        409: _conflict_response("INVOICE_ALREADY_PAID", "Invoice already paid"),
    },
)
async def initiate_payment(
    invoice_id: str,
    request: Optional[InitiatePaymentRequestSchema] = None,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
    gateway: Optional[PaymentGateway] = Depends(get_payment_gateway),
):
    """
    Push a mobile-money payment prompt for the outstanding balance.

    The payment is recorded only when the gateway's webhook arrives.
    """
    command = InitiatePaymentCommandDTO(
        invoice_id=invoice_id,
        user_id=user_id,
        phone_number=request.phone if request else None,
    )

    use_case = InitiatePayment(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyClientRepository(session),
        gateway=gateway,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/{invoice_id}/reminders",
    response_model=List[ReminderLogDTO],
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_reminder_history(
    invoice_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Collection notices fired for an invoice, newest first."""
    use_case = GetReminderHistory(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyReminderLogRepository(session),
    )
    result = await use_case.execute(invoice_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
