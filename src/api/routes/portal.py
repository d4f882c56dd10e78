"""Client Portal Routes

Public, token-addressed view of an invoice. No owner header is required;
the access token is the credential.
"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.use_cases.invoicing import ViewInvoiceByToken
from src.app.use_cases.invoicing.dtos import InvoiceResponseDTO
from src.adapter.repositories import SqlAlchemyInvoiceItemRepository, SqlAlchemyInvoiceRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.api.error import raise_for_error

router = APIRouter(prefix="/portal", tags=["Portal"])


@router.get("/invoices/{access_token}", response_model=InvoiceResponseDTO)
async def view_invoice(
    access_token: str,
    session: AsyncSession = Depends(get_session),
):
    """Open an invoice from its public link; the first view marks it viewed."""
    use_case = ViewInvoiceByToken(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
    )
    result = await use_case.execute(access_token)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
