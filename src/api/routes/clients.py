"""Client Routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.invoice_request import CreateClientRequestSchema, UpdateClientRequestSchema
from src.app.use_cases.clients import (
    ClientResponseDTO,
    ClientStatsDTO,
    CreateClient,
    CreateClientCommandDTO,
    DeleteClient,
    GetClient,
    GetClientStats,
    ListClients,
    ListClientsResponseDTO,
    UpdateClient,
    UpdateClientCommandDTO,
)
from src.adapter.repositories import (
    SqlAlchemyClientRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyPaymentRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_current_user_id, get_session
from src.api.error import raise_for_error

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.post("", response_model=ClientResponseDTO, status_code=status.HTTP_201_CREATED)
async def create_client(
    request: CreateClientRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    command = CreateClientCommandDTO(user_id=user_id, **request.model_dump())

    use_case = CreateClient(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        default_currency=ApplicationConfig.DEFAULT_CURRENCY,
        supported_currencies=ApplicationConfig.SUPPORTED_CURRENCIES,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("", response_model=ListClientsResponseDTO)
async def list_clients(
    search: Optional[str] = Query(default=None, description="Matches name, email or phone"),
    limit: int = Query(default=20),
    offset: int = Query(default=0),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    List the caller's clients, newest first, with billed and paid totals.

    `limit` outside 1..100 falls back to 20.
    """
    use_case = ListClients(
        SqlAlchemyClientRepository(session),
        SqlAlchemyInvoiceRepository(session),
    )
    result = await use_case.execute(user_id, search=search, limit=limit, offset=offset)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get("/{client_id}", response_model=ClientResponseDTO)
async def get_client(
    client_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    result = await GetClient(SqlAlchemyClientRepository(session)).execute(client_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.patch("/{client_id}", response_model=ClientResponseDTO)
async def update_client(
    client_id: str,
    request: UpdateClientRequestSchema,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    command = UpdateClientCommandDTO(
        client_id=client_id, user_id=user_id, **request.model_dump(exclude_unset=True)
    )

    use_case = UpdateClient(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        default_currency=ApplicationConfig.DEFAULT_CURRENCY,
        supported_currencies=ApplicationConfig.SUPPORTED_CURRENCIES,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
    client_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """Delete a client; 409 while any invoice still references it."""
    use_case = DeleteClient(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyClientRepository(session),
        SqlAlchemyInvoiceRepository(session),
    )
    result = await use_case.execute(client_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{client_id}/stats", response_model=ClientStatsDTO)
async def get_client_stats(
    client_id: str,
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    use_case = GetClientStats(
        SqlAlchemyClientRepository(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(client_id, user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
