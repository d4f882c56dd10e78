"""Dashboard Routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.use_cases.invoicing import GetDashboard
from src.app.use_cases.invoicing.dtos import DashboardResponseDTO
from src.adapter.repositories import SqlAlchemyClientRepository, SqlAlchemyInvoiceRepository
from src.depends import get_current_user_id, get_session
from src.api.error import raise_for_error

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponseDTO)
async def get_dashboard(
    period: Optional[str] = Query(default="month", description="week, month, quarter or year"),
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_session),
):
    """
    Revenue, outstanding balance and invoice counts for the caller.

    Unknown periods fall back to `month`.
    """
    use_case = GetDashboard(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyClientRepository(session),
        recent_limit=ApplicationConfig.DASHBOARD_RECENT_LIMIT,
    )
    result = await use_case.execute(user_id, period=period)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
