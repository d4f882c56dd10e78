"""GetDashboard Use Case

Stateless read model over invoices and clients. Reads take no locks and
may lag in-flight writes.
"""

import calendar
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.client_repository import ClientRepository
from src.domain.invoice import InvoiceStatus, UNSETTLED_STATUSES
from src.domain import money
from .dtos import DashboardResponseDTO, InvoiceSummaryDTO

PERIOD_MONTHS = {"month": 1, "quarter": 3, "year": 12}
DEFAULT_PERIOD = "month"


def months_ago(now: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the month's length"""
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    if period == "week":
        return now - timedelta(days=7)
    return months_ago(now, PERIOD_MONTHS.get(period, 1))


class GetDashboard:
    """
    Use Case: Revenue, outstanding balance and counts for an owner

    - total_revenue: sum of totals of paid invoices, all time
    - revenue_this_period: same, restricted to paid_at within the period
    - outstanding: sum of (total - paid_amount) over unsettled statuses
    - recent_invoices: newest first, bounded
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        client_repo: ClientRepository,
        recent_limit: int = 5,
    ):
        self.invoice_repo = invoice_repo
        self.client_repo = client_repo
        self.recent_limit = recent_limit

    async def execute(
        self, user_id: str, period: Optional[str] = None, now: Optional[datetime] = None
    ) -> Result[DashboardResponseDTO]:
        now = now or datetime.utcnow()
        period = period if period in ("week", "month", "quarter", "year") else DEFAULT_PERIOD
        start = period_start(period, now)

        try:
            total_revenue = await self.invoice_repo.sum_total(user_id, InvoiceStatus.PAID)
            period_revenue = await self.invoice_repo.sum_total(
                user_id, InvoiceStatus.PAID, paid_since=start
            )
            outstanding = await self.invoice_repo.sum_outstanding(user_id, UNSETTLED_STATUSES)
            counts = await self.invoice_repo.count_by_status(user_id)
            total_clients = await self.client_repo.count_by_user(user_id)
            recent = await self.invoice_repo.get_recent(user_id, limit=self.recent_limit)

            status_counts = {status.value: counts.get(status, 0) for status in InvoiceStatus}

            return Return.ok(
                DashboardResponseDTO(
                    period=period,
                    period_start=start,
                    total_revenue=money.round2(total_revenue),
                    revenue_this_period=money.round2(period_revenue),
                    outstanding=money.round2(max(money.ZERO, outstanding)),
                    status_counts=status_counts,
                    draft_count=status_counts[InvoiceStatus.DRAFT.value],
                    sent_count=status_counts[InvoiceStatus.SENT.value],
                    paid_count=status_counts[InvoiceStatus.PAID.value],
                    overdue_count=status_counts[InvoiceStatus.OVERDUE.value],
                    total_clients=total_clients,
                    total_invoices=sum(status_counts.values()),
                    recent_invoices=[InvoiceSummaryDTO.from_entity(i) for i in recent],
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_DASHBOARD_FAILED",
                    message="Failed to build dashboard",
                    reason=str(e),
                )
            )
