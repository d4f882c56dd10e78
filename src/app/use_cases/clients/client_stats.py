"""GetClientStats Use Case"""

from datetime import datetime, timedelta
from typing import Iterable, Tuple
from libs.result import Result, Return, Error
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.invoice import InvoiceStatus
from .dtos import ClientResponseDTO, ClientStatsDTO


def average_payment_days(timings: Iterable[Tuple[datetime, datetime]]) -> int:
    """Mean days from invoice creation to payment, truncated (0 when none)"""
    timings = list(timings)
    if not timings:
        return 0
    total_days = sum(
        (completed_at - created_at) / timedelta(days=1) for created_at, completed_at in timings
    )
    return int(total_days / len(timings))


class GetClientStats:
    """
    Use Case: Invoice counts and payment speed for one client

    average_payment_days covers completed payments only; refunded ones
    are left out.
    """

    def __init__(
        self,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(self, client_id: str, user_id: str) -> Result[ClientStatsDTO]:
        try:
            client = await self.client_repo.get_by_id(client_id, user_id=user_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found")
                )

            total = await self.invoice_repo.count_by_client(client_id, user_id)
            paid = await self.invoice_repo.count_by_client(
                client_id, user_id, status=InvoiceStatus.PAID
            )
            overdue = await self.invoice_repo.count_by_client(
                client_id, user_id, status=InvoiceStatus.OVERDUE
            )
            timings = await self.payment_repo.get_completion_times_by_client(client_id, user_id)

            return Return.ok(
                ClientStatsDTO(
                    client=ClientResponseDTO.from_entity(client),
                    total_invoices=total,
                    paid_invoices=paid,
                    overdue_invoices=overdue,
                    average_payment_days=average_payment_days(timings),
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="CLIENT_STATS_FAILED",
                    message="Failed to compute client statistics",
                    reason=str(e),
                )
            )
