"""ListClients Use Case"""

import logging
from decimal import Decimal
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from .dtos import ClientSummaryDTO, ListClientsResponseDTO

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

ZERO = Decimal("0")


class ListClients:
    """
    Use Case: Page through an owner's clients, newest first

    Business Rules:
    1. search matches name, email or phone, case-insensitively
    2. limit outside 1..100 falls back to 20; negative offsets become 0
    3. Each row carries billed and paid totals over non-cancelled invoices
    """

    def __init__(self, client_repo: ClientRepository, invoice_repo: InvoiceRepository):
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo

    async def execute(
        self,
        user_id: str,
        search: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Result[ListClientsResponseDTO]:
        if limit is None or limit <= 0 or limit > MAX_PAGE_SIZE:
            limit = DEFAULT_PAGE_SIZE
        offset = max(0, offset or 0)
        search = (search or "").strip() or None

        try:
            # Step 1: Page of clients
            clients, total = await self.client_repo.list_by_user(
                user_id, search=search, limit=limit, offset=offset
            )

            # Step 2: Totals for the page in one query
            totals = await self.invoice_repo.totals_by_client(
                user_id, [client.id for client in clients]
            )

            rows = []
            for client in clients:
                billed, paid = totals.get(client.id, (ZERO, ZERO))
                rows.append(
                    ClientSummaryDTO.from_entity(client).model_copy(
                        update={"total_billed": billed, "total_paid": paid}
                    )
                )

            return Return.ok(
                ListClientsResponseDTO(clients=rows, total=total, limit=limit, offset=offset)
            )

        except Exception as e:
            logger.error(f"Listing clients for {user_id} failed: {e}")
            return Return.err(
                Error(
                    code="LIST_CLIENTS_FAILED",
                    message="Failed to list clients",
                    reason=str(e),
                )
            )
