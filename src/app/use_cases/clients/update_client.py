"""UpdateClient and DeleteClient Use Cases"""

import logging
from typing import Iterable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_repository import ClientRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.client import clamp_payment_terms
from src.domain import money
from .dtos import ClientResponseDTO, UpdateClientCommandDTO

logger = logging.getLogger(__name__)


class UpdateClient:
    """
    Use Case: Change a client's contact details or invoice defaults

    Business Rules:
    1. Only fields present in the command change
    2. A name, when given, must not be blank
    3. Currency is normalized and payment terms clamped as on creation
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        default_currency: str = money.DEFAULT_CURRENCY,
        supported_currencies: Iterable[str] = money.SUPPORTED_CURRENCIES,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.default_currency = default_currency
        self.supported_currencies = tuple(supported_currencies)

    async def execute(self, command: UpdateClientCommandDTO) -> Result[ClientResponseDTO]:
        try:
            # Step 1: Load in owner scope
            client = await self.client_repo.get_by_id(command.client_id, user_id=command.user_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {command.client_id} not found")
                )

            # Step 2: Apply the given fields
            if command.name is not None:
                name = command.name.strip()
                if not name:
                    return Return.err(
                        Error(code="INVALID_CLIENT_NAME", message="Client name cannot be empty")
                    )
                client.name = name
            if command.email is not None:
                client.email = command.email.strip()
            if command.phone is not None:
                client.phone = command.phone.strip()
            if command.currency is not None:
                client.currency = money.normalize_currency(
                    command.currency,
                    default=self.default_currency,
                    supported=self.supported_currencies,
                )
            if command.payment_terms is not None:
                client.payment_terms = clamp_payment_terms(command.payment_terms)

            # Step 3: Persist
            client = await self.client_repo.update(client)
            await self.uow.commit()

            logger.info(f"Client {client.id} updated")
            return Return.ok(ClientResponseDTO.from_entity(client))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_CLIENT_FAILED",
                    message="Failed to update client",
                    reason=str(e),
                )
            )


class DeleteClient:
    """
    Use Case: Remove a client that was never invoiced

    Any invoice, draft or cancelled included, keeps the client alive.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        client_repo: ClientRepository,
        invoice_repo: InvoiceRepository,
    ):
        self.uow = uow
        self.client_repo = client_repo
        self.invoice_repo = invoice_repo

    async def execute(self, client_id: str, user_id: str) -> Result[bool]:
        try:
            client = await self.client_repo.get_by_id(client_id, user_id=user_id)
            if not client:
                return Return.err(
                    Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found")
                )

            invoice_count = await self.invoice_repo.count_by_client(client_id, user_id)
            if invoice_count > 0:
                return Return.err(
                    Error(
                        code="CLIENT_HAS_INVOICES",
                        message=(
                            f"Cannot delete client with existing invoices "
                            f"({invoice_count} invoices)"
                        ),
                    )
                )

            await self.client_repo.delete(client)
            await self.uow.commit()

            logger.info(f"Client {client_id} deleted")
            return Return.ok(True)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DELETE_CLIENT_FAILED",
                    message="Failed to delete client",
                    reason=str(e),
                )
            )
