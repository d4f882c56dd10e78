"""CreateClient and GetClient Use Cases"""

from typing import Iterable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import Client, clamp_payment_terms
from src.domain import money
from .dtos import CreateClientCommandDTO, ClientResponseDTO


class CreateClient:
    """
    Use Case: Register a client under an owner

    Unknown currency codes fall back to the default, as for invoices.
    Payment terms of 0 mean the 30 day default.
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

    async def execute(self, command: CreateClientCommandDTO) -> Result[ClientResponseDTO]:
        name = command.name.strip()
        if not name:
            return Return.err(Error(code="INVALID_CLIENT_NAME", message="Client name is required"))

        try:
            client = await self.client_repo.create(
                Client(
                    user_id=command.user_id,
                    name=name,
                    email=command.email.strip(),
                    phone=command.phone.strip(),
                    currency=money.normalize_currency(
                        command.currency,
                        default=self.default_currency,
                        supported=self.supported_currencies,
                    ),
                    payment_terms=clamp_payment_terms(command.payment_terms),
                )
            )
            await self.uow.commit()
            return Return.ok(ClientResponseDTO.from_entity(client))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_CLIENT_FAILED",
                    message="Failed to create client",
                    reason=str(e),
                )
            )


class GetClient:
    def __init__(self, client_repo: ClientRepository):
        self.client_repo = client_repo

    async def execute(self, client_id: str, user_id: str) -> Result[ClientResponseDTO]:
        client = await self.client_repo.get_by_id(client_id, user_id=user_id)
        if not client:
            return Return.err(Error(code="CLIENT_NOT_FOUND", message=f"Client {client_id} not found"))
        return Return.ok(ClientResponseDTO.from_entity(client))
