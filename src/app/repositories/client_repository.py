"""Client Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple
from src.domain.client import Client


class ClientRepository(ABC):

    @abstractmethod
    async def create(self, client: Client) -> Client:
        pass

    @abstractmethod
    async def get_by_id(self, client_id: str, user_id: Optional[str] = None) -> Optional[Client]:
        """
        Retrieve client by ID, optionally scoped to an owner

        Returns:
            Client if found (and owned by user_id when given), None otherwise
        """
        pass

    @abstractmethod
    async def list_by_user(
        self,
        user_id: str,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Client], int]:
        """
        List an owner's clients, newest first

        Args:
            user_id: Owner scope
            search: Case-insensitive match on name, email or phone
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (clients, total matching count)
        """
        pass

    @abstractmethod
    async def update(self, client: Client) -> Client:
        pass

    @abstractmethod
    async def delete(self, client: Client) -> None:
        pass

    @abstractmethod
    async def count_by_user(self, user_id: str) -> int:
        pass
