"""Account Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.account import Account


class AccountRepository(ABC):

    @abstractmethod
    async def create(self, account: Account) -> Account:
        pass

    @abstractmethod
    async def get_by_id(self, account_id: str) -> Optional[Account]:
        pass
