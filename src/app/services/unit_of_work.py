"""Unit of Work Interface

Transaction boundary shared by every mutating use case.
"""

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """Commit or roll back all repository changes made in one request"""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
