"""SQLAlchemy Unit of Work

One AsyncSession per request (or per scheduler unit of work). Leaving the
context without commit rolls back, which also releases FOR UPDATE locks.
"""

from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        if self.session.in_transaction():
            await self.session.rollback()
