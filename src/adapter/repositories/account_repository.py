"""SQLAlchemy Account Repository Implementation"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.account_repository import AccountRepository
from src.domain.account import Account


class SqlAlchemyAccountRepository(AccountRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, account: Account) -> Account:
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        statement = select(Account).where(Account.id == account_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()
