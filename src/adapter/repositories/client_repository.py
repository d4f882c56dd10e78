"""SQLAlchemy Client Repository Implementation"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.client_repository import ClientRepository
from src.domain.client import Client


class SqlAlchemyClientRepository(ClientRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, client: Client) -> Client:
        self.session.add(client)
        await self.session.flush()
        await self.session.refresh(client)
        return client

    async def get_by_id(self, client_id: str, user_id: Optional[str] = None) -> Optional[Client]:
        statement = select(Client).where(Client.id == client_id)

        if user_id is not None:
            statement = statement.where(Client.user_id == user_id)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_by_user(
        self,
        user_id: str,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Client], int]:
        conditions = [Client.user_id == user_id]

        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    Client.name.ilike(pattern),
                    Client.email.ilike(pattern),
                    Client.phone.ilike(pattern),
                )
            )

        count_statement = select(func.count()).select_from(Client).where(*conditions)
        count_result = await self.session.execute(count_statement)
        total = count_result.scalar_one()

        statement = (
            select(Client)
            .where(*conditions)
            .order_by(Client.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all()), total

    async def update(self, client: Client) -> Client:
        client.updated_at = datetime.utcnow()
        self.session.add(client)
        await self.session.flush()
        return client

    async def delete(self, client: Client) -> None:
        await self.session.delete(client)
        await self.session.flush()

    async def count_by_user(self, user_id: str) -> int:
        statement = select(func.count()).select_from(Client).where(Client.user_id == user_id)
        result = await self.session.execute(statement)
        return result.scalar_one()
