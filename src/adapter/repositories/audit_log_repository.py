"""SQLAlchemy Audit Log Repository Implementation"""

from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditLog


class SqlAlchemyAuditLogRepository(AuditLogRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: AuditLog) -> AuditLog:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_by_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        statement = (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type)
            .where(AuditLog.entity_id == entity_id)
            .order_by(AuditLog.created_at.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
