"""SQLAlchemy Reminder Log Repository Implementation"""

from datetime import datetime
from typing import List
from sqlalchemy import update
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.reminder_log_repository import ReminderLogRepository
from src.domain.reminder_log import ReminderDeliveryStatus, ReminderLogEntry


class SqlAlchemyReminderLogRepository(ReminderLogRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: ReminderLogEntry) -> ReminderLogEntry:
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def exists_since(self, invoice_id: str, reminder_type: str, since: datetime) -> bool:
        statement = (
            select(func.count())
            .select_from(ReminderLogEntry)
            .where(ReminderLogEntry.invoice_id == invoice_id)
            .where(ReminderLogEntry.reminder_type == reminder_type)
            .where(ReminderLogEntry.created_at > since)
        )
        result = await self.session.execute(statement)
        return result.scalar_one() > 0

    async def get_by_invoice_id(self, invoice_id: str) -> List[ReminderLogEntry]:
        statement = (
            select(ReminderLogEntry)
            .where(ReminderLogEntry.invoice_id == invoice_id)
            .order_by(ReminderLogEntry.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def set_delivery_status(self, entry_id: str, status: ReminderDeliveryStatus) -> None:
        statement = (
            update(ReminderLogEntry)
            .where(ReminderLogEntry.id == entry_id)
            .values(delivery_status=status)
        )
        await self.session.execute(statement)
