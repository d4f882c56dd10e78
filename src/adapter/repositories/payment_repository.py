"""SQLAlchemy Payment Repository Implementation"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.invoice import Invoice
from src.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    The unique index on external_reference backs the reconciler's
    deduplication check.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def get_by_external_reference(self, external_reference: str) -> Optional[Payment]:
        statement = select(Payment).where(Payment.external_reference == external_reference)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_invoice_id(self, invoice_id: str) -> List[Payment]:
        statement = (
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.created_at.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def update(self, payment: Payment) -> Payment:
        payment.updated_at = datetime.utcnow()
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_completion_times_by_client(
        self, client_id: str, user_id: str
    ) -> List[Tuple[datetime, datetime]]:
        statement = (
            select(Invoice.created_at, Payment.completed_at)
            .join(Invoice, Invoice.id == Payment.invoice_id)
            .where(Invoice.client_id == client_id)
            .where(Invoice.user_id == user_id)
            .where(Payment.status == PaymentStatus.COMPLETED)
            .where(Payment.completed_at.is_not(None))
        )
        result = await self.session.execute(statement)
        return [(created_at, completed_at) for created_at, completed_at in result.all()]
