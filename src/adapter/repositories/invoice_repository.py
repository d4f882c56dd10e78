"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import update, or_
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE for mutating use cases
    - Owner scoping on every user-facing lookup
    - Aggregates computed in the database for the dashboard
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(
        self,
        invoice_id: str,
        user_id: Optional[str] = None,
        for_update: bool = False,
    ) -> Optional[Invoice]:
        """
        Retrieve invoice by ID with optional owner scope and row lock

        Args:
            invoice_id: Invoice ID
            user_id: Owner scope (None = unscoped, internal callers only)
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        statement = select(Invoice).where(Invoice.id == invoice_id)

        if user_id is not None:
            statement = statement.where(Invoice.user_id == user_id)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_invoice_number(
        self, invoice_number: str, for_update: bool = False
    ) -> Optional[Invoice]:
        statement = select(Invoice).where(Invoice.invoice_number == invoice_number)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_access_token(
        self, access_token: str, for_update: bool = False
    ) -> Optional[Invoice]:
        statement = select(Invoice).where(Invoice.access_token == access_token)

        if for_update:
            statement = statement.with_for_update().execution_options(populate_existing=True)

        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_by_user(
        self,
        user_id: str,
        status: Optional[InvoiceStatus] = None,
        client_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Invoice], int]:
        """
        List an owner's invoices with filters and pagination

        Returns:
            Tuple of (invoices ordered by created_at DESC, total count)
        """
        conditions = [Invoice.user_id == user_id]

        if status:
            conditions.append(Invoice.status == status)
        if client_id:
            conditions.append(Invoice.client_id == client_id)
        if created_from:
            conditions.append(Invoice.created_at >= created_from)
        if created_to:
            conditions.append(Invoice.created_at <= created_to)
        if search:
            pattern = f"%{search.strip()}%"
            conditions.append(
                or_(
                    Invoice.invoice_number.ilike(pattern),
                    Invoice.reference.ilike(pattern),
                )
            )

        count_statement = select(func.count()).select_from(Invoice).where(*conditions)
        count_result = await self.session.execute(count_statement)
        total = count_result.scalar_one()

        statement = (
            select(Invoice)
            .where(*conditions)
            .order_by(Invoice.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all()), total

    async def update(self, invoice: Invoice) -> Invoice:
        invoice.updated_at = datetime.utcnow()
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def invoice_number_exists(self, invoice_number: str) -> bool:
        statement = (
            select(func.count())
            .select_from(Invoice)
            .where(Invoice.invoice_number == invoice_number)
        )
        result = await self.session.execute(statement)
        return result.scalar_one() > 0

    async def get_by_status_and_due_date(
        self,
        statuses: Iterable[InvoiceStatus],
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
    ) -> List[Invoice]:
        statement = select(Invoice).where(Invoice.status.in_(list(statuses)))

        if due_from is not None:
            statement = statement.where(Invoice.due_date >= due_from)
        if due_to is not None:
            statement = statement.where(Invoice.due_date < due_to)

        statement = statement.order_by(Invoice.due_date.asc())
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def mark_overdue(
        self, statuses: Iterable[InvoiceStatus], due_before: datetime
    ) -> int:
        """
        Batch-move invoices to overdue in a single UPDATE

        Args:
            statuses: Statuses eligible for the transition
            due_before: Invoices due strictly before this instant are moved

        Returns:
            Number of rows updated
        """
        statement = (
            update(Invoice)
            .where(Invoice.status.in_(list(statuses)))
            .where(Invoice.due_date < due_before)
            .values(status=InvoiceStatus.OVERDUE, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        return result.rowcount or 0

    async def sum_total(
        self,
        user_id: str,
        status: InvoiceStatus,
        paid_since: Optional[datetime] = None,
    ) -> Decimal:
        statement = (
            select(func.coalesce(func.sum(Invoice.total), 0))
            .where(Invoice.user_id == user_id)
            .where(Invoice.status == status)
        )

        if paid_since is not None:
            statement = statement.where(Invoice.paid_at >= paid_since)

        result = await self.session.execute(statement)
        return Decimal(str(result.scalar_one()))

    async def sum_outstanding(
        self, user_id: str, statuses: Iterable[InvoiceStatus]
    ) -> Decimal:
        statement = (
            select(func.coalesce(func.sum(Invoice.total - Invoice.paid_amount), 0))
            .where(Invoice.user_id == user_id)
            .where(Invoice.status.in_(list(statuses)))
        )
        result = await self.session.execute(statement)
        return Decimal(str(result.scalar_one()))

    async def count_by_status(self, user_id: str) -> Dict[InvoiceStatus, int]:
        statement = (
            select(Invoice.status, func.count())
            .where(Invoice.user_id == user_id)
            .group_by(Invoice.status)
        )
        result = await self.session.execute(statement)
        return {InvoiceStatus(status): count for status, count in result.all()}

    async def get_recent(self, user_id: str, limit: int = 5) -> List[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.user_id == user_id)
            .order_by(Invoice.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count_by_client(
        self, client_id: str, user_id: str, status: Optional[InvoiceStatus] = None
    ) -> int:
        statement = (
            select(func.count())
            .select_from(Invoice)
            .where(Invoice.user_id == user_id)
            .where(Invoice.client_id == client_id)
        )

        if status is not None:
            statement = statement.where(Invoice.status == status)

        result = await self.session.execute(statement)
        return result.scalar_one()

    async def totals_by_client(
        self, user_id: str, client_ids: Iterable[str]
    ) -> Dict[str, Tuple[Decimal, Decimal]]:
        client_ids = list(client_ids)
        if not client_ids:
            return {}

        statement = (
            select(
                Invoice.client_id,
                func.coalesce(func.sum(Invoice.total), 0),
                func.coalesce(func.sum(Invoice.paid_amount), 0),
            )
            .where(Invoice.user_id == user_id)
            .where(Invoice.client_id.in_(client_ids))
            .where(Invoice.status != InvoiceStatus.CANCELLED)
            .group_by(Invoice.client_id)
        )
        result = await self.session.execute(statement)
        return {
            client_id: (Decimal(str(billed)), Decimal(str(paid)))
            for client_id, billed, paid in result.all()
        }
