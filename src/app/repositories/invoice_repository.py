"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Owner-scoped lookups take a user_id; passing it guarantees another
    owner's invoice is indistinguishable from a missing one.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice
        """
        pass

    @abstractmethod
    async def get_by_id(
        self,
        invoice_id: str,
        user_id: Optional[str] = None,
        for_update: bool = False,
    ) -> Optional[Invoice]:
        """
        Retrieve invoice by ID, optionally scoped to an owner

        Args:
            invoice_id: Invoice ID
            user_id: If given, only the owner's invoice is returned
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_invoice_number(
        self, invoice_number: str, for_update: bool = False
    ) -> Optional[Invoice]:
        """
        Retrieve invoice by its public number

        Used by the gateway reconciler, which never sees internal ids.
        """
        pass

    @abstractmethod
    async def get_by_access_token(
        self, access_token: str, for_update: bool = False
    ) -> Optional[Invoice]:
        """Retrieve invoice by client-portal access token"""
        pass

    @abstractmethod
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
        List an owner's invoices, newest first

        Returns:
            Tuple of (page of invoices, total matching count)
        """
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Persist a full-row update and bump updated_at

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        pass

    @abstractmethod
    async def invoice_number_exists(self, invoice_number: str) -> bool:
        pass

    @abstractmethod
    async def get_by_status_and_due_date(
        self,
        statuses: Iterable[InvoiceStatus],
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
    ) -> List[Invoice]:
        """
        Find invoices in the given statuses with due_date in [due_from, due_to)

        Either bound may be omitted. Used by the collection scheduler.
        """
        pass

    @abstractmethod
    async def mark_overdue(
        self, statuses: Iterable[InvoiceStatus], due_before: datetime
    ) -> int:
        """
        Batch-move invoices due before a cutoff to overdue

        Returns:
            Number of invoices updated
        """
        pass

    @abstractmethod
    async def sum_total(
        self,
        user_id: str,
        status: InvoiceStatus,
        paid_since: Optional[datetime] = None,
    ) -> Decimal:
        pass

    @abstractmethod
    async def sum_outstanding(
        self, user_id: str, statuses: Iterable[InvoiceStatus]
    ) -> Decimal:
        """Sum of total - paid_amount across the given statuses"""
        pass

    @abstractmethod
    async def count_by_status(self, user_id: str) -> Dict[InvoiceStatus, int]:
        pass

    @abstractmethod
    async def get_recent(self, user_id: str, limit: int = 5) -> List[Invoice]:
        pass

    @abstractmethod
    async def count_by_client(
        self, client_id: str, user_id: str, status: Optional[InvoiceStatus] = None
    ) -> int:
        """Invoices addressed to a client, optionally in one status"""
        pass

    @abstractmethod
    async def totals_by_client(
        self, user_id: str, client_ids: Iterable[str]
    ) -> Dict[str, Tuple[Decimal, Decimal]]:
        """
        Billed and paid sums per client, cancelled invoices excluded

        Returns:
            Mapping of client_id to (total billed, total paid); clients
            without invoices are absent
        """
        pass
