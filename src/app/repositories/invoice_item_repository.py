"""Invoice Item Repository Interface

Defines the contract for invoice item persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_item import InvoiceItem


class InvoiceItemRepository(ABC):
    """
    Repository interface for InvoiceItem persistence

    Items are never updated in place: callers delete all items of an
    invoice and insert the new set inside one unit of work.
    """

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[InvoiceItem]:
        """
        Retrieve all line items for an invoice ordered by sort_order

        Args:
            invoice_id: Invoice ID

        Returns:
            List of InvoiceItem
        """
        pass

    @abstractmethod
    async def create_many(self, items: List[InvoiceItem]) -> List[InvoiceItem]:
        pass

    @abstractmethod
    async def delete_by_invoice_id(self, invoice_id: str) -> int:
        """
        Delete all items of an invoice

        Returns:
            Number of deleted rows
        """
        pass
