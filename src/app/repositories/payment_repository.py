"""Payment Repository Interface

Defines the contract for payment persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from src.domain.payment import Payment


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    Payments are append-only; update() exists only to flip status
    (e.g. completed -> refunded), never amount.
    """

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """
        Create a new payment

        Raises:
            IntegrityError: If external_reference already exists
        """
        pass

    @abstractmethod
    async def get_by_external_reference(self, external_reference: str) -> Optional[Payment]:
        """
        Retrieve payment by gateway reference

        Used for deduplication of redelivered gateway events.
        """
        pass

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[Payment]:
        pass

    @abstractmethod
    async def update(self, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_completion_times_by_client(
        self, client_id: str, user_id: str
    ) -> List[Tuple[datetime, datetime]]:
        """
        Timing of a client's completed payments

        Returns:
            (invoice created_at, payment completed_at) per completed payment
        """
        pass
