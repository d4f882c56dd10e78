"""Reminder Log Repository Interface"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List
from src.domain.reminder_log import ReminderDeliveryStatus, ReminderLogEntry


class ReminderLogRepository(ABC):
    """
    Repository interface for ReminderLogEntry persistence

    Backs the scheduler's per-(invoice, reminder_type) suppression check.
    """

    @abstractmethod
    async def create(self, entry: ReminderLogEntry) -> ReminderLogEntry:
        pass

    @abstractmethod
    async def exists_since(self, invoice_id: str, reminder_type: str, since: datetime) -> bool:
        """
        Check whether a reminder of this type was logged after `since`

        Args:
            invoice_id: Invoice ID
            reminder_type: Tag such as due_soon or overdue_7
            since: Start of the suppression window

        Returns:
            True if a matching entry exists
        """
        pass

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: str) -> List[ReminderLogEntry]:
        """Reminder history, newest first"""
        pass

    @abstractmethod
    async def set_delivery_status(self, entry_id: str, status: ReminderDeliveryStatus) -> None:
        """Record the transport outcome for a dispatched notice"""
        pass
