"""Audit Log Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.audit_log import AuditLog


class AuditLogRepository(ABC):
    """Append-only audit trail"""

    @abstractmethod
    async def create(self, entry: AuditLog) -> AuditLog:
        pass

    @abstractmethod
    async def get_by_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        pass
