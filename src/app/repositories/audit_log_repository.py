"""Audit Log Repository Interface"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.audit_log import AuditLog


class AuditLogRepository(ABC):

    @abstractmethod
    async def create(self, entry: AuditLog) -> AuditLog:
        """
        Append an audit log entry

        Args:
            entry: AuditLog entity to persist

        Returns:
            Created AuditLog
        """
        pass

    @abstractmethod
    async def list_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        """
        Retrieve audit entries of one entity, oldest first

        Args:
            entity_type: Entity type (e.g., 'payment_cycle')
            entity_id: Entity ID

        Returns:
            List of audit log entries
        """
        pass
