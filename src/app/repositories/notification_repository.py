"""Notification Repository Interface"""

from abc import ABC, abstractmethod
from datetime import date
from src.domain.notification import Notification, NotificationType


class NotificationRepository(ABC):

    @abstractmethod
    async def create(self, notification: Notification) -> Notification:
        """
        Insert a notification

        Args:
            notification: Notification entity to persist

        Returns:
            Created Notification
        """
        pass

    @abstractmethod
    async def exists_for_day(
        self,
        user_id: str,
        notification_type: NotificationType,
        cycle_id: str,
        day: date,
    ) -> bool:
        """
        Check whether a notification of this type was already sent for a cycle on a day

        Used to send at most one renewal reminder per POC, cycle and day.
        """
        pass
