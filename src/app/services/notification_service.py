"""Notification Service Interface

Defines the contract for delivering workflow notifications to users.
"""

from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel, Field
from src.domain.notification import NotificationType


class NotificationMessage(BaseModel):
    """One notification addressed to one user"""

    user_id: str = Field(..., description="Recipient user ID")
    type: NotificationType = Field(..., description="Notification category")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Notification body")
    subscription_id: Optional[str] = Field(default=None)
    cycle_id: Optional[str] = Field(default=None)


class NotificationService(ABC):
    """
    Abstract notification service

    Implementations can deliver notifications via:
    - The notifications table (read by the UI)
    - Logs
    - Webhook (HTTP POST)

    Delivery is best-effort: implementations report failure through the
    return value instead of raising.
    """

    @abstractmethod
    async def notify(self, notification: NotificationMessage) -> bool:
        """
        Deliver a notification

        Args:
            notification: NotificationMessage to deliver

        Returns:
            True if delivered, False otherwise
        """
        pass

    async def notify_many(self, notifications: list[NotificationMessage]) -> int:
        """
        Deliver several notifications

        Returns:
            Number of notifications delivered
        """
        sent = 0
        for notification in notifications:
            if await self.notify(notification):
                sent += 1
        return sent
