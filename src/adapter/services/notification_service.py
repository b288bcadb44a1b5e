"""Notification Service Implementations

Provides concrete sinks for workflow notifications.
"""

import logging
from typing import Optional
import httpx
from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.notification_repository import SqlAlchemyNotificationRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.repositories.notification_repository import NotificationRepository
from src.app.services.notification_service import NotificationService, NotificationMessage
from src.app.services.unit_of_work import UnitOfWork
from src.domain.notification import Notification

logger = logging.getLogger(__name__)


class DatabaseNotificationService(NotificationService):
    """
    Writes notifications to the notifications table read by the UI

    Each notification is committed on its own so a failed insert never
    takes the caller's already-committed transition with it.
    """

    def __init__(self, uow: UnitOfWork, notification_repo: NotificationRepository):
        self.uow = uow
        self.notification_repo = notification_repo

    async def notify(self, notification: NotificationMessage) -> bool:
        try:
            await self.notification_repo.create(
                Notification(
                    user_id=notification.user_id,
                    type=notification.type,
                    title=notification.title,
                    message=notification.message,
                    subscription_id=notification.subscription_id,
                    cycle_id=notification.cycle_id,
                    is_read=False,
                )
            )
            await self.uow.commit()
            return True
        except Exception as e:
            logger.error(
                f"Failed to store {notification.type.value} notification for user "
                f"{notification.user_id}: {e}"
            )
            await self.uow.rollback()
            return False


class LoggingNotificationService(NotificationService):
    """
    Notification service that logs notifications

    Useful for development and testing, or as a mirror of the primary sink.
    """

    async def notify(self, notification: NotificationMessage) -> bool:
        """
        Log notification

        Returns:
            Always True (logging never fails)
        """
        logger.info(
            f"[NOTIFICATION] {notification.type.value} to user {notification.user_id}: "
            f"{notification.title} - {notification.message} "
            f"(subscription={notification.subscription_id}, cycle={notification.cycle_id})"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    Notification service that forwards notifications via HTTP webhook

    Sends JSON payload to configured webhook URL.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        """
        Initialize webhook notification service

        Args:
            webhook_url: URL to POST notifications to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def notify(self, notification: NotificationMessage) -> bool:
        payload = {
            "type": notification.type.value,
            "user_id": notification.user_id,
            "title": notification.title,
            "message": notification.message,
            "subscription_id": notification.subscription_id,
            "cycle_id": notification.cycle_id,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.info(
                    f"Webhook notification sent for user {notification.user_id} to {self.webhook_url}"
                )
                return True
        except httpx.HTTPError as e:
            logger.error(
                f"Failed to send webhook notification for user {notification.user_id}: {e}"
            )
            return False
        except Exception as e:
            logger.error(
                f"Unexpected error sending webhook notification for user {notification.user_id}: {e}"
            )
            return False


class CompositeNotificationService(NotificationService):
    """
    Notification service that delegates to multiple services

    The first service is the primary sink and decides the reported outcome;
    the others receive a copy and their failures are only logged.
    """

    def __init__(self, services: list[NotificationService]):
        """
        Initialize composite notification service

        Args:
            services: Notification services, primary first
        """
        self.services = services

    async def notify(self, notification: NotificationMessage) -> bool:
        delivered = []
        for service in self.services:
            try:
                delivered.append(await service.notify(notification))
            except Exception as e:
                logger.error(f"Notification service {type(service).__name__} failed: {e}")
                delivered.append(False)
        return bool(delivered) and delivered[0]


def create_notification_service(
    session: Optional[AsyncSession] = None,
    webhook_url: Optional[str] = None,
) -> NotificationService:
    """
    Factory function to create the notification service

    Args:
        session: Session for the notifications table. If omitted, notifications
                 are only logged.
        webhook_url: Optional webhook URL to mirror notifications to

    Returns:
        Configured NotificationService
    """
    services: list[NotificationService] = []

    if session is not None:
        services.append(
            DatabaseNotificationService(
                SqlAlchemyUnitOfWork(session),
                SqlAlchemyNotificationRepository(session),
            )
        )

    services.append(LoggingNotificationService())

    if webhook_url:
        services.append(WebhookNotificationService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeNotificationService(services)
