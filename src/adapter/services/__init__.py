from .unit_of_work import SqlAlchemyUnitOfWork
from .notification_service import (
    DatabaseNotificationService,
    LoggingNotificationService,
    WebhookNotificationService,
    CompositeNotificationService,
    create_notification_service,
)

__all__ = [
    "SqlAlchemyUnitOfWork",
    "DatabaseNotificationService",
    "LoggingNotificationService",
    "WebhookNotificationService",
    "CompositeNotificationService",
    "create_notification_service",
]
