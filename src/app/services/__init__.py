from .unit_of_work import UnitOfWork
from .notification_service import NotificationService, NotificationMessage

__all__ = [
    "UnitOfWork",
    "NotificationService",
    "NotificationMessage",
]
