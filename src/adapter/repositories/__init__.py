from .subscription_repository import SqlAlchemySubscriptionRepository
from .payment_cycle_repository import SqlAlchemyPaymentCycleRepository
from .user_repository import SqlAlchemyUserRepository
from .notification_repository import SqlAlchemyNotificationRepository
from .audit_log_repository import SqlAlchemyAuditLogRepository

__all__ = [
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyPaymentCycleRepository",
    "SqlAlchemyUserRepository",
    "SqlAlchemyNotificationRepository",
    "SqlAlchemyAuditLogRepository",
]
