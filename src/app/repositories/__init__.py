from .subscription_repository import SubscriptionRepository
from .payment_cycle_repository import PaymentCycleRepository, DuplicatePaymentCycle
from .user_repository import UserRepository
from .notification_repository import NotificationRepository
from .audit_log_repository import AuditLogRepository

__all__ = [
    "SubscriptionRepository",
    "PaymentCycleRepository",
    "DuplicatePaymentCycle",
    "UserRepository",
    "NotificationRepository",
    "AuditLogRepository",
]
