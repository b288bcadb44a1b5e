from .base import BaseModel, generate_uuid
from .subscription import Subscription, SubscriptionStatus, BillingFrequency
from .payment_cycle import (
    PaymentCycle,
    CycleStatus,
    PocApprovalStatus,
    PaymentStatus,
    AccountingStatus,
    AUTO_CANCEL_REASON,
    MIN_REJECTION_REASON_LENGTH,
)
from .user import User, UserRole, Role, Department, PocDepartmentAccess
from .notification import Notification, NotificationType
from .audit_log import AuditLog, AuditAction, PAYMENT_CYCLE_ENTITY
from .cycle_state_machine import CycleAction, InvalidCycleTransition

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Subscription",
    "SubscriptionStatus",
    "BillingFrequency",
    "PaymentCycle",
    "CycleStatus",
    "PocApprovalStatus",
    "PaymentStatus",
    "AccountingStatus",
    "AUTO_CANCEL_REASON",
    "MIN_REJECTION_REASON_LENGTH",
    "User",
    "UserRole",
    "Role",
    "Department",
    "PocDepartmentAccess",
    "Notification",
    "NotificationType",
    "AuditLog",
    "AuditAction",
    "PAYMENT_CYCLE_ENTITY",
    "CycleAction",
    "InvalidCycleTransition",
]
