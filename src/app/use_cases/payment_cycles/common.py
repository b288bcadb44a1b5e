"""Shared checks and side effects for payment cycle use cases

Authorization checks return an Error (or None) instead of raising, so use
cases can hand them straight to Return.err. Audit writes are best-effort:
they run after the transition is committed and never undo it.
"""

import json
import logging
from typing import Any, Optional
from src.libs.result import Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService, NotificationMessage
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.domain.audit_log import AuditLog, AuditAction, PAYMENT_CYCLE_ENTITY
from src.domain.cycle_state_machine import InvalidCycleTransition
from src.domain.notification import NotificationType
from src.domain.subscription import Subscription
from src.domain.user import Role
from .dtos import Actor, PaymentCycleDTO

logger = logging.getLogger(__name__)


def require_any_role(actor: Actor, *roles: Role) -> Optional[Error]:
    if actor.has_any_role(*roles):
        return None
    allowed = ", ".join(role.value for role in roles)
    return Error(
        code="FORBIDDEN",
        message=f"This action requires one of the roles: {allowed}",
        reason=f"User {actor.user_id} holds {[role.value for role in actor.roles]}",
    )


async def require_poc_access(
    actor: Actor,
    user_repo: UserRepository,
    subscription: Subscription,
) -> Optional[Error]:
    """
    Check that the actor may act as POC for a subscription

    ADMIN passes unconditionally. Otherwise the actor must hold POC and have
    an access grant for the subscription's department.
    """
    if actor.has_any_role(Role.ADMIN):
        return None

    error = require_any_role(actor, Role.POC)
    if error:
        return error

    if not await user_repo.has_department_access(actor.user_id, subscription.department_id):
        return Error(
            code="DEPARTMENT_ACCESS_DENIED",
            message="You do not have access to this subscription's department",
            reason=f"User {actor.user_id} has no access to department {subscription.department_id}",
        )
    return None


def cycle_not_found(cycle_id: str) -> Error:
    return Error(
        code="PAYMENT_CYCLE_NOT_FOUND",
        message=f"Payment cycle {cycle_id} not found",
    )


def subscription_not_found(subscription_id: str) -> Error:
    return Error(
        code="SUBSCRIPTION_NOT_FOUND",
        message=f"Subscription {subscription_id} not found",
    )


def invalid_cycle_state(exc: InvalidCycleTransition) -> Error:
    return Error(
        code="INVALID_CYCLE_STATE",
        message=f"Payment cycle is {exc.status.value} and cannot accept this action",
        reason=str(exc),
    )


def cycle_state_changed(cycle_id: str) -> Error:
    return Error(
        code="CYCLE_STATE_CHANGED",
        message="Payment cycle was modified by another action; refresh and try again",
        reason=f"Conditional update of payment cycle {cycle_id} matched no rows",
    )


def validation_error(message: str) -> Error:
    return Error(code="VALIDATION_ERROR", message=message)


async def record_audit(
    uow: UnitOfWork,
    audit_repo: AuditLogRepository,
    action: AuditAction,
    cycle_id: str,
    user_id: Optional[str],
    details: dict[str, Any],
) -> bool:
    """
    Append an audit entry for a payment cycle and commit it

    Returns:
        True if written, False if the write failed (logged, rolled back)
    """
    try:
        await audit_repo.create(
            AuditLog(
                user_id=user_id,
                action=action,
                entity_type=PAYMENT_CYCLE_ENTITY,
                entity_id=cycle_id,
                details=json.dumps(details, default=str),
            )
        )
        await uow.commit()
        return True
    except Exception as e:
        logger.error(f"Failed to write audit log {action.value} for payment cycle {cycle_id}: {e}")
        await uow.rollback()
        return False


async def notify_payment_recorded(
    uow: UnitOfWork,
    subscription_repo: SubscriptionRepository,
    user_repo: UserRepository,
    notification_service: NotificationService,
    cycle: PaymentCycleDTO,
) -> bool:
    """Tell the subscription's POC (by poc_email) that the invoice is now due"""
    try:
        subscription = await subscription_repo.get_by_id(cycle.subscription_id)
        if subscription is None or not subscription.poc_email:
            return False

        poc = await user_repo.get_by_email(subscription.poc_email)
        if poc is None:
            logger.warning(
                f"No user found for POC email {subscription.poc_email}; "
                f"payment notification for cycle {cycle.id} skipped"
            )
            return False

        return await notification_service.notify(
            NotificationMessage(
                user_id=poc.id,
                type=NotificationType.PAYMENT_UPDATE,
                title="Payment Recorded",
                message=(
                    f"Payment for {subscription.tool_name} cycle #{cycle.cycle_number} "
                    f"has been recorded. Please upload the invoice by "
                    f"{cycle.invoice_deadline.isoformat()}."
                ),
                subscription_id=subscription.id,
                cycle_id=cycle.id,
            )
        )
    except Exception as e:
        logger.error(f"Failed to notify POC about payment on cycle {cycle.id}: {e}")
        await uow.rollback()
        return False
