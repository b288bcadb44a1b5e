"""ApproveCycle Use Case

POC approves the renewal of a payment cycle, moving it from
PENDING_APPROVAL to PENDING_PAYMENT, or straight on to PAYMENT_RECORDED
when Finance already recorded the payment as PAID.
"""

from datetime import datetime
from typing import Optional
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_state_machine import CycleAction, InvalidCycleTransition, transition
from src.domain.payment_cycle import PaymentStatus, PocApprovalStatus
from src.domain.user import Role
from .common import (
    require_any_role,
    require_poc_access,
    cycle_not_found,
    subscription_not_found,
    invalid_cycle_state,
    cycle_state_changed,
    record_audit,
    notify_payment_recorded,
)
from .dtos import Actor, ApproveCycleCommandDTO, PaymentCycleDTO


class ApproveCycle:
    """
    Use Case: POC approves a pending renewal

    Business Rules:
    1. Caller is POC with access to the subscription's department (or ADMIN)
    2. Cycle must be PENDING_APPROVAL; any other status is a state conflict
    3. The update only applies if the status is unchanged since it was read
    4. Comments are not stored on the cycle; they go to the audit log
    5. A payment already recorded as PAID moves the cycle on to
       PAYMENT_RECORDED in the same update, and the POC is told the
       invoice is due

    Flow:
    1. Check role
    2. Load cycle and subscription, check department access
    3. Resolve next status through the state machine
    4. Conditional update, commit
    5. Write audit entry and payment notice (best-effort)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cycle_repo: PaymentCycleRepository,
        subscription_repo: SubscriptionRepository,
        user_repo: UserRepository,
        audit_repo: AuditLogRepository,
        notification_service: Optional[NotificationService] = None,
    ):
        self.uow = uow
        self.cycle_repo = cycle_repo
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo
        self.audit_repo = audit_repo
        self.notification_service = notification_service

    async def execute(self, actor: Actor, command: ApproveCycleCommandDTO) -> Result[PaymentCycleDTO]:
        """
        Execute renewal approval

        Args:
            actor: Calling user
            command: ApproveCycleCommandDTO with cycle_id and optional comments

        Returns:
            Result[PaymentCycleDTO]: Updated cycle or error
        """
        error = require_any_role(actor, Role.POC, Role.ADMIN)
        if error:
            return Return.err(error)

        try:
            cycle = await self.cycle_repo.get_by_id(command.cycle_id)
            if cycle is None:
                return Return.err(cycle_not_found(command.cycle_id))

            subscription = await self.subscription_repo.get_by_id(cycle.subscription_id)
            if subscription is None:
                return Return.err(subscription_not_found(cycle.subscription_id))

            error = await require_poc_access(actor, self.user_repo, subscription)
            if error:
                return Return.err(error)

            try:
                next_status = transition(cycle.cycle_status, CycleAction.POC_APPROVE)
            except InvalidCycleTransition as e:
                return Return.err(invalid_cycle_state(e))

            already_paid = cycle.payment_status == PaymentStatus.PAID
            if already_paid:
                next_status = transition(next_status, CycleAction.RECORD_PAYMENT)

            now = datetime.utcnow()
            updated = await self.cycle_repo.transition(
                cycle.id,
                expected_status=cycle.cycle_status,
                values={
                    "cycle_status": next_status,
                    "poc_approval_status": PocApprovalStatus.APPROVED,
                    "poc_approved_by": actor.user_id,
                    "poc_approved_at": now,
                    "updated_at": now,
                },
            )
            if updated is None:
                await self.uow.rollback()
                return Return.err(cycle_state_changed(cycle.id))

            await self.uow.commit()
            response = PaymentCycleDTO.from_entity(updated)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="APPROVE_CYCLE_FAILED",
                    message="Failed to approve payment cycle",
                    reason=str(e),
                )
            )

        await record_audit(
            self.uow,
            self.audit_repo,
            AuditAction.RENEWAL_APPROVE,
            response.id,
            actor.user_id,
            {
                "cycle_number": response.cycle_number,
                "new_status": response.cycle_status.value,
                "comments": command.comments,
            },
        )

        if already_paid and self.notification_service is not None:
            await notify_payment_recorded(
                self.uow, self.subscription_repo, self.user_repo, self.notification_service, response
            )

        return Return.ok(response)
