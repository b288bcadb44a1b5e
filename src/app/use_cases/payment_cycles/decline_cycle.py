"""DeclineCycle Use Case

POC declines the renewal of a payment cycle. REJECTED is terminal for the
cycle; sibling cycles and the subscription status are untouched.
"""

from datetime import datetime
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_state_machine import CycleAction, InvalidCycleTransition, transition
from src.domain.payment_cycle import PocApprovalStatus, MIN_REJECTION_REASON_LENGTH
from src.domain.user import Role
from .common import (
    require_any_role,
    require_poc_access,
    cycle_not_found,
    subscription_not_found,
    invalid_cycle_state,
    cycle_state_changed,
    validation_error,
    record_audit,
)
from .dtos import Actor, DeclineCycleCommandDTO, PaymentCycleDTO


class DeclineCycle:
    """
    Use Case: POC declines a pending renewal

    Business Rules:
    1. Reason must have at least 10 non-blank characters; checked before any I/O
    2. Same access rules as approval
    3. Cycle must be PENDING_APPROVAL
    4. Sets both poc_approval_status and cycle_status to REJECTED
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cycle_repo: PaymentCycleRepository,
        subscription_repo: SubscriptionRepository,
        user_repo: UserRepository,
        audit_repo: AuditLogRepository,
    ):
        self.uow = uow
        self.cycle_repo = cycle_repo
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo
        self.audit_repo = audit_repo

    async def execute(self, actor: Actor, command: DeclineCycleCommandDTO) -> Result[PaymentCycleDTO]:
        reason = (command.reason or "").strip()
        if len(reason) < MIN_REJECTION_REASON_LENGTH:
            return Return.err(
                validation_error(
                    f"Rejection reason must be at least {MIN_REJECTION_REASON_LENGTH} characters"
                )
            )

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
                next_status = transition(cycle.cycle_status, CycleAction.POC_DECLINE)
            except InvalidCycleTransition as e:
                return Return.err(invalid_cycle_state(e))

            now = datetime.utcnow()
            updated = await self.cycle_repo.transition(
                cycle.id,
                expected_status=cycle.cycle_status,
                values={
                    "cycle_status": next_status,
                    "poc_approval_status": PocApprovalStatus.REJECTED,
                    "poc_rejection_reason": reason,
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
                    code="DECLINE_CYCLE_FAILED",
                    message="Failed to decline payment cycle",
                    reason=str(e),
                )
            )

        await record_audit(
            self.uow,
            self.audit_repo,
            AuditAction.RENEWAL_REJECT,
            response.id,
            actor.user_id,
            {"cycle_number": response.cycle_number, "reason": reason},
        )

        return Return.ok(response)
