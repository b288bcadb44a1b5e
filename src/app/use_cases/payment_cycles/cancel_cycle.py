"""CancelCycle Use Case

Finance cancels a payment cycle that has not reached a terminal state
or had its invoice uploaded.
"""

from datetime import datetime
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_state_machine import CycleAction, InvalidCycleTransition, transition
from src.domain.user import Role
from .common import (
    require_any_role,
    cycle_not_found,
    invalid_cycle_state,
    cycle_state_changed,
    validation_error,
    record_audit,
)
from .dtos import Actor, CancelCycleCommandDTO, PaymentCycleDTO


class CancelCycle:
    """
    Use Case: Finance cancels a payment cycle

    Business Rules:
    1. Only ADMIN or FINANCE may cancel
    2. A non-empty reason is required and stored in poc_rejection_reason
    3. Allowed from PENDING_APPROVAL, PENDING_PAYMENT, APPROVED and
       PAYMENT_RECORDED
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cycle_repo: PaymentCycleRepository,
        audit_repo: AuditLogRepository,
    ):
        self.uow = uow
        self.cycle_repo = cycle_repo
        self.audit_repo = audit_repo

    async def execute(self, actor: Actor, command: CancelCycleCommandDTO) -> Result[PaymentCycleDTO]:
        reason = (command.reason or "").strip()
        if not reason:
            return Return.err(validation_error("Cancellation reason is required"))

        error = require_any_role(actor, Role.ADMIN, Role.FINANCE)
        if error:
            return Return.err(error)

        try:
            cycle = await self.cycle_repo.get_by_id(command.cycle_id)
            if cycle is None:
                return Return.err(cycle_not_found(command.cycle_id))

            try:
                next_status = transition(cycle.cycle_status, CycleAction.FINANCE_CANCEL)
            except InvalidCycleTransition as e:
                return Return.err(invalid_cycle_state(e))

            updated = await self.cycle_repo.transition(
                cycle.id,
                expected_status=cycle.cycle_status,
                values={
                    "cycle_status": next_status,
                    "poc_rejection_reason": reason,
                    "updated_at": datetime.utcnow(),
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
                    code="CANCEL_CYCLE_FAILED",
                    message="Failed to cancel payment cycle",
                    reason=str(e),
                )
            )

        await record_audit(
            self.uow,
            self.audit_repo,
            AuditAction.PAYMENT_CYCLE_CANCEL,
            response.id,
            actor.user_id,
            {"cycle_number": response.cycle_number, "reason": reason},
        )

        return Return.ok(response)
