"""RecordPayment Use Case

Finance records the payment outcome of a payment cycle.
"""

from datetime import datetime
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_state_machine import (
    CycleAction,
    InvalidCycleTransition,
    can_apply,
    is_terminal,
    transition,
)
from src.domain.payment_cycle import PaymentStatus, PocApprovalStatus
from src.domain.user import Role
from .common import (
    require_any_role,
    cycle_not_found,
    invalid_cycle_state,
    cycle_state_changed,
    record_audit,
    notify_payment_recorded,
)
from .dtos import Actor, RecordPaymentCommandDTO, PaymentCycleDTO

SETTLED_PAYMENT_STATUSES = (PaymentStatus.PAID, PaymentStatus.DECLINED)


class RecordPayment:
    """
    Use Case: Record payment status, UTR and accounting status

    Business Rules:
    1. Only ADMIN or FINANCE may record payments
    2. Terminal cycles (REJECTED, COMPLETED, CANCELLED) cannot be changed
    3. payment_recorded_by/_at are set when the payment becomes PAID or
       DECLINED (or changes between them)
    4. cycle_status moves to PAYMENT_RECORDED only when the payment is PAID,
       the POC has approved, and the current status allows it; otherwise
       cycle_status is left as is
    5. An INVOICE_UPLOADED cycle completes when the payment turns PAID
    6. Entering PAYMENT_RECORDED notifies the subscription's POC that an
       invoice is due (best-effort)

    Flow:
    1. Check role, load cycle, reject terminal cycles
    2. Build the change set
    3. Conditional update on the status that was read, commit
    4. Audit entry and POC notification (best-effort)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cycle_repo: PaymentCycleRepository,
        subscription_repo: SubscriptionRepository,
        user_repo: UserRepository,
        audit_repo: AuditLogRepository,
        notification_service: NotificationService,
    ):
        self.uow = uow
        self.cycle_repo = cycle_repo
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo
        self.audit_repo = audit_repo
        self.notification_service = notification_service

    async def execute(self, actor: Actor, command: RecordPaymentCommandDTO) -> Result[PaymentCycleDTO]:
        """
        Execute payment recording

        Args:
            actor: Calling user
            command: RecordPaymentCommandDTO with the new payment fields

        Returns:
            Result[PaymentCycleDTO]: Updated cycle or error
        """
        error = require_any_role(actor, Role.ADMIN, Role.FINANCE)
        if error:
            return Return.err(error)

        try:
            cycle = await self.cycle_repo.get_by_id(command.cycle_id)
            if cycle is None:
                return Return.err(cycle_not_found(command.cycle_id))

            if is_terminal(cycle.cycle_status):
                return Return.err(
                    invalid_cycle_state(
                        InvalidCycleTransition(cycle.cycle_status, CycleAction.RECORD_PAYMENT)
                    )
                )

            now = datetime.utcnow()
            values = {
                "payment_status": command.payment_status,
                "accounting_status": command.accounting_status,
                "payment_utr": command.payment_utr,
                "mandate_id": command.mandate_id,
                "updated_at": now,
            }

            if command.payment_status in SETTLED_PAYMENT_STATUSES and (
                command.payment_status != cycle.payment_status
                or cycle.payment_recorded_at is None
            ):
                values["payment_recorded_by"] = actor.user_id
                values["payment_recorded_at"] = now

            chain_complete = (
                command.payment_status == PaymentStatus.PAID
                and cycle.poc_approval_status == PocApprovalStatus.APPROVED
            )
            enters_payment_recorded = chain_complete and can_apply(
                cycle.cycle_status, CycleAction.RECORD_PAYMENT
            )
            if enters_payment_recorded:
                values["cycle_status"] = transition(cycle.cycle_status, CycleAction.RECORD_PAYMENT)
            elif chain_complete and cycle.invoice_file_id and can_apply(
                cycle.cycle_status, CycleAction.COMPLETE
            ):
                # Invoice arrived while the payment was not PAID
                values["cycle_status"] = transition(cycle.cycle_status, CycleAction.COMPLETE)

            updated = await self.cycle_repo.transition(
                cycle.id,
                expected_status=cycle.cycle_status,
                values=values,
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
                    code="RECORD_PAYMENT_FAILED",
                    message="Failed to record payment",
                    reason=str(e),
                )
            )

        await record_audit(
            self.uow,
            self.audit_repo,
            AuditAction.PAYMENT_RECORD,
            response.id,
            actor.user_id,
            {
                "payment_status": response.payment_status.value,
                "accounting_status": response.accounting_status.value,
                "payment_utr": response.payment_utr,
                "mandate_id": response.mandate_id,
                "cycle_status": response.cycle_status.value,
            },
        )

        if enters_payment_recorded:
            await notify_payment_recorded(
                self.uow, self.subscription_repo, self.user_repo, self.notification_service, response
            )

        return Return.ok(response)
