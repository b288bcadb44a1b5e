"""UploadInvoice Use Case

POC attaches an invoice to a paid payment cycle. This is the only way a
cycle in PAYMENT_RECORDED escapes auto-cancellation once its deadline
has been reached.
"""

from datetime import datetime
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_state_machine import (
    CycleAction,
    InvalidCycleTransition,
    can_apply,
    transition,
)
from src.domain.payment_cycle import PaymentStatus, PocApprovalStatus
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
from .dtos import Actor, UploadInvoiceCommandDTO, PaymentCycleDTO


class UploadInvoice:
    """
    Use Case: Attach an invoice file to a payment cycle

    Business Rules:
    1. Caller is POC with department access (or ADMIN)
    2. A cycle holds at most one invoice
    3. Cycle must be PAYMENT_RECORDED; it moves to INVOICE_UPLOADED and
       straight on to COMPLETED when approval and payment are both present
    4. The update asserts both the status and that no invoice was attached
       in the meantime, so it cannot race the auto-cancel job silently
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

    async def execute(self, actor: Actor, command: UploadInvoiceCommandDTO) -> Result[PaymentCycleDTO]:
        file_id = (command.file_id or "").strip()
        if not file_id:
            return Return.err(validation_error("Invoice file reference is required"))

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

            if cycle.invoice_file_id:
                return Return.err(
                    Error(
                        code="INVOICE_ALREADY_UPLOADED",
                        message="An invoice has already been uploaded for this payment cycle",
                        reason=f"Payment cycle {cycle.id} has invoice {cycle.invoice_file_id}",
                    )
                )

            try:
                next_status = transition(cycle.cycle_status, CycleAction.UPLOAD_INVOICE)
            except InvalidCycleTransition as e:
                return Return.err(invalid_cycle_state(e))

            chain_complete = (
                cycle.poc_approval_status == PocApprovalStatus.APPROVED
                and cycle.payment_status == PaymentStatus.PAID
            )
            if chain_complete and can_apply(next_status, CycleAction.COMPLETE):
                next_status = transition(next_status, CycleAction.COMPLETE)

            now = datetime.utcnow()
            updated = await self.cycle_repo.transition(
                cycle.id,
                expected_status=cycle.cycle_status,
                values={
                    "cycle_status": next_status,
                    "invoice_file_id": file_id,
                    "invoice_uploaded_at": now,
                    "updated_at": now,
                },
                require_no_invoice=True,
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
                    code="UPLOAD_INVOICE_FAILED",
                    message="Failed to upload invoice",
                    reason=str(e),
                )
            )

        await record_audit(
            self.uow,
            self.audit_repo,
            AuditAction.INVOICE_UPLOAD,
            response.id,
            actor.user_id,
            {"invoice_file_id": file_id, "cycle_status": response.cycle_status.value},
        )

        return Return.ok(response)
