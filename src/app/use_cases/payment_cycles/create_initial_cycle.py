"""CreateInitialCycle Use Case

Bootstraps cycle #1 for an active subscription. Every later cycle comes
from the cycle creation job.
"""

from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository, DuplicatePaymentCycle
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_calendar import first_cycle_dates, invoice_deadline
from src.domain.payment_cycle import (
    PaymentCycle,
    CycleStatus,
    PocApprovalStatus,
    PaymentStatus,
    AccountingStatus,
)
from src.domain.subscription import SubscriptionStatus
from src.domain.user import Role
from .common import require_any_role, subscription_not_found, record_audit
from .dtos import Actor, CreateInitialCycleCommandDTO, PaymentCycleDTO


def _cycles_already_exist(subscription_id: str) -> Error:
    return Error(
        code="CYCLES_ALREADY_EXIST",
        message="Subscription already has payment cycles",
        reason=f"Subscription {subscription_id} already has cycle #1",
    )


class CreateInitialCycle:
    """
    Use Case: Create the first payment cycle of a subscription

    Business Rules:
    1. Only ADMIN or FINANCE
    2. Subscription must be ACTIVE and have no cycles yet
    3. Cycle #1 starts on the subscription start date
    4. The subscription approval stands in for the first renewal approval,
       so the cycle starts in PENDING_PAYMENT with poc_approval_status APPROVED
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cycle_repo: PaymentCycleRepository,
        subscription_repo: SubscriptionRepository,
        audit_repo: AuditLogRepository,
    ):
        self.uow = uow
        self.cycle_repo = cycle_repo
        self.subscription_repo = subscription_repo
        self.audit_repo = audit_repo

    async def execute(self, actor: Actor, command: CreateInitialCycleCommandDTO) -> Result[PaymentCycleDTO]:
        error = require_any_role(actor, Role.ADMIN, Role.FINANCE)
        if error:
            return Return.err(error)

        try:
            subscription = await self.subscription_repo.get_by_id(command.subscription_id)
            if subscription is None:
                return Return.err(subscription_not_found(command.subscription_id))

            if subscription.status != SubscriptionStatus.ACTIVE:
                return Return.err(
                    Error(
                        code="SUBSCRIPTION_NOT_ACTIVE",
                        message="Payment cycles can only be created for active subscriptions",
                        reason=f"Subscription {subscription.id} is {subscription.status.value}",
                    )
                )

            latest = await self.cycle_repo.get_latest_for_subscription(subscription.id)
            if latest is not None:
                return Return.err(_cycles_already_exist(subscription.id))

            start, end = first_cycle_dates(subscription.start_date, subscription.billing_frequency)
            cycle = PaymentCycle(
                subscription_id=subscription.id,
                cycle_number=1,
                cycle_start_date=start,
                cycle_end_date=end,
                invoice_deadline=invoice_deadline(end),
                cycle_status=CycleStatus.PENDING_PAYMENT,
                poc_approval_status=PocApprovalStatus.APPROVED,
                payment_status=PaymentStatus.IN_PROGRESS,
                accounting_status=AccountingStatus.PENDING,
            )

            try:
                created = await self.cycle_repo.create(cycle)
            except DuplicatePaymentCycle:
                await self.uow.rollback()
                return Return.err(_cycles_already_exist(command.subscription_id))

            await self.uow.commit()
            response = PaymentCycleDTO.from_entity(created)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_INITIAL_CYCLE_FAILED",
                    message="Failed to create initial payment cycle",
                    reason=str(e),
                )
            )

        await record_audit(
            self.uow,
            self.audit_repo,
            AuditAction.PAYMENT_CYCLE_CREATE,
            response.id,
            actor.user_id,
            {
                "cycle_number": 1,
                "cycle_start_date": response.cycle_start_date,
                "cycle_end_date": response.cycle_end_date,
            },
        )

        return Return.ok(response)
