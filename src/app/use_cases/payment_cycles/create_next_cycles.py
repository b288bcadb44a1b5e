"""CreateNextCycles Use Case

Scheduled job: materializes the next payment cycle of every active
subscription whose next period starts within the creation window.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Optional
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService, NotificationMessage
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository, DuplicatePaymentCycle
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_calendar import (
    DEFAULT_CREATION_WINDOW_DAYS,
    invoice_deadline,
    next_cycle_dates,
    should_create_next_cycle,
)
from src.domain.notification import NotificationType
from src.domain.payment_cycle import (
    PaymentCycle,
    CycleStatus,
    PocApprovalStatus,
    PaymentStatus,
    AccountingStatus,
)
from src.domain.subscription import BillingFrequency
from .common import record_audit
from .dtos import CreatedCycleDTO, CycleCreationResultDTO

logger = logging.getLogger(__name__)


class _CycleInsertFailed(Exception):
    pass


@dataclass(frozen=True)
class _SubscriptionRow:
    id: str
    code: str
    tool_name: str
    department_id: str
    billing_frequency: BillingFrequency


class CreateNextCycles:
    """
    Use Case: Create upcoming payment cycles

    Business Rules:
    1. Only ACTIVE subscriptions with at least one cycle are considered;
       cycle #1 comes from CreateInitialCycle
    2. The next cycle starts the day after the latest cycle ends
    3. It is created iff 0 <= (next_start - today) <= window_days
    4. New cycles start in PENDING_APPROVAL / PENDING / IN_PROGRESS / PENDING
    5. (subscription_id, cycle_number) is unique in storage; a duplicate
       insert means another run got there first and is skipped, not an error
    6. Each subscription commits on its own; one failure does not stop the run

    Flow:
    1. Load active subscriptions
    2. Per subscription: load latest cycle, apply the window, insert, commit
    3. Audit entry and notify the department's POCs (best-effort)
    4. Return run summary
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        cycle_repo: PaymentCycleRepository,
        user_repo: UserRepository,
        audit_repo: AuditLogRepository,
        notification_service: NotificationService,
        window_days: int = DEFAULT_CREATION_WINDOW_DAYS,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.cycle_repo = cycle_repo
        self.user_repo = user_repo
        self.audit_repo = audit_repo
        self.notification_service = notification_service
        self.window_days = window_days

    async def execute(self, today: date) -> Result[CycleCreationResultDTO]:
        """
        Execute one creation run

        Args:
            today: Date the creation window is evaluated against

        Returns:
            Result[CycleCreationResultDTO]: Run summary, or error if the
            subscriptions could not be loaded at all
        """
        start_time = time.time()
        logger.info(f"Starting payment cycle creation for {today.isoformat()}")

        try:
            subscriptions = await self.subscription_repo.get_active_subscriptions()
            rows = [
                _SubscriptionRow(
                    id=s.id,
                    code=s.subscription_code,
                    tool_name=s.tool_name,
                    department_id=s.department_id,
                    billing_frequency=s.billing_frequency,
                )
                for s in subscriptions
            ]
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_CYCLES_FAILED",
                    message="Failed to fetch active subscriptions",
                    reason=str(e),
                )
            )

        logger.info(f"Found {len(rows)} active subscriptions")

        errors: list[str] = []
        created_cycles: list[CreatedCycleDTO] = []
        notifications_sent = 0

        for row in rows:
            try:
                created = await self._create_next_cycle(row, today)
            except _CycleInsertFailed as e:
                await self.uow.rollback()
                errors.append(str(e))
                logger.error(str(e))
                continue
            except Exception as e:
                await self.uow.rollback()
                errors.append(f"Error processing subscription {row.code}: {e}")
                logger.error(f"Error processing subscription {row.code}: {e}")
                continue

            if created is None:
                continue

            created_cycles.append(created)
            logger.info(
                f"Created cycle #{created.cycle_number} for {row.code} "
                f"({created.cycle_start_date} to {created.cycle_end_date})"
            )

            await record_audit(
                self.uow,
                self.audit_repo,
                AuditAction.PAYMENT_CYCLE_CREATE,
                created.cycle_id,
                None,
                {
                    "cycle_number": created.cycle_number,
                    "cycle_start_date": created.cycle_start_date,
                    "cycle_end_date": created.cycle_end_date,
                    "source": "auto-create-cycles",
                },
            )
            notifications_sent += await self._notify_pocs(row, created)

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Payment cycle creation complete: {len(created_cycles)} cycles created, "
            f"{len(errors)} errors, {execution_time_ms}ms"
        )

        return Return.ok(
            CycleCreationResultDTO(
                success=not errors,
                run_date=today,
                total_checked=len(rows),
                cycles_created=len(created_cycles),
                notifications_sent=notifications_sent,
                errors=errors,
                created_cycles=created_cycles,
                execution_time_ms=execution_time_ms,
            )
        )

    async def _create_next_cycle(self, row: _SubscriptionRow, today: date) -> Optional[CreatedCycleDTO]:
        latest = await self.cycle_repo.get_latest_for_subscription(row.id)
        if latest is None:
            logger.info(f"Subscription {row.code} has no cycles yet, skipping")
            return None

        if not should_create_next_cycle(latest.cycle_end_date, today, self.window_days):
            logger.debug(
                f"Subscription {row.code} not due (last cycle ended {latest.cycle_end_date})"
            )
            return None

        start, end = next_cycle_dates(latest.cycle_end_date, row.billing_frequency)
        cycle = PaymentCycle(
            subscription_id=row.id,
            cycle_number=latest.cycle_number + 1,
            cycle_start_date=start,
            cycle_end_date=end,
            invoice_deadline=invoice_deadline(end),
            cycle_status=CycleStatus.PENDING_APPROVAL,
            poc_approval_status=PocApprovalStatus.PENDING,
            payment_status=PaymentStatus.IN_PROGRESS,
            accounting_status=AccountingStatus.PENDING,
        )

        try:
            created = await self.cycle_repo.create(cycle)
            await self.uow.commit()
        except DuplicatePaymentCycle as e:
            await self.uow.rollback()
            logger.info(f"{e}, skipping")
            return None
        except Exception as e:
            raise _CycleInsertFailed(f"Failed to create cycle for {row.code}: {e}") from e

        return CreatedCycleDTO(
            cycle_id=created.id,
            subscription_id=row.id,
            subscription_code=row.code,
            tool_name=row.tool_name,
            cycle_number=created.cycle_number,
            cycle_start_date=created.cycle_start_date,
            cycle_end_date=created.cycle_end_date,
        )

    async def _notify_pocs(self, row: _SubscriptionRow, created: CreatedCycleDTO) -> int:
        try:
            poc_ids = await self.user_repo.get_poc_ids_for_department(row.department_id)
        except Exception as e:
            logger.error(f"Failed to resolve POCs for subscription {row.code}: {e}")
            await self.uow.rollback()
            return 0

        return await self.notification_service.notify_many([
            NotificationMessage(
                user_id=poc_id,
                type=NotificationType.APPROVAL_REQUEST,
                title="Renewal approval required",
                message=(
                    f"{row.tool_name} payment cycle #{created.cycle_number} starts on "
                    f"{created.cycle_start_date.isoformat()} and needs your renewal approval."
                ),
                subscription_id=row.id,
                cycle_id=created.cycle_id,
            )
            for poc_id in poc_ids
        ])
