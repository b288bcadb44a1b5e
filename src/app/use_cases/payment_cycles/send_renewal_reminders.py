"""SendRenewalReminders Use Case

Scheduled job: daily reminder to POCs about renewals still awaiting
their approval, with urgency growing as the cycle start approaches.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date, timedelta
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService, NotificationMessage
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.notification_repository import NotificationRepository
from src.domain.cycle_calendar import DEFAULT_CREATION_WINDOW_DAYS, days_until
from src.domain.notification import NotificationType
from src.domain.payment_cycle import PocApprovalStatus
from .dtos import RenewalReminderResultDTO

logger = logging.getLogger(__name__)


def reminder_title(days_remaining: int) -> str:
    if days_remaining <= 0:
        return "Urgent: Renewal approval overdue"
    if days_remaining <= 2:
        return "Urgent: Renewal approval needed"
    if days_remaining <= 5:
        return "Reminder: Renewal approval pending"
    return "Renewal approval pending"


def reminder_message(tool_name: str, days_remaining: int) -> str:
    if days_remaining <= 0:
        return f"{tool_name} renewal requires your immediate approval"
    return f"{tool_name} renewal requires your approval ({days_remaining} days remaining)"


@dataclass(frozen=True)
class _PendingRow:
    id: str
    subscription_id: str
    cycle_start_date: date
    poc_approval_status: PocApprovalStatus


class SendRenewalReminders:
    """
    Use Case: Remind POCs of pending renewal approvals

    Business Rules:
    1. Covers cycles in PENDING_APPROVAL with poc_approval_status PENDING
       whose start date is at most window_days away (or already past)
    2. Every POC with access to the subscription's department is reminded
    3. At most one reminder per POC, cycle and day
    """

    def __init__(
        self,
        uow: UnitOfWork,
        cycle_repo: PaymentCycleRepository,
        subscription_repo: SubscriptionRepository,
        user_repo: UserRepository,
        notification_repo: NotificationRepository,
        notification_service: NotificationService,
        window_days: int = DEFAULT_CREATION_WINDOW_DAYS,
    ):
        self.uow = uow
        self.cycle_repo = cycle_repo
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo
        self.notification_repo = notification_repo
        self.notification_service = notification_service
        self.window_days = window_days

    async def execute(self, today: date) -> Result[RenewalReminderResultDTO]:
        start_time = time.time()
        logger.info(f"Starting renewal reminders for {today.isoformat()}")

        try:
            pending = await self.cycle_repo.get_pending_approval_starting_by(
                today + timedelta(days=self.window_days)
            )
            rows = [
                _PendingRow(
                    id=c.id,
                    subscription_id=c.subscription_id,
                    cycle_start_date=c.cycle_start_date,
                    poc_approval_status=c.poc_approval_status,
                )
                for c in pending
            ]
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SEND_RENEWAL_REMINDERS_FAILED",
                    message="Failed to fetch cycles awaiting approval",
                    reason=str(e),
                )
            )

        rows = [r for r in rows if r.poc_approval_status == PocApprovalStatus.PENDING]

        errors: list[str] = []
        reminders_sent = 0
        skipped = 0

        for row in rows:
            try:
                sent, already_sent = await self._remind(row, today)
            except Exception as e:
                await self.uow.rollback()
                errors.append(f"Error processing cycle {row.id}: {e}")
                logger.error(f"Error sending renewal reminders for cycle {row.id}: {e}")
                continue
            reminders_sent += sent
            skipped += already_sent

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Renewal reminders complete: {len(rows)} cycles, {reminders_sent} sent, "
            f"{skipped} skipped, {len(errors)} errors"
        )

        return Return.ok(
            RenewalReminderResultDTO(
                success=not errors,
                run_date=today,
                total_checked=len(rows),
                reminders_sent=reminders_sent,
                skipped=skipped,
                errors=errors,
                execution_time_ms=execution_time_ms,
            )
        )

    async def _remind(self, row: _PendingRow, today: date) -> tuple[int, int]:
        subscription = await self.subscription_repo.get_by_id(row.subscription_id)
        if subscription is None:
            raise LookupError(f"Subscription {row.subscription_id} not found")

        tool_name = subscription.tool_name
        poc_ids = await self.user_repo.get_poc_ids_for_department(subscription.department_id)
        days_remaining = days_until(row.cycle_start_date, today)

        sent = 0
        already_sent = 0
        for poc_id in poc_ids:
            if await self.notification_repo.exists_for_day(
                poc_id, NotificationType.RENEWAL_REMINDER, row.id, today
            ):
                already_sent += 1
                continue

            delivered = await self.notification_service.notify(
                NotificationMessage(
                    user_id=poc_id,
                    type=NotificationType.RENEWAL_REMINDER,
                    title=reminder_title(days_remaining),
                    message=reminder_message(tool_name, days_remaining),
                    subscription_id=row.subscription_id,
                    cycle_id=row.id,
                )
            )
            if delivered:
                sent += 1

        return sent, already_sent
