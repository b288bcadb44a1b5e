"""AutoCancelOverdueCycles Use Case

Scheduled job: cancels paid cycles whose invoice deadline has passed
without an invoice, then tells the POC and Finance.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from src.libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.notification_service import NotificationService, NotificationMessage
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.audit_log_repository import AuditLogRepository
from src.domain.audit_log import AuditAction
from src.domain.cycle_calendar import is_invoice_overdue
from src.domain.cycle_state_machine import CycleAction, transition
from src.domain.notification import NotificationType
from src.domain.payment_cycle import CycleStatus, AUTO_CANCEL_REASON
from src.domain.subscription import Subscription
from src.domain.user import Role
from .common import record_audit
from .dtos import CancelledCycleDTO, AutoCancelResultDTO

logger = logging.getLogger(__name__)

AUTO_CANCEL_TITLE = "Payment Cycle Auto-Cancelled"


@dataclass(frozen=True)
class _OverdueRow:
    id: str
    subscription_id: str
    cycle_number: int
    invoice_deadline: date


class AutoCancelOverdueCycles:
    """
    Use Case: Cancel payment cycles with a missed invoice deadline

    Business Rules:
    1. Overdue means PAYMENT_RECORDED, no invoice, invoice_deadline < today;
       the deadline day itself is still on time
    2. Cycles are processed oldest deadline first
    3. The cancel is a conditional update that re-asserts the status and the
       missing invoice; a cycle that got its invoice in the meantime is left alone
    4. Cancellation commits before the audit entry and notifications, which
       are best-effort
    5. Notifies the subscription's POC (by email) and every FINANCE user

    Flow:
    1. Load overdue cycles
    2. Per cycle: load subscription, conditional cancel, commit
    3. Audit entry, POC and Finance notifications
    4. Return run summary (success only if no cycle failed)
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

    async def execute(self, today: date) -> Result[AutoCancelResultDTO]:
        start_time = time.time()
        logger.info(f"Starting overdue invoice cancellation for {today.isoformat()}")

        try:
            overdue = await self.cycle_repo.get_overdue_without_invoice(today)
            rows = [
                _OverdueRow(
                    id=c.id,
                    subscription_id=c.subscription_id,
                    cycle_number=c.cycle_number,
                    invoice_deadline=c.invoice_deadline,
                )
                for c in overdue
                if is_invoice_overdue(c.invoice_deadline, today)
            ]
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="AUTO_CANCEL_FAILED",
                    message="Failed to fetch overdue cycles",
                    reason=str(e),
                )
            )

        if not rows:
            logger.info("No overdue invoices found")
        else:
            logger.info(f"Found {len(rows)} overdue payment cycles to process")

        errors: list[str] = []
        cancelled_cycles: list[CancelledCycleDTO] = []
        notifications_sent = 0

        for row in rows:
            try:
                cancelled = await self._cancel(row)
            except Exception as e:
                await self.uow.rollback()
                errors.append(f"Error processing cycle {row.id}: {e}")
                logger.error(f"Error processing cycle {row.id}: {e}")
                continue

            if cancelled is None:
                continue

            cancelled_dto, department_name = cancelled
            cancelled_cycles.append(cancelled_dto)
            logger.info(
                f"Auto-cancelled cycle #{row.cycle_number} of {cancelled_dto.tool_name} "
                f"(deadline {row.invoice_deadline.isoformat()})"
            )

            await record_audit(
                self.uow,
                self.audit_repo,
                AuditAction.PAYMENT_CYCLE_AUTO_CANCEL,
                row.id,
                None,
                {
                    "subscription_id": row.subscription_id,
                    "cycle_number": row.cycle_number,
                    "invoice_deadline": row.invoice_deadline,
                    "reason": AUTO_CANCEL_REASON,
                },
            )
            notifications_sent += await self._notify(cancelled_dto, department_name)

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Auto-cancel processing complete: {len(rows)} overdue, "
            f"{len(cancelled_cycles)} cancelled, {notifications_sent} notifications, "
            f"{len(errors)} errors"
        )

        return Return.ok(
            AutoCancelResultDTO(
                success=not errors,
                run_date=today,
                total_overdue=len(rows),
                cancelled_count=len(cancelled_cycles),
                notifications_sent=notifications_sent,
                errors=errors,
                cancelled_cycles=cancelled_cycles,
                execution_time_ms=execution_time_ms,
            )
        )

    async def _cancel(self, row: _OverdueRow) -> Optional[tuple[CancelledCycleDTO, Optional[str]]]:
        subscription = await self.subscription_repo.get_by_id(row.subscription_id)
        if subscription is None:
            raise LookupError(f"Subscription {row.subscription_id} not found")

        department = await self.subscription_repo.get_department(subscription.department_id)
        department_name = department.name if department else None
        summary = self._summary(row, subscription)

        updated = await self.cycle_repo.transition(
            row.id,
            expected_status=CycleStatus.PAYMENT_RECORDED,
            values={
                "cycle_status": transition(CycleStatus.PAYMENT_RECORDED, CycleAction.AUTO_CANCEL),
                "poc_rejection_reason": AUTO_CANCEL_REASON,
                "updated_at": datetime.utcnow(),
            },
            require_no_invoice=True,
        )
        if updated is None:
            await self.uow.rollback()
            logger.info(f"Cycle {row.id} changed since it was selected, skipping")
            return None

        await self.uow.commit()
        return summary, department_name

    @staticmethod
    def _summary(row: _OverdueRow, subscription: Subscription) -> CancelledCycleDTO:
        return CancelledCycleDTO(
            id=row.id,
            subscription_id=row.subscription_id,
            tool_name=subscription.tool_name,
            poc_email=subscription.poc_email,
            cycle_number=row.cycle_number,
            invoice_deadline=row.invoice_deadline,
        )

    async def _notify(self, cycle: CancelledCycleDTO, department_name: Optional[str]) -> int:
        messages: list[NotificationMessage] = []

        try:
            if cycle.poc_email:
                poc = await self.user_repo.get_by_email(cycle.poc_email)
                if poc is not None:
                    messages.append(
                        NotificationMessage(
                            user_id=poc.id,
                            type=NotificationType.PAYMENT_UPDATE,
                            title=AUTO_CANCEL_TITLE,
                            message=(
                                f"Payment cycle #{cycle.cycle_number} for {cycle.tool_name} "
                                f"was automatically cancelled due to missed invoice deadline "
                                f"({cycle.invoice_deadline.isoformat()})."
                            ),
                            subscription_id=cycle.subscription_id,
                            cycle_id=cycle.id,
                        )
                    )
                else:
                    logger.warning(f"No user found for POC email {cycle.poc_email}")

            finance_ids = await self.user_repo.get_user_ids_by_role(Role.FINANCE)
        except Exception as e:
            logger.error(f"Failed to resolve notification recipients for cycle {cycle.id}: {e}")
            await self.uow.rollback()
            return 0

        for user_id in finance_ids:
            messages.append(
                NotificationMessage(
                    user_id=user_id,
                    type=NotificationType.PAYMENT_UPDATE,
                    title=AUTO_CANCEL_TITLE,
                    message=(
                        f"Payment cycle #{cycle.cycle_number} for {cycle.tool_name} "
                        f"({department_name or 'Unknown Dept'}) was automatically cancelled "
                        f"due to missed invoice deadline."
                    ),
                    subscription_id=cycle.subscription_id,
                    cycle_id=cycle.id,
                )
            )

        return await self.notification_service.notify_many(messages)
