"""Unit tests for AutoCancelOverdueCycles use case

Tests cover:
- Overdue cycles cancelled with the fixed reason
- POC and Finance notifications
- Deadline day itself is not overdue
- Cycles that got an invoice concurrently are left alone
- Per-cycle failures and fetch failures
"""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.payment_cycles import AutoCancelOverdueCycles
from src.app.use_cases.payment_cycles.auto_cancel_overdue import AUTO_CANCEL_TITLE
from src.domain import (
    CycleStatus,
    PocApprovalStatus,
    PaymentStatus,
    Department,
    AUTO_CANCEL_REASON,
    AuditAction,
    Role,
)
from tests.factories import make_cycle, make_subscription, make_user, applying_transition


def overdue_cycle(**overrides):
    values = dict(
        id="cycle_4",
        cycle_number=4,
        cycle_start_date=date(2025, 4, 1),
        cycle_end_date=date(2025, 4, 30),
        cycle_status=CycleStatus.PAYMENT_RECORDED,
        poc_approval_status=PocApprovalStatus.APPROVED,
        payment_status=PaymentStatus.PAID,
    )
    values.update(overrides)
    return make_cycle(**values)


@pytest.fixture
def cycle():
    return overdue_cycle()


@pytest.fixture
def mock_cycle_repo(cycle):
    repo = MagicMock()
    repo.get_overdue_without_invoice = AsyncMock(return_value=[cycle])
    repo.transition = AsyncMock(side_effect=applying_transition(cycle))
    return repo


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_subscription())
    repo.get_department = AsyncMock(return_value=Department(id="dept_engineering", name="Engineering"))
    return repo


@pytest.fixture
def mock_user_repo():
    repo = MagicMock()
    repo.get_by_email = AsyncMock(return_value=make_user())
    repo.get_user_ids_by_role = AsyncMock(return_value=["fin_1", "fin_2"])
    return repo


@pytest.fixture
def mock_audit_repo():
    repo = MagicMock()
    repo.create = AsyncMock()
    return repo


@pytest.fixture
def mock_notification_service():
    service = MagicMock()
    service.notify_many = AsyncMock(side_effect=lambda messages: len(messages))
    return service


@pytest.fixture
def auto_cancel_use_case(
    mock_uow, mock_cycle_repo, mock_subscription_repo, mock_user_repo, mock_audit_repo, mock_notification_service
):
    return AutoCancelOverdueCycles(
        uow=mock_uow,
        cycle_repo=mock_cycle_repo,
        subscription_repo=mock_subscription_repo,
        user_repo=mock_user_repo,
        audit_repo=mock_audit_repo,
        notification_service=mock_notification_service,
    )


@pytest.mark.asyncio
class TestAutoCancelSuccess:

    async def test_cancels_overdue_cycle(
        self, auto_cancel_use_case, cycle, mock_cycle_repo, mock_audit_repo, mock_uow
    ):
        """
        Given: Paid cycle #4 with deadline 2025-04-30 and no invoice
        When: Job runs on 2025-05-01
        Then: Cycle CANCELLED with the fixed reason, audit entry written
        """
        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        assert result.is_ok()
        summary = result.value
        assert summary.success is True
        assert summary.total_overdue == 1
        assert summary.cancelled_count == 1
        assert summary.cancelled_cycles[0].id == "cycle_4"
        assert summary.cancelled_cycles[0].poc_email == "poc@example.com"

        assert cycle.cycle_status == CycleStatus.CANCELLED
        assert cycle.poc_rejection_reason == AUTO_CANCEL_REASON

        call = mock_cycle_repo.transition.call_args
        assert call.kwargs["expected_status"] == CycleStatus.PAYMENT_RECORDED
        assert call.kwargs["require_no_invoice"] is True

        audit_entry = mock_audit_repo.create.call_args.args[0]
        assert audit_entry.action == AuditAction.PAYMENT_CYCLE_AUTO_CANCEL
        assert audit_entry.user_id is None
        mock_uow.commit.assert_called()

    async def test_notifies_poc_and_all_finance_users(
        self, auto_cancel_use_case, mock_user_repo, mock_notification_service
    ):
        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        messages = mock_notification_service.notify_many.call_args.args[0]
        assert [m.user_id for m in messages] == ["user_poc", "fin_1", "fin_2"]
        assert all(m.title == AUTO_CANCEL_TITLE for m in messages)
        assert "2025-04-30" in messages[0].message
        assert "Engineering" in messages[1].message
        mock_user_repo.get_user_ids_by_role.assert_called_once_with(Role.FINANCE)
        assert result.value.notifications_sent == 3

    async def test_unknown_department_named_in_finance_message(
        self, auto_cancel_use_case, mock_subscription_repo, mock_notification_service
    ):
        mock_subscription_repo.get_department = AsyncMock(return_value=None)

        await auto_cancel_use_case.execute(date(2025, 5, 1))

        messages = mock_notification_service.notify_many.call_args.args[0]
        assert "Unknown Dept" in messages[-1].message

    async def test_missing_poc_user_still_notifies_finance(
        self, auto_cancel_use_case, mock_user_repo, mock_notification_service
    ):
        mock_user_repo.get_by_email = AsyncMock(return_value=None)

        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        messages = mock_notification_service.notify_many.call_args.args[0]
        assert [m.user_id for m in messages] == ["fin_1", "fin_2"]
        assert result.value.cancelled_count == 1

    async def test_nothing_overdue(self, auto_cancel_use_case, mock_cycle_repo):
        mock_cycle_repo.get_overdue_without_invoice = AsyncMock(return_value=[])

        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        assert result.is_ok()
        assert result.value.success is True
        assert result.value.total_overdue == 0
        assert result.value.cancelled_count == 0


@pytest.mark.asyncio
class TestAutoCancelBoundaries:

    async def test_deadline_day_is_not_overdue(self, auto_cancel_use_case, mock_cycle_repo, cycle):
        """Even if the store returned it, a cycle due today is kept"""
        result = await auto_cancel_use_case.execute(date(2025, 4, 30))

        assert result.is_ok()
        assert result.value.total_overdue == 0
        assert cycle.cycle_status == CycleStatus.PAYMENT_RECORDED
        mock_cycle_repo.transition.assert_not_called()

    async def test_invoice_uploaded_concurrently_is_left_alone(
        self, auto_cancel_use_case, mock_cycle_repo, mock_notification_service, mock_uow
    ):
        mock_cycle_repo.transition = AsyncMock(return_value=None)

        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        assert result.is_ok()
        assert result.value.success is True
        assert result.value.total_overdue == 1
        assert result.value.cancelled_count == 0
        mock_uow.rollback.assert_called_once()
        mock_notification_service.notify_many.assert_not_called()


@pytest.mark.asyncio
class TestAutoCancelFailures:

    async def test_failure_on_one_cycle_continues_with_next(
        self, auto_cancel_use_case, mock_cycle_repo, mock_subscription_repo
    ):
        broken = overdue_cycle(id="cycle_broken", subscription_id="sub_gone")
        healthy = overdue_cycle()
        mock_cycle_repo.get_overdue_without_invoice = AsyncMock(return_value=[broken, healthy])
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(healthy))

        async def _get_subscription(subscription_id):
            if subscription_id == "sub_gone":
                return None
            return make_subscription()

        mock_subscription_repo.get_by_id = AsyncMock(side_effect=_get_subscription)

        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        assert result.is_ok()
        summary = result.value
        assert summary.success is False
        assert summary.total_overdue == 2
        assert summary.cancelled_count == 1
        assert len(summary.errors) == 1
        assert summary.errors[0].startswith("Error processing cycle cycle_broken:")

    async def test_fetch_failure_returns_error(self, auto_cancel_use_case, mock_cycle_repo):
        mock_cycle_repo.get_overdue_without_invoice = AsyncMock(side_effect=Exception("db down"))

        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        assert result.is_err()
        assert result.error.code == "AUTO_CANCEL_FAILED"

    async def test_notification_failure_keeps_cancellation(
        self, auto_cancel_use_case, mock_user_repo, cycle
    ):
        mock_user_repo.get_user_ids_by_role = AsyncMock(side_effect=Exception("timeout"))

        result = await auto_cancel_use_case.execute(date(2025, 5, 1))

        assert result.is_ok()
        assert result.value.success is True
        assert result.value.cancelled_count == 1
        assert result.value.notifications_sent == 0
        assert cycle.cycle_status == CycleStatus.CANCELLED
