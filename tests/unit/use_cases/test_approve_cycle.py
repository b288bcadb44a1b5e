"""Unit tests for ApproveCycle use case

Tests cover:
- Successful approval moves PENDING_APPROVAL to PENDING_PAYMENT
- Role and department access checks
- State conflicts (wrong status, concurrent change)
- Audit entry written after commit
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.payment_cycles import ApproveCycle, ApproveCycleCommandDTO
from src.domain import CycleStatus, PocApprovalStatus, PaymentStatus, NotificationType, AuditAction
from tests.factories import (
    make_cycle,
    make_subscription,
    make_user,
    applying_transition,
    poc_actor,
    admin_actor,
    finance_actor,
)


@pytest.fixture
def mock_cycle_repo():
    return MagicMock()


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=make_subscription())
    return repo


@pytest.fixture
def mock_user_repo():
    repo = MagicMock()
    repo.has_department_access = AsyncMock(return_value=True)
    repo.get_by_email = AsyncMock(return_value=make_user())
    return repo


@pytest.fixture
def mock_audit_repo():
    repo = MagicMock()
    repo.create = AsyncMock()
    return repo


@pytest.fixture
def mock_notification_service():
    service = MagicMock()
    service.notify = AsyncMock(return_value=True)
    return service


@pytest.fixture
def approve_use_case(
    mock_uow, mock_cycle_repo, mock_subscription_repo, mock_user_repo, mock_audit_repo, mock_notification_service
):
    return ApproveCycle(
        uow=mock_uow,
        cycle_repo=mock_cycle_repo,
        subscription_repo=mock_subscription_repo,
        user_repo=mock_user_repo,
        audit_repo=mock_audit_repo,
        notification_service=mock_notification_service,
    )


@pytest.mark.asyncio
class TestApproveCycleSuccess:

    async def test_approve_moves_to_pending_payment(
        self, approve_use_case, mock_cycle_repo, mock_audit_repo, mock_uow
    ):
        """
        Given: Cycle awaiting approval and a POC with department access
        When: The POC approves
        Then: Cycle is PENDING_PAYMENT / APPROVED, approver recorded, committed
        """
        cycle = make_cycle()
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1", comments="Still in use")
        )

        assert result.is_ok()
        assert result.value.cycle_status == CycleStatus.PENDING_PAYMENT
        assert result.value.poc_approval_status == PocApprovalStatus.APPROVED
        assert result.value.poc_approved_by == "user_poc"
        assert result.value.poc_approved_at is not None

        call = mock_cycle_repo.transition.call_args
        assert call.kwargs["expected_status"] == CycleStatus.PENDING_APPROVAL
        assert mock_uow.commit.await_count == 2  # transition + audit

        audit_entry = mock_audit_repo.create.call_args.args[0]
        assert audit_entry.action == AuditAction.RENEWAL_APPROVE
        assert audit_entry.entity_id == "cycle_1"
        assert audit_entry.user_id == "user_poc"
        assert json.loads(audit_entry.details)["comments"] == "Still in use"

    async def test_admin_bypasses_department_access(
        self, approve_use_case, mock_cycle_repo, mock_user_repo
    ):
        cycle = make_cycle()
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))
        mock_user_repo.has_department_access = AsyncMock(return_value=False)

        result = await approve_use_case.execute(
            admin_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_ok()
        mock_user_repo.has_department_access.assert_not_called()

    async def test_approval_of_paid_cycle_enters_payment_recorded(
        self, approve_use_case, mock_cycle_repo, mock_notification_service
    ):
        """
        Given: Finance recorded PAID while the cycle awaited approval
        When: The POC approves
        Then: One update moves it to PAYMENT_RECORDED and the POC is asked for the invoice
        """
        cycle = make_cycle(payment_status=PaymentStatus.PAID)
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_ok()
        assert result.value.cycle_status == CycleStatus.PAYMENT_RECORDED
        assert result.value.poc_approval_status == PocApprovalStatus.APPROVED
        mock_cycle_repo.transition.assert_called_once()
        assert mock_cycle_repo.transition.call_args.kwargs["expected_status"] == CycleStatus.PENDING_APPROVAL

        message = mock_notification_service.notify.call_args.args[0]
        assert message.user_id == "user_poc"
        assert message.type == NotificationType.PAYMENT_UPDATE

    async def test_unpaid_cycle_approval_sends_no_payment_notice(
        self, approve_use_case, mock_cycle_repo, mock_notification_service
    ):
        cycle = make_cycle()
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))

        await approve_use_case.execute(poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1"))

        mock_notification_service.notify.assert_not_called()

    async def test_audit_failure_does_not_undo_approval(
        self, approve_use_case, mock_cycle_repo, mock_audit_repo, mock_uow
    ):
        cycle = make_cycle()
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))
        mock_audit_repo.create = AsyncMock(side_effect=Exception("audit table locked"))

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_ok()
        assert result.value.cycle_status == CycleStatus.PENDING_PAYMENT
        mock_uow.rollback.assert_called_once()


@pytest.mark.asyncio
class TestApproveCycleAuthorization:

    async def test_finance_cannot_approve(self, approve_use_case, mock_cycle_repo):
        mock_cycle_repo.get_by_id = AsyncMock()

        result = await approve_use_case.execute(
            finance_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_err()
        assert result.error.code == "FORBIDDEN"
        mock_cycle_repo.get_by_id.assert_not_called()

    async def test_poc_without_department_access_is_denied(
        self, approve_use_case, mock_cycle_repo, mock_user_repo
    ):
        mock_cycle_repo.get_by_id = AsyncMock(return_value=make_cycle())
        mock_cycle_repo.transition = AsyncMock()
        mock_user_repo.has_department_access = AsyncMock(return_value=False)

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_err()
        assert result.error.code == "DEPARTMENT_ACCESS_DENIED"
        mock_cycle_repo.transition.assert_not_called()


@pytest.mark.asyncio
class TestApproveCycleConflicts:

    async def test_cycle_not_found(self, approve_use_case, mock_cycle_repo):
        mock_cycle_repo.get_by_id = AsyncMock(return_value=None)

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="missing")
        )

        assert result.is_err()
        assert result.error.code == "PAYMENT_CYCLE_NOT_FOUND"

    @pytest.mark.parametrize(
        "status",
        [
            CycleStatus.PENDING_PAYMENT,
            CycleStatus.PAYMENT_RECORDED,
            CycleStatus.REJECTED,
            CycleStatus.COMPLETED,
            CycleStatus.CANCELLED,
        ],
    )
    async def test_only_pending_approval_can_be_approved(
        self, approve_use_case, mock_cycle_repo, status
    ):
        mock_cycle_repo.get_by_id = AsyncMock(return_value=make_cycle(cycle_status=status))
        mock_cycle_repo.transition = AsyncMock()

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_err()
        assert result.error.code == "INVALID_CYCLE_STATE"
        mock_cycle_repo.transition.assert_not_called()

    async def test_concurrent_change_reports_state_changed(
        self, approve_use_case, mock_cycle_repo, mock_uow, mock_audit_repo
    ):
        """
        Given: Another action changed the cycle after it was read
        When: The conditional update matches no row
        Then: CYCLE_STATE_CHANGED, rolled back, no audit entry
        """
        mock_cycle_repo.get_by_id = AsyncMock(return_value=make_cycle())
        mock_cycle_repo.transition = AsyncMock(return_value=None)

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_err()
        assert result.error.code == "CYCLE_STATE_CHANGED"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()
        mock_audit_repo.create.assert_not_called()

    async def test_repository_error_is_wrapped(self, approve_use_case, mock_cycle_repo, mock_uow):
        mock_cycle_repo.get_by_id = AsyncMock(return_value=make_cycle())
        mock_cycle_repo.transition = AsyncMock(side_effect=Exception("connection reset"))

        result = await approve_use_case.execute(
            poc_actor(), ApproveCycleCommandDTO(cycle_id="cycle_1")
        )

        assert result.is_err()
        assert result.error.code == "APPROVE_CYCLE_FAILED"
        assert "connection reset" in result.error.reason
        mock_uow.rollback.assert_called_once()
