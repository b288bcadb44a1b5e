"""Unit tests for DeclineCycle use case"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.payment_cycles import DeclineCycle, DeclineCycleCommandDTO
from src.domain import CycleStatus, PocApprovalStatus, AuditAction
from tests.factories import make_cycle, make_subscription, applying_transition, poc_actor, hod_actor


@pytest.fixture
def mock_cycle_repo():
    return MagicMock()


@pytest.fixture
def mock_user_repo():
    repo = MagicMock()
    repo.has_department_access = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def mock_audit_repo():
    repo = MagicMock()
    repo.create = AsyncMock()
    return repo


@pytest.fixture
def decline_use_case(mock_uow, mock_cycle_repo, mock_user_repo, mock_audit_repo):
    subscription_repo = MagicMock()
    subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
    return DeclineCycle(
        uow=mock_uow,
        cycle_repo=mock_cycle_repo,
        subscription_repo=subscription_repo,
        user_repo=mock_user_repo,
        audit_repo=mock_audit_repo,
    )


@pytest.mark.asyncio
class TestDeclineCycle:

    async def test_decline_sets_rejected(self, decline_use_case, mock_cycle_repo, mock_audit_repo):
        cycle = make_cycle()
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))

        result = await decline_use_case.execute(
            poc_actor(),
            DeclineCycleCommandDTO(cycle_id="cycle_1", reason="  Team moved to another tool  "),
        )

        assert result.is_ok()
        assert result.value.cycle_status == CycleStatus.REJECTED
        assert result.value.poc_approval_status == PocApprovalStatus.REJECTED
        assert result.value.poc_rejection_reason == "Team moved to another tool"
        assert mock_audit_repo.create.call_args.args[0].action == AuditAction.RENEWAL_REJECT

    @pytest.mark.parametrize("reason", ["", "too short", "   short    "])
    async def test_short_reason_rejected_before_any_lookup(
        self, decline_use_case, mock_cycle_repo, reason
    ):
        mock_cycle_repo.get_by_id = AsyncMock()

        result = await decline_use_case.execute(
            poc_actor(), DeclineCycleCommandDTO(cycle_id="cycle_1", reason=reason)
        )

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        mock_cycle_repo.get_by_id.assert_not_called()

    async def test_exactly_minimum_length_is_accepted(self, decline_use_case, mock_cycle_repo):
        cycle = make_cycle()
        mock_cycle_repo.get_by_id = AsyncMock(return_value=cycle)
        mock_cycle_repo.transition = AsyncMock(side_effect=applying_transition(cycle))

        result = await decline_use_case.execute(
            poc_actor(), DeclineCycleCommandDTO(cycle_id="cycle_1", reason="0123456789")
        )

        assert result.is_ok()

    async def test_hod_cannot_decline(self, decline_use_case):
        result = await decline_use_case.execute(
            hod_actor(), DeclineCycleCommandDTO(cycle_id="cycle_1", reason="Budget was cut this year")
        )

        assert result.is_err()
        assert result.error.code == "FORBIDDEN"

    async def test_cannot_decline_rejected_cycle(self, decline_use_case, mock_cycle_repo):
        mock_cycle_repo.get_by_id = AsyncMock(
            return_value=make_cycle(
                cycle_status=CycleStatus.REJECTED,
                poc_approval_status=PocApprovalStatus.REJECTED,
            )
        )

        result = await decline_use_case.execute(
            poc_actor(), DeclineCycleCommandDTO(cycle_id="cycle_1", reason="Budget was cut this year")
        )

        assert result.is_err()
        assert result.error.code == "INVALID_CYCLE_STATE"

    async def test_concurrent_approval_wins(self, decline_use_case, mock_cycle_repo, mock_uow):
        mock_cycle_repo.get_by_id = AsyncMock(return_value=make_cycle())
        mock_cycle_repo.transition = AsyncMock(return_value=None)

        result = await decline_use_case.execute(
            poc_actor(), DeclineCycleCommandDTO(cycle_id="cycle_1", reason="Budget was cut this year")
        )

        assert result.is_err()
        assert result.error.code == "CYCLE_STATE_CHANGED"
        mock_uow.rollback.assert_called_once()
