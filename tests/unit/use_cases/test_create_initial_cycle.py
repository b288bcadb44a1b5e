"""Unit tests for CreateInitialCycle use case"""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock

from src.app.repositories.payment_cycle_repository import DuplicatePaymentCycle
from src.app.use_cases.payment_cycles import CreateInitialCycle, CreateInitialCycleCommandDTO
from src.domain import (
    CycleStatus,
    PocApprovalStatus,
    PaymentStatus,
    SubscriptionStatus,
    BillingFrequency,
    AuditAction,
)
from tests.factories import make_cycle, make_subscription, finance_actor, poc_actor


@pytest.fixture
def mock_cycle_repo():
    repo = MagicMock()
    repo.get_latest_for_subscription = AsyncMock(return_value=None)

    async def _create(cycle):
        cycle.id = "cycle_new"
        return cycle

    repo.create = AsyncMock(side_effect=_create)
    return repo


@pytest.fixture
def mock_subscription_repo():
    repo = MagicMock()
    repo.get_by_id = AsyncMock(
        return_value=make_subscription(
            start_date=date(2025, 1, 1), billing_frequency=BillingFrequency.QUARTERLY
        )
    )
    return repo


@pytest.fixture
def mock_audit_repo():
    repo = MagicMock()
    repo.create = AsyncMock()
    return repo


@pytest.fixture
def create_initial_use_case(mock_uow, mock_cycle_repo, mock_subscription_repo, mock_audit_repo):
    return CreateInitialCycle(
        uow=mock_uow,
        cycle_repo=mock_cycle_repo,
        subscription_repo=mock_subscription_repo,
        audit_repo=mock_audit_repo,
    )


@pytest.mark.asyncio
class TestCreateInitialCycle:

    async def test_creates_cycle_one_awaiting_payment(
        self, create_initial_use_case, mock_cycle_repo, mock_audit_repo, mock_uow
    ):
        result = await create_initial_use_case.execute(
            finance_actor(), CreateInitialCycleCommandDTO(subscription_id="sub_1")
        )

        assert result.is_ok()
        cycle = result.value
        assert cycle.id == "cycle_new"
        assert cycle.cycle_number == 1
        assert cycle.cycle_start_date == date(2025, 1, 1)
        assert cycle.cycle_end_date == date(2025, 3, 31)
        assert cycle.invoice_deadline == date(2025, 3, 31)
        assert cycle.cycle_status == CycleStatus.PENDING_PAYMENT
        assert cycle.poc_approval_status == PocApprovalStatus.APPROVED
        assert cycle.payment_status == PaymentStatus.IN_PROGRESS
        assert mock_audit_repo.create.call_args.args[0].action == AuditAction.PAYMENT_CYCLE_CREATE
        assert mock_uow.commit.await_count == 2

    async def test_subscription_with_cycles_rejected(self, create_initial_use_case, mock_cycle_repo):
        mock_cycle_repo.get_latest_for_subscription = AsyncMock(return_value=make_cycle())

        result = await create_initial_use_case.execute(
            finance_actor(), CreateInitialCycleCommandDTO(subscription_id="sub_1")
        )

        assert result.is_err()
        assert result.error.code == "CYCLES_ALREADY_EXIST"
        mock_cycle_repo.create.assert_not_called()

    async def test_concurrent_insert_reported_as_existing(
        self, create_initial_use_case, mock_cycle_repo, mock_uow
    ):
        mock_cycle_repo.create = AsyncMock(side_effect=DuplicatePaymentCycle("sub_1", 1))

        result = await create_initial_use_case.execute(
            finance_actor(), CreateInitialCycleCommandDTO(subscription_id="sub_1")
        )

        assert result.is_err()
        assert result.error.code == "CYCLES_ALREADY_EXIST"
        mock_uow.rollback.assert_called_once()

    async def test_inactive_subscription_rejected(self, create_initial_use_case, mock_subscription_repo):
        mock_subscription_repo.get_by_id = AsyncMock(
            return_value=make_subscription(status=SubscriptionStatus.PENDING)
        )

        result = await create_initial_use_case.execute(
            finance_actor(), CreateInitialCycleCommandDTO(subscription_id="sub_1")
        )

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_ACTIVE"

    async def test_subscription_not_found(self, create_initial_use_case, mock_subscription_repo):
        mock_subscription_repo.get_by_id = AsyncMock(return_value=None)

        result = await create_initial_use_case.execute(
            finance_actor(), CreateInitialCycleCommandDTO(subscription_id="missing")
        )

        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_NOT_FOUND"

    async def test_poc_cannot_bootstrap_cycles(self, create_initial_use_case):
        result = await create_initial_use_case.execute(
            poc_actor(), CreateInitialCycleCommandDTO(subscription_id="sub_1")
        )

        assert result.is_err()
        assert result.error.code == "FORBIDDEN"
