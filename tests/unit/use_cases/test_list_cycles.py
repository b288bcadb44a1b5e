"""Unit tests for ListSubscriptionCycles use case"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.payment_cycles import ListSubscriptionCycles
from tests.factories import make_cycle, make_subscription, poc_actor, hod_actor


@pytest.fixture
def mock_user_repo():
    repo = MagicMock()
    repo.has_department_access = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def list_use_case(mock_user_repo):
    cycle_repo = MagicMock()
    cycle_repo.list_by_subscription = AsyncMock(
        return_value=[
            make_cycle(id="cycle_1", cycle_number=1),
            make_cycle(id="cycle_2", cycle_number=2),
        ]
    )
    subscription_repo = MagicMock()
    subscription_repo.get_by_id = AsyncMock(return_value=make_subscription())
    return ListSubscriptionCycles(
        cycle_repo=cycle_repo,
        subscription_repo=subscription_repo,
        user_repo=mock_user_repo,
    )


@pytest.mark.asyncio
class TestListSubscriptionCycles:

    async def test_hod_reads_any_subscription(self, list_use_case, mock_user_repo):
        result = await list_use_case.execute(hod_actor(), "sub_1")

        assert result.is_ok()
        assert [c.cycle_number for c in result.value.cycles] == [1, 2]
        mock_user_repo.has_department_access.assert_not_called()

    async def test_poc_with_access(self, list_use_case):
        result = await list_use_case.execute(poc_actor(), "sub_1")

        assert result.is_ok()
        assert result.value.subscription_id == "sub_1"

    async def test_poc_without_access(self, list_use_case, mock_user_repo):
        mock_user_repo.has_department_access = AsyncMock(return_value=False)

        result = await list_use_case.execute(poc_actor(), "sub_1")

        assert result.is_err()
        assert result.error.code == "DEPARTMENT_ACCESS_DENIED"
