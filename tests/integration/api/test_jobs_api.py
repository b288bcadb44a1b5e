"""Integration tests for the scheduled job trigger endpoints"""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch
from httpx import AsyncClient

from config import ApplicationConfig
from src.domain import CycleStatus, PocApprovalStatus, PaymentStatus
from src.libs.result import Error, Return
from tests.factories import make_cycle, make_subscription

JOB_HEADERS = {"Authorization": "Bearer scheduler-token"}


class TestJobCredentials:

    @pytest.mark.asyncio
    async def test_missing_authorization_returns_401(self, client: AsyncClient, org):
        response = await client.post("/jobs/auto-create-cycles")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_token_returns_401(self, client: AsyncClient, org, monkeypatch):
        monkeypatch.setattr(ApplicationConfig, "JOB_AUTH_TOKEN", "expected-token")

        response = await client.post(
            "/jobs/auto-cancel-invoices", headers={"Authorization": "Bearer guessed"}
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unsupported_method_returns_405(self, client: AsyncClient, org):
        response = await client.put("/jobs/auto-create-cycles", headers=JOB_HEADERS)

        assert response.status_code == 405


class TestJobRuns:

    @pytest.mark.asyncio
    async def test_auto_create_cycles(self, client: AsyncClient, db_session, org, monkeypatch):
        """GET with ?date= creates the next cycle and answers in camelCase"""
        monkeypatch.setattr(ApplicationConfig, "JOB_AUTH_TOKEN", "scheduler-token")
        db_session.add(make_subscription())
        db_session.add(make_cycle(
            id="cycle_3",
            cycle_number=3,
            cycle_status=CycleStatus.PENDING_PAYMENT,
            poc_approval_status=PocApprovalStatus.APPROVED,
        ))
        await db_session.commit()

        response = await client.get(
            "/jobs/auto-create-cycles", params={"date": "2025-03-25"}, headers=JOB_HEADERS
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["runDate"] == "2025-03-25"
        assert data["cyclesCreated"] == 1
        assert data["createdCycles"][0]["cycleNumber"] == 4
        assert data["createdCycles"][0]["cycleStartDate"] == "2025-04-01"

    @pytest.mark.asyncio
    async def test_auto_cancel_invoices(self, client: AsyncClient, db_session, org):
        db_session.add(make_subscription())
        db_session.add(make_cycle(
            id="cycle_4",
            cycle_number=4,
            cycle_start_date=date(2025, 4, 1),
            cycle_end_date=date(2025, 4, 30),
            cycle_status=CycleStatus.PAYMENT_RECORDED,
            poc_approval_status=PocApprovalStatus.APPROVED,
            payment_status=PaymentStatus.PAID,
        ))
        await db_session.commit()

        response = await client.post(
            "/jobs/auto-cancel-invoices", params={"date": "2025-05-01"}, headers=JOB_HEADERS
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cancelledCount"] == 1
        assert data["notificationsSent"] == 3
        assert data["cancelledCycles"][0]["id"] == "cycle_4"

    @pytest.mark.asyncio
    async def test_send_renewal_reminders(self, client: AsyncClient, db_session, org):
        db_session.add(make_subscription())
        db_session.add(make_cycle(
            id="cycle_4",
            cycle_number=4,
            cycle_start_date=date(2025, 4, 1),
            cycle_end_date=date(2025, 4, 30),
        ))
        await db_session.commit()

        response = await client.post(
            "/jobs/send-renewal-reminders", params={"date": "2025-03-28"}, headers=JOB_HEADERS
        )

        assert response.status_code == 200
        assert response.json()["remindersSent"] == 1

    @pytest.mark.asyncio
    async def test_failed_run_returns_500(self, client: AsyncClient, org):
        failing = MagicMock()
        failing.execute = AsyncMock(
            return_value=Return.err(
                Error(code="CREATE_NEXT_CYCLES_FAILED", message="Cycle creation failed", reason="db down")
            )
        )

        with patch("src.api.routes.jobs.CreateNextCycles", return_value=failing):
            response = await client.post("/jobs/auto-create-cycles", headers=JOB_HEADERS)

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["errors"] == ["db down"]
