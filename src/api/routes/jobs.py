"""Scheduled Job Trigger Routes

HTTP triggers for the cycle jobs, called by an external scheduler (cron).
Each accepts GET or POST with a bearer token and answers with a camelCase
JSON summary: 200 when the run completed (even with per-item errors),
500 when the run itself failed.
"""

import logging
from datetime import date, datetime
from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import JSONResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import ClientError
from src.app.use_cases.payment_cycles import (
    CreateNextCycles,
    AutoCancelOverdueCycles,
    SendRenewalReminders,
)
from src.adapter.repositories import (
    SqlAlchemyPaymentCycleRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyAuditLogRepository,
)
from src.adapter.services import SqlAlchemyUnitOfWork, create_notification_service
from src.depends import get_session
from src.libs.result import Error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


async def require_job_credentials(authorization: Optional[str] = Header(default=None)):
    """
    Check the scheduler's bearer token

    Without JOB_AUTH_TOKEN configured only the header's presence is checked.
    """
    if not authorization:
        raise ClientError(
            Error(code="AUTHENTICATION_REQUIRED", message="Missing authorization header"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    expected = ApplicationConfig.JOB_AUTH_TOKEN
    if expected and authorization != f"Bearer {expected}":
        raise ClientError(
            Error(code="AUTHENTICATION_REQUIRED", message="Invalid job credentials"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


def _run_date(run_date: Optional[date]) -> date:
    return run_date or datetime.utcnow().date()


def _job_response(result) -> JSONResponse:
    if result.is_err():
        logger.error(f"Job failed: {result.error.message} ({result.error.reason})")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": result.error.message,
                "errors": [result.error.reason or result.error.message],
            },
        )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=result.value.model_dump(mode="json", by_alias=True),
    )


def _unexpected_failure(job_name: str, e: Exception) -> JSONResponse:
    logger.exception(f"{job_name} failed: {e}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": str(e), "errors": [str(e)]},
    )


@router.api_route(
    "/auto-create-cycles",
    methods=["GET", "POST"],
    dependencies=[Depends(require_job_credentials)],
)
async def auto_create_cycles(
    run_date: Optional[date] = Query(default=None, alias="date"),
    session: AsyncSession = Depends(get_session),
):
    """
    Create the next payment cycle for every active subscription whose next
    period starts within the creation window.

    **Query:** `date` (optional, YYYY-MM-DD) evaluates the window against
    that day instead of today.
    """
    try:
        use_case = CreateNextCycles(
            uow=SqlAlchemyUnitOfWork(session),
            subscription_repo=SqlAlchemySubscriptionRepository(session),
            cycle_repo=SqlAlchemyPaymentCycleRepository(session),
            user_repo=SqlAlchemyUserRepository(session),
            audit_repo=SqlAlchemyAuditLogRepository(session),
            notification_service=create_notification_service(
                session, ApplicationConfig.NOTIFICATION_WEBHOOK
            ),
            window_days=ApplicationConfig.CYCLE_CREATION_WINDOW_DAYS,
        )
        result = await use_case.execute(_run_date(run_date))
    except Exception as e:
        return _unexpected_failure("auto-create-cycles", e)

    return _job_response(result)


@router.api_route(
    "/auto-cancel-invoices",
    methods=["GET", "POST"],
    dependencies=[Depends(require_job_credentials)],
)
async def auto_cancel_invoices(
    run_date: Optional[date] = Query(default=None, alias="date"),
    session: AsyncSession = Depends(get_session),
):
    """
    Cancel PAYMENT_RECORDED cycles whose invoice deadline passed without an
    invoice, and notify the POC and Finance.
    """
    try:
        use_case = AutoCancelOverdueCycles(
            uow=SqlAlchemyUnitOfWork(session),
            cycle_repo=SqlAlchemyPaymentCycleRepository(session),
            subscription_repo=SqlAlchemySubscriptionRepository(session),
            user_repo=SqlAlchemyUserRepository(session),
            audit_repo=SqlAlchemyAuditLogRepository(session),
            notification_service=create_notification_service(
                session, ApplicationConfig.NOTIFICATION_WEBHOOK
            ),
        )
        result = await use_case.execute(_run_date(run_date))
    except Exception as e:
        return _unexpected_failure("auto-cancel-invoices", e)

    return _job_response(result)


@router.api_route(
    "/send-renewal-reminders",
    methods=["GET", "POST"],
    dependencies=[Depends(require_job_credentials)],
)
async def send_renewal_reminders(
    run_date: Optional[date] = Query(default=None, alias="date"),
    session: AsyncSession = Depends(get_session),
):
    """Remind POCs about renewals still awaiting their approval."""
    try:
        use_case = SendRenewalReminders(
            uow=SqlAlchemyUnitOfWork(session),
            cycle_repo=SqlAlchemyPaymentCycleRepository(session),
            subscription_repo=SqlAlchemySubscriptionRepository(session),
            user_repo=SqlAlchemyUserRepository(session),
            notification_repo=SqlAlchemyNotificationRepository(session),
            notification_service=create_notification_service(
                session, ApplicationConfig.NOTIFICATION_WEBHOOK
            ),
            window_days=ApplicationConfig.CYCLE_CREATION_WINDOW_DAYS,
        )
        result = await use_case.execute(_run_date(run_date))
    except Exception as e:
        return _unexpected_failure("send-renewal-reminders", e)

    return _job_response(result)
