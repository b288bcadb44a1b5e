"""Payment Cycle API Routes

FastAPI routes for the user-invoked payment cycle transitions.
The caller is identified by the X-User-Id header (see get_current_actor).
"""

from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.error import raise_for_error
from src.api.schemas.payment_cycle_request import (
    ApproveCycleRequestSchema,
    DeclineCycleRequestSchema,
    RecordPaymentRequestSchema,
    UploadInvoiceRequestSchema,
    CancelCycleRequestSchema,
)
from src.app.use_cases.payment_cycles import (
    ApproveCycle,
    DeclineCycle,
    RecordPayment,
    UploadInvoice,
    CancelCycle,
    CreateInitialCycle,
    ListSubscriptionCycles,
    Actor,
    ApproveCycleCommandDTO,
    DeclineCycleCommandDTO,
    RecordPaymentCommandDTO,
    UploadInvoiceCommandDTO,
    CancelCycleCommandDTO,
    CreateInitialCycleCommandDTO,
    PaymentCycleDTO,
    PaymentCycleListDTO,
)
from src.adapter.repositories import (
    SqlAlchemyPaymentCycleRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyAuditLogRepository,
)
from src.adapter.services import SqlAlchemyUnitOfWork, create_notification_service
from src.depends import get_session, get_current_actor

router = APIRouter(tags=["Payment Cycles"])

CONFLICT_RESPONSE = {
    409: {
        "description": "Cycle is not in a state that accepts this action",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "INVALID_CYCLE_STATE",
                        "message": "Payment cycle is COMPLETED and cannot accept this action",
                        "reason": "Cannot apply POC_APPROVE to a payment cycle in COMPLETED status"
                    }
                }
            }
        }
    },
    403: {"description": "Missing role or department access"},
    404: {"description": "Payment cycle not found"},
}


@router.post(
    "/payment-cycles/{cycle_id}/approve",
    response_model=PaymentCycleDTO,
    status_code=status.HTTP_200_OK,
    responses=CONFLICT_RESPONSE,
)
async def approve_cycle(
    cycle_id: str,
    request: ApproveCycleRequestSchema,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """
    Approve the renewal of a payment cycle (POC).

    Moves the cycle from PENDING_APPROVAL to PENDING_PAYMENT, or to
    PAYMENT_RECORDED when the payment is already PAID.

    **Returns:**
    - 200: Cycle approved
    - 403: Caller is not a POC of the subscription's department
    - 404: Cycle not found
    - 409: Cycle is not awaiting approval, or changed concurrently
    """
    use_case = ApproveCycle(
        uow=SqlAlchemyUnitOfWork(session),
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        user_repo=SqlAlchemyUserRepository(session),
        audit_repo=SqlAlchemyAuditLogRepository(session),
        notification_service=create_notification_service(
            session, ApplicationConfig.NOTIFICATION_WEBHOOK
        ),
    )
    result = await use_case.execute(
        actor, ApproveCycleCommandDTO(cycle_id=cycle_id, comments=request.comments)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/payment-cycles/{cycle_id}/decline",
    response_model=PaymentCycleDTO,
    status_code=status.HTTP_200_OK,
    responses=CONFLICT_RESPONSE,
)
async def decline_cycle(
    cycle_id: str,
    request: DeclineCycleRequestSchema,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """
    Decline the renewal of a payment cycle (POC).

    The reason must be at least 10 characters. REJECTED is final for the cycle.
    """
    use_case = DeclineCycle(
        uow=SqlAlchemyUnitOfWork(session),
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        user_repo=SqlAlchemyUserRepository(session),
        audit_repo=SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(
        actor, DeclineCycleCommandDTO(cycle_id=cycle_id, reason=request.reason)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/payment-cycles/{cycle_id}/payment",
    response_model=PaymentCycleDTO,
    status_code=status.HTTP_200_OK,
    responses=CONFLICT_RESPONSE,
)
async def record_payment(
    cycle_id: str,
    request: RecordPaymentRequestSchema,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """
    Record payment status, UTR and accounting status (ADMIN or FINANCE).

    A PAID payment on an approved cycle moves it to PAYMENT_RECORDED and
    notifies the POC that the invoice is due.
    """
    use_case = RecordPayment(
        uow=SqlAlchemyUnitOfWork(session),
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        user_repo=SqlAlchemyUserRepository(session),
        audit_repo=SqlAlchemyAuditLogRepository(session),
        notification_service=create_notification_service(
            session, ApplicationConfig.NOTIFICATION_WEBHOOK
        ),
    )
    command = RecordPaymentCommandDTO(
        cycle_id=cycle_id,
        payment_status=request.payment_status,
        accounting_status=request.accounting_status,
        payment_utr=request.payment_utr,
        mandate_id=request.mandate_id,
    )
    result = await use_case.execute(actor, command)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/payment-cycles/{cycle_id}/invoice",
    response_model=PaymentCycleDTO,
    status_code=status.HTTP_200_OK,
    responses=CONFLICT_RESPONSE,
)
async def upload_invoice(
    cycle_id: str,
    request: UploadInvoiceRequestSchema,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """
    Attach an uploaded invoice file to a paid cycle (POC).

    The file itself is stored elsewhere; only its reference is recorded.
    """
    use_case = UploadInvoice(
        uow=SqlAlchemyUnitOfWork(session),
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        user_repo=SqlAlchemyUserRepository(session),
        audit_repo=SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(
        actor, UploadInvoiceCommandDTO(cycle_id=cycle_id, file_id=request.file_id)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/payment-cycles/{cycle_id}/cancel",
    response_model=PaymentCycleDTO,
    status_code=status.HTTP_200_OK,
    responses=CONFLICT_RESPONSE,
)
async def cancel_cycle(
    cycle_id: str,
    request: CancelCycleRequestSchema,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """Cancel a payment cycle (ADMIN or FINANCE)."""
    use_case = CancelCycle(
        uow=SqlAlchemyUnitOfWork(session),
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        audit_repo=SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(
        actor, CancelCycleCommandDTO(cycle_id=cycle_id, reason=request.reason)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.get(
    "/subscriptions/{subscription_id}/payment-cycles",
    response_model=PaymentCycleListDTO,
    status_code=status.HTTP_200_OK,
)
async def list_cycles(
    subscription_id: str,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """List the payment cycles of a subscription, oldest first."""
    use_case = ListSubscriptionCycles(
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        user_repo=SqlAlchemyUserRepository(session),
    )
    result = await use_case.execute(actor, subscription_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/subscriptions/{subscription_id}/payment-cycles/initial",
    response_model=PaymentCycleDTO,
    status_code=status.HTTP_201_CREATED,
)
async def create_initial_cycle(
    subscription_id: str,
    actor: Actor = Depends(get_current_actor),
    session: AsyncSession = Depends(get_session),
):
    """
    Create cycle #1 for an active subscription (ADMIN or FINANCE).

    **Returns:**
    - 201: Cycle created in PENDING_PAYMENT
    - 404: Subscription not found
    - 409: Subscription not active, or already has cycles
    """
    use_case = CreateInitialCycle(
        uow=SqlAlchemyUnitOfWork(session),
        cycle_repo=SqlAlchemyPaymentCycleRepository(session),
        subscription_repo=SqlAlchemySubscriptionRepository(session),
        audit_repo=SqlAlchemyAuditLogRepository(session),
    )
    result = await use_case.execute(
        actor, CreateInitialCycleCommandDTO(subscription_id=subscription_id)
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
