"""Data Transfer Objects for Payment Cycle Use Cases

Pydantic models for command inputs and response outputs.
Job summaries serialize with camelCase keys (by_alias=True) because
the schedulers that trigger the jobs read them in that shape.
"""

from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from src.domain.payment_cycle import (
    PaymentCycle,
    CycleStatus,
    PocApprovalStatus,
    PaymentStatus,
    AccountingStatus,
)
from src.domain.user import Role


class Actor(BaseModel):
    """
    The user invoking a transition

    Resolved by the API layer from the request; use cases only check roles
    and department access against it.
    """

    user_id: str = Field(..., description="Acting user ID")
    roles: List[Role] = Field(default_factory=list, description="Roles held by the user")

    def has_any_role(self, *roles: Role) -> bool:
        return any(role in self.roles for role in roles)


class ApproveCycleCommandDTO(BaseModel):
    cycle_id: str = Field(..., description="Payment cycle ID")
    comments: Optional[str] = Field(
        default=None,
        description="Optional approval comments (kept in the audit log)"
    )


class DeclineCycleCommandDTO(BaseModel):
    cycle_id: str = Field(..., description="Payment cycle ID")
    reason: str = Field(..., description="Why the renewal is declined (at least 10 characters)")


class RecordPaymentCommandDTO(BaseModel):
    """
    Command DTO for recording a payment

    Used as input to RecordPayment use case.
    """

    cycle_id: str = Field(..., description="Payment cycle ID")

    payment_status: PaymentStatus = Field(
        ...,
        description="New payment status (PAID, IN_PROGRESS, DECLINED)"
    )

    accounting_status: AccountingStatus = Field(
        ...,
        description="New accounting status (PENDING, DONE)"
    )

    payment_utr: Optional[str] = Field(
        default=None,
        description="Bank Unique Transaction Reference"
    )

    mandate_id: Optional[str] = Field(
        default=None,
        description="Payment mandate reference"
    )


class UploadInvoiceCommandDTO(BaseModel):
    cycle_id: str = Field(..., description="Payment cycle ID")
    file_id: str = Field(..., description="Reference to the stored invoice file")


class CancelCycleCommandDTO(BaseModel):
    cycle_id: str = Field(..., description="Payment cycle ID")
    reason: str = Field(..., description="Cancellation reason")


class CreateInitialCycleCommandDTO(BaseModel):
    subscription_id: str = Field(..., description="Subscription ID")


class PaymentCycleDTO(BaseModel):
    """
    Response DTO for a payment cycle

    Returned by every user-invoked transition and by the cycle listing.
    """

    id: str
    subscription_id: str
    cycle_number: int
    cycle_start_date: date
    cycle_end_date: date
    invoice_deadline: date
    cycle_status: CycleStatus
    poc_approval_status: PocApprovalStatus
    payment_status: PaymentStatus
    accounting_status: AccountingStatus
    payment_utr: Optional[str] = None
    mandate_id: Optional[str] = None
    invoice_file_id: Optional[str] = None
    poc_rejection_reason: Optional[str] = None
    payment_recorded_by: Optional[str] = None
    payment_recorded_at: Optional[datetime] = None
    poc_approved_by: Optional[str] = None
    poc_approved_at: Optional[datetime] = None
    invoice_uploaded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, cycle: PaymentCycle) -> "PaymentCycleDTO":
        return cls(
            id=cycle.id,
            subscription_id=cycle.subscription_id,
            cycle_number=cycle.cycle_number,
            cycle_start_date=cycle.cycle_start_date,
            cycle_end_date=cycle.cycle_end_date,
            invoice_deadline=cycle.invoice_deadline,
            cycle_status=cycle.cycle_status,
            poc_approval_status=cycle.poc_approval_status,
            payment_status=cycle.payment_status,
            accounting_status=cycle.accounting_status,
            payment_utr=cycle.payment_utr,
            mandate_id=cycle.mandate_id,
            invoice_file_id=cycle.invoice_file_id,
            poc_rejection_reason=cycle.poc_rejection_reason,
            payment_recorded_by=cycle.payment_recorded_by,
            payment_recorded_at=cycle.payment_recorded_at,
            poc_approved_by=cycle.poc_approved_by,
            poc_approved_at=cycle.poc_approved_at,
            invoice_uploaded_at=cycle.invoice_uploaded_at,
            created_at=cycle.created_at,
            updated_at=cycle.updated_at,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": "5b1c8a4e-2f1d-4c1e-9a0b-7d3e2f1a6c55",
                "subscription_id": "0f7e6d5c-4b3a-4291-8877-665544332211",
                "cycle_number": 4,
                "cycle_start_date": "2025-04-01",
                "cycle_end_date": "2025-04-30",
                "invoice_deadline": "2025-04-30",
                "cycle_status": "PENDING_PAYMENT",
                "poc_approval_status": "APPROVED",
                "payment_status": "IN_PROGRESS",
                "accounting_status": "PENDING",
                "poc_approved_by": "3a2b1c0d-0000-4000-8000-000000000001",
                "poc_approved_at": "2025-03-26T09:15:00",
                "created_at": "2025-03-25T00:00:05",
                "updated_at": "2025-03-26T09:15:00"
            }
        }


class PaymentCycleListDTO(BaseModel):
    subscription_id: str
    cycles: List[PaymentCycleDTO]


class CreatedCycleDTO(BaseModel):
    """One cycle inserted by the cycle creation job"""

    cycle_id: str
    subscription_id: str
    subscription_code: str
    tool_name: str
    cycle_number: int
    cycle_start_date: date
    cycle_end_date: date

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CycleCreationResultDTO(BaseModel):
    """
    Summary of one cycle creation run

    success is False when any subscription produced an error; the other
    subscriptions are still processed.
    """

    success: bool = Field(..., description="True when no subscription failed")
    run_date: date = Field(..., description="Date the window was evaluated against")
    total_checked: int = Field(..., description="Active subscriptions examined")
    cycles_created: int = Field(..., description="Cycles inserted")
    notifications_sent: int = Field(default=0, description="Renewal-pending notifications delivered")
    errors: List[str] = Field(default_factory=list)
    created_cycles: List[CreatedCycleDTO] = Field(default_factory=list)
    execution_time_ms: int = Field(default=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CancelledCycleDTO(BaseModel):
    """One cycle cancelled by the overdue invoice job"""

    id: str
    subscription_id: str
    tool_name: str
    poc_email: Optional[str] = None
    cycle_number: int
    invoice_deadline: date

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class AutoCancelResultDTO(BaseModel):
    """Summary of one overdue invoice cancellation run"""

    success: bool = Field(..., description="True when no cycle failed")
    run_date: date
    total_overdue: int = Field(..., description="Overdue cycles found")
    cancelled_count: int = Field(..., description="Cycles moved to CANCELLED")
    notifications_sent: int = Field(default=0)
    errors: List[str] = Field(default_factory=list)
    cancelled_cycles: List[CancelledCycleDTO] = Field(default_factory=list)
    execution_time_ms: int = Field(default=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RenewalReminderResultDTO(BaseModel):
    """Summary of one renewal reminder run"""

    success: bool
    run_date: date
    total_checked: int = Field(..., description="Cycles awaiting approval inside the window")
    reminders_sent: int
    skipped: int = Field(default=0, description="Reminders already sent today")
    errors: List[str] = Field(default_factory=list)
    execution_time_ms: int = Field(default=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
