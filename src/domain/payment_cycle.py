"""Payment Cycle Domain Entity

One billing period of a subscription, carrying its approval, payment and
invoice sub-states.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Text, Date, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class CycleStatus(str, Enum):
    """Lifecycle status of a payment cycle"""
    PENDING_PAYMENT = "PENDING_PAYMENT"      # Approved, waiting for Finance to pay
    PAYMENT_RECORDED = "PAYMENT_RECORDED"    # Paid, waiting for POC invoice
    PENDING_APPROVAL = "PENDING_APPROVAL"    # Waiting for POC renewal decision
    APPROVED = "APPROVED"                    # Legacy: approved under the older flow
    REJECTED = "REJECTED"                    # POC declined the renewal
    INVOICE_UPLOADED = "INVOICE_UPLOADED"    # Invoice attached
    COMPLETED = "COMPLETED"                  # Approval + payment + invoice present
    CANCELLED = "CANCELLED"                  # Cancelled by Finance or deadline job


class PocApprovalStatus(str, Enum):
    """POC renewal decision"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentStatus(str, Enum):
    """Finance payment status"""
    PAID = "PAID"
    IN_PROGRESS = "IN_PROGRESS"
    DECLINED = "DECLINED"


class AccountingStatus(str, Enum):
    """Accounting booking status"""
    PENDING = "PENDING"
    DONE = "DONE"


AUTO_CANCEL_REASON = "Invoice not uploaded by deadline - auto-cancelled"

MIN_REJECTION_REASON_LENGTH = 10


class PaymentCycle(BaseModel, table=True):
    """
    Payment Cycle - One billing period of a subscription

    Domain Rules:
    - (subscription_id, cycle_number) is unique; cycle_number starts at 1
    - cycle_start_date of cycle N+1 is cycle_end_date of cycle N plus one day
    - invoice_deadline equals cycle_end_date
    - cycle_status only changes through the transition table in
      src.domain.cycle_state_machine
    - REJECTED, COMPLETED and CANCELLED are terminal
    """

    __tablename__ = "payment_cycles"
    __table_args__ = (
        UniqueConstraint('subscription_id', 'cycle_number', name='unique_subscription_cycle'),
        Index('ix_payment_cycles_subscription_id', 'subscription_id'),
        Index('ix_payment_cycles_cycle_status', 'cycle_status'),
        Index('ix_payment_cycles_invoice_deadline', 'invoice_deadline'),
        Index('ix_payment_cycles_poc_approval_status', 'poc_approval_status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique payment cycle identifier (UUID)"
    )

    subscription_id: str = Field(
        foreign_key="subscriptions.id",
        description="Subscription this cycle bills"
    )

    cycle_number: int = Field(
        ge=1,
        description="Sequential cycle number per subscription (1, 2, 3...)"
    )

    cycle_start_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="First day of the billing period"
    )

    cycle_end_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Last day of the billing period (inclusive)"
    )

    invoice_deadline: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Date by which the invoice must be uploaded (same as cycle_end_date)"
    )

    cycle_status: CycleStatus = Field(
        default=CycleStatus.PENDING_APPROVAL,
        description="Current lifecycle status"
    )

    poc_approval_status: PocApprovalStatus = Field(
        default=PocApprovalStatus.PENDING,
        description="POC renewal decision"
    )

    payment_status: PaymentStatus = Field(
        default=PaymentStatus.IN_PROGRESS,
        description="Finance payment status"
    )

    accounting_status: AccountingStatus = Field(
        default=AccountingStatus.PENDING,
        description="Accounting booking status"
    )

    payment_utr: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Bank Unique Transaction Reference"
    )

    mandate_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Payment mandate reference"
    )

    invoice_file_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Reference to the uploaded invoice file"
    )

    poc_rejection_reason: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Decline/cancellation reason"
    )

    payment_recorded_by: Optional[str] = Field(default=None)
    payment_recorded_at: Optional[datetime] = Field(default=None)
    poc_approved_by: Optional[str] = Field(default=None)
    poc_approved_at: Optional[datetime] = Field(default=None)
    invoice_uploaded_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Cycle creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
