"""Request schemas for Payment Cycle API

Pydantic models for validating incoming HTTP requests.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator
from src.domain.payment_cycle import PaymentStatus, AccountingStatus, MIN_REJECTION_REASON_LENGTH


class ApproveCycleRequestSchema(BaseModel):
    """
    Request schema for approving a renewal

    Used for POST /payment-cycles/{cycle_id}/approve endpoint.
    """

    comments: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Optional approval comments"
    )


class DeclineCycleRequestSchema(BaseModel):
    """
    Request schema for declining a renewal

    Used for POST /payment-cycles/{cycle_id}/decline endpoint.
    """

    reason: str = Field(
        ...,
        description=f"Rejection reason (at least {MIN_REJECTION_REASON_LENGTH} characters)"
    )

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        """Blank padding does not count towards the minimum length"""
        v = v.strip()
        if len(v) < MIN_REJECTION_REASON_LENGTH:
            raise ValueError(
                f"Rejection reason must be at least {MIN_REJECTION_REASON_LENGTH} characters"
            )
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "reason": "Tool replaced by the company-wide license from Q2"
            }
        }


class RecordPaymentRequestSchema(BaseModel):
    """
    Request schema for recording a payment

    Used for POST /payment-cycles/{cycle_id}/payment endpoint.
    """

    payment_status: PaymentStatus = Field(
        ...,
        description="PAID, IN_PROGRESS or DECLINED"
    )

    accounting_status: AccountingStatus = Field(
        default=AccountingStatus.PENDING,
        description="PENDING or DONE"
    )

    payment_utr: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Bank Unique Transaction Reference"
    )

    mandate_id: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Payment mandate reference"
    )

    @field_validator('payment_utr', 'mandate_id')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v is not None else v

    class Config:
        json_schema_extra = {
            "example": {
                "payment_status": "PAID",
                "accounting_status": "DONE",
                "payment_utr": "UTR2025040100123",
                "mandate_id": None
            }
        }


class UploadInvoiceRequestSchema(BaseModel):
    """Used for POST /payment-cycles/{cycle_id}/invoice endpoint."""

    file_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Reference to the stored invoice file"
    )


class CancelCycleRequestSchema(BaseModel):
    """Used for POST /payment-cycles/{cycle_id}/cancel endpoint."""

    reason: str = Field(
        ...,
        min_length=1,
        description="Cancellation reason"
    )

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        if not v.strip():
            raise ValueError("Cancellation reason is required")
        return v.strip()
