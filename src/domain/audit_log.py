"""Audit Log Domain Entity

Append-only record of every payment-cycle transition.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Text
from src.domain.base import BaseModel, generate_uuid


class AuditAction(str, Enum):
    PAYMENT_CYCLE_CREATE = "payment_cycle.create"
    RENEWAL_APPROVE = "payment_cycle.renewal.approve"
    RENEWAL_REJECT = "payment_cycle.renewal.reject"
    PAYMENT_RECORD = "payment_cycle.payment.record"
    INVOICE_UPLOAD = "payment_cycle.invoice.upload"
    PAYMENT_CYCLE_CANCEL = "payment_cycle.cancel"
    PAYMENT_CYCLE_AUTO_CANCEL = "payment_cycle.auto_cancel"


PAYMENT_CYCLE_ENTITY = "payment_cycle"


class AuditLog(BaseModel, table=True):
    """
    Audit Log - Who changed which payment cycle and how

    Domain Rules:
    - Rows are never updated or deleted
    - user_id is None for actions taken by scheduled jobs
    - details holds a JSON document with the change set
    """

    __tablename__ = "audit_log"
    __table_args__ = (
        Index('ix_audit_log_entity', 'entity_type', 'entity_id'),
        Index('ix_audit_log_created_at', 'created_at'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    user_id: Optional[str] = Field(
        default=None,
        description="Acting user (None = system)"
    )

    action: AuditAction = Field(description="Audited action")

    entity_type: str = Field(
        sa_column=Column(String(50), nullable=False),
    )

    entity_id: str = Field(
        sa_column=Column(String(255), nullable=False),
    )

    details: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="JSON change set"
    )

    created_at: datetime = Field(default_factory=datetime.utcnow)
