"""Subscription Domain Entity

A recurring billing agreement for a software tool, owned by a department.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Date
from src.domain.base import BaseModel, generate_uuid


class SubscriptionStatus(str, Enum):
    """Subscription status types"""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class BillingFrequency(str, Enum):
    """How often a subscription is billed"""
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"
    USAGE_BASED = "USAGE_BASED"


class Subscription(BaseModel, table=True):
    """
    Subscription - Recurring billing agreement for a tool/vendor

    Domain Rules:
    - Payment cycles are only generated while status is ACTIVE
    - billing_frequency decides the length of every payment cycle
    - poc_email identifies the point of contact who approves renewals
    - end_date is optional (None = ongoing)
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index('ix_subscriptions_status', 'status'),
        Index('ix_subscriptions_department_id', 'department_id'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Unique subscription identifier (UUID)"
    )

    subscription_code: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Human-facing subscription code (e.g., SUB-0001)"
    )

    tool_name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Name of the subscribed tool"
    )

    vendor_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Vendor selling the tool"
    )

    department_id: str = Field(
        foreign_key="departments.id",
        description="Owning department"
    )

    poc_email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Email of the department point of contact for this subscription"
    )

    billing_frequency: BillingFrequency = Field(
        description="Billing frequency (MONTHLY, QUARTERLY, YEARLY, USAGE_BASED)"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.PENDING,
        description="Overall subscription status"
    )

    start_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Subscription start date"
    )

    end_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
        description="Subscription end date (None = ongoing)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Subscription creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
