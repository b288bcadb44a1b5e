"""Notification Domain Entity

In-app notifications written by the workflow and read by the UI elsewhere.
The service only ever writes them.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import String, Text
from src.domain.base import BaseModel, generate_uuid


class NotificationType(str, Enum):
    """Notification categories"""
    APPROVAL_REQUEST = "APPROVAL_REQUEST"      # POC needs to approve
    APPROVAL_DECISION = "APPROVAL_DECISION"    # Outcome of an approval
    PAYMENT_UPDATE = "PAYMENT_UPDATE"          # Payment status changed
    RENEWAL_REMINDER = "RENEWAL_REMINDER"      # Daily reminder for pending renewal
    INVOICE_OVERDUE = "INVOICE_OVERDUE"        # Invoice deadline passed
    GENERAL = "GENERAL"


class Notification(BaseModel, table=True):
    __tablename__ = "notifications"
    __table_args__ = (
        Index('ix_notifications_user_id', 'user_id'),
        Index('ix_notifications_cycle_id', 'cycle_id'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    user_id: str = Field(description="Recipient user")

    type: NotificationType = Field(description="Notification category")

    title: str = Field(sa_column=Column(String(255), nullable=False))

    message: str = Field(sa_column=Column(Text, nullable=False))

    subscription_id: Optional[str] = Field(default=None)

    cycle_id: Optional[str] = Field(default=None)

    is_read: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
