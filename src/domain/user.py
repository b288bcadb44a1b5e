"""User, Role and Department Domain Entities

Only the parts the payment-cycle workflow needs: who holds which role and
which POC may act for which department.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import String, UniqueConstraint
from src.domain.base import BaseModel, generate_uuid


class Role(str, Enum):
    ADMIN = "ADMIN"
    FINANCE = "FINANCE"
    HOD = "HOD"
    POC = "POC"


class User(BaseModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    email: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
        description="Login email (unique)"
    )

    full_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)


class UserRole(BaseModel, table=True):
    """Role assignment; a user may hold several roles"""

    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint('user_id', 'role', name='unique_user_role'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    role: Role = Field(index=True)


class Department(BaseModel, table=True):
    __tablename__ = "departments"

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    name: str = Field(
        sa_column=Column(String(255), nullable=False, unique=True),
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)


class PocDepartmentAccess(BaseModel, table=True):
    """Grants a POC the right to act on a department's subscriptions"""

    __tablename__ = "poc_department_access"
    __table_args__ = (
        UniqueConstraint('poc_id', 'department_id', name='unique_poc_department'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)
    poc_id: str = Field(foreign_key="users.id", index=True)
    department_id: str = Field(foreign_key="departments.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
