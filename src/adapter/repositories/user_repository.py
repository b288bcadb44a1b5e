"""SQLAlchemy User Repository Implementation"""

from typing import Optional, List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.user_repository import UserRepository
from src.domain.user import User, UserRole, Role, PocDepartmentAccess


class SqlAlchemyUserRepository(UserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: str) -> Optional[User]:
        statement = select(User).where(User.id == user_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        statement = select(User).where(User.email == email)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_roles(self, user_id: str) -> List[Role]:
        statement = select(UserRole.role).where(UserRole.user_id == user_id)
        result = await self.session.execute(statement)
        return [Role(role) for role in result.scalars().all()]

    async def get_user_ids_by_role(self, role: Role) -> List[str]:
        statement = (
            select(User.id)
            .join(UserRole, UserRole.user_id == User.id)
            .where(UserRole.role == role)
            .where(User.is_active == True)  # noqa: E712
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def has_department_access(self, poc_id: str, department_id: str) -> bool:
        statement = select(PocDepartmentAccess.id).where(
            PocDepartmentAccess.poc_id == poc_id,
            PocDepartmentAccess.department_id == department_id,
        )
        result = await self.session.execute(statement)
        return result.first() is not None

    async def get_poc_ids_for_department(self, department_id: str) -> List[str]:
        """
        Retrieve active POCs with access to a department

        A user must both hold the POC role and have an access grant.
        """
        statement = (
            select(User.id)
            .join(PocDepartmentAccess, PocDepartmentAccess.poc_id == User.id)
            .join(UserRole, UserRole.user_id == User.id)
            .where(PocDepartmentAccess.department_id == department_id)
            .where(UserRole.role == Role.POC)
            .where(User.is_active == True)  # noqa: E712
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
