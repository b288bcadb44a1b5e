"""User Repository Interface

Role and department-access lookups used for authorization and for
resolving notification recipients.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.user import User, Role


class UserRepository(ABC):

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_roles(self, user_id: str) -> List[Role]:
        """
        Retrieve all roles held by a user

        Args:
            user_id: User ID

        Returns:
            List of roles (empty if none)
        """
        pass

    @abstractmethod
    async def get_user_ids_by_role(self, role: Role) -> List[str]:
        """
        Retrieve the IDs of every active user holding a role

        Args:
            role: Role to look up

        Returns:
            List of user IDs
        """
        pass

    @abstractmethod
    async def has_department_access(self, poc_id: str, department_id: str) -> bool:
        pass

    @abstractmethod
    async def get_poc_ids_for_department(self, department_id: str) -> List[str]:
        pass
