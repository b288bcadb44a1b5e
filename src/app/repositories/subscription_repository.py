"""Subscription Repository Interface

Defines the contract for subscription persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from src.domain.subscription import Subscription
from src.domain.user import Department


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    Provides the subscriptions the cycle jobs iterate over.
    """

    @abstractmethod
    async def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        """
        Retrieve subscription by ID

        Args:
            subscription_id: Subscription ID

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_active_subscriptions(self) -> List[Subscription]:
        """
        Retrieve all ACTIVE subscriptions

        Used by the cycle creation job.

        Returns:
            List of active subscriptions
        """
        pass

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription
        """
        pass

    @abstractmethod
    async def get_department(self, department_id: str) -> Optional[Department]:
        """
        Retrieve the department owning a subscription

        Args:
            department_id: Department ID

        Returns:
            Department if found, None otherwise
        """
        pass
