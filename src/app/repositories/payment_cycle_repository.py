"""Payment Cycle Repository Interface

Defines the contract for payment cycle persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional, List
from src.domain.payment_cycle import PaymentCycle, CycleStatus


class DuplicatePaymentCycle(Exception):
    """Raised when (subscription_id, cycle_number) already exists"""

    def __init__(self, subscription_id: str, cycle_number: int):
        self.subscription_id = subscription_id
        self.cycle_number = cycle_number
        super().__init__(
            f"Payment cycle #{cycle_number} already exists for subscription {subscription_id}"
        )


class PaymentCycleRepository(ABC):
    """
    Repository interface for PaymentCycle persistence

    All cycle_status changes go through transition(), a conditional update
    that only applies when the row still holds the expected status.
    """

    @abstractmethod
    async def get_by_id(self, cycle_id: str) -> Optional[PaymentCycle]:
        """
        Retrieve payment cycle by ID

        Args:
            cycle_id: Payment cycle ID

        Returns:
            PaymentCycle if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_latest_for_subscription(self, subscription_id: str) -> Optional[PaymentCycle]:
        """
        Retrieve the cycle with the highest cycle_number for a subscription

        Args:
            subscription_id: Subscription ID

        Returns:
            Latest PaymentCycle, or None if the subscription has no cycles
        """
        pass

    @abstractmethod
    async def list_by_subscription(self, subscription_id: str) -> List[PaymentCycle]:
        """
        Retrieve all cycles of a subscription ordered by cycle_number

        Args:
            subscription_id: Subscription ID

        Returns:
            List of payment cycles
        """
        pass

    @abstractmethod
    async def create(self, cycle: PaymentCycle) -> PaymentCycle:
        """
        Insert a new payment cycle

        Args:
            cycle: PaymentCycle entity to persist

        Returns:
            Created PaymentCycle

        Raises:
            DuplicatePaymentCycle: If (subscription_id, cycle_number) already exists
        """
        pass

    @abstractmethod
    async def transition(
        self,
        cycle_id: str,
        expected_status: CycleStatus,
        values: dict[str, Any],
        require_no_invoice: bool = False,
    ) -> Optional[PaymentCycle]:
        """
        Compare-and-swap update of a payment cycle

        Applies values only if the row still has cycle_status == expected_status
        (and invoice_file_id IS NULL when require_no_invoice is set).

        Args:
            cycle_id: Payment cycle ID
            expected_status: Status the caller read before deciding
            values: Column values to write
            require_no_invoice: Also require that no invoice is attached

        Returns:
            The updated PaymentCycle, or None if the row no longer matched
        """
        pass

    @abstractmethod
    async def get_overdue_without_invoice(self, today: date) -> List[PaymentCycle]:
        """
        Retrieve cycles whose invoice deadline has passed with no invoice

        Selects cycle_status = PAYMENT_RECORDED, invoice_file_id IS NULL and
        invoice_deadline < today, ordered by invoice_deadline ascending.

        Args:
            today: Reference date

        Returns:
            List of overdue payment cycles
        """
        pass

    @abstractmethod
    async def get_pending_approval_starting_by(self, last_start_date: date) -> List[PaymentCycle]:
        """
        Retrieve cycles awaiting POC approval that start on or before a date

        Args:
            last_start_date: Latest cycle_start_date to include

        Returns:
            List of payment cycles ordered by cycle_start_date
        """
        pass
