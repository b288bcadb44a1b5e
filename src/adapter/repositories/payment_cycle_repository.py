"""SQLAlchemy implementation of PaymentCycleRepository

Status changes are conditional UPDATEs: the WHERE clause repeats the status
the caller read, so a concurrent writer that got there first makes the
update match zero rows instead of being overwritten.
"""

from datetime import date
from typing import Any, Optional, List
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository, DuplicatePaymentCycle
from src.domain.payment_cycle import PaymentCycle, CycleStatus, PocApprovalStatus


class SqlAlchemyPaymentCycleRepository(PaymentCycleRepository):
    """
    SQLAlchemy implementation of PaymentCycleRepository

    Features:
    - Duplicate (subscription_id, cycle_number) inserts surface as
      DuplicatePaymentCycle via the unique constraint
    - Compare-and-swap status transitions
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, cycle_id: str) -> Optional[PaymentCycle]:
        statement = select(PaymentCycle).where(PaymentCycle.id == cycle_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_latest_for_subscription(self, subscription_id: str) -> Optional[PaymentCycle]:
        statement = (
            select(PaymentCycle)
            .where(PaymentCycle.subscription_id == subscription_id)
            .order_by(PaymentCycle.cycle_number.desc())
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list_by_subscription(self, subscription_id: str) -> List[PaymentCycle]:
        statement = (
            select(PaymentCycle)
            .where(PaymentCycle.subscription_id == subscription_id)
            .order_by(PaymentCycle.cycle_number)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def create(self, cycle: PaymentCycle) -> PaymentCycle:
        """
        Insert a new payment cycle

        Raises:
            DuplicatePaymentCycle: If (subscription_id, cycle_number) already exists
            IntegrityError: For any other constraint violation
        """
        self.session.add(cycle)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if "unique" in str(e.orig).lower():
                raise DuplicatePaymentCycle(cycle.subscription_id, cycle.cycle_number) from e
            raise
        await self.session.refresh(cycle)
        return cycle

    async def transition(
        self,
        cycle_id: str,
        expected_status: CycleStatus,
        values: dict[str, Any],
        require_no_invoice: bool = False,
    ) -> Optional[PaymentCycle]:
        """
        Compare-and-swap update of a payment cycle

        Args:
            cycle_id: Payment cycle ID
            expected_status: Status the caller read before deciding
            values: Column values to write
            require_no_invoice: Also require invoice_file_id IS NULL

        Returns:
            The refreshed PaymentCycle, or None if no row matched
        """
        statement = (
            update(PaymentCycle)
            .where(PaymentCycle.id == cycle_id)
            .where(PaymentCycle.cycle_status == expected_status)
        )
        if require_no_invoice:
            statement = statement.where(PaymentCycle.invoice_file_id.is_(None))
        statement = statement.values(**values).execution_options(synchronize_session=False)

        result = await self.session.execute(statement)
        if result.rowcount == 0:
            return None

        refreshed = await self.session.execute(
            select(PaymentCycle)
            .where(PaymentCycle.id == cycle_id)
            .execution_options(populate_existing=True)
        )
        return refreshed.scalar_one()

    async def get_overdue_without_invoice(self, today: date) -> List[PaymentCycle]:
        statement = (
            select(PaymentCycle)
            .where(PaymentCycle.cycle_status == CycleStatus.PAYMENT_RECORDED)
            .where(PaymentCycle.invoice_file_id.is_(None))
            .where(PaymentCycle.invoice_deadline < today)
            .order_by(PaymentCycle.invoice_deadline.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_pending_approval_starting_by(self, last_start_date: date) -> List[PaymentCycle]:
        statement = (
            select(PaymentCycle)
            .where(PaymentCycle.cycle_status == CycleStatus.PENDING_APPROVAL)
            .where(PaymentCycle.poc_approval_status == PocApprovalStatus.PENDING)
            .where(PaymentCycle.cycle_start_date <= last_start_date)
            .order_by(PaymentCycle.cycle_start_date)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
