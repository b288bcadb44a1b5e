"""Payment Cycle Creation Background Worker

Creates the next payment cycle for active subscriptions whose next billing
period starts within the creation window.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyPaymentCycleRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyAuditLogRepository,
)
from src.adapter.services import SqlAlchemyUnitOfWork, create_notification_service
from src.app.use_cases.payment_cycles import CreateNextCycles, CycleCreationResultDTO

logger = logging.getLogger(__name__)


class CycleCreationWorker:
    """
    Background worker for payment cycle creation

    Features:
    - Materializes cycle N+1 once its start is at most window_days away
    - Idempotent: re-runs skip subscriptions whose next cycle exists
    - Can run once or continuously

    Usage:
        # Run once for today
        worker = CycleCreationWorker()
        result = await worker.run_once()

        # Evaluate the window against a specific day
        result = await worker.run_once(today=date(2025, 3, 25))

        # Run continuously
        await worker.run_forever(interval_seconds=86400)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        window_days: Optional[int] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            window_days: Creation window (defaults to ApplicationConfig.CYCLE_CREATION_WINDOW_DAYS)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.window_days = (
            window_days
            if window_days is not None
            else ApplicationConfig.CYCLE_CREATION_WINDOW_DAYS
        )

        # Create engine and session factory
        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info(f"CycleCreationWorker initialized (window={self.window_days} days)")

    async def run_once(self, today: Optional[date] = None) -> CycleCreationResultDTO:
        """
        Run cycle creation once

        Args:
            today: Date to evaluate the window against (defaults to current UTC date)

        Returns:
            CycleCreationResultDTO with run summary
        """
        today = today or datetime.utcnow().date()

        if not ApplicationConfig.CYCLE_CREATION_ENABLED:
            logger.info("Payment cycle creation is disabled, skipping")
            return CycleCreationResultDTO(
                success=True,
                run_date=today,
                total_checked=0,
                cycles_created=0,
            )

        async with self.async_session_factory() as session:
            use_case = CreateNextCycles(
                uow=SqlAlchemyUnitOfWork(session),
                subscription_repo=SqlAlchemySubscriptionRepository(session),
                cycle_repo=SqlAlchemyPaymentCycleRepository(session),
                user_repo=SqlAlchemyUserRepository(session),
                audit_repo=SqlAlchemyAuditLogRepository(session),
                notification_service=create_notification_service(
                    session, ApplicationConfig.NOTIFICATION_WEBHOOK
                ),
                window_days=self.window_days,
            )

            result = await use_case.execute(today)

            if result.is_err():
                logger.error(f"Cycle creation failed: {result.error.message}")
                raise RuntimeError(f"Cycle creation failed: {result.error.message}")

            response = result.value

            for error in response.errors:
                logger.warning(f"  - {error}")

            return response

    async def run_forever(self, interval_seconds: int = 86400):
        """
        Run cycle creation continuously at specified interval

        Args:
            interval_seconds: Seconds between runs (default: 24 hours)
        """
        logger.info(f"Starting continuous cycle creation with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Cycle creation run complete. "
                    f"Checked {result.total_checked} subscriptions, "
                    f"created {result.cycles_created} cycles "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Cycle creation run failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("CycleCreationWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once for today
        python -m src.worker.cycle_creation --once

        # Run once for a specific day
        python -m src.worker.cycle_creation --once --date 2025-03-25

        # Run continuously (default: daily)
        python -m src.worker.cycle_creation --interval 86400
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Payment Cycle Creation Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--date", type=date.fromisoformat, default=None,
        help="Evaluate the window against this day (YYYY-MM-DD, with --once)"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.CYCLE_CREATION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = CycleCreationWorker()

    try:
        if args.once:
            result = await worker.run_once(today=args.date)
            print(f"Cycle creation complete ({result.run_date}):")
            print(f"  Subscriptions checked: {result.total_checked}")
            print(f"  Cycles created: {result.cycles_created}")
            print(f"  Notifications sent: {result.notifications_sent}")
            print(f"  Errors: {len(result.errors)}")
            for cycle in result.created_cycles:
                print(
                    f"  - {cycle.subscription_code} #{cycle.cycle_number}: "
                    f"{cycle.cycle_start_date} to {cycle.cycle_end_date}"
                )
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
