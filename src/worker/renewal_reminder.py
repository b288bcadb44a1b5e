"""Renewal Reminder Background Worker

Reminds POCs once a day about payment cycles still awaiting their
renewal approval.
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
    SqlAlchemyNotificationRepository,
)
from src.adapter.services import SqlAlchemyUnitOfWork, create_notification_service
from src.app.use_cases.payment_cycles import SendRenewalReminders, RenewalReminderResultDTO

logger = logging.getLogger(__name__)


class RenewalReminderWorker:
    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("RenewalReminderWorker initialized")

    async def run_once(self, today: Optional[date] = None) -> RenewalReminderResultDTO:
        today = today or datetime.utcnow().date()

        if not ApplicationConfig.RENEWAL_REMINDER_ENABLED:
            logger.info("Renewal reminders are disabled, skipping")
            return RenewalReminderResultDTO(
                success=True,
                run_date=today,
                total_checked=0,
                reminders_sent=0,
            )

        async with self.async_session_factory() as session:
            use_case = SendRenewalReminders(
                uow=SqlAlchemyUnitOfWork(session),
                cycle_repo=SqlAlchemyPaymentCycleRepository(session),
                subscription_repo=SqlAlchemySubscriptionRepository(session),
                user_repo=SqlAlchemyUserRepository(session),
                notification_repo=SqlAlchemyNotificationRepository(session),
                notification_service=create_notification_service(
                    session, ApplicationConfig.NOTIFICATION_WEBHOOK
                ),
                window_days=ApplicationConfig.CYCLE_CREATION_WINDOW_DAYS,
            )

            result = await use_case.execute(today)

            if result.is_err():
                logger.error(f"Renewal reminders failed: {result.error.message}")
                raise RuntimeError(f"Renewal reminders failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting continuous renewal reminders with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Renewal reminder run complete. "
                    f"{result.reminders_sent} sent, {result.skipped} already sent today"
                )
            except Exception as e:
                logger.error(f"Renewal reminder run failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("RenewalReminderWorker shutdown complete")


async def main():
    """
    Usage:
        python -m src.worker.renewal_reminder --once [--date 2025-03-28]
        python -m src.worker.renewal_reminder --interval 86400
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Renewal Reminder Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--date", type=date.fromisoformat, default=None,
        help="Reference date (YYYY-MM-DD, with --once)"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RENEWAL_REMINDER_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = RenewalReminderWorker()

    try:
        if args.once:
            result = await worker.run_once(today=args.date)
            print(f"Renewal reminders complete ({result.run_date}):")
            print(f"  Cycles awaiting approval: {result.total_checked}")
            print(f"  Reminders sent: {result.reminders_sent}")
            print(f"  Already sent today: {result.skipped}")
            print(f"  Errors: {len(result.errors)}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
