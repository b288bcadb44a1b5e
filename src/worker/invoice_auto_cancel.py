"""Overdue Invoice Auto-Cancel Background Worker

Cancels paid payment cycles whose invoice deadline passed without an
invoice, and notifies the POC and Finance.
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
from src.app.use_cases.payment_cycles import AutoCancelOverdueCycles, AutoCancelResultDTO

logger = logging.getLogger(__name__)


class InvoiceAutoCancelWorker:
    """
    Background worker for overdue invoice cancellation

    Safe to re-run: cancelled cycles no longer match the overdue query.
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("InvoiceAutoCancelWorker initialized")

    async def run_once(self, today: Optional[date] = None) -> AutoCancelResultDTO:
        """
        Run overdue cancellation once

        Args:
            today: Reference date (defaults to current UTC date); cycles with
                   invoice_deadline < today are overdue

        Returns:
            AutoCancelResultDTO with run summary
        """
        today = today or datetime.utcnow().date()

        if not ApplicationConfig.AUTO_CANCEL_ENABLED:
            logger.info("Invoice auto-cancellation is disabled, skipping")
            return AutoCancelResultDTO(
                success=True,
                run_date=today,
                total_overdue=0,
                cancelled_count=0,
            )

        async with self.async_session_factory() as session:
            use_case = AutoCancelOverdueCycles(
                uow=SqlAlchemyUnitOfWork(session),
                cycle_repo=SqlAlchemyPaymentCycleRepository(session),
                subscription_repo=SqlAlchemySubscriptionRepository(session),
                user_repo=SqlAlchemyUserRepository(session),
                audit_repo=SqlAlchemyAuditLogRepository(session),
                notification_service=create_notification_service(
                    session, ApplicationConfig.NOTIFICATION_WEBHOOK
                ),
            )

            result = await use_case.execute(today)

            if result.is_err():
                logger.error(f"Auto-cancel failed: {result.error.message}")
                raise RuntimeError(f"Auto-cancel failed: {result.error.message}")

            response = result.value

            if response.errors:
                logger.error(f"{len(response.errors)} overdue cycles could not be processed")
                for error in response.errors:
                    logger.error(f"  - {error}")

            return response

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Starting continuous invoice auto-cancel with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Auto-cancel run complete. "
                    f"{result.cancelled_count}/{result.total_overdue} overdue cycles cancelled, "
                    f"{result.notifications_sent} notifications sent"
                )
            except Exception as e:
                logger.error(f"Auto-cancel run failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("InvoiceAutoCancelWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.invoice_auto_cancel --once [--date 2025-05-01]
        python -m src.worker.invoice_auto_cancel --interval 86400
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Overdue Invoice Auto-Cancel Worker")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--date", type=date.fromisoformat, default=None,
        help="Reference date (YYYY-MM-DD, with --once)"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.AUTO_CANCEL_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 86400 = 24 hours)"
    )
    args = parser.parse_args()

    worker = InvoiceAutoCancelWorker()

    try:
        if args.once:
            result = await worker.run_once(today=args.date)
            print(f"Auto-cancel complete ({result.run_date}):")
            print(f"  Overdue cycles: {result.total_overdue}")
            print(f"  Cancelled: {result.cancelled_count}")
            print(f"  Notifications sent: {result.notifications_sent}")
            print(f"  Errors: {len(result.errors)}")
            for cycle in result.cancelled_cycles:
                print(
                    f"  - {cycle.tool_name} #{cycle.cycle_number} "
                    f"(deadline {cycle.invoice_deadline})"
                )
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
