"""Collection Scheduler Background Worker

Periodically scans sent/viewed invoices by due date, fires due-soon and
tiered overdue notices, applies late fees and batch-labels long-overdue
invoices. Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from src.adapter.database import create_database_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyAccountRepository,
    SqlAlchemyAuditLogRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyReminderLogRepository,
)
from src.adapter.services.notification_service import create_notification_service
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.notification_service import NotificationService
from src.app.use_cases.invoicing import (
    CollectionRunResultDTO,
    MarkOverdueInvoices,
    ProcessInvoiceCollection,
    ReminderConfig,
)
from src.domain.invoice import COLLECTIBLE_STATUSES
from src.domain.reminder_log import DUE_SOON

logger = logging.getLogger(__name__)


class CollectionSchedulerWorker:
    """
    Background worker for invoice collection

    Features:
    - Each invoice is checked in its own session and transaction, so one
      failure does not abort the batch
    - Each invoice's work is bounded by a timeout, so a stuck notice cannot
      stall the tick
    - Invoices are re-read under lock inside their unit of work; nothing is
      cached across ticks

    Usage:
        # Run once
        worker = CollectionSchedulerWorker()
        result = await worker.run_once()

        # Run continuously
        worker = CollectionSchedulerWorker()
        await worker.run_forever(interval_seconds=3600)  # Hourly
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        reminder_config: Optional[ReminderConfig] = None,
        notification_service: Optional[NotificationService] = None,
        invoice_timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            session_factory: Existing session factory; skips engine creation
            reminder_config: Collection policy (defaults to ApplicationConfig values)
            notification_service: Notice transport (defaults to the configured factory)
            invoice_timeout_seconds: Upper bound for one invoice's unit of work
        """
        self.engine = None
        if session_factory is None:
            self.db_uri = db_uri or ApplicationConfig.DB_URI
            self.engine = create_database_engine(self.db_uri)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.reminder_config = reminder_config or ReminderConfig.from_config(ApplicationConfig)
        self.notification_service = notification_service or create_notification_service(
            ApplicationConfig.NOTIFICATION_WEBHOOK_URL,
            timeout=ApplicationConfig.NOTIFICATION_TIMEOUT_SECONDS,
        )
        self.invoice_timeout_seconds = (
            invoice_timeout_seconds or ApplicationConfig.COLLECTION_INVOICE_TIMEOUT_SECONDS
        )

        logger.info("CollectionSchedulerWorker initialized")

    async def _select_candidates(self, now: datetime) -> List[str]:
        """IDs of sent/viewed invoices due before the due-soon horizon"""
        horizon = now + timedelta(days=self.reminder_config.days_before_due, seconds=1)
        async with self.async_session_factory() as session:
            invoice_repo = SqlAlchemyInvoiceRepository(session)
            invoices = await invoice_repo.get_by_status_and_due_date(
                COLLECTIBLE_STATUSES, due_to=horizon
            )
            return [invoice.id for invoice in invoices]

    async def _process_invoice(self, invoice_id: str, now: datetime):
        async with self.async_session_factory() as session:
            use_case = ProcessInvoiceCollection(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
                reminder_repo=SqlAlchemyReminderLogRepository(session),
                client_repo=SqlAlchemyClientRepository(session),
                account_repo=SqlAlchemyAccountRepository(session),
                audit_repo=SqlAlchemyAuditLogRepository(session),
                notification_service=self.notification_service,
                config=self.reminder_config,
            )
            return await use_case.execute(invoice_id, now=now)

    async def run_once(self, now: Optional[datetime] = None) -> CollectionRunResultDTO:
        """
        Run one collection tick

        Args:
            now: Reference time (defaults to utcnow)

        Returns:
            CollectionRunResultDTO with counts for this tick
        """
        now = now or datetime.utcnow()
        start_time = time.time()
        summary = CollectionRunResultDTO(run_time=now)

        if not getattr(ApplicationConfig, "COLLECTION_ENABLED", True):
            logger.info("Invoice collection is disabled, skipping")
            return summary

        # Step 1: Candidate invoices (unlocked read)
        invoice_ids = await self._select_candidates(now)
        logger.info(f"Found {len(invoice_ids)} invoices to check")

        # Step 2: One bounded unit of work per invoice
        for invoice_id in invoice_ids:
            summary.invoices_checked += 1
            try:
                result = await asyncio.wait_for(
                    self._process_invoice(invoice_id, now),
                    timeout=self.invoice_timeout_seconds,
                )
            except asyncio.TimeoutError:
                summary.failures += 1
                logger.error(
                    f"Collection for invoice {invoice_id} timed out "
                    f"after {self.invoice_timeout_seconds}s"
                )
                continue
            except Exception as e:
                summary.failures += 1
                logger.error(f"Collection for invoice {invoice_id} failed: {e}")
                continue

            if result.is_err():
                summary.failures += 1
                logger.error(
                    f"Collection for invoice {invoice_id} failed: "
                    f"{result.error.message} ({result.error.reason})"
                )
                continue

            outcome = result.value
            if outcome.reminder_type == DUE_SOON:
                summary.due_soon_sent += 1
            elif outcome.reminder_type:
                summary.overdue_sent += 1
            if outcome.late_fee is not None:
                summary.late_fees_applied += 1

        # Step 3: Batch overdue label
        async with self.async_session_factory() as session:
            mark_overdue = MarkOverdueInvoices(
                uow=SqlAlchemyUnitOfWork(session),
                invoice_repo=SqlAlchemyInvoiceRepository(session),
            )
            marked = await mark_overdue.execute(
                self.reminder_config.hard_overdue_days, now=now
            )
            if marked.is_ok():
                summary.marked_overdue = marked.value
            else:
                summary.failures += 1
                logger.error(f"Mark overdue failed: {marked.error.reason}")

        summary.execution_time_ms = int((time.time() - start_time) * 1000)
        return summary

    async def run_forever(self, interval_seconds: int = 3600):
        """
        Run collection continuously at specified interval

        Args:
            interval_seconds: Seconds between ticks (default: 1 hour)
        """
        logger.info(f"Starting invoice collection with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                logger.info(
                    f"Collection tick complete. Checked {result.invoices_checked} invoices, "
                    f"due_soon={result.due_soon_sent}, overdue={result.overdue_sent}, "
                    f"late_fees={result.late_fees_applied}, "
                    f"marked_overdue={result.marked_overdue}, failures={result.failures} "
                    f"in {result.execution_time_ms}ms"
                )
            except Exception as e:
                logger.error(f"Collection tick failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("CollectionSchedulerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.collection_scheduler --once

        # Run continuously (default: COLLECTION_INTERVAL_SECONDS)
        python -m src.worker.collection_scheduler

        # Run continuously with custom interval (in seconds)
        python -m src.worker.collection_scheduler --interval 900
    """
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Invoice Collection Scheduler")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.COLLECTION_INTERVAL_SECONDS,
        help="Interval between runs in seconds (default: 3600 = 1 hour)"
    )
    args = parser.parse_args()

    worker = CollectionSchedulerWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Collection run complete:")
            print(f"  Invoices checked: {result.invoices_checked}")
            print(f"  Due-soon notices: {result.due_soon_sent}")
            print(f"  Overdue notices: {result.overdue_sent}")
            print(f"  Late fees applied: {result.late_fees_applied}")
            print(f"  Marked overdue: {result.marked_overdue}")
            print(f"  Failures: {result.failures}")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


def run():
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    run()
