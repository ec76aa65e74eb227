"""Document reconciliation worker

Replays every ledger-bearing document on a schedule and logs the ones whose
cached balance columns or stored status disagree with the replay.

    python -m src.worker.document_reconciler --once
    python -m src.worker.document_reconciler --interval 3600
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.document_repository import SqlAlchemyDocumentRepository
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.app.use_cases.lifecycle import (
    DocumentDiscrepancyDTO,
    ReconcileDocuments,
    ReconciliationResultDTO,
)

logger = logging.getLogger(__name__)


def format_discrepancy(discrepancy: DocumentDiscrepancyDTO) -> str:
    line = (
        f"{discrepancy.document_number} [{discrepancy.status}] "
        f"cached={discrepancy.cached} replayed={discrepancy.replayed}"
    )
    if discrepancy.expected_status:
        line += f" expected_status={discrepancy.expected_status}"
    return line


class DocumentReconcilerWorker:
    """
    Runs ReconcileDocuments against its own engine.

    The worker never repairs a document; drift is reported for an operator
    to investigate.
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

    async def run_once(self) -> ReconciliationResultDTO:
        """
        Reconcile all documents once.

        Raises:
            RuntimeError: the use case returned an error
        """
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Document reconciliation disabled")
            return ReconciliationResultDTO(
                total_documents_checked=0,
                discrepancies_found=0,
                discrepancies=[],
                reconciliation_time=datetime.utcnow(),
                execution_time_ms=0,
            )

        async with self.async_session_factory() as session:
            result = await ReconcileDocuments(
                document_repo=SqlAlchemyDocumentRepository(session),
                entry_repo=SqlAlchemyLedgerEntryRepository(session),
            ).execute()

        if result.is_err():
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        report = result.value
        for discrepancy in report.discrepancies:
            logger.error(f"Ledger drift: {format_discrepancy(discrepancy)}")
        return report

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Reconciling documents every {interval_seconds}s")

        while True:
            try:
                report = await self.run_once()
                logger.info(
                    f"Checked {report.total_documents_checked} documents, "
                    f"{report.discrepancies_found} drifted ({report.execution_time_ms}ms)"
                )
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        await self.engine.dispose()


async def main():
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Document ledger reconciliation worker")
    parser.add_argument("--once", action="store_true", help="Run a single pass and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Seconds between passes"
    )
    args = parser.parse_args()

    worker = DocumentReconcilerWorker()
    try:
        if args.once:
            report = await worker.run_once()
            print(f"{report.total_documents_checked} checked, {report.discrepancies_found} drifted")
            for discrepancy in report.discrepancies:
                print(f"  {format_discrepancy(discrepancy)}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
