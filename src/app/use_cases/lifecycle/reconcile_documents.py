"""ReconcileDocuments Use Case

Replays every ledger-bearing document and compares the result against the
cached aggregate columns and the stored status.
"""

import logging
import time
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.balance_ledger import LEDGER_KINDS, cached_aggregate, current_aggregate, infer_status
from src.domain.document import DocumentType
from .dtos import DocumentDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileDocuments:
    """
    Use Case: Reconcile cached document balances against their ledgers

    Business Rules:
    1. Only document types that carry a ledger are checked (invoices,
       purchase orders, work orders)
    2. A discrepancy is a cached aggregate that differs from the fold of the
       entries, or a stored status the replayed balance would not produce
    3. Does NOT modify any data (read-only reconciliation)

    Flow:
    1. Get all documents
    2. For each ledger-bearing document:
       a. Replay its entries into an aggregate
       b. Compare with the cached aggregate and the stored status
       c. If mismatch, record discrepancy
    3. Return reconciliation result with all discrepancies
    """

    def __init__(self, document_repo: DocumentRepository, entry_repo: LedgerEntryRepository):
        self.document_repo = document_repo
        self.entry_repo = entry_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute document reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting document ledger reconciliation")

            # Step 1: Get ledger-bearing documents
            documents = [
                d for d in await self.document_repo.get_all()
                if DocumentType(d.document_type) in LEDGER_KINDS
            ]
            total_documents = len(documents)

            logger.info(f"Found {total_documents} documents to reconcile")

            # Step 2: Check each document for discrepancies
            discrepancies: list[DocumentDiscrepancyDTO] = []

            for document in documents:
                entries = await self.entry_repo.list_by_document(document.id)
                replayed = current_aggregate(document, entries)
                cached = cached_aggregate(document)
                expected_status = infer_status(document.document_type, document.status, replayed)

                if cached == replayed and expected_status is None:
                    continue

                discrepancies.append(
                    DocumentDiscrepancyDTO(
                        document_id=document.id,
                        document_number=document.document_number,
                        document_type=DocumentType(document.document_type).value,
                        status=document.status,
                        cached=cached.as_dict(),
                        replayed=replayed.as_dict(),
                        expected_status=expected_status,
                    )
                )

                logger.warning(
                    f"Discrepancy found for {document.document_number} "
                    f"(document_id={document.id}): "
                    f"cached={cached.as_dict()}, "
                    f"replayed={replayed.as_dict()}, "
                    f"status={document.status}, expected_status={expected_status}"
                )

            # Step 3: Build response
            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_documents_checked=total_documents,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"out of {total_documents} documents in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total_documents} documents balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Document reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile document ledgers",
                    reason=str(e),
                )
            )
