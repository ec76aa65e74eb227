"""CreateDocument Use Case

Creates a document in the initial status of its type with an empty ledger.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.document_repository import DocumentRepository
from src.domain.balance_ledger import cached_aggregate, validate_totals
from src.domain.document import Document
from src.domain.errors import InvalidTotals
from src.domain.state_machine import table_for, type_label
from .dtos import CreateDocumentCommandDTO, DocumentStateResponseDTO, to_state_dto

logger = logging.getLogger(__name__)


class CreateDocument:
    """
    Use Case: Create a lifecycle-governed document

    Business Rules:
    1. Invoices require total_amount > 0
    2. Purchase orders and work orders require planned_quantity > 0
    3. Totals carry at most six decimal places
    4. Document starts in its type's initial status with zero ledger entries
    5. Document number is generated per type (PO-10001, INV-10001, ...)

    Flow:
    1. Validate the fixed totals for the document type
    2. Generate document number
    3. Persist document in its initial status
    4. Commit transaction
    """

    def __init__(self, uow: UnitOfWork, document_repo: DocumentRepository):
        self.uow = uow
        self.document_repo = document_repo

    async def execute(self, command: CreateDocumentCommandDTO) -> Result[DocumentStateResponseDTO]:
        """
        Execute document creation

        Args:
            command: CreateDocumentCommandDTO with type, totals and descriptive fields

        Returns:
            Result[DocumentStateResponseDTO]: Created document with its initial aggregate
        """
        try:
            # Step 1: Validate totals
            validate_totals(command.document_type, command.total_amount, command.planned_quantity)

            table = table_for(command.document_type)

            # Step 2: Generate document number
            document_number = await self.document_repo.generate_document_number(command.document_type)

            # Step 3: Persist document
            document = await self.document_repo.create(
                Document(
                    document_number=document_number,
                    document_type=command.document_type,
                    status=table.initial_status,
                    title=command.title,
                    counterparty=command.counterparty,
                    total_amount=command.total_amount,
                    planned_quantity=command.planned_quantity,
                )
            )

            # Step 4: Commit
            await self.uow.commit()

            logger.info(
                f"Created {type_label(command.document_type)} {document.document_number} "
                f"in status {document.status}"
            )
            return Return.ok(to_state_dto(document, cached_aggregate(document)))

        except InvalidTotals as e:
            return Return.err(Error(code=e.code, message=str(e)))
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_DOCUMENT_FAILED",
                    message="Failed to create document",
                    reason=str(e),
                )
            )
