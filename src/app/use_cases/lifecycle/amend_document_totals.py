"""AmendDocumentTotals Use Case

Changes a document's fixed totals while it is still editable.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.document_lock import DocumentLock
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.document_repository import DocumentRepository
from src.domain.balance_ledger import AMOUNT_SCALE, ZERO, cached_aggregate, exceeds_scale, validate_totals
from src.domain.errors import DocumentNotFound, DocumentTerminal, InvalidTransition, LifecycleError
from src.domain.state_machine import describe, table_for
from .dtos import AmendTotalsCommandDTO, DocumentStateResponseDTO, to_state_dto

logger = logging.getLogger(__name__)


class AmendDocumentTotals:
    """
    Use Case: Amend total_amount / planned_quantity

    Business Rules:
    1. Totals can only change in the type's editable statuses (draft,
       pending approval, planned, ...); afterwards they are the fixed
       ceiling of the ledger
    2. Terminal documents reject the request with DOCUMENT_TERMINAL
    3. Negative totals, or totals finer than six decimal places, are
       rejected before the lock is taken
    4. The amended ceiling must stay greater than 0

    Flow:
    1. Acquire document lock, load document with SELECT FOR UPDATE
    2. Check editable status
    3. Validate the amended totals against the document type
    4. Apply new totals and commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        document_repo: DocumentRepository,
        document_lock: DocumentLock,
    ):
        self.uow = uow
        self.document_repo = document_repo
        self.document_lock = document_lock

    async def execute(self, command: AmendTotalsCommandDTO) -> Result[DocumentStateResponseDTO]:
        for value in (command.total_amount, command.planned_quantity):
            if value is None:
                continue
            if value < ZERO:
                return Return.err(Error(code="VALIDATION_ERROR", message="Totals cannot be negative"))
            if exceeds_scale(value):
                return Return.err(
                    Error(code="VALIDATION_ERROR", message=f"Totals cannot have more than {AMOUNT_SCALE} decimal places")
                )

        async with self.document_lock.hold(command.document_id):
            try:
                document = await self.document_repo.get_by_id(command.document_id, for_update=True)
                if not document:
                    raise DocumentNotFound(f"Document {command.document_id} not found")

                table = table_for(document.document_type)
                if table.is_terminal(document.status):
                    raise DocumentTerminal(
                        f"{describe(document).capitalize()} is {document.status} and can no longer be edited"
                    )
                if document.status not in table.editable_statuses:
                    allowed = ", ".join(sorted(table.editable_statuses))
                    raise InvalidTransition(
                        f"Totals of {describe(document)} can only be changed while it is {allowed}"
                    )

                validate_totals(
                    document.document_type,
                    command.total_amount if command.total_amount is not None else document.total_amount,
                    command.planned_quantity if command.planned_quantity is not None else document.planned_quantity,
                )

                if command.total_amount is not None:
                    document.total_amount = command.total_amount
                if command.planned_quantity is not None:
                    document.planned_quantity = command.planned_quantity

                document = await self.document_repo.update(document)
                await self.uow.commit()

            except LifecycleError as e:
                await self.uow.rollback()
                logger.info(f"Amend totals rejected for document {command.document_id}: {e}")
                return Return.err(Error(code=e.code, message=str(e)))
            except Exception as e:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="AMEND_DOCUMENT_FAILED",
                        message="Failed to amend document totals",
                        reason=str(e),
                    )
                )

        logger.info(f"Amended totals of {document.document_number}")
        return Return.ok(to_state_dto(document, cached_aggregate(document)))
