"""RequestStatusChange Use Case

Applies a user-requested status change under the per-document lock.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.document_lock import DocumentLock
from src.app.services.notification_service import NotificationService
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.document_repository import DocumentRepository
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.app.repositories.status_transition_repository import StatusTransitionRepository
from src.domain.balance_ledger import current_aggregate
from src.domain.errors import DocumentNotFound, LifecycleError
from src.domain.state_machine import TransitionContext, apply_transition
from src.domain.status_transition import StatusTransition, TransitionTrigger
from .dtos import DocumentStateResponseDTO, StatusChangeCommandDTO, to_state_dto
from .promotion import notify_status_change

logger = logging.getLogger(__name__)


class RequestStatusChange:
    """
    Use Case: Move a document to a requested status

    Business Rules:
    1. Only edges in the document type's lifecycle table may be taken
    2. Terminal (and settled) documents reject every request
    3. Balance-driven statuses (received, paid, ...) cannot be requested
    4. Guards may read the ledger (no receipts before cancelling a purchase
       order, no unreversed payments before voiding an invoice)
    5. Guard evaluation, status write and history record are atomic under
       the document lock; a rejected request changes nothing

    Flow:
    1. Acquire document lock
    2. Load document with SELECT FOR UPDATE
    3. Replay ledger into the current aggregate
    4. Apply transition (raises on rejection)
    5. Record the manual transition
    6. Commit, then notify
    """

    def __init__(
        self,
        uow: UnitOfWork,
        document_repo: DocumentRepository,
        entry_repo: LedgerEntryRepository,
        transition_repo: StatusTransitionRepository,
        document_lock: DocumentLock,
        notification_service: Optional[NotificationService] = None,
    ):
        self.uow = uow
        self.document_repo = document_repo
        self.entry_repo = entry_repo
        self.transition_repo = transition_repo
        self.document_lock = document_lock
        self.notification_service = notification_service

    async def execute(self, command: StatusChangeCommandDTO) -> Result[DocumentStateResponseDTO]:
        """
        Execute status change

        Args:
            command: StatusChangeCommandDTO with document_id, target_status, override

        Returns:
            Result[DocumentStateResponseDTO]: New status and aggregate, or a typed error
            (DOCUMENT_NOT_FOUND, INVALID_TRANSITION, DOCUMENT_TERMINAL)
        """
        async with self.document_lock.hold(command.document_id):
            try:
                # Step 1: Load document with pessimistic lock
                document = await self.document_repo.get_by_id(command.document_id, for_update=True)
                if not document:
                    raise DocumentNotFound(f"Document {command.document_id} not found")

                # Step 2: Replay ledger
                entries = await self.entry_repo.list_by_document(document.id)
                aggregate = current_aggregate(document, entries)

                # Step 3: Guard and apply
                from_status = document.status
                context = TransitionContext(
                    document=document,
                    aggregate=aggregate,
                    entries=tuple(entries),
                    override=command.override,
                )
                apply_transition(context, command.target_status)

                # Step 4: Record history
                transition = await self.transition_repo.create(
                    StatusTransition(
                        document_id=document.id,
                        from_status=from_status,
                        to_status=command.target_status,
                        trigger=TransitionTrigger.MANUAL,
                        override=command.override,
                    )
                )

                # Step 5: Commit
                document = await self.document_repo.update(document)
                await self.uow.commit()

            except LifecycleError as e:
                await self.uow.rollback()
                logger.info(
                    f"Status change to '{command.target_status}' rejected for document "
                    f"{command.document_id}: {e}"
                )
                return Return.err(Error(code=e.code, message=str(e)))
            except Exception as e:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="STATUS_CHANGE_FAILED",
                        message="Failed to change document status",
                        reason=str(e),
                    )
                )

        logger.info(f"{document.document_number} moved {from_status} -> {document.status}")
        await notify_status_change(self.notification_service, document, transition)

        return Return.ok(to_state_dto(document, aggregate))
