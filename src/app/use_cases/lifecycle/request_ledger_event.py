"""RequestLedgerEvent Use Case

Records a payment, receipt, completion or scrap against a document and
promotes its status when the balance crosses a threshold.
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
from src.domain.balance_ledger import REVERSAL_KINDS, current_aggregate, store_aggregate, validate_entry
from src.domain.errors import DocumentNotFound, InvalidTransition, LifecycleError
from src.domain.ledger_entry import LedgerEntry
from src.domain.state_machine import check_ledger_event
from .dtos import LedgerEventCommandDTO, LedgerEventResponseDTO, to_entry_dto
from .promotion import notify_status_change, promote_from_balance

logger = logging.getLogger(__name__)


class RequestLedgerEvent:
    """
    Use Case: Append a balance-affecting entry to a document's ledger

    Business Rules:
    1. Terminal documents accept no entries; a paid invoice accepts only
       payment reversals (use ReverseLedgerEntry)
    2. The entry kind must be one the document type and status accept
    3. The post-entry aggregate must stay within [0, ceiling]; over-large
       amounts are rejected, never clamped
    4. Crossing a threshold (fully paid, fully received, production done)
       promotes the status automatically
    5. Entry append, status promotion and cache refresh commit together;
       a rejected entry changes nothing

    Flow:
    1. Acquire document lock
    2. Load document with SELECT FOR UPDATE
    3. Check document accepts this kind of entry now
    4. Replay ledger and validate the post-entry bounds
    5. Append entry
    6. Promote status if the new balance implies it
    7. Refresh cached aggregate, commit, then notify
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

    async def execute(self, command: LedgerEventCommandDTO) -> Result[LedgerEventResponseDTO]:
        """
        Execute ledger event

        Args:
            command: LedgerEventCommandDTO with document_id, kind, amount, reference

        Returns:
            Result[LedgerEventResponseDTO]: Appended entry with the resulting status and
            aggregate, or a typed error (DOCUMENT_NOT_FOUND, INVALID_TRANSITION,
            DOCUMENT_TERMINAL, BALANCE_BOUND_VIOLATION)
        """
        async with self.document_lock.hold(command.document_id):
            try:
                # Step 1: Load document with pessimistic lock
                document = await self.document_repo.get_by_id(command.document_id, for_update=True)
                if not document:
                    raise DocumentNotFound(f"Document {command.document_id} not found")

                # Step 2: Check status accepts this entry kind
                check_ledger_event(document, command.kind)
                if command.kind in REVERSAL_KINDS.values():
                    raise InvalidTransition(
                        f"{command.kind.value.replace('_', ' ').capitalize()} entries are recorded "
                        f"by reversing a specific entry"
                    )

                # Step 3: Replay ledger and validate bounds
                entries = await self.entry_repo.list_by_document(document.id)
                aggregate = current_aggregate(document, entries)
                after = validate_entry(aggregate, command.kind, command.amount)

                # Step 4: Append entry
                reference = command.reference or await self.entry_repo.generate_reference(command.kind)
                entry = await self.entry_repo.create(
                    LedgerEntry(
                        document_id=document.id,
                        kind=command.kind,
                        amount=command.amount,
                        reference=reference,
                        memo=command.memo,
                    )
                )

                # Step 5: Promote status from the new balance
                previous_status = document.status
                transition = await promote_from_balance(
                    document, after, [*entries, entry], entry, self.transition_repo
                )

                # Step 6: Refresh cache and commit
                store_aggregate(document, after)
                document = await self.document_repo.update(document)
                await self.uow.commit()

            except LifecycleError as e:
                await self.uow.rollback()
                logger.info(
                    f"{command.kind.value} of {command.amount} rejected for document "
                    f"{command.document_id}: {e}"
                )
                return Return.err(Error(code=e.code, message=str(e)))
            except Exception as e:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="LEDGER_EVENT_FAILED",
                        message="Failed to record ledger event",
                        reason=str(e),
                    )
                )

        logger.info(
            f"Recorded {entry.kind.value} {entry.amount} ({entry.reference}) on "
            f"{document.document_number}; status {document.status}"
        )
        await notify_status_change(self.notification_service, document, transition)

        return Return.ok(
            LedgerEventResponseDTO(
                entry=to_entry_dto(entry),
                document_id=document.id,
                document_number=document.document_number,
                status=document.status,
                previous_status=previous_status,
                status_changed=transition is not None,
                aggregate=after.as_dict(),
            )
        )
