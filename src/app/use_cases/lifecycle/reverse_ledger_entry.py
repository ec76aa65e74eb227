"""ReverseLedgerEntry Use Case

Negates a prior payment with a compensating entry. The original entry stays
in the ledger; the reversal points at it.
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
from src.domain.balance_ledger import build_reversal, current_aggregate, store_aggregate, validate_entry
from src.domain.errors import DocumentNotFound, DocumentTerminal, LifecycleError
from src.domain.ledger_entry import LedgerEntry
from src.domain.state_machine import check_ledger_event, describe, table_for
from .dtos import LedgerEventResponseDTO, ReverseEntryCommandDTO, to_entry_dto
from .promotion import notify_status_change, promote_from_balance

logger = logging.getLogger(__name__)


class ReverseLedgerEntry:
    """
    Use Case: Reverse a ledger entry

    Business Rules:
    1. Only payments can be reversed, each at most once
    2. The reversal carries the negated amount and the original entry id
    3. Reversing a payment on a paid invoice demotes it (paid -> partially
       paid or open)
    4. Void invoices accept no reversals

    Flow:
    1. Acquire document lock, load document with SELECT FOR UPDATE
    2. Build the reversal from the referenced entry
    3. Validate the post-entry bounds
    4. Append reversal, promote status, refresh cache
    5. Commit, then notify
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

    async def execute(self, command: ReverseEntryCommandDTO) -> Result[LedgerEventResponseDTO]:
        """
        Execute entry reversal

        Args:
            command: ReverseEntryCommandDTO with document_id and entry_id

        Returns:
            Result[LedgerEventResponseDTO]: Reversal entry with resulting status and aggregate
        """
        async with self.document_lock.hold(command.document_id):
            try:
                document = await self.document_repo.get_by_id(command.document_id, for_update=True)
                if not document:
                    raise DocumentNotFound(f"Document {command.document_id} not found")

                if table_for(document.document_type).is_terminal(document.status):
                    raise DocumentTerminal(
                        f"{describe(document).capitalize()} is {document.status}; "
                        f"no further ledger entries are accepted"
                    )

                entries = await self.entry_repo.list_by_document(document.id)
                kind, amount, original = build_reversal(entries, command.entry_id)
                check_ledger_event(document, kind)

                aggregate = current_aggregate(document, entries)
                after = validate_entry(aggregate, kind, amount)

                reference = command.reference or await self.entry_repo.generate_reference(kind)
                entry = await self.entry_repo.create(
                    LedgerEntry(
                        document_id=document.id,
                        kind=kind,
                        amount=amount,
                        reference=reference,
                        reverses_entry_id=original.id,
                        memo=command.memo,
                    )
                )

                previous_status = document.status
                transition = await promote_from_balance(
                    document, after, [*entries, entry], entry, self.transition_repo
                )

                store_aggregate(document, after)
                document = await self.document_repo.update(document)
                await self.uow.commit()

            except LifecycleError as e:
                await self.uow.rollback()
                logger.info(
                    f"Reversal of entry {command.entry_id} rejected for document "
                    f"{command.document_id}: {e}"
                )
                return Return.err(Error(code=e.code, message=str(e)))
            except Exception as e:
                await self.uow.rollback()
                return Return.err(
                    Error(
                        code="REVERSE_ENTRY_FAILED",
                        message="Failed to reverse ledger entry",
                        reason=str(e),
                    )
                )

        logger.info(
            f"Reversed entry {original.id} ({original.reference}) on {document.document_number}; "
            f"status {document.status}"
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
