"""CheckTransition Use Case

Dry-run of a status change: answers whether it would be allowed and why not.
"""

from libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.balance_ledger import current_aggregate
from src.domain.state_machine import TransitionContext, can_transition
from .dtos import TransitionCheckResponseDTO


class CheckTransition:
    """
    Check Transition Use Case

    Read-only. Evaluates the same guards RequestStatusChange would, against
    the ledger as it is now, without taking the document lock.
    """

    def __init__(self, document_repo: DocumentRepository, entry_repo: LedgerEntryRepository):
        self.document_repo = document_repo
        self.entry_repo = entry_repo

    async def execute(
        self,
        document_id: int,
        target_status: str,
        override: bool = False,
    ) -> Result[TransitionCheckResponseDTO]:
        """
        Execute transition check

        Args:
            document_id: Document identifier
            target_status: Status the caller wants to move to
            override: Whether the caller would override soft guards

        Returns:
            Result[TransitionCheckResponseDTO]: allowed flag plus rejection reason

        Errors:
            DOCUMENT_NOT_FOUND: No document with this id
        """
        document = await self.document_repo.get_by_id(document_id)
        if not document:
            return Return.err(
                Error(code="DOCUMENT_NOT_FOUND", message=f"Document {document_id} not found")
            )

        entries = await self.entry_repo.list_by_document(document.id)
        context = TransitionContext(
            document=document,
            aggregate=current_aggregate(document, entries),
            entries=tuple(entries),
            override=override,
        )
        check = can_transition(context, target_status)

        return Return.ok(
            TransitionCheckResponseDTO(
                document_id=document.id,
                current_status=document.status,
                target_status=target_status,
                allowed=check.allowed,
                reason=check.reason,
                error_code=check.error.code if check.error else None,
            )
        )
