"""Get Document State Use Case

Retrieves a document's status and the aggregate replayed from its ledger.
"""

from libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.balance_ledger import current_aggregate
from .dtos import DocumentStateResponseDTO, to_state_dto


class GetDocumentState:
    """
    Get Document State Use Case

    Read-only. The aggregate is always the fold of the ledger, never the
    cached columns, so it reflects every committed entry.
    """

    def __init__(self, document_repo: DocumentRepository, entry_repo: LedgerEntryRepository):
        self.document_repo = document_repo
        self.entry_repo = entry_repo

    async def execute(self, document_id: int) -> Result[DocumentStateResponseDTO]:
        """
        Execute get document state

        Errors:
            DOCUMENT_NOT_FOUND: No document with this id
        """
        document = await self.document_repo.get_by_id(document_id)

        if not document:
            return Return.err(
                Error(code="DOCUMENT_NOT_FOUND", message=f"Document {document_id} not found")
            )

        entries = await self.entry_repo.list_by_document(document.id)
        return Return.ok(to_state_dto(document, current_aggregate(document, entries)))
