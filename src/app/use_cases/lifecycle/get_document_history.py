"""Get Document History Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.document_repository import DocumentRepository
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.app.repositories.status_transition_repository import StatusTransitionRepository
from .dtos import DocumentHistoryResponseDTO, to_entry_dto, to_transition_dto


class GetDocumentHistory:
    """Returns a document's ledger entries and status changes, oldest first"""

    def __init__(
        self,
        document_repo: DocumentRepository,
        entry_repo: LedgerEntryRepository,
        transition_repo: StatusTransitionRepository,
    ):
        self.document_repo = document_repo
        self.entry_repo = entry_repo
        self.transition_repo = transition_repo

    async def execute(self, document_id: int) -> Result[DocumentHistoryResponseDTO]:
        document = await self.document_repo.get_by_id(document_id)

        if not document:
            return Return.err(
                Error(code="DOCUMENT_NOT_FOUND", message=f"Document {document_id} not found")
            )

        entries = await self.entry_repo.list_by_document(document.id)
        transitions = await self.transition_repo.list_by_document(document.id)

        return Return.ok(
            DocumentHistoryResponseDTO(
                document_id=document.id,
                document_number=document.document_number,
                status=document.status,
                entries=[to_entry_dto(e) for e in entries],
                transitions=[to_transition_dto(t) for t in transitions],
            )
        )
