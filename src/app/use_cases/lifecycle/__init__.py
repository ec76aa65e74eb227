"""Document lifecycle use cases"""
from .create_document import CreateDocument
from .amend_document_totals import AmendDocumentTotals
from .check_transition import CheckTransition
from .request_status_change import RequestStatusChange
from .request_ledger_event import RequestLedgerEvent
from .reverse_ledger_entry import ReverseLedgerEntry
from .get_document_state import GetDocumentState
from .get_document_history import GetDocumentHistory
from .reconcile_documents import ReconcileDocuments
from .dtos import (
    CreateDocumentCommandDTO,
    AmendTotalsCommandDTO,
    StatusChangeCommandDTO,
    LedgerEventCommandDTO,
    ReverseEntryCommandDTO,
    DocumentStateResponseDTO,
    LedgerEntryDTO,
    TransitionDTO,
    LedgerEventResponseDTO,
    TransitionCheckResponseDTO,
    DocumentHistoryResponseDTO,
    DocumentDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "CreateDocument",
    "AmendDocumentTotals",
    "CheckTransition",
    "RequestStatusChange",
    "RequestLedgerEvent",
    "ReverseLedgerEntry",
    "GetDocumentState",
    "GetDocumentHistory",
    "ReconcileDocuments",
    "CreateDocumentCommandDTO",
    "AmendTotalsCommandDTO",
    "StatusChangeCommandDTO",
    "LedgerEventCommandDTO",
    "ReverseEntryCommandDTO",
    "DocumentStateResponseDTO",
    "LedgerEntryDTO",
    "TransitionDTO",
    "LedgerEventResponseDTO",
    "TransitionCheckResponseDTO",
    "DocumentHistoryResponseDTO",
    "DocumentDiscrepancyDTO",
    "ReconciliationResultDTO",
]
