from .document_repository import DocumentRepository
from .ledger_entry_repository import LedgerEntryRepository
from .status_transition_repository import StatusTransitionRepository

__all__ = [
    "DocumentRepository",
    "LedgerEntryRepository",
    "StatusTransitionRepository",
]
