from .document_repository import SqlAlchemyDocumentRepository
from .ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from .status_transition_repository import SqlAlchemyStatusTransitionRepository

__all__ = [
    "SqlAlchemyDocumentRepository",
    "SqlAlchemyLedgerEntryRepository",
    "SqlAlchemyStatusTransitionRepository",
]
