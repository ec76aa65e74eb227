from .base import BaseModel
from .document import (
    Document,
    DocumentType,
    PurchaseOrderStatus,
    SalesOrderStatus,
    WorkOrderStatus,
    InvoiceStatus,
    SupportCaseStatus,
)
from .ledger_entry import LedgerEntry, LedgerEntryKind
from .status_transition import StatusTransition, TransitionTrigger
from .errors import (
    LifecycleError,
    InvalidTransition,
    BalanceBoundViolation,
    DocumentTerminal,
    DocumentNotFound,
    LedgerEntryNotFound,
    InvalidTotals,
)

__all__ = [
    "BaseModel",
    "Document",
    "DocumentType",
    "PurchaseOrderStatus",
    "SalesOrderStatus",
    "WorkOrderStatus",
    "InvoiceStatus",
    "SupportCaseStatus",
    "LedgerEntry",
    "LedgerEntryKind",
    "StatusTransition",
    "TransitionTrigger",
    "LifecycleError",
    "InvalidTransition",
    "BalanceBoundViolation",
    "DocumentTerminal",
    "DocumentNotFound",
    "LedgerEntryNotFound",
    "InvalidTotals",
]
