"""Data Transfer Objects for Lifecycle Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.balance_ledger import BalanceAggregate
from src.domain.document import Document, DocumentType
from src.domain.ledger_entry import LedgerEntry, LedgerEntryKind
from src.domain.status_transition import StatusTransition, TransitionTrigger


class CreateDocumentCommandDTO(BaseModel):
    """
    Command DTO for creating a document

    Used as input to CreateDocument use case. Invoices need total_amount;
    purchase orders and work orders need planned_quantity.
    """

    document_type: DocumentType = Field(
        ...,
        description="Document type (purchase_order, sales_order, work_order, invoice, support_case)"
    )

    title: Optional[str] = Field(
        default=None,
        description="Free-form subject or memo"
    )

    counterparty: Optional[str] = Field(
        default=None,
        description="Vendor, customer or requester reference"
    )

    total_amount: Optional[Decimal] = Field(
        default=None,
        description="Invoice total (informational on orders)"
    )

    planned_quantity: Optional[Decimal] = Field(
        default=None,
        description="Ordered quantity (purchase order) or planned quantity (work order)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "document_type": "invoice",
                "title": "Consulting, March",
                "counterparty": "ACME Corp",
                "total_amount": "1000.00"
            }
        }


class AmendTotalsCommandDTO(BaseModel):
    """
    Command DTO for amending a document's fixed totals

    Only honoured while the document is in one of its editable statuses.
    Fields left as None are not changed.
    """

    document_id: int = Field(..., description="Document identifier")
    total_amount: Optional[Decimal] = Field(default=None, description="New total amount")
    planned_quantity: Optional[Decimal] = Field(default=None, description="New planned quantity")


class StatusChangeCommandDTO(BaseModel):
    """
    Command DTO for a user-requested status change

    Used as input to RequestStatusChange and CheckTransition.
    """

    document_id: int = Field(..., description="Document identifier")

    target_status: str = Field(
        ...,
        min_length=1,
        description="Requested status (must be a status of the document's type)"
    )

    override: bool = Field(
        default=False,
        description="Accept a soft guard failure (e.g. close a partially received purchase order)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": 1,
                "target_status": "approved",
                "override": False
            }
        }


class LedgerEventCommandDTO(BaseModel):
    """
    Command DTO for recording a balance-affecting event

    The amount is checked against the document's bounds by the use case, so
    non-positive amounts come back as BALANCE_BOUND_VIOLATION.
    """

    document_id: int = Field(..., description="Document identifier")

    kind: LedgerEntryKind = Field(
        ...,
        description="Entry kind (payment, receipt, completion, scrap)"
    )

    amount: Decimal = Field(
        ...,
        description="Amount or quantity (must be > 0)"
    )

    reference: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Payment or receipt number; generated when omitted"
    )

    memo: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Optional note"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": 1,
                "kind": "payment",
                "amount": "600.00",
                "reference": "PMT-10001"
            }
        }


class ReverseEntryCommandDTO(BaseModel):
    """Command DTO for reversing a prior ledger entry"""

    document_id: int = Field(..., description="Document identifier")
    entry_id: int = Field(..., description="Ledger entry to reverse")
    reference: Optional[str] = Field(default=None, max_length=255, description="Reversal reference")
    memo: Optional[str] = Field(default=None, max_length=500, description="Reason for the reversal")


class DocumentStateResponseDTO(BaseModel):
    """
    Response DTO for a document's current status and aggregate

    The aggregate keys depend on the document type:
    invoice {total, paid, due}, purchase order {ordered, received, remaining},
    work order {planned, completed, scrapped, remaining}, others {}.
    """

    document_id: int
    document_number: str
    document_type: str
    status: str
    title: Optional[str] = None
    counterparty: Optional[str] = None
    aggregate: Dict[str, Decimal] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "document_id": 1,
                "document_number": "INV-10001",
                "document_type": "invoice",
                "status": "partially_paid",
                "aggregate": {"total": "1000.00", "paid": "600.00", "due": "400.00"},
                "updated_at": "2024-01-02T00:00:00Z"
            }
        }


class LedgerEntryDTO(BaseModel):
    """Single ledger entry in responses"""

    entry_id: int
    document_id: int
    kind: str
    amount: Decimal
    reference: Optional[str] = None
    reverses_entry_id: Optional[int] = None
    memo: Optional[str] = None
    created_at: datetime


class TransitionDTO(BaseModel):
    """Single status change in history responses"""

    transition_id: int
    from_status: str
    to_status: str
    trigger: str
    ledger_entry_id: Optional[int] = None
    override: bool = False
    occurred_at: datetime


class LedgerEventResponseDTO(BaseModel):
    """
    Response DTO for a recorded ledger entry

    status_changed is True when the entry promoted the document to a new
    status (previous_status holds the one it left).
    """

    entry: LedgerEntryDTO
    document_id: int
    document_number: str
    status: str
    previous_status: str
    status_changed: bool
    aggregate: Dict[str, Decimal] = Field(default_factory=dict)


class TransitionCheckResponseDTO(BaseModel):
    """Response DTO for a dry-run transition check"""

    document_id: int
    current_status: str
    target_status: str
    allowed: bool
    reason: Optional[str] = None
    error_code: Optional[str] = None


class DocumentHistoryResponseDTO(BaseModel):
    """Response DTO for a document's ledger and status history"""

    document_id: int
    document_number: str
    status: str
    entries: List[LedgerEntryDTO] = Field(default_factory=list)
    transitions: List[TransitionDTO] = Field(default_factory=list)


class DocumentDiscrepancyDTO(BaseModel):
    """
    One document whose cached aggregate or status disagrees with its ledger

    expected_status is set when the replayed balance implies a different
    status than the stored one.
    """

    document_id: int
    document_number: str
    document_type: str
    status: str
    cached: Dict[str, Decimal]
    replayed: Dict[str, Decimal]
    expected_status: Optional[str] = None


class ReconciliationResultDTO(BaseModel):
    """Response DTO for document reconciliation"""

    total_documents_checked: int = Field(..., description="Number of ledger-bearing documents checked")
    discrepancies_found: int = Field(..., description="Number of documents with discrepancies")
    discrepancies: List[DocumentDiscrepancyDTO] = Field(default_factory=list)
    reconciliation_time: datetime
    execution_time_ms: int

    class Config:
        json_schema_extra = {
            "example": {
                "total_documents_checked": 42,
                "discrepancies_found": 0,
                "discrepancies": [],
                "reconciliation_time": "2024-01-02T03:00:00Z",
                "execution_time_ms": 120
            }
        }


def to_state_dto(document: Document, aggregate: BalanceAggregate) -> DocumentStateResponseDTO:
    return DocumentStateResponseDTO(
        document_id=document.id,
        document_number=document.document_number,
        document_type=DocumentType(document.document_type).value,
        status=document.status,
        title=document.title,
        counterparty=document.counterparty,
        aggregate=aggregate.as_dict(),
        updated_at=document.updated_at,
    )


def to_entry_dto(entry: LedgerEntry) -> LedgerEntryDTO:
    return LedgerEntryDTO(
        entry_id=entry.id,
        document_id=entry.document_id,
        kind=LedgerEntryKind(entry.kind).value,
        amount=entry.amount,
        reference=entry.reference,
        reverses_entry_id=entry.reverses_entry_id,
        memo=entry.memo,
        created_at=entry.created_at,
    )


def to_transition_dto(transition: StatusTransition) -> TransitionDTO:
    return TransitionDTO(
        transition_id=transition.id,
        from_status=transition.from_status,
        to_status=transition.to_status,
        trigger=TransitionTrigger(transition.trigger).value,
        ledger_entry_id=transition.ledger_entry_id,
        override=transition.override,
        occurred_at=transition.occurred_at,
    )
