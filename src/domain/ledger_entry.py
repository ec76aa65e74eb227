"""Ledger Entry Domain Entity

Immutable append-only record of one balance-affecting event on a document.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, BigInteger, Numeric, String
from src.domain.base import BaseModel, IdType


class LedgerEntryKind(str, Enum):
    """Balance-affecting event kinds"""
    PAYMENT = "payment"                    # Invoice payment received
    PAYMENT_REVERSAL = "payment_reversal"  # Negates a prior payment
    RECEIPT = "receipt"                    # Purchase order goods received
    COMPLETION = "completion"              # Work order units completed
    SCRAP = "scrap"                        # Work order units scrapped


# Reference prefix per kind when the caller supplies none (PMT-10001, IR-10001, ...)
REFERENCE_PREFIXES = {
    LedgerEntryKind.PAYMENT: "PMT",
    LedgerEntryKind.PAYMENT_REVERSAL: "RV",
    LedgerEntryKind.RECEIPT: "IR",
    LedgerEntryKind.COMPLETION: "WC",
    LedgerEntryKind.SCRAP: "WS",
}


class LedgerEntry(BaseModel, table=True):
    """
    Ledger Entry - Immutable audit trail of document balance events

    Domain Rules:
    - Entries are immutable (append-only), never updated or deleted
    - amount is signed: reversals carry the negated amount of the entry
      they reverse and point at it via reverses_entry_id
    - A document's aggregate is the fold of all its entries in id order
    """

    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index('ix_ledger_entries_document_id', 'document_id'),
        Index('ix_ledger_entries_reference', 'reference'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique entry identifier (auto-increment)"
    )

    document_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("documents.id"), nullable=False),
        description="Foreign key to the owning Document"
    )

    kind: LedgerEntryKind = Field(
        description="Entry kind (payment, payment_reversal, receipt, completion, scrap)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Signed amount or quantity (precision: 18,6)"
    )

    reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Free-form reference (payment number, receipt number)"
    )

    reverses_entry_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, ForeignKey("ledger_entries.id"), nullable=True),
        description="Entry negated by this reversal"
    )

    memo: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True),
        description="Optional note"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Entry timestamp (immutable)"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "document_id": 1,
                "kind": "payment",
                "amount": "600.000000",
                "reference": "PMT-10001",
                "reverses_entry_id": None,
                "created_at": "2024-01-02T00:00:00Z"
            }
        }
