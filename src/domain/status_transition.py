"""Status Transition Domain Entity

Audit trail of every status change a document has undergone.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, BigInteger, String
from src.domain.base import BaseModel, IdType


class TransitionTrigger(str, Enum):
    MANUAL = "manual"   # Requested by a user action
    LEDGER = "ledger"   # Promoted automatically after a ledger entry


class StatusTransition(BaseModel, table=True):
    """
    Status Transition - One applied status change

    Domain Rules:
    - Append-only; ordered by id per document
    - ledger_entry_id is set when the change was a balance-threshold promotion
    """

    __tablename__ = "status_transitions"
    __table_args__ = (
        Index('ix_status_transitions_document_id', 'document_id'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique transition identifier (auto-increment)"
    )

    document_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("documents.id"), nullable=False),
        description="Foreign key to Document"
    )

    from_status: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="Status before the change"
    )

    to_status: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="Status after the change"
    )

    trigger: TransitionTrigger = Field(
        description="What caused the change (manual, ledger)"
    )

    ledger_entry_id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigInteger, ForeignKey("ledger_entries.id"), nullable=True),
        description="Ledger entry that triggered an automatic promotion"
    )

    override: bool = Field(
        default=False,
        description="Whether the requester overrode a soft guard (e.g. closing a partially received PO)"
    )

    occurred_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the change was applied"
    )
