"""Document Domain Entity

One row per business record whose status and balance are governed by the
lifecycle engine: purchase orders, sales orders, work orders, customer
invoices and support cases.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Numeric, String
from src.domain.base import BaseModel, IdType


class DocumentType(str, Enum):
    """Business document types tracked by the engine"""
    PURCHASE_ORDER = "purchase_order"
    SALES_ORDER = "sales_order"
    WORK_ORDER = "work_order"
    INVOICE = "invoice"
    SUPPORT_CASE = "support_case"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    SENT = "sent"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class SalesOrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    PENDING_FULFILLMENT = "pending_fulfillment"
    FULFILLED = "fulfilled"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class WorkOrderStatus(str, Enum):
    PLANNED = "planned"
    RELEASED = "released"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    VOID = "void"


class SupportCaseStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Document(BaseModel, table=True):
    """
    Document - A business record moving through a fixed status lifecycle

    Domain Rules:
    - document_number is unique (PO-10001, INV-10001, ...)
    - Created in the initial status of its type with zero ledger entries
    - Totals (total_amount, planned_quantity) are immutable once the
      document leaves its editable statuses
    - amount_paid / quantity_* columns are a cache of the ledger fold and are
      written only by the lifecycle use cases
    """

    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint('amount_paid >= 0', name='amount_paid_non_negative'),
        CheckConstraint('quantity_received >= 0', name='quantity_received_non_negative'),
        CheckConstraint('quantity_completed >= 0', name='quantity_completed_non_negative'),
        CheckConstraint('quantity_scrapped >= 0', name='quantity_scrapped_non_negative'),
        Index('ix_documents_type_status', 'document_type', 'status'),
    )

    id: int = Field(
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique document identifier (auto-increment)"
    )

    document_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique document number (e.g., PO-10001)"
    )

    document_type: DocumentType = Field(
        description="Document type (purchase_order, sales_order, work_order, invoice, support_case)"
    )

    status: str = Field(
        sa_column=Column(String(32), nullable=False),
        description="Current status, one of the document type's status enum values"
    )

    title: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Free-form subject or memo"
    )

    counterparty: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Vendor, customer or requester reference"
    )

    total_amount: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Monetary total (invoice total; informational on orders)"
    )

    planned_quantity: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(18, 6), nullable=True),
        description="Ordered quantity (purchase order) or planned quantity (work order)"
    )

    amount_paid: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Cached sum of payments net of reversals"
    )

    quantity_received: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Cached sum of posted receipts"
    )

    quantity_completed: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Cached sum of recorded completions"
    )

    quantity_scrapped: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False, default=0),
        description="Cached sum of recorded scrap"
    )

    approved_at: Optional[datetime] = Field(default=None, description="When the document was approved")
    sent_at: Optional[datetime] = Field(default=None, description="When the purchase order was sent")
    started_at: Optional[datetime] = Field(default=None, description="Actual production start")
    completed_at: Optional[datetime] = Field(default=None, description="Actual completion / fulfilment")
    resolved_at: Optional[datetime] = Field(default=None, description="When the support case was resolved")
    paid_at: Optional[datetime] = Field(default=None, description="When the invoice became fully paid")
    closed_at: Optional[datetime] = Field(default=None, description="When the document was closed")
    cancelled_at: Optional[datetime] = Field(default=None, description="When the document was cancelled")
    voided_at: Optional[datetime] = Field(default=None, description="When the invoice was voided")

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Document creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "document_number": "INV-10001",
                "document_type": "invoice",
                "status": "partially_paid",
                "total_amount": "1000.000000",
                "amount_paid": "600.000000",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-02T00:00:00Z"
            }
        }


# Number prefix per document type (PO-10001, INV-10001, ...)
DOCUMENT_NUMBER_PREFIXES = {
    DocumentType.PURCHASE_ORDER: "PO",
    DocumentType.SALES_ORDER: "SO",
    DocumentType.WORK_ORDER: "WO",
    DocumentType.INVOICE: "INV",
    DocumentType.SUPPORT_CASE: "CASE",
}
