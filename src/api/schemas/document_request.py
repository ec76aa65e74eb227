"""Request schemas for Document Lifecycle API

Pydantic models for validating incoming HTTP requests.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from src.domain.document import DocumentType
from src.domain.ledger_entry import LedgerEntryKind


class CreateDocumentRequestSchema(BaseModel):
    """
    Request schema for creating a document

    Used for POST /lifecycle/documents endpoint.
    """

    document_type: DocumentType = Field(..., description="Document type")
    title: Optional[str] = Field(default=None, max_length=255, description="Subject or memo")
    counterparty: Optional[str] = Field(default=None, max_length=255, description="Vendor or customer")
    total_amount: Optional[Decimal] = Field(default=None, description="Invoice total")
    planned_quantity: Optional[Decimal] = Field(
        default=None,
        description="Ordered (purchase order) or planned (work order) quantity"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "document_type": "purchase_order",
                "counterparty": "Steel Supplies Ltd",
                "planned_quantity": "10"
            }
        }


class AmendTotalsRequestSchema(BaseModel):
    """Request schema for PATCH /lifecycle/documents/{document_id}/totals"""

    total_amount: Optional[Decimal] = Field(default=None, description="New total amount")
    planned_quantity: Optional[Decimal] = Field(default=None, description="New planned quantity")


class StatusChangeRequestSchema(BaseModel):
    """
    Request schema for requesting a status change

    Used for POST /lifecycle/documents/{document_id}/status endpoint.
    """

    target_status: str = Field(..., min_length=1, description="Requested status")
    override: bool = Field(
        default=False,
        description="Accept a soft guard failure (close a partially received purchase order)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "target_status": "approved"
            }
        }


class LedgerEventRequestSchema(BaseModel):
    """
    Request schema for recording a ledger event

    Used for POST /lifecycle/documents/{document_id}/ledger endpoint.
    """

    kind: LedgerEntryKind = Field(..., description="payment, receipt, completion or scrap")
    amount: Decimal = Field(..., description="Amount or quantity (must be > 0)")
    reference: Optional[str] = Field(default=None, max_length=255, description="Payment or receipt number")
    memo: Optional[str] = Field(default=None, max_length=500, description="Optional note")

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "payment",
                "amount": "600.00",
                "reference": "CHK-4411"
            }
        }


class ReverseEntryRequestSchema(BaseModel):
    """Request schema for POST /lifecycle/documents/{document_id}/ledger/{entry_id}/reverse"""

    reference: Optional[str] = Field(default=None, max_length=255, description="Reversal reference")
    memo: Optional[str] = Field(default=None, max_length=500, description="Reason for the reversal")
