from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.services.document_lock import InProcessDocumentLock
from src.domain.document import Document, DocumentType
from src.domain.ledger_entry import LedgerEntry, LedgerEntryKind


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def document_lock():
    return InProcessDocumentLock()


def make_document(document_type=DocumentType.INVOICE, status="open", **fields) -> Document:
    """Build an unsaved Document with sensible defaults for the type"""
    prefixes = {
        DocumentType.PURCHASE_ORDER: "PO",
        DocumentType.SALES_ORDER: "SO",
        DocumentType.WORK_ORDER: "WO",
        DocumentType.INVOICE: "INV",
        DocumentType.SUPPORT_CASE: "CASE",
    }
    defaults = {
        "id": 1,
        "document_number": f"{prefixes[document_type]}-10001",
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
    }
    if document_type == DocumentType.INVOICE:
        defaults["total_amount"] = Decimal("1000.00")
    if document_type in (DocumentType.PURCHASE_ORDER, DocumentType.WORK_ORDER):
        defaults["planned_quantity"] = Decimal("10")
    defaults.update(fields)
    return Document(document_type=document_type, status=status, **defaults)


def make_entry(entry_id, kind, amount, document_id=1, reverses_entry_id=None) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        document_id=document_id,
        kind=LedgerEntryKind(kind),
        amount=Decimal(str(amount)),
        reference=f"REF-{entry_id}",
        reverses_entry_id=reverses_entry_id,
        created_at=datetime.utcnow(),
    )


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def entry_factory():
    return make_entry
