"""SQLAlchemy implementation of DocumentRepository

Provides persistence for Document entities with pessimistic locking support
so concurrent lifecycle requests against one document are serialized.
"""

from datetime import datetime
from typing import List, Optional
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.document_repository import DocumentRepository
from src.domain.document import Document, DocumentType, DOCUMENT_NUMBER_PREFIXES

FIRST_SEQUENCE = 10001


class SqlAlchemyDocumentRepository(DocumentRepository):
    """
    SQLAlchemy implementation of DocumentRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE (ignored by SQLite, where the
      in-process DocumentLock provides the exclusion)
    - Sequential per-type document numbers
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, document: Document) -> Document:
        self.session.add(document)
        await self.session.flush()
        await self.session.refresh(document)
        return document

    async def get_by_id(self, document_id: int, for_update: bool = False) -> Optional[Document]:
        """
        Retrieve document by ID with optional row-level locking

        Args:
            document_id: Document ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Document if found, None otherwise
        """
        stmt = select(Document).where(Document.id == document_id)

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, document: Document) -> Document:
        """
        Flush changes to a document

        Note:
            Should be called within a transaction with the document already locked
        """
        document.updated_at = datetime.utcnow()
        self.session.add(document)
        await self.session.flush()
        await self.session.refresh(document)
        return document

    async def get_all(self, document_type: Optional[DocumentType] = None) -> List[Document]:
        stmt = select(Document)

        if document_type:
            stmt = stmt.where(Document.document_type == document_type)

        stmt = stmt.order_by(Document.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def generate_document_number(self, document_type: DocumentType) -> str:
        """
        Generate the next document number for a type

        Format: PREFIX-NNNNN starting at 10001 (e.g., PO-10001, INV-10002).
        Documents are never deleted, so the per-type count is a stable sequence.

        Returns:
            Document number string
        """
        statement = (
            select(func.count())
            .select_from(Document)
            .where(Document.document_type == document_type)
        )
        result = await self.session.execute(statement)
        count = result.scalar_one()

        return f"{DOCUMENT_NUMBER_PREFIXES[DocumentType(document_type)]}-{FIRST_SEQUENCE + count}"
