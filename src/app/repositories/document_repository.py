"""Document Repository Interface

Defines the contract for document persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.document import Document, DocumentType


class DocumentRepository(ABC):
    """
    Repository interface for Document persistence

    get_by_id(for_update=True) takes a row lock (SELECT FOR UPDATE) so the
    read-guard-write sequence of a lifecycle request sees no concurrent writer.
    """

    @abstractmethod
    async def create(self, document: Document) -> Document:
        """
        Create a new document

        Args:
            document: Document entity to persist

        Returns:
            Created Document with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, document_id: int, for_update: bool = False) -> Optional[Document]:
        """
        Retrieve document by ID

        Args:
            document_id: Document ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Document if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, document: Document) -> Document:
        """
        Persist changes to an existing document

        Args:
            document: Document entity with updated values

        Returns:
            Updated Document
        """
        pass

    @abstractmethod
    async def get_all(self, document_type: Optional[DocumentType] = None) -> List[Document]:
        """
        Retrieve all documents, optionally of one type

        Args:
            document_type: Optional filter by document type

        Returns:
            List of documents ordered by ID
        """
        pass

    @abstractmethod
    async def generate_document_number(self, document_type: DocumentType) -> str:
        """
        Generate the next document number for a type (e.g., PO-10001)

        Args:
            document_type: Document type

        Returns:
            Unique document number string
        """
        pass
