"""Ledger Entry Repository Interface

Defines the contract for ledger entry persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.ledger_entry import LedgerEntry, LedgerEntryKind


class LedgerEntryRepository(ABC):
    """
    Repository interface for LedgerEntry persistence

    Entries are immutable and append-only: there is no update or delete.
    """

    @abstractmethod
    async def create(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Append a ledger entry

        Args:
            entry: LedgerEntry entity to persist

        Returns:
            Created LedgerEntry with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, entry_id: int) -> Optional[LedgerEntry]:
        """
        Retrieve entry by ID

        Args:
            entry_id: Entry ID

        Returns:
            LedgerEntry if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_by_document(self, document_id: int) -> List[LedgerEntry]:
        """
        Retrieve every entry of a document in append order

        Args:
            document_id: Owning document ID

        Returns:
            List of entries ordered by ID
        """
        pass

    @abstractmethod
    async def generate_reference(self, kind: LedgerEntryKind) -> str:
        """
        Generate the next reference number for an entry kind (e.g., PMT-10001)

        Args:
            kind: Entry kind

        Returns:
            Reference string
        """
        pass
