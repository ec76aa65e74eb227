"""Document Lock Interface

Per-document exclusive section. Every request that may change a document's
status or ledger runs inside `lock.hold(document_id)`, so guard evaluation,
ledger append and status transition observe and produce one consistent
state. Requests for different documents never wait on each other.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class DocumentLock(ABC):
    @abstractmethod
    def hold(self, document_id: int) -> AsyncContextManager[None]:
        """
        Acquire the exclusive section for one document

        Args:
            document_id: Document whose status/ledger is about to change

        Returns:
            Async context manager; the section is released on exit
        """
        pass
