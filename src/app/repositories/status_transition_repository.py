"""Status Transition Repository Interface

Defines the contract for the status change audit trail.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.status_transition import StatusTransition


class StatusTransitionRepository(ABC):
    @abstractmethod
    async def create(self, transition: StatusTransition) -> StatusTransition:
        """
        Record an applied status change

        Args:
            transition: StatusTransition entity to persist

        Returns:
            Created StatusTransition with generated ID
        """
        pass

    @abstractmethod
    async def list_by_document(self, document_id: int) -> List[StatusTransition]:
        """
        Retrieve a document's status history in the order it happened

        Args:
            document_id: Document ID

        Returns:
            List of transitions ordered by ID
        """
        pass
