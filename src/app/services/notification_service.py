"""Notification Service Interface

Defines the contract for announcing document status changes.
"""

from abc import ABC, abstractmethod
from src.domain.document import Document
from src.domain.status_transition import StatusTransition


class NotificationService(ABC):
    """
    Abstract notification service for status change announcements

    Implementations can send notifications via:
    - Log output
    - Webhook (HTTP POST)
    - etc.

    Called after the change is committed; a failed notification never undoes it.
    """

    @abstractmethod
    async def send_status_change(self, document: Document, transition: StatusTransition) -> bool:
        """
        Announce an applied status change

        Args:
            document: Document after the change
            transition: The recorded transition

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass
