"""Status change notifiers

Every committed status change, manual or ledger-driven, is announced through
a NotificationService. The log channel is always on; a webhook channel is
added when NOTIFICATION_WEBHOOK is configured.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
import httpx
from src.app.services.notification_service import NotificationService
from src.domain.document import Document, DocumentType
from src.domain.status_transition import StatusTransition, TransitionTrigger

logger = logging.getLogger(__name__)

EVENT_TYPE = "document.status_changed"


def status_change_payload(document: Document, transition: StatusTransition) -> Dict[str, Any]:
    """JSON body describing one applied transition"""
    return {
        "type": EVENT_TYPE,
        "document_id": document.id,
        "document_number": document.document_number,
        "document_type": DocumentType(document.document_type).value,
        "from_status": transition.from_status,
        "to_status": transition.to_status,
        "trigger": TransitionTrigger(transition.trigger).value,
        "ledger_entry_id": transition.ledger_entry_id,
        "override": transition.override,
        "occurred_at": transition.occurred_at.isoformat() if transition.occurred_at else None,
    }


class LoggingNotificationService(NotificationService):
    """Writes each status change to the application log"""

    async def send_status_change(self, document: Document, transition: StatusTransition) -> bool:
        trigger = TransitionTrigger(transition.trigger)
        if trigger == TransitionTrigger.LEDGER:
            cause = f"ledger entry {transition.ledger_entry_id}"
        elif transition.override:
            cause = "manual override"
        else:
            cause = "manual request"

        logger.info(
            f"[STATUS CHANGE] {document.document_number}: "
            f"{transition.from_status} -> {transition.to_status} ({cause})"
        )
        return True


class WebhookNotificationService(NotificationService):
    """
    POSTs status changes to an HTTP endpoint

    Any non-2xx response or transport error counts as a failed delivery.
    Deliveries are not retried.
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def send_status_change(self, document: Document, transition: StatusTransition) -> bool:
        headers = {
            "Content-Type": "application/json",
            "X-Event-Type": EVENT_TYPE,
            "X-Document-Number": document.document_number,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json=status_change_payload(document, transition),
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"Webhook delivery failed for {document.document_number} "
                f"({transition.from_status} -> {transition.to_status}): {e}"
            )
            return False

        logger.debug(f"Webhook delivered for {document.document_number} to {self.webhook_url}")
        return True


class CompositeNotificationService(NotificationService):
    """
    Fans one status change out to several channels concurrently

    Succeeds when at least one channel delivered. A channel that raises is
    logged and counted as failed.
    """

    def __init__(self, services: List[NotificationService]):
        self.services = services

    async def send_status_change(self, document: Document, transition: StatusTransition) -> bool:
        results = await asyncio.gather(
            *(service.send_status_change(document, transition) for service in self.services),
            return_exceptions=True,
        )

        delivered = False
        for service, result in zip(self.services, results):
            if isinstance(result, Exception):
                logger.error(f"Notifier {type(service).__name__} raised: {result}")
            elif result:
                delivered = True
        return delivered


def create_notification_service(webhook_url: Optional[str] = None) -> NotificationService:
    """Log channel alone, or log plus webhook when a URL is configured"""
    if not webhook_url:
        return LoggingNotificationService()

    return CompositeNotificationService(
        [LoggingNotificationService(), WebhookNotificationService(webhook_url)]
    )
