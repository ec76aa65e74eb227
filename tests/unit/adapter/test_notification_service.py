"""Unit tests for status change notification services"""

import pytest
import httpx
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

from src.adapter.services.notification_service import (
    CompositeNotificationService,
    LoggingNotificationService,
    WebhookNotificationService,
    create_notification_service,
)
from src.domain.document import DocumentType
from src.domain.status_transition import StatusTransition, TransitionTrigger


@pytest.fixture
def transition():
    return StatusTransition(
        id=1,
        document_id=1,
        from_status="open",
        to_status="paid",
        trigger=TransitionTrigger.LEDGER,
        ledger_entry_id=5,
        occurred_at=datetime.utcnow(),
    )


class TestCreateNotificationService:
    def test_logging_only_without_webhook(self):
        assert isinstance(create_notification_service(None), LoggingNotificationService)

    def test_composite_with_webhook(self):
        service = create_notification_service("https://hooks.example.com/status")

        assert isinstance(service, CompositeNotificationService)
        assert isinstance(service.services[1], WebhookNotificationService)


@pytest.mark.asyncio
class TestNotificationServices:
    async def test_logging_service_succeeds(self, document_factory, transition):
        document = document_factory(DocumentType.INVOICE, status="paid")

        assert await LoggingNotificationService().send_status_change(document, transition) is True

    async def test_webhook_posts_payload(self, document_factory, transition):
        document = document_factory(DocumentType.INVOICE, status="paid")
        service = WebhookNotificationService("https://hooks.example.com/status")

        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock()
        mock_client = MagicMock()
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)
        mock_client.post = AsyncMock(return_value=mock_response)

        with patch("src.adapter.services.notification_service.httpx.AsyncClient", return_value=mock_client):
            sent = await service.send_status_change(document, transition)

        assert sent is True
        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["document_number"] == "INV-10001"
        assert payload["from_status"] == "open"
        assert payload["to_status"] == "paid"
        assert payload["trigger"] == "ledger"
        assert payload["type"] == "document.status_changed"
        assert mock_client.post.call_args.kwargs["headers"]["X-Document-Number"] == "INV-10001"

    async def test_webhook_failure_returns_false(self, document_factory, transition):
        document = document_factory(DocumentType.INVOICE, status="paid")
        service = WebhookNotificationService("https://hooks.example.com/status")

        mock_client = MagicMock()
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)
        mock_client.post = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with patch("src.adapter.services.notification_service.httpx.AsyncClient", return_value=mock_client):
            sent = await service.send_status_change(document, transition)

        assert sent is False

    async def test_composite_succeeds_if_any_channel_does(self, document_factory, transition):
        document = document_factory(DocumentType.INVOICE, status="paid")
        failing = MagicMock()
        failing.send_status_change = AsyncMock(side_effect=RuntimeError("down"))
        service = CompositeNotificationService([failing, LoggingNotificationService()])

        assert await service.send_status_change(document, transition) is True
