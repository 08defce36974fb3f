import json
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from app.core.config import settings
from app.models.shared.enums import NotificationKind
from app.schemas.ticket.ticket_schema import NotificationRequest
from app.services.communication.telegram_service import TelegramClient
from app.services.notification.notification_service import NotificationService


@pytest.fixture
def telegram_enabled(monkeypatch):
    monkeypatch.setattr(settings, "TELEGRAM_ENABLED", True)
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(settings, "TELEGRAM_API_URL", "https://telegram.test")


def assignment_request(recipient="Nishat", chat_id=None):
    return NotificationRequest(
        recipient=recipient,
        chat_id=chat_id,
        message_kind=NotificationKind.ASSIGNMENT_NOTICE,
        ticket_id="TKT-1",
        context={"outlet": "BLN", "type": "RepairAndMaintenance", "issue_description": "Fridge <leaking>"},
    )


class TestTelegramClient:
    async def test_disabled_client_skips_call(self, monkeypatch):
        monkeypatch.setattr(settings, "TELEGRAM_ENABLED", False)

        def handler(request):
            raise AssertionError("no request expected")

        result = await TelegramClient(transport=httpx.MockTransport(handler)).send("42", "hello")
        assert result["status"] == "disabled"

    async def test_send_message(self, telegram_enabled):
        sent = []

        def handler(request: httpx.Request):
            sent.append(request)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

        result = await TelegramClient(transport=httpx.MockTransport(handler)).send("42", "hello")

        assert result["status"] == "ok"
        assert sent[0].url.path == "/bot123:abc/sendMessage"
        assert json.loads(sent[0].content) == {"chat_id": "42", "text": "hello", "parse_mode": "HTML"}

    async def test_provider_error_is_reported(self, telegram_enabled):
        def handler(request):
            return httpx.Response(400, json={"ok": False, "description": "chat not found"})

        result = await TelegramClient(transport=httpx.MockTransport(handler)).send("42", "hello")
        assert result["status"] == "error"


class TestNotificationService:
    def _service(self, status="ok", chat_ids=None):
        client = Mock(spec=TelegramClient)
        client.send = AsyncMock(return_value={"status": status})
        return NotificationService(client, chat_ids if chat_ids is not None else {"Nishat": "1001"}), client

    async def test_sends_to_registered_chat(self):
        service, client = self._service()

        assert await service.send(assignment_request()) is True
        chat_id, body = client.send.await_args.args
        assert chat_id == "1001"
        assert "TKT-1" in body
        assert "Fridge &lt;leaking&gt;" in body

    async def test_registry_lookup_ignores_case(self):
        service, _ = self._service()
        assert service.resolve_chat_id(" nishat ") == "1001"
        assert service.resolve_chat_id("Kim") is None

    async def test_explicit_chat_id_wins(self):
        service, client = self._service()
        await service.send(assignment_request(recipient="Submitter", chat_id="777"))
        assert client.send.await_args.args[0] == "777"

    async def test_no_channel_returns_false(self):
        service, client = self._service(chat_ids={})
        assert await service.send(assignment_request()) is False
        client.send.assert_not_awaited()

    async def test_failed_delivery_returns_false(self):
        service, _ = self._service(status="error")
        assert await service.send(assignment_request()) is False

    def test_approval_request_message(self):
        service, _ = self._service()
        body = service.render_message(NotificationRequest(
            recipient="Kim",
            message_kind=NotificationKind.APPROVAL_REQUEST,
            ticket_id="TKT-2",
            context={"outlet": "HSR", "assigned_to": "Nishat", "action_taken": "Fixed the fridge"},
        ))
        assert "TKT-2" in body
        assert "Fixed the fridge" in body
        assert "confirm" in body
