import html
import logging
from typing import Dict, Optional

from app.models.shared.enums import NotificationKind
from app.schemas.ticket.ticket_schema import NotificationRequest
from app.services.communication.telegram_service import TelegramClient

logger = logging.getLogger(__name__)

class NotificationService:
    """Delivers ticket notifications; the ticket engine only decides whether and to whom"""

    def __init__(self, client: TelegramClient, chat_ids: Optional[Dict[str, str]] = None):
        self.client = client
        # Registry keys are matched case-insensitively
        self._chat_ids = {name.strip().lower(): str(chat) for name, chat in (chat_ids or {}).items()}

    def resolve_chat_id(self, recipient: str, explicit_chat_id: Optional[str] = None) -> Optional[str]:
        if explicit_chat_id:
            return explicit_chat_id
        if not recipient:
            return None
        return self._chat_ids.get(recipient.strip().lower())

    def render_message(self, request: NotificationRequest) -> str:
        ctx = {k: html.escape(v or "") for k, v in request.context.items()}
        ticket_id = html.escape(request.ticket_id)

        if request.message_kind == NotificationKind.ASSIGNMENT_NOTICE:
            return (
                f"<b>New ticket assigned: {ticket_id}</b>\n"
                f"Outlet: {ctx.get('outlet', '')}\n"
                f"Type: {ctx.get('type', '')}\n"
                f"Issue: {ctx.get('issue_description', '')}"
            )

        return (
            f"<b>Ticket {ticket_id} marked as resolved</b>\n"
            f"Outlet: {ctx.get('outlet', '')}\n"
            f"Resolved by: {ctx.get('assigned_to', '') or 'Unassigned'}\n"
            f"Action taken: {ctx.get('action_taken', '') or '-'}\n"
            f"Please confirm the issue is fixed."
        )

    async def send(self, request: NotificationRequest) -> bool:
        """Attempt delivery; returns True only when the provider accepted the message"""
        chat_id = self.resolve_chat_id(request.recipient, request.chat_id)
        if not chat_id:
            logger.warning(
                f"No notification channel registered for {request.recipient!r}; "
                f"skipping {request.message_kind.value} for ticket {request.ticket_id}"
            )
            return False

        result = await self.client.send(chat_id, self.render_message(request))
        sent = result.get("status") == "ok"
        if sent:
            logger.info(f"{request.message_kind.value} for ticket {request.ticket_id} sent to {request.recipient}")
        else:
            logger.warning(
                f"{request.message_kind.value} for ticket {request.ticket_id} to {request.recipient} "
                f"not delivered: {result.get('status')}"
            )
        return sent
