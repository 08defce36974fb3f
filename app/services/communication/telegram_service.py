from typing import Optional
import logging
import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

class TelegramClient:
    """
    Minimal async client for the Telegram Bot API sendMessage call.
    Env-driven configuration to avoid hardcoding the bot token.
    """
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.enabled: bool = getattr(settings, "TELEGRAM_ENABLED", False)
        self.bot_token: Optional[str] = getattr(settings, "TELEGRAM_BOT_TOKEN", None)
        self.api_url: str = getattr(settings, "TELEGRAM_API_URL", "https://api.telegram.org")
        self.transport = transport

    async def send(self, chat_id: str, body: str) -> dict:
        if not self.enabled:
            logger.info("Telegram sending disabled; skipping actual call.")
            return {"status": "disabled", "chat_id": chat_id, "message": body}

        if not self.bot_token:
            logger.error("Telegram configuration missing (bot token).")
            return {"status": "error", "error": "missing_configuration"}

        url = f"{self.api_url}/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": chat_id,
            "text": body,
            "parse_mode": "HTML",
        }

        timeout = httpx.Timeout(10.0, connect=10.0)
        async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
            try:
                r = await client.post(url, json=payload)
                data = r.json() if r.headers.get("content-type", "").startswith("application/json") else {"text": r.text}
                if r.is_success and data.get("ok", False):
                    return {"status": "ok", "provider_response": data}
                else:
                    logger.error("Telegram send failed: %s | %s", r.status_code, data)
                    return {"status": "error", "code": r.status_code, "provider_response": data}
            except Exception as e:
                logger.exception("Telegram send exception: %s", e)
                return {"status": "error", "exception": str(e)}
