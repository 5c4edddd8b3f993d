"""Servicio de notificaciones vía Telegram Bot API.

No bloquea el pipeline ni lanza excepciones: retorna SideEffectOutcome.
Timeouts y errores HTTP se loguean y no se reintentan.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

import requests

from common.config import Settings

from .models import SideEffectOutcome
from .sinks import Notifier

logger = logging.getLogger(__name__)

PLACEHOLDER_TOKEN = "YOUR_TELEGRAM_BOT_TOKEN"


class TelegramNotifier(Notifier):
    """Envía alertas a un chat de Telegram (sendMessage)."""

    def __init__(
        self,
        bot_token: Optional[str],
        chat_id: Optional[str],
        api_url: str = "https://api.telegram.org",
        location: str = "Lab Room 1",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._api_url = api_url.rstrip("/")
        self._location = location
        self._timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramNotifier":
        return cls(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
            api_url=settings.telegram_api_url,
            location=settings.notify_location,
            timeout=settings.notify_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._bot_token and self._chat_id and self._bot_token != PLACEHOLDER_TOKEN)

    def format_message(self, title: str, body: str) -> str:
        sent_at = self._clock().strftime("%Y-%m-%d %H:%M:%S")
        return f"{title}\n\n{body}\n\n📍 Location: {self._location}\n🕐 Time: {sent_at}"

    def notify(self, title: str, body: str) -> SideEffectOutcome:
        if not self.is_configured:
            logger.error("[TELEGRAM] Bot token or chat id not configured - skipping notification")
            return SideEffectOutcome.failure("telegram not configured")

        url = f"{self._api_url}/bot{self._bot_token}/sendMessage"
        try:
            response = self._session.post(
                url,
                json={
                    "chat_id": self._chat_id,
                    "text": self.format_message(title, body),
                    "parse_mode": "Markdown",
                },
                timeout=self._timeout,
            )
        except requests.Timeout:
            logger.error("[TELEGRAM] Timeout after %.1fs sending '%s'", self._timeout, title)
            return SideEffectOutcome.failure("timeout")
        except requests.RequestException as e:
            # No loguear la URL: contiene el token
            logger.error("[TELEGRAM] Error sending '%s': %s", title, type(e).__name__)
            return SideEffectOutcome.failure(type(e).__name__)

        if response.ok:
            logger.info("[TELEGRAM] Alert sent: %s", title)
            return SideEffectOutcome.success(status_code=response.status_code)

        logger.warning("[TELEGRAM] Failed to send: %s %s", response.status_code, response.text)
        return SideEffectOutcome.failure(
            f"HTTP {response.status_code}", status_code=response.status_code,
        )
