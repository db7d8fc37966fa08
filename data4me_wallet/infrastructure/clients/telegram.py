"""Telegram Bot API client with exponential backoff retry logic"""

import asyncio
import httpx
from typing import Any, Dict

from data4me_wallet.config import Settings
from data4me_wallet.domain.exceptions import ExternalServiceError
from data4me_wallet.infrastructure.observability.metrics import telegram_latency_histogram


class TelegramClient:
    """Client for sending bot messages (one-time codes, welcome text)"""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = f"{settings.telegram_api_base}/bot{settings.telegram_bot_token}"
        self.timeout = settings.http_timeout_seconds
        self.max_retries = settings.telegram_max_retries
        self.backoff_base = settings.telegram_backoff_base
        self.transport = transport

    async def send_message(self, chat_id: str, text: str) -> Dict[str, Any]:
        """
        Send a text message to a chat.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base...
        - Retries on 5xx errors, timeouts and network failures
        - 4xx errors (unknown chat, bot blocked) fail immediately

        Raises:
            ExternalServiceError: When the message could not be delivered
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with telegram_latency_histogram.time():
                        response = await client.post(
                            f"{self.base_url}/sendMessage",
                            json={"chat_id": chat_id, "text": text},
                        )
                        response.raise_for_status()
                    return response.json()

                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        raise ExternalServiceError(
                            f"Telegram rejected message: {e.response.status_code}"
                        ) from e
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise ExternalServiceError(f"Telegram API error: {e.response.status_code}") from e

                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise ExternalServiceError(f"Telegram API timeout after {self.timeout}s") from e

                except httpx.RequestError as e:
                    attempt += 1
                    if attempt >= self.max_retries:
                        raise ExternalServiceError(f"Telegram API unreachable: {e}") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                await asyncio.sleep(backoff)
