"""Telegram notification adapter for Saved Messages.

Formats a human-readable Markdown message and sends it to Saved Messages of
the logged-in Telethon account.
"""

from __future__ import annotations

from adapters.notification_formatting import format_event
from core.config import NotificationConfig
from core.models import VerifiedEvent


class TelegramSavedMessagesNotifier:
    """Notifier adapter that sends messages to the user's Saved Messages."""

    def __init__(self, client, config: NotificationConfig) -> None:
        self._client = client
        self._config = config

    async def send(self, event: VerifiedEvent) -> None:
        """Send the formatted event to Saved Messages."""

        message = format_event(event, self._config, mode="markdown")
        await self._client.send_message("me", message, parse_mode="Markdown")
