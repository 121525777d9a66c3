from __future__ import annotations

from typing import Any, Protocol

from authbot.domain.events import MessageHandle


class ChatPort(Protocol):
    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> MessageHandle:
        """Send a message and return a handle that can be edited later."""

    async def edit_message_text(
        self,
        message: MessageHandle,
        text: str,
        *,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> None:
        """Replace the text (and inline keyboard) of an existing message."""

    async def answer_callback_query(
        self,
        callback_id: str,
        *,
        text: str | None = None,
        show_alert: bool = False,
    ) -> None:
        """Acknowledge an inline button press, optionally with a notice."""

    async def set_reaction(self, message: MessageHandle, emoji: str) -> None:
        """React to a message with a single emoji."""
