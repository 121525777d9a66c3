from __future__ import annotations

from typing import Any, Optional

import httpx

from authbot.domain.errors import ChatApiError
from authbot.domain.events import MessageHandle
from authbot.domain.ports.chat_port import ChatPort


class TelegramApiError(ChatApiError):
    """Bot API answered ok=false, a non-JSON body, or the request never completed."""


class TelegramBotClient(ChatPort):
    """
    Minimal Bot API client over httpx.

    Every method is a POST to {base_url}/bot{token}/{method} with a JSON body;
    the `result` field is returned on ok=true, otherwise TelegramApiError.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = "https://api.telegram.org",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    def _url(self, method: str) -> str:
        return f"{self._base_url}/bot{self._token}/{method}"

    async def _call(
        self,
        method: str,
        payload: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            resp = await self._client.post(self._url(method), json=payload or {}, **kwargs)
        except httpx.HTTPError as e:
            # the request URL carries the token; keep it out of the message
            raise TelegramApiError(
                f"Telegram HTTP error on {method}: {type(e).__name__}"
            ) from e

        try:
            body = resp.json()
        except ValueError:
            raise TelegramApiError(
                f"Telegram responded {resp.status_code}: {resp.text[:200]}",
                error_code=resp.status_code,
            )

        if not body.get("ok"):
            parameters = body.get("parameters") or {}
            raise TelegramApiError(
                body.get("description") or f"Telegram responded {resp.status_code}",
                error_code=body.get("error_code", resp.status_code),
                retry_after=parameters.get("retry_after"),
            )
        return body.get("result")

    async def get_me(self) -> dict[str, Any]:
        return await self._call("getMe")

    async def get_updates(
        self,
        *,
        offset: int | None = None,
        timeout: int = 30,
        allowed_updates: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout}
        if offset is not None:
            payload["offset"] = offset
        if allowed_updates is not None:
            payload["allowed_updates"] = allowed_updates
        # the HTTP read must outlive the long poll
        return await self._call("getUpdates", payload, timeout=timeout + 10)

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> MessageHandle:
        payload: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        if parse_mode is not None:
            payload["parse_mode"] = parse_mode
        result = await self._call("sendMessage", payload)
        return MessageHandle(
            chat_id=int(result["chat"]["id"]), message_id=int(result["message_id"])
        )

    async def edit_message_text(
        self,
        message: MessageHandle,
        text: str,
        *,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "chat_id": message.chat_id,
            "message_id": message.message_id,
            "text": text,
        }
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        if parse_mode is not None:
            payload["parse_mode"] = parse_mode
        await self._call("editMessageText", payload)

    async def answer_callback_query(
        self,
        callback_id: str,
        *,
        text: str | None = None,
        show_alert: bool = False,
    ) -> None:
        payload: dict[str, Any] = {"callback_query_id": callback_id}
        if text is not None:
            payload["text"] = text
            payload["show_alert"] = show_alert
        await self._call("answerCallbackQuery", payload)

    async def set_reaction(self, message: MessageHandle, emoji: str) -> None:
        await self._call(
            "setMessageReaction",
            {
                "chat_id": message.chat_id,
                "message_id": message.message_id,
                "reaction": [{"type": "emoji", "emoji": emoji}],
            },
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
