"""Bot API update JSON -> chat events. Anything else is ignored (None)."""

from __future__ import annotations

from typing import Any, Optional

from authbot.domain.events import (
    RENEW_CODE_ACTION,
    ChatEvent,
    ChatUser,
    ContactSharedEvent,
    LoginEvent,
    MessageHandle,
    RenewCallbackEvent,
    SharedContact,
    StartEvent,
)


def _user(raw: dict[str, Any] | None) -> Optional[ChatUser]:
    if not raw or "id" not in raw or raw.get("is_bot"):
        return None
    return ChatUser(
        id=int(raw["id"]),
        first_name=raw.get("first_name"),
        last_name=raw.get("last_name"),
        username=raw.get("username"),
    )


def _handle(raw: dict[str, Any] | None) -> Optional[MessageHandle]:
    if not raw or "message_id" not in raw or "chat" not in raw:
        return None
    # date == 0 marks an InaccessibleMessage; it cannot be edited
    if raw.get("date") == 0:
        return None
    return MessageHandle(chat_id=int(raw["chat"]["id"]), message_id=int(raw["message_id"]))


def command_of(text: str | None) -> Optional[str]:
    """'/start@my_bot payload' -> 'start'."""
    if not text or not text.startswith("/"):
        return None
    head = text.split(maxsplit=1)[0][1:]
    return head.split("@", 1)[0].lower() or None


def parse_update(update: dict[str, Any]) -> Optional[ChatEvent]:
    callback = update.get("callback_query")
    if callback is not None:
        user = _user(callback.get("from"))
        if user is None or callback.get("data") != RENEW_CODE_ACTION:
            return None
        return RenewCallbackEvent(
            user=user,
            callback_id=str(callback["id"]),
            message=_handle(callback.get("message")),
        )

    message = update.get("message")
    if message is None:
        return None
    user = _user(message.get("from"))
    handle = _handle(message)
    if user is None or handle is None:
        return None

    contact = message.get("contact")
    if contact is not None and contact.get("phone_number"):
        return ContactSharedEvent(
            user=user,
            message=handle,
            contact=SharedContact(
                phone_number=str(contact["phone_number"]),
                first_name=contact.get("first_name"),
                last_name=contact.get("last_name"),
                user_id=contact.get("user_id"),
            ),
        )

    command = command_of(message.get("text"))
    if command == "start":
        return StartEvent(user=user, message=handle)
    if command == "login":
        return LoginEvent(user=user, message=handle)
    return None
