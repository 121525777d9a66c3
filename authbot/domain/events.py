"""
Chat events consumed by the lifecycle controller.

The set is closed: the Telegram update parser produces exactly one of these
variants (or nothing), and the controller dispatches on the concrete type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

RENEW_CODE_ACTION = "renew_code"


@dataclass(frozen=True)
class ChatUser:
    id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None

    @property
    def external_id(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class MessageHandle:
    chat_id: int
    message_id: int


@dataclass(frozen=True)
class SharedContact:
    phone_number: str
    first_name: str | None = None
    last_name: str | None = None
    user_id: int | None = None


@dataclass(frozen=True)
class StartEvent:
    user: ChatUser
    message: MessageHandle


@dataclass(frozen=True)
class LoginEvent:
    user: ChatUser
    message: MessageHandle


@dataclass(frozen=True)
class ContactSharedEvent:
    user: ChatUser
    message: MessageHandle
    contact: SharedContact


@dataclass(frozen=True)
class RenewCallbackEvent:
    user: ChatUser
    callback_id: str
    # None when Telegram no longer exposes the message (too old / inaccessible)
    message: MessageHandle | None = None


ChatEvent = Union[StartEvent, LoginEvent, ContactSharedEvent, RenewCallbackEvent]
