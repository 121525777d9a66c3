from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Coroutine

from authbot.application import messages
from authbot.application.retry import RetryPolicy, edit_with_retries
from authbot.domain.errors import ChatApiError
from authbot.domain.events import MessageHandle
from authbot.domain.ports.chat_port import ChatPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Armed:
    generation: int
    message: MessageHandle


class ExpirationScheduler:
    """
    Turns a code message into the "expired" state once its time is up.

    Timers are never cancelled on renewal. Each arm() takes a fresh generation
    from a monotonically increasing counter and records it as the account's
    current one; a timer whose generation is no longer current does nothing.
    The check is repeated before every edit attempt, so a retry still waiting
    out a backoff never overwrites a newer code shown on the same message.
    """

    def __init__(self, chat: ChatPort, *, retry_policy: RetryPolicy | None = None) -> None:
        self._chat = chat
        self._retry_policy = retry_policy or RetryPolicy()
        self._counter = itertools.count(1)
        self._armed: dict[int, _Armed] = {}
        self._tasks: set[asyncio.Task] = set()

    def arm(self, account_id: int, message: MessageHandle, ttl_seconds: float) -> int:
        generation = next(self._counter)
        previous = self._armed.get(account_id)
        self._armed[account_id] = _Armed(generation, message)

        if previous is not None and previous.message != message:
            # the older message shows a code that is no longer stored
            self._spawn(
                self._expire(account_id, previous.message, previous.generation)
            )

        self._spawn(self._fire_after(account_id, generation, message, ttl_seconds))
        logger.debug(
            "expiry armed",
            extra={
                "account_id": account_id,
                "generation": generation,
                "message_id": message.message_id,
                "ttl_s": ttl_seconds,
            },
        )
        return generation

    def current_generation(self, account_id: int) -> int | None:
        armed = self._armed.get(account_id)
        return armed.generation if armed else None

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        self._armed.clear()

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fire_after(
        self,
        account_id: int,
        generation: int,
        message: MessageHandle,
        ttl_seconds: float,
    ) -> None:
        await asyncio.sleep(ttl_seconds)

        armed = self._armed.get(account_id)
        if armed is None or armed.generation != generation:
            logger.debug(
                "stale expiry timer skipped",
                extra={"account_id": account_id, "generation": generation},
            )
            return
        try:
            await self._expire(account_id, message, generation)
        finally:
            # a re-arm during the edit owns the entry now
            armed = self._armed.get(account_id)
            if armed is not None and armed.generation == generation:
                del self._armed[account_id]

    def _may_expire(self, account_id: int, message: MessageHandle, generation: int) -> bool:
        armed = self._armed.get(account_id)
        # a newer code is on this very message
        return not (
            armed is not None
            and armed.generation > generation
            and armed.message == message
        )

    async def _expire(
        self, account_id: int, message: MessageHandle, generation: int
    ) -> None:
        try:
            edited = await edit_with_retries(
                self._chat,
                message,
                messages.CODE_EXPIRED,
                self._retry_policy,
                reply_markup=messages.renew_keyboard(expired=True),
                guard=lambda: self._may_expire(account_id, message, generation),
            )
        except ChatApiError as e:
            logger.warning(
                "failed to mark code message as expired",
                extra={
                    "account_id": account_id,
                    "chat_id": message.chat_id,
                    "message_id": message.message_id,
                    "error": e.description,
                },
            )
            return
        if not edited:
            logger.debug(
                "expiry dropped; message shows a newer code",
                extra={"account_id": account_id, "generation": generation},
            )
            return
        logger.info(
            "code message expired",
            extra={"account_id": account_id, "message_id": message.message_id},
        )
