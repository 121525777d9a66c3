from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from authbot.domain.errors import ChatApiError
from authbot.domain.events import MessageHandle
from authbot.domain.ports.chat_port import ChatPort

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3  # total tries, including the first one
    base: float = 0.5  # base delay (seconds)
    max_delay: float = 5.0  # cap (seconds)

    def compute_delay(self, attempt: int) -> float:
        # attempt is the number of tries already made, minus one
        delay = self.base * (2**attempt)
        return delay if delay < self.max_delay else self.max_delay


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    name: str,
) -> T:
    """
    Run a chat API call, retrying retryable ChatApiErrors with exponential backoff.
    The last error (or any non-retryable one) propagates.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except ChatApiError as e:
            attempt += 1
            if not e.retryable or attempt >= policy.attempts:
                raise
            delay = policy.compute_delay(attempt - 1)
            if e.retry_after:
                delay = max(delay, e.retry_after)
            logger.warning(
                "chat call failed; retrying",
                extra={
                    "operation": name,
                    "attempt": attempt,
                    "retry_in_s": delay,
                    "error": e.description,
                },
            )
            await asyncio.sleep(delay)


async def edit_with_retries(
    chat: ChatPort,
    message: MessageHandle,
    text: str,
    policy: RetryPolicy,
    *,
    reply_markup: dict[str, Any] | None = None,
    parse_mode: str | None = None,
    guard: Callable[[], bool] | None = None,
) -> bool:
    """
    Edits are idempotent: "message is not modified" counts as done.

    guard is checked before every attempt, retries included; once it returns
    False the edit is abandoned and False is returned.
    """

    async def attempt() -> bool:
        if guard is not None and not guard():
            return False
        await chat.edit_message_text(
            message, text, reply_markup=reply_markup, parse_mode=parse_mode
        )
        return True

    try:
        return await with_retries(attempt, policy, name="edit_message_text")
    except ChatApiError as e:
        if not e.not_modified:
            raise
        return True
