from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Coroutine

from authbot.application.retry import RetryPolicy
from authbot.domain.events import ChatEvent
from authbot.infrastructure.telegram.client import TelegramApiError, TelegramBotClient
from authbot.infrastructure.telegram.updates import parse_update

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]


class BotPoller:
    """
    Long-polls getUpdates, turns each update into a chat event and hands it to
    the handler as an independent task, so a slow chat call never blocks the
    next update.
    """

    def __init__(
        self,
        *,
        client: TelegramBotClient,
        handler: Callable[[ChatEvent], Awaitable[None]],
        poll_timeout: int = 30,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.client = client
        self.handler = handler
        self.poll_timeout = poll_timeout
        self.retry_policy = retry_policy or RetryPolicy(base=1.0, max_delay=60.0)
        self.offset: int | None = None
        self._tasks: set[asyncio.Task] = set()

    async def run_forever(self) -> None:
        logger.info("bot poller started", extra={"poll_timeout": self.poll_timeout})
        failures = 0
        while True:
            try:
                await self.poll_once()
            except TelegramApiError as e:
                if e.error_code == 401:
                    logger.error("bot token rejected; poller stopping")
                    raise
                delay = self.retry_policy.compute_delay(failures)
                if e.retry_after:
                    delay = max(delay, e.retry_after)
                failures += 1
                logger.warning(
                    "getUpdates failed; backing off",
                    extra={"failures": failures, "retry_in_s": delay, "error": e.description},
                )
                await asyncio.sleep(delay)
            else:
                failures = 0

    async def poll_once(self) -> int:
        """
        Single iteration:
        - fetch the next batch of updates (blocks up to poll_timeout)
        - advance the offset past every update, handled or not
        - dispatch recognised events
        Returns the number of updates received.
        """
        updates = await self.client.get_updates(
            offset=self.offset,
            timeout=self.poll_timeout,
            allowed_updates=ALLOWED_UPDATES,
        )
        for update in updates:
            self.offset = int(update["update_id"]) + 1
            event = parse_update(update)
            if event is None:
                logger.debug("update ignored", extra={"update_id": update["update_id"]})
                continue
            self._spawn(self._dispatch(event))
        return len(updates)

    async def _dispatch(self, event: ChatEvent) -> None:
        try:
            await self.handler(event)
        except Exception:  # noqa: BLE001
            logger.exception(
                "chat event handler failed",
                extra={"event": type(event).__name__, "external_id": event.user.external_id},
            )

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
