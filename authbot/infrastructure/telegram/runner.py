from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from authbot.infrastructure.telegram.poller import BotPoller

logger = logging.getLogger(__name__)


class BotRunner:
    """Owns the single polling task; start() is a no-op while it is alive."""

    def __init__(self, poller: BotPoller) -> None:
        self._poller = poller
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> bool:
        if self.running:
            logger.info("bot already running; start ignored")
            return False
        self._task = asyncio.create_task(self._run())
        self._task.add_done_callback(self._on_done)
        return True

    async def _run(self) -> None:
        me = await self._poller.client.get_me()
        logger.info("bot starting", extra={"username": me.get("username")})
        await self._poller.run_forever()

    @staticmethod
    def _on_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "bot stopped with an error",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def stop(self) -> None:
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
                with suppress(asyncio.CancelledError):
                    await self._task
            self._task = None
        await self._poller.aclose()
        logger.info("bot stopped")
