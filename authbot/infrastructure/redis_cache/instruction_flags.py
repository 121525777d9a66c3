from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from authbot.domain.ports.instruction_flags import InstructionFlagsPort

logger = logging.getLogger(__name__)


class RedisInstructionFlags(InstructionFlagsPort):
    """
    "Instructions already sent" marker per chat user, evicted after ttl_seconds.
    Survives restarts and is shared by every bot process using the same Redis.
    """

    def __init__(
        self, redis: Redis, *, key_prefix: str = "instr:", ttl_seconds: int = 2592000
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._ttl = ttl_seconds

    def _key(self, external_id: str) -> str:
        return f"{self._prefix}{external_id}"

    async def mark_once(self, external_id: str) -> bool:
        try:
            created = await self._redis.set(
                self._key(external_id), "1", nx=True, ex=self._ttl
            )
        except RedisError as e:
            # a repeated notice is better than none
            logger.warning(
                "instruction flag unavailable", extra={"error": str(e)}
            )
            return True
        return bool(created)

    async def clear(self, external_id: str) -> None:
        try:
            await self._redis.delete(self._key(external_id))
        except RedisError as e:
            logger.warning("instruction flag not cleared", extra={"error": str(e)})
