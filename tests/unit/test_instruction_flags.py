from redis.exceptions import ConnectionError as RedisConnectionError

from authbot.infrastructure.redis_cache.instruction_flags import RedisInstructionFlags


class FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.store: dict[str, tuple[str, int | None]] = {}
        self.fail = fail

    async def set(self, key, value, nx=False, ex=None):
        if self.fail:
            raise RedisConnectionError("redis down")
        if nx and key in self.store:
            return None
        self.store[key] = (value, ex)
        return True

    async def delete(self, key):
        if self.fail:
            raise RedisConnectionError("redis down")
        return 1 if self.store.pop(key, None) else 0


async def test_mark_once_is_true_only_the_first_time():
    redis = FakeRedis()
    flags = RedisInstructionFlags(redis, ttl_seconds=60)

    assert await flags.mark_once("1001") is True
    assert await flags.mark_once("1001") is False
    assert await flags.mark_once("2002") is True
    assert redis.store["instr:1001"] == ("1", 60)


async def test_clear_allows_marking_again():
    flags = RedisInstructionFlags(FakeRedis())

    await flags.mark_once("1001")
    await flags.clear("1001")

    assert await flags.mark_once("1001") is True


async def test_redis_outage_still_sends_instructions(caplog):
    flags = RedisInstructionFlags(FakeRedis(fail=True))

    assert await flags.mark_once("1001") is True
    await flags.clear("1001")

    assert "instruction flag unavailable" in caplog.text
