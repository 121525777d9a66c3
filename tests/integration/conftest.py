import os
import asyncio
import time
from pathlib import Path

import pytest
import pytest_asyncio
from psycopg_pool import AsyncConnectionPool
from redis.asyncio import Redis

from authbot.infrastructure.db.pool import with_connect_timeout

MIGRATIONS = sorted((Path(__file__).parents[2] / "migrations").glob("*.sql"))


def pytest_collection_modifyitems(config, items):
    if os.environ.get("RUN_INTEGRATION"):
        return
    skip = pytest.mark.skip(reason="set RUN_INTEGRATION=1 to run against docker compose")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


async def _wait_pool_ready(p: AsyncConnectionPool, timeout: float = 30.0) -> None:
    """Retry simple SELECT until Postgres accepts connections."""
    deadline = time.monotonic() + timeout
    last_exc: Exception | None = None
    while time.monotonic() < deadline:
        try:
            async with p.connection(timeout=1) as conn:
                await conn.execute("SELECT 1;")
            return
        except Exception as e:
            last_exc = e
            await asyncio.sleep(0.5)
    if last_exc:
        raise last_exc
    raise TimeoutError("database not ready")


@pytest_asyncio.fixture
async def pool():
    dsn = os.environ.get("DATABASE_URL", "postgresql://app:app@db:5432/authbot")
    p = AsyncConnectionPool(with_connect_timeout(dsn), min_size=1, max_size=4, open=False)
    await p.open()
    await _wait_pool_ready(p)
    async with p.connection() as conn:
        for path in MIGRATIONS:
            await conn.execute(path.read_text(encoding="utf-8"))
        await conn.execute("TRUNCATE active_codes, accounts RESTART IDENTITY;")
    try:
        yield p
    finally:
        await p.close()


@pytest_asyncio.fixture
async def redis_client():
    url = os.environ.get("REDIS_URL", "redis://redis:6379/0")
    r = Redis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        yield r
    finally:
        await r.aclose()
