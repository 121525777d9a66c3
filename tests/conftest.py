import os

# authbot.main reads settings at import time; give it a token first.
os.environ.setdefault("BOT_TOKEN", "123456:TEST-TOKEN")

import pytest  # noqa: E402

from authbot.application.lifecycle import LifecycleController  # noqa: E402
from authbot.application.retry import RetryPolicy  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeChat,
    FakeInstructionFlags,
    FakeUoW,
    InMemoryDb,
    RecordingScheduler,
)


@pytest.fixture()
def db():
    return InMemoryDb()


@pytest.fixture()
def uow(db):
    return FakeUoW(db)


@pytest.fixture()
def chat():
    return FakeChat()


@pytest.fixture()
def scheduler():
    return RecordingScheduler()


@pytest.fixture()
def flags():
    return FakeInstructionFlags()


@pytest.fixture()
def no_wait_retry():
    return RetryPolicy(attempts=3, base=0, max_delay=0)


@pytest.fixture()
def controller(db, chat, scheduler, flags, no_wait_retry):
    return LifecycleController(
        uow_factory=lambda: FakeUoW(db),
        chat=chat,
        scheduler=scheduler,
        instruction_flags=flags,
        code_ttl_seconds=20,
        brand_name="Viloyat Taxi",
        retry_policy=no_wait_retry,
    )


@pytest.fixture()
def fixed_codes(monkeypatch):
    """
    Make generated codes deterministic: 12345, 12346, ...
    You can override in a specific test by re-monkeypatching.
    """
    from authbot.domain import services as domain_services

    counter = iter(range(12345, 99999))
    monkeypatch.setattr(domain_services, "generate_code", lambda: str(next(counter)))
    yield
