import pytest
from fastapi.testclient import TestClient

from authbot.main import create_app
from authbot.presentation.dependencies import (
    get_bot_runner,
    get_code_single_use,
    get_uow,
)
from tests.fakes import FakeCodeStore, FakeUoW, InMemoryDb


class FakeRunner:
    def __init__(self) -> None:
        self.running = False
        self.start_calls = 0

    async def start(self) -> bool:
        self.start_calls += 1
        if self.running:
            return False
        self.running = True
        return True


@pytest.fixture()
def api_db() -> InMemoryDb:
    return InMemoryDb()


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def app_and_deps(api_db, runner):
    app = create_app()
    state = {"single_use": False}

    app.dependency_overrides[get_uow] = lambda: FakeUoW(api_db)
    app.dependency_overrides[get_code_single_use] = lambda: state["single_use"]
    app.dependency_overrides[get_bot_runner] = lambda: runner

    try:
        yield app, state
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _ = app_and_deps
    # no context manager: lifespan (pool, Redis, poller) stays off
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def issued_code(api_db):
    """Account 1001 holding code 12345 for 20 seconds."""

    async def _issue():
        account = api_db.add_account(
            "1001", first_name="Ali", last_name="Valiyev", phone_number="998901234567"
        )
        return await FakeCodeStore(api_db).issue(account.id, "12345", 20)

    return _issue
