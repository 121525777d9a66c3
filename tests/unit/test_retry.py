import pytest

from authbot.application.retry import RetryPolicy, edit_with_retries, with_retries
from authbot.domain.errors import ChatApiError
from authbot.domain.events import MessageHandle
from tests.fakes import FakeChat, chat_error

NO_WAIT = RetryPolicy(attempts=3, base=0, max_delay=0)


def test_compute_delay_is_exponential_and_capped():
    p = RetryPolicy(base=0.5, max_delay=3.0)
    assert [p.compute_delay(i) for i in range(5)] == [0.5, 1.0, 2.0, 3.0, 3.0]


def test_retryable_classification():
    assert ChatApiError("timeout").retryable
    assert chat_error("Too Many Requests", 429).retryable
    assert chat_error("Bad Gateway", 502).retryable
    assert not chat_error("Bad Request", 400).retryable
    assert not chat_error("Forbidden", 403).retryable


async def test_retries_until_success():
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise chat_error("Internal Server Error", 500)
        return "ok"

    assert await with_retries(flaky, NO_WAIT, name="flaky") == "ok"
    assert len(calls) == 3


async def test_gives_up_after_attempts():
    calls = []

    async def always_down():
        calls.append(1)
        raise ChatApiError("connect error")

    with pytest.raises(ChatApiError):
        await with_retries(always_down, NO_WAIT, name="down")
    assert len(calls) == 3


async def test_non_retryable_error_is_raised_at_once():
    calls = []

    async def bad_request():
        calls.append(1)
        raise chat_error("Bad Request: chat not found", 400)

    with pytest.raises(ChatApiError):
        await with_retries(bad_request, NO_WAIT, name="bad")
    assert len(calls) == 1


async def test_edit_not_modified_is_success():
    chat = FakeChat()
    chat.edit_errors = [chat_error("Bad Request: message is not modified", 400)]

    await edit_with_retries(chat, MessageHandle(1, 2), "same text", NO_WAIT)

    assert chat.edits == []


async def test_edit_other_errors_propagate():
    chat = FakeChat()
    chat.edit_errors = [chat_error("Bad Request: message to edit not found", 400)]

    with pytest.raises(ChatApiError):
        await edit_with_retries(chat, MessageHandle(1, 2), "text", NO_WAIT)


async def test_edit_guard_is_checked_before_each_attempt():
    chat = FakeChat()
    chat.edit_errors = [chat_error("Bad Gateway", 502)]
    checks = []

    def guard():
        checks.append(len(checks))
        return len(checks) < 2

    edited = await edit_with_retries(
        chat,
        MessageHandle(chat_id=1, message_id=2),
        "expired",
        RetryPolicy(attempts=3, base=0, max_delay=0),
        guard=guard,
    )

    assert edited is False
    assert len(checks) == 2
    assert chat.edits == []
