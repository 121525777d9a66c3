import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from authbot.domain.entities import Account, ActiveCode
from authbot.domain.errors import ChatApiError
from authbot.domain.events import MessageHandle


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


@dataclass
class InMemoryDb:
    clock: FakeClock = field(default_factory=FakeClock)
    accounts: dict[int, Account] = field(default_factory=dict)
    codes: list[ActiveCode] = field(default_factory=list)
    locked: list[int] = field(default_factory=list)
    ids: Any = field(default_factory=lambda: itertools.count(1))

    def next_id(self) -> int:
        return next(self.ids)

    def add_account(self, external_id: str = "1001", **kwargs) -> Account:
        kwargs.setdefault("first_name", "Ali")
        kwargs.setdefault("last_name", "Valiyev")
        kwargs.setdefault("phone_number", "+998901234567")
        account = Account(
            id=self.next_id(),
            external_id=external_id,
            created_at=self.clock.now(),
            **kwargs,
        )
        self.accounts[account.id] = account
        return account

    def codes_for(self, account_id: int) -> list[ActiveCode]:
        return [c for c in self.codes if c.account_id == account_id]


class FakeAccountRepo:
    def __init__(self, db: InMemoryDb) -> None:
        self.db = db

    async def upsert_from_contact(
        self, external_id, phone_number, first_name, last_name, username
    ) -> Account:
        for account in self.db.accounts.values():
            if account.external_id == external_id:
                account.phone_number = phone_number
                return account
        return self.db.add_account(
            external_id,
            phone_number=phone_number,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )

    async def get_by_external_id(self, external_id: str) -> Account | None:
        for account in self.db.accounts.values():
            if account.external_id == external_id:
                return account
        return None

    async def lock(self, account_id: int) -> None:
        self.db.locked.append(account_id)


class FakeCodeStore:
    """
    Same delete-then-insert shape as a naive store, with a yield between the
    two steps, so unserialized concurrent issuance really does leave
    duplicate rows.
    """

    def __init__(self, db: InMemoryDb) -> None:
        self.db = db

    async def issue(self, account_id: int, code: str, ttl_seconds: int) -> ActiveCode:
        self.db.codes = [c for c in self.db.codes if c.account_id != account_id]
        await asyncio.sleep(0)
        now = self.db.clock.now()
        record = ActiveCode(
            id=self.db.next_id(),
            account_id=account_id,
            code=code,
            expires_at=now + timedelta(seconds=ttl_seconds),
            created_at=now,
        )
        self.db.codes.append(record)
        return record

    async def find_active(self, account_id: int) -> ActiveCode | None:
        await asyncio.sleep(0)
        now = self.db.clock.now()
        for record in self.db.codes:
            if record.account_id == account_id and record.is_live(now):
                return record
        return None

    async def find_by_code(self, code: str):
        now = self.db.clock.now()
        matches = [c for c in self.db.codes if c.code == code and c.is_live(now)]
        if not matches:
            return None
        record = max(matches, key=lambda c: (c.created_at, c.id))
        return record, self.db.accounts[record.account_id]

    async def invalidate(self, account_id: int, *, code: str | None = None) -> bool:
        before = len(self.db.codes)
        self.db.codes = [
            c
            for c in self.db.codes
            if not (c.account_id == account_id and (code is None or c.code == code))
        ]
        return len(self.db.codes) < before


class FakeUoW:
    def __init__(self, db: InMemoryDb | None = None) -> None:
        self.db = db or InMemoryDb()
        self.accounts = FakeAccountRepo(self.db)
        self.codes = FakeCodeStore(self.db)
        self.committed = False
        self.rolled_back = False

    async def __aenter__(self):
        self.committed = False
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc or not self.committed:
            self.rolled_back = True

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class FakeChat:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.edits: list[dict[str, Any]] = []
        self.answers: list[dict[str, Any]] = []
        self.reactions: list[tuple[MessageHandle, str]] = []
        self.edit_errors: list[Exception] = []
        self.send_errors: list[Exception] = []
        self._message_ids = itertools.count(500)

    async def send_message(self, chat_id, text, *, reply_markup=None, parse_mode=None):
        if self.send_errors:
            raise self.send_errors.pop(0)
        handle = MessageHandle(chat_id=chat_id, message_id=next(self._message_ids))
        self.sent.append(
            {
                "handle": handle,
                "text": text,
                "reply_markup": reply_markup,
                "parse_mode": parse_mode,
            }
        )
        return handle

    async def edit_message_text(self, message, text, *, reply_markup=None, parse_mode=None):
        if self.edit_errors:
            raise self.edit_errors.pop(0)
        self.edits.append(
            {
                "handle": message,
                "text": text,
                "reply_markup": reply_markup,
                "parse_mode": parse_mode,
            }
        )

    async def answer_callback_query(self, callback_id, *, text=None, show_alert=False):
        self.answers.append(
            {"callback_id": callback_id, "text": text, "show_alert": show_alert}
        )

    async def set_reaction(self, message, emoji):
        self.reactions.append((message, emoji))


class RecordingScheduler:
    def __init__(self) -> None:
        self.armed: list[tuple[int, MessageHandle, float]] = []

    def arm(self, account_id: int, message: MessageHandle, ttl_seconds: float) -> int:
        self.armed.append((account_id, message, ttl_seconds))
        return len(self.armed)


class FakeInstructionFlags:
    def __init__(self) -> None:
        self.flags: set[str] = set()
        self.cleared: list[str] = []

    async def mark_once(self, external_id: str) -> bool:
        if external_id in self.flags:
            return False
        self.flags.add(external_id)
        return True

    async def clear(self, external_id: str) -> None:
        self.flags.discard(external_id)
        self.cleared.append(external_id)


def chat_error(description: str = "Bad Request", error_code: int | None = 400, **kwargs):
    return ChatApiError(description, error_code=error_code, **kwargs)
