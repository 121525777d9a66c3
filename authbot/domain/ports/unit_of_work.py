from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Protocol, Type

from authbot.domain.ports.account_repository import AccountRepositoryPort
from authbot.domain.ports.code_store import CodeStorePort


@dataclass
class UnitOfWorkPort(Protocol):
    """
    Transaction boundary.

    Usage:
        async with uow as tx:
            await tx.accounts.lock(account_id)
            if await tx.codes.find_active(account_id) is None:
                await tx.codes.issue(account_id, code, ttl_seconds)
            await tx.commit()
    """

    accounts: AccountRepositoryPort
    codes: CodeStorePort

    async def __aenter__(self) -> "UnitOfWorkPort":
        """Begin a new transaction. Code here runs before code in the context manager."""

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """End the transaction. Code here runs after code in the context manager."""

    async def commit(self) -> None:
        """Commit the transaction."""

    async def rollback(self) -> None:
        """Rollback the transaction."""
