from __future__ import annotations

from typing import Optional, Protocol

from authbot.domain.entities import Account, ActiveCode


class CodeStorePort(Protocol):
    async def issue(self, account_id: int, code: str, ttl_seconds: int) -> ActiveCode:
        """
        Replace the account's code record with a new one expiring in ttl_seconds.
        At most one record per account exists afterwards.
        """

    async def find_active(self, account_id: int) -> Optional[ActiveCode]:
        """Return the account's record only while expires_at is in the future."""

    async def find_by_code(self, code: str) -> Optional[tuple[ActiveCode, Account]]:
        """
        Return the live record holding exactly this code, with its owner.
        If two accounts hold the same live code, the most recently created wins.
        """

    async def invalidate(self, account_id: int, *, code: str | None = None) -> bool:
        """
        Delete the account's record; when code is given, only if it still holds it.
        True if a record was deleted.
        """
