from __future__ import annotations

from typing import Optional, Protocol

from authbot.domain.entities import Account


class AccountRepositoryPort(Protocol):
    async def upsert_from_contact(
        self,
        external_id: str,
        phone_number: str,
        first_name: str | None,
        last_name: str | None,
        username: str | None,
    ) -> Account:
        """
        Create the account on first contact share.
        If it exists, only phone_number is overwritten (external_id and names stay).
        Return the current Account record in all cases.
        """

    async def get_by_external_id(self, external_id: str) -> Optional[Account]:
        """Return None if the chat user never shared a contact."""

    async def lock(self, account_id: int) -> None:
        """
        Lock the account row for the rest of the transaction.
        Serializes check-then-issue across processes.
        """
