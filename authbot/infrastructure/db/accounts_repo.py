from __future__ import annotations

from typing import Optional

import psycopg

from authbot.domain.entities import Account
from authbot.domain.ports.account_repository import AccountRepositoryPort

_COLUMNS = "id, external_id, first_name, last_name, username, phone_number, created_at"


def _row_to_account(row) -> Account:
    id_, external_id, first_name, last_name, username, phone_number, created_at = row
    return Account(
        id=int(id_),
        external_id=str(external_id),
        first_name=first_name,
        last_name=last_name,
        username=username,
        phone_number=phone_number,
        created_at=created_at,
    )


class PgAccountRepository(AccountRepositoryPort):
    """
    Postgres implementation of AccountRepositoryPort.

    NOTE:
    - Constructed with an *active async connection* supplied by the UoW.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def upsert_from_contact(
        self,
        external_id: str,
        phone_number: str,
        first_name: str | None,
        last_name: str | None,
        username: str | None,
    ) -> Account:
        sql = f"""
        INSERT INTO accounts (external_id, first_name, last_name, username, phone_number)
        VALUES (%s, %s, %s, %s, %s)
        ON CONFLICT (external_id) DO UPDATE
            SET phone_number = EXCLUDED.phone_number
        RETURNING {_COLUMNS};
        """
        async with self._conn.cursor() as cur:
            await cur.execute(
                sql, (external_id, first_name, last_name, username, phone_number)
            )
            row = await cur.fetchone()

        if not row:
            raise RuntimeError("upsert_from_contact returned no row")
        return _row_to_account(row)

    async def get_by_external_id(self, external_id: str) -> Optional[Account]:
        sql = f"SELECT {_COLUMNS} FROM accounts WHERE external_id = %s"
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (external_id,))
            row = await cur.fetchone()
        return _row_to_account(row) if row else None

    async def lock(self, account_id: int) -> None:
        async with self._conn.cursor() as cur:
            await cur.execute(
                "SELECT id FROM accounts WHERE id = %s FOR UPDATE", (account_id,)
            )
