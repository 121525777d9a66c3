from __future__ import annotations

from typing import Optional

import psycopg

from authbot.domain.entities import Account, ActiveCode
from authbot.domain.ports.code_store import CodeStorePort
from authbot.infrastructure.db.accounts_repo import _row_to_account


def _row_to_code(row) -> ActiveCode:
    id_, account_id, code, expires_at, created_at = row
    return ActiveCode(
        id=int(id_),
        account_id=int(account_id),
        code=str(code),
        expires_at=expires_at,
        created_at=created_at,
    )


class PgCodeStore(CodeStorePort):
    """
    Postgres implementation of CodeStorePort.

    NOTE:
    - One row per account is guaranteed by UNIQUE (account_id); issue() upserts.
    - Expiry is always judged with the database clock (now()), never the app's.
    - It does not commit; the UnitOfWork controls the transaction boundary.
    """

    def __init__(self, conn: psycopg.AsyncConnection) -> None:
        self._conn = conn

    async def issue(self, account_id: int, code: str, ttl_seconds: int) -> ActiveCode:
        sql = """
        INSERT INTO active_codes (account_id, code, expires_at, created_at)
        VALUES (%s, %s, now() + make_interval(secs => %s), now())
        ON CONFLICT (account_id) DO UPDATE
            SET code = EXCLUDED.code,
                expires_at = EXCLUDED.expires_at,
                created_at = EXCLUDED.created_at
        RETURNING id, account_id, code, expires_at, created_at;
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (account_id, code, ttl_seconds))
            row = await cur.fetchone()

        if not row:
            raise RuntimeError("issue returned no row")
        return _row_to_code(row)

    async def find_active(self, account_id: int) -> Optional[ActiveCode]:
        sql = """
        SELECT id, account_id, code, expires_at, created_at
        FROM active_codes
        WHERE account_id = %s AND expires_at > now()
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (account_id,))
            row = await cur.fetchone()
        return _row_to_code(row) if row else None

    async def find_by_code(self, code: str) -> Optional[tuple[ActiveCode, Account]]:
        sql = """
        SELECT c.id, c.account_id, c.code, c.expires_at, c.created_at,
               a.id, a.external_id, a.first_name, a.last_name, a.username,
               a.phone_number, a.created_at
        FROM active_codes c
        JOIN accounts a ON a.id = c.account_id
        WHERE c.code = %s AND c.expires_at > now()
        ORDER BY c.created_at DESC, c.id DESC
        LIMIT 1
        """
        async with self._conn.cursor() as cur:
            await cur.execute(sql, (code,))
            row = await cur.fetchone()
        if not row:
            return None
        return _row_to_code(row[:5]), _row_to_account(row[5:])

    async def invalidate(self, account_id: int, *, code: str | None = None) -> bool:
        if code is None:
            sql = "DELETE FROM active_codes WHERE account_id = %s"
            params: tuple = (account_id,)
        else:
            sql = "DELETE FROM active_codes WHERE account_id = %s AND code = %s"
            params = (account_id, code)
        async with self._conn.cursor() as cur:
            await cur.execute(sql, params)
            return cur.rowcount > 0
