"""Ledger store Protocol: the narrow capability set the ledger depends on.

The first argument of every data method is the unit handle returned by
``begin``: an ``AsyncSession`` with an open transaction in the real store.
Unit tests inject an in-memory or mock store conforming to this Protocol.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.fc_common.enums import IsolationLevel
from src.fc_ledger.domain.models import Account, LedgerEntry, Transfer


class LedgerStoreProtocol(Protocol):
    # --- atomic unit primitives ---

    async def begin(self, isolation_level: IsolationLevel) -> AsyncSession: ...

    async def commit(self, db: AsyncSession) -> None: ...

    async def abort(self, db: AsyncSession) -> None: ...

    # --- accounts ---

    async def get_account(self, db: AsyncSession, account_id: int) -> Account: ...

    async def get_account_for_update(
        self, db: AsyncSession, account_id: int
    ) -> Account: ...

    async def update_account_balance(
        self, db: AsyncSession, account_id: int, balance_cents: int
    ) -> Account: ...

    async def create_account(
        self, db: AsyncSession, owner_id: str, currency: str
    ) -> Account: ...

    async def list_accounts(
        self, db: AsyncSession, owner_id: str | None, limit: int, offset: int
    ) -> list[Account]: ...

    async def update_account_status(
        self, db: AsyncSession, account_id: int, status: str
    ) -> Account: ...

    # --- ledger entries ---

    async def create_ledger_entry(
        self,
        db: AsyncSession,
        account_id: int,
        entry_type: str,
        amount_cents: int,
        balance_after_cents: int,
        transfer_id: int | None = None,
    ) -> LedgerEntry: ...

    async def get_ledger_entry(self, db: AsyncSession, entry_id: int) -> LedgerEntry: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: int,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]: ...

    async def list_all_ledger_entries(
        self, db: AsyncSession, account_id: int
    ) -> list[LedgerEntry]: ...

    # --- transfers ---

    async def create_transfer(
        self,
        db: AsyncSession,
        from_account_id: int,
        to_account_id: int,
        amount_cents: int,
        status: str,
    ) -> Transfer: ...

    async def get_transfer(self, db: AsyncSession, transfer_id: int) -> Transfer: ...
