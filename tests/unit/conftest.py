"""Unit-test fixtures: an in-memory ledger store with real row-lock semantics.

InMemoryLedgerStore mirrors what PostgreSQL gives the ledger under
READ COMMITTED + SELECT ... FOR UPDATE:

- ``get_account_for_update`` blocks on a per-account asyncio.Lock held until
  the owning unit commits or aborts;
- writes are staged on the unit and only become visible on commit;
- abort discards staged writes and releases every lock.

Every read/write yields to the event loop, so a manager that forgot to lock
would lose updates under ``asyncio.gather`` exactly like it would on a real
database.
"""

import asyncio
import itertools
from collections import defaultdict
from dataclasses import replace
from datetime import UTC, datetime

import pytest

from src.fc_common.enums import AccountStatus, Currency, IsolationLevel, LedgerEntryType
from src.fc_common.errors import (
    AccountNotFoundError,
    ConstraintViolationError,
    LedgerEntryNotFoundError,
    TransferNotFoundError,
)
from src.fc_ledger.application.manager import TransactionManager
from src.fc_ledger.domain.models import Account, LedgerEntry, Transfer


class MemoryUnit:
    def __init__(self, isolation_level: IsolationLevel) -> None:
        self.isolation_level = isolation_level
        self.held: list[int] = []
        self.accounts: dict[int, Account] = {}
        self.entries: list[LedgerEntry] = []
        self.transfers: list[Transfer] = []
        self.finished = False


class InMemoryLedgerStore:
    def __init__(self) -> None:
        self.accounts: dict[int, Account] = {}
        self.entries: dict[int, LedgerEntry] = {}
        self.transfers: dict[int, Transfer] = {}
        self.lock_log: list[int] = []
        self.commits = 0
        self.aborts = 0
        self._locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._account_ids = itertools.count(1)
        self._row_ids = itertools.count(1)

    # --- test helpers ---

    def seed_account(
        self,
        balance: int = 0,
        currency: str = Currency.USD,
        status: str = AccountStatus.ACTIVE,
        account_id: int | None = None,
    ) -> Account:
        """Create a committed account whose ledger already explains ``balance``."""
        account_id = account_id if account_id is not None else next(self._account_ids)
        now = datetime.now(UTC)
        self.accounts[account_id] = Account(
            id=account_id,
            owner_id="owner-1",
            balance_cents=balance,
            currency=currency,
            status=status,
            created_at=now,
            updated_at=now,
        )
        if balance:
            entry_id = next(self._row_ids)
            self.entries[entry_id] = LedgerEntry(
                id=entry_id,
                account_id=account_id,
                entry_type=LedgerEntryType.DEPOSIT,
                amount_cents=balance,
                balance_after_cents=balance,
                created_at=now,
            )
        return replace(self.accounts[account_id])

    def balance(self, account_id: int) -> int:
        return self.accounts[account_id].balance_cents

    def entries_for(self, account_id: int) -> list[LedgerEntry]:
        return sorted(
            (e for e in self.entries.values() if e.account_id == account_id),
            key=lambda e: e.id,
        )

    # --- atomic unit primitives ---

    async def begin(self, isolation_level: IsolationLevel) -> MemoryUnit:
        return MemoryUnit(isolation_level)

    async def commit(self, unit: MemoryUnit) -> None:
        await asyncio.sleep(0)
        self.accounts.update(unit.accounts)
        for entry in unit.entries:
            self.entries[entry.id] = entry
        for transfer in unit.transfers:
            self.transfers[transfer.id] = transfer
        self.commits += 1
        self._release(unit)

    async def abort(self, unit: MemoryUnit) -> None:
        self.aborts += 1
        self._release(unit)

    def _release(self, unit: MemoryUnit) -> None:
        for account_id in reversed(unit.held):
            self._locks[account_id].release()
        unit.held.clear()
        unit.finished = True

    # --- accounts ---

    async def get_account(self, unit: MemoryUnit, account_id: int) -> Account:
        await asyncio.sleep(0)
        if account_id in unit.accounts:
            return replace(unit.accounts[account_id])
        if account_id not in self.accounts:
            raise AccountNotFoundError(account_id)
        return replace(self.accounts[account_id])

    async def get_account_for_update(self, unit: MemoryUnit, account_id: int) -> Account:
        if account_id not in self.accounts:
            raise AccountNotFoundError(account_id)
        if account_id not in unit.held:
            await self._locks[account_id].acquire()
            unit.held.append(account_id)
            self.lock_log.append(account_id)
        return await self.get_account(unit, account_id)

    async def update_account_balance(
        self, unit: MemoryUnit, account_id: int, balance_cents: int
    ) -> Account:
        current = await self.get_account(unit, account_id)
        if balance_cents < 0:
            raise ConstraintViolationError("ck_accounts_balance_gte_0")
        updated = replace(current, balance_cents=balance_cents, updated_at=datetime.now(UTC))
        unit.accounts[account_id] = updated
        return replace(updated)

    async def create_account(self, unit: MemoryUnit, owner_id: str, currency: str) -> Account:
        await asyncio.sleep(0)
        account_id = next(self._account_ids)
        now = datetime.now(UTC)
        account = Account(
            id=account_id,
            owner_id=owner_id,
            balance_cents=0,
            currency=currency,
            status=AccountStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        unit.accounts[account_id] = account
        return replace(account)

    async def list_accounts(
        self, unit: MemoryUnit, owner_id: str | None, limit: int, offset: int
    ) -> list[Account]:
        await asyncio.sleep(0)
        rows = [
            a for _, a in sorted(self.accounts.items())
            if owner_id is None or a.owner_id == owner_id
        ]
        return [replace(a) for a in rows[offset:offset + limit]]

    async def update_account_status(
        self, unit: MemoryUnit, account_id: int, status: str
    ) -> Account:
        current = await self.get_account(unit, account_id)
        updated = replace(current, status=status)
        unit.accounts[account_id] = updated
        return replace(updated)

    # --- ledger entries ---

    async def create_ledger_entry(
        self,
        unit: MemoryUnit,
        account_id: int,
        entry_type: str,
        amount_cents: int,
        balance_after_cents: int,
        transfer_id: int | None = None,
    ) -> LedgerEntry:
        await asyncio.sleep(0)
        if account_id not in self.accounts:
            raise ConstraintViolationError("fk_ledger_account")
        if balance_after_cents < 0:
            raise ConstraintViolationError("ck_ledger_balance_gte_0")
        entry = LedgerEntry(
            id=next(self._row_ids),
            account_id=account_id,
            entry_type=entry_type,
            amount_cents=amount_cents,
            balance_after_cents=balance_after_cents,
            transfer_id=transfer_id,
            created_at=datetime.now(UTC),
        )
        unit.entries.append(entry)
        return replace(entry)

    async def get_ledger_entry(self, unit: MemoryUnit, entry_id: int) -> LedgerEntry:
        await asyncio.sleep(0)
        if entry_id not in self.entries:
            raise LedgerEntryNotFoundError(entry_id)
        return replace(self.entries[entry_id])

    async def list_ledger_entries(
        self, unit: MemoryUnit, account_id: int, cursor_id: int | None, limit: int
    ) -> list[LedgerEntry]:
        await asyncio.sleep(0)
        rows = [
            e for e in reversed(self.entries_for(account_id))
            if cursor_id is None or e.id < cursor_id
        ]
        return rows[:limit]

    async def list_all_ledger_entries(
        self, unit: MemoryUnit, account_id: int
    ) -> list[LedgerEntry]:
        await asyncio.sleep(0)
        return self.entries_for(account_id)

    # --- transfers ---

    async def create_transfer(
        self,
        unit: MemoryUnit,
        from_account_id: int,
        to_account_id: int,
        amount_cents: int,
        status: str,
    ) -> Transfer:
        await asyncio.sleep(0)
        if from_account_id not in self.accounts or to_account_id not in self.accounts:
            raise ConstraintViolationError("fk_transfers_from")
        transfer = Transfer(
            id=next(self._row_ids),
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount_cents=amount_cents,
            status=status,
            created_at=datetime.now(UTC),
        )
        unit.transfers.append(transfer)
        return replace(transfer)

    async def get_transfer(self, unit: MemoryUnit, transfer_id: int) -> Transfer:
        await asyncio.sleep(0)
        if transfer_id not in self.transfers:
            raise TransferNotFoundError(transfer_id)
        return replace(self.transfers[transfer_id])


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def manager(store: InMemoryLedgerStore) -> TransactionManager:
    return TransactionManager(store)  # type: ignore[arg-type]
