"""AccountService: onboarding, closure and read paths around the ledger.

Balances are never touched here: opening creates a zero-balance account and
closing only flips the status, both inside an atomic unit from
``atomic_unit``. Reads open a short unit of their own and commit it.
"""

from src.fc_common.enums import AccountStatus, IsolationLevel, OperationState
from src.fc_common.errors import AccountBalanceNotZeroError, AccountClosedError
from src.fc_ledger.application.schemas import (
    ConsistencyResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.fc_ledger.application.unit_of_work import atomic_unit
from src.fc_ledger.domain.invariants import check_ledger_consistency
from src.fc_ledger.domain.models import Account, LedgerEntry, Transfer
from src.fc_ledger.domain.store import LedgerStoreProtocol


class AccountService:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED,
    ) -> None:
        self._store = store
        self._isolation_level = isolation_level

    async def open_account(self, owner_id: str, currency: str) -> Account:
        async with atomic_unit(self._store, self._isolation_level, operation="open") as unit:
            return await self._store.create_account(unit.handle, owner_id, currency)

    async def get_account(self, account_id: int) -> Account:
        async with atomic_unit(self._store, self._isolation_level, operation="read") as unit:
            return await self._store.get_account(unit.handle, account_id)

    async def list_accounts(
        self, owner_id: str | None, limit: int, offset: int
    ) -> list[Account]:
        async with atomic_unit(self._store, self._isolation_level, operation="read") as unit:
            return await self._store.list_accounts(unit.handle, owner_id, limit, offset)

    async def close_account(self, account_id: int) -> Account:
        """Mark an emptied account CLOSED. Its ledger stays in place."""
        async with atomic_unit(self._store, self._isolation_level, operation="close") as unit:
            unit.advance(OperationState.LOCKING)
            account = await self._store.get_account_for_update(unit.handle, account_id)
            unit.advance(OperationState.VALIDATING)
            if account.status == AccountStatus.CLOSED:
                raise AccountClosedError(account_id)
            if account.balance_cents != 0:
                raise AccountBalanceNotZeroError(account_id, account.balance_cents)
            unit.advance(OperationState.WRITING)
            return await self._store.update_account_status(
                unit.handle, account_id, AccountStatus.CLOSED
            )

    async def list_ledger_entries(
        self, account_id: int, cursor: str | None, limit: int
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        async with atomic_unit(self._store, self._isolation_level, operation="read") as unit:
            # Raises AccountNotFoundError instead of returning an empty page
            await self._store.get_account(unit.handle, account_id)
            # Fetch limit+1 to detect has_more without a COUNT(*) query
            entries = await self._store.list_ledger_entries(
                unit.handle, account_id, cursor_id, limit + 1
            )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def get_transfer(self, transfer_id: int) -> Transfer:
        async with atomic_unit(self._store, self._isolation_level, operation="read") as unit:
            return await self._store.get_transfer(unit.handle, transfer_id)

    async def get_ledger_entry(self, entry_id: int) -> LedgerEntry:
        async with atomic_unit(self._store, self._isolation_level, operation="read") as unit:
            return await self._store.get_ledger_entry(unit.handle, entry_id)

    async def verify_account(self, account_id: int) -> ConsistencyResponse:
        """Check balance == sum(entries) and every running balance snapshot.

        The account row is locked so no writer commits between the two reads.
        """
        async with atomic_unit(self._store, self._isolation_level, operation="verify") as unit:
            account = await self._store.get_account_for_update(unit.handle, account_id)
            entries = await self._store.list_all_ledger_entries(unit.handle, account_id)
        violations = check_ledger_consistency(account, entries)
        return ConsistencyResponse(
            account_id=account.id,
            balance_cents=account.balance_cents,
            entry_count=len(entries),
            consistent=not violations,
            violations=violations,
        )
