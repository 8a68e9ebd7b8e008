"""TransactionManager: the only writer of balances and ledger entries.

Every operation runs in its own atomic unit:

    validate input -> begin -> lock accounts (ascending id) -> validate rules
                   -> write entries + balances -> commit

Input validation (positive amount, distinct accounts) happens before the unit
is opened, so a rejected request never takes a lock. Anything raised after
that aborts the unit and leaves no trace. Mutual exclusion comes entirely
from the store's row locks; the manager holds no state besides its
configuration and never retries.
"""

import logging
from contextlib import AbstractAsyncContextManager

from src.fc_common.cents import validate_amount
from src.fc_common.enums import (
    AccountStatus,
    IsolationLevel,
    LedgerEntryType,
    OperationState,
    TransferStatus,
)
from src.fc_common.errors import (
    AccountClosedError,
    CurrencyMismatchError,
    InsufficientBalanceError,
    SameAccountTransferError,
)
from src.fc_ledger.application.unit_of_work import AtomicUnit, atomic_unit
from src.fc_ledger.domain.lock_order import lock_order
from src.fc_ledger.domain.models import Account, AccountOperationResult, TransferResult
from src.fc_ledger.domain.store import LedgerStoreProtocol

logger = logging.getLogger(__name__)


def _require_active(account: Account) -> None:
    if account.status != AccountStatus.ACTIVE:
        raise AccountClosedError(account.id)


class TransactionManager:
    def __init__(
        self,
        store: LedgerStoreProtocol,
        isolation_level: IsolationLevel = IsolationLevel.READ_COMMITTED,
        default_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._isolation_level = isolation_level
        self._default_timeout = default_timeout

    def _unit(
        self, operation: str, timeout: float | None
    ) -> AbstractAsyncContextManager[AtomicUnit]:
        return atomic_unit(
            self._store,
            self._isolation_level,
            timeout if timeout is not None else self._default_timeout,
            operation,
        )

    async def _lock_accounts(self, unit: AtomicUnit, *account_ids: int) -> dict[int, Account]:
        unit.advance(OperationState.LOCKING)
        locked: dict[int, Account] = {}
        for account_id in lock_order(*account_ids):
            locked[account_id] = await self._store.get_account_for_update(
                unit.handle, account_id
            )
        unit.advance(OperationState.VALIDATING)
        return locked

    async def transfer_money(
        self,
        from_account_id: int,
        to_account_id: int,
        amount_cents: int,
        *,
        timeout: float | None = None,
    ) -> TransferResult:
        """Move ``amount_cents`` from one account to another.

        Writes the transfer row, a TRANSFER_OUT entry on the source and a
        TRANSFER_IN entry on the destination, then both balances. Both rows are
        locked in ascending id order, whatever the direction of the transfer.
        """
        if from_account_id == to_account_id:
            raise SameAccountTransferError(from_account_id)
        validate_amount(amount_cents)

        async with self._unit("transfer", timeout) as unit:
            locked = await self._lock_accounts(unit, from_account_id, to_account_id)
            source = locked[from_account_id]
            dest = locked[to_account_id]

            _require_active(source)
            _require_active(dest)
            if source.currency != dest.currency:
                raise CurrencyMismatchError(source.currency, dest.currency)
            if source.balance_cents < amount_cents:
                raise InsufficientBalanceError(amount_cents, source.balance_cents)

            unit.advance(OperationState.WRITING)
            db = unit.handle
            transfer = await self._store.create_transfer(
                db, from_account_id, to_account_id, amount_cents, TransferStatus.COMPLETED
            )
            from_entry = await self._store.create_ledger_entry(
                db,
                from_account_id,
                LedgerEntryType.TRANSFER_OUT,
                -amount_cents,
                source.balance_cents - amount_cents,
                transfer_id=transfer.id,
            )
            to_entry = await self._store.create_ledger_entry(
                db,
                to_account_id,
                LedgerEntryType.TRANSFER_IN,
                amount_cents,
                dest.balance_cents + amount_cents,
                transfer_id=transfer.id,
            )
            from_account = await self._store.update_account_balance(
                db, from_account_id, from_entry.balance_after_cents
            )
            to_account = await self._store.update_account_balance(
                db, to_account_id, to_entry.balance_after_cents
            )

        logger.info(
            "Transfer committed: id=%s from=%s to=%s amount=%d",
            transfer.id, from_account_id, to_account_id, amount_cents,
        )
        return TransferResult(
            transfer=transfer,
            from_account=from_account,
            to_account=to_account,
            from_entry=from_entry,
            to_entry=to_entry,
        )

    async def deposit_money(
        self, account_id: int, amount_cents: int, *, timeout: float | None = None
    ) -> AccountOperationResult:
        validate_amount(amount_cents)

        async with self._unit("deposit", timeout) as unit:
            account = (await self._lock_accounts(unit, account_id))[account_id]
            _require_active(account)

            unit.advance(OperationState.WRITING)
            entry = await self._store.create_ledger_entry(
                unit.handle,
                account_id,
                LedgerEntryType.DEPOSIT,
                amount_cents,
                account.balance_cents + amount_cents,
            )
            account = await self._store.update_account_balance(
                unit.handle, account_id, entry.balance_after_cents
            )

        logger.info("Deposit committed: account=%s amount=%d", account_id, amount_cents)
        return AccountOperationResult(entry=entry, account=account)

    async def withdraw_money(
        self, account_id: int, amount_cents: int, *, timeout: float | None = None
    ) -> AccountOperationResult:
        validate_amount(amount_cents)

        async with self._unit("withdrawal", timeout) as unit:
            account = (await self._lock_accounts(unit, account_id))[account_id]
            _require_active(account)
            if account.balance_cents < amount_cents:
                raise InsufficientBalanceError(amount_cents, account.balance_cents)

            unit.advance(OperationState.WRITING)
            entry = await self._store.create_ledger_entry(
                unit.handle,
                account_id,
                LedgerEntryType.WITHDRAWAL,
                -amount_cents,
                account.balance_cents - amount_cents,
            )
            account = await self._store.update_account_balance(
                unit.handle, account_id, entry.balance_after_cents
            )

        logger.info("Withdrawal committed: account=%s amount=%d", account_id, amount_cents)
        return AccountOperationResult(entry=entry, account=account)
