"""Unit tests for TransactionManager using a mock store."""

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from src.fc_common.enums import (
    AccountStatus,
    IsolationLevel,
    LedgerEntryType,
    TransferStatus,
)
from src.fc_common.errors import (
    AccountClosedError,
    AccountNotFoundError,
    ConstraintViolationError,
    CurrencyMismatchError,
    InsufficientBalanceError,
    InvalidAmountError,
    SameAccountTransferError,
)
from src.fc_ledger.application.manager import TransactionManager
from src.fc_ledger.domain.models import Account, LedgerEntry, Transfer


def _account(
    account_id: int,
    balance: int = 10000,
    currency: str = "USD",
    status: str = AccountStatus.ACTIVE,
) -> Account:
    return Account(
        id=account_id,
        owner_id="owner-1",
        balance_cents=balance,
        currency=currency,
        status=status,
    )


def _mock_store(*accounts: Account) -> AsyncMock:
    by_id = {a.id: a for a in accounts}
    store = AsyncMock()
    store.begin.return_value = MagicMock(name="handle")

    async def get_for_update(db: object, account_id: int) -> Account:
        if account_id not in by_id:
            raise AccountNotFoundError(account_id)
        return by_id[account_id]

    async def create_entry(
        db: object,
        account_id: int,
        entry_type: str,
        amount_cents: int,
        balance_after_cents: int,
        transfer_id: int | None = None,
    ) -> LedgerEntry:
        return LedgerEntry(
            id=100 + account_id,
            account_id=account_id,
            entry_type=entry_type,
            amount_cents=amount_cents,
            balance_after_cents=balance_after_cents,
            transfer_id=transfer_id,
        )

    async def update_balance(db: object, account_id: int, balance_cents: int) -> Account:
        source = by_id[account_id]
        return _account(account_id, balance_cents, source.currency, source.status)

    async def create_transfer(
        db: object, from_id: int, to_id: int, amount: int, status: str
    ) -> Transfer:
        return Transfer(
            id=7, from_account_id=from_id, to_account_id=to_id, amount_cents=amount, status=status
        )

    store.get_account_for_update.side_effect = get_for_update
    store.create_ledger_entry.side_effect = create_entry
    store.update_account_balance.side_effect = update_balance
    store.create_transfer.side_effect = create_transfer
    return store


class TestTransferValidation:
    async def test_same_account_rejected_before_begin(self) -> None:
        store = _mock_store(_account(1))
        mgr = TransactionManager(store)

        with pytest.raises(SameAccountTransferError):
            await mgr.transfer_money(1, 1, 100)

        store.begin.assert_not_called()

    @pytest.mark.parametrize("amount", [0, -100])
    async def test_non_positive_amount_rejected_before_begin(self, amount: int) -> None:
        store = _mock_store(_account(1), _account(2))
        mgr = TransactionManager(store)

        with pytest.raises(InvalidAmountError):
            await mgr.transfer_money(1, 2, amount)

        store.begin.assert_not_called()

    async def test_same_account_wins_over_bad_amount(self) -> None:
        store = _mock_store(_account(1))
        mgr = TransactionManager(store)

        with pytest.raises(SameAccountTransferError):
            await mgr.transfer_money(1, 1, 0)

    async def test_insufficient_balance_aborts_without_writes(self) -> None:
        store = _mock_store(_account(1, balance=50), _account(2))
        mgr = TransactionManager(store)

        with pytest.raises(InsufficientBalanceError):
            await mgr.transfer_money(1, 2, 100)

        store.abort.assert_awaited_once()
        store.commit.assert_not_called()
        store.create_transfer.assert_not_called()
        store.create_ledger_entry.assert_not_called()
        store.update_account_balance.assert_not_called()

    async def test_missing_account_aborts(self) -> None:
        store = _mock_store(_account(1))
        mgr = TransactionManager(store)

        with pytest.raises(AccountNotFoundError):
            await mgr.transfer_money(1, 99, 100)

        store.abort.assert_awaited_once()
        store.create_transfer.assert_not_called()

    async def test_closed_destination_rejected(self) -> None:
        store = _mock_store(_account(1), _account(2, balance=0, status=AccountStatus.CLOSED))
        mgr = TransactionManager(store)

        with pytest.raises(AccountClosedError):
            await mgr.transfer_money(1, 2, 100)

        store.abort.assert_awaited_once()

    async def test_currency_mismatch_rejected(self) -> None:
        store = _mock_store(_account(1, currency="USD"), _account(2, currency="EUR"))
        mgr = TransactionManager(store)

        with pytest.raises(CurrencyMismatchError):
            await mgr.transfer_money(1, 2, 100)

        store.create_transfer.assert_not_called()


class TestTransferWrites:
    async def test_successful_transfer_writes_everything(self) -> None:
        store = _mock_store(_account(1, balance=10000), _account(2, balance=500))
        mgr = TransactionManager(store)

        result = await mgr.transfer_money(1, 2, 2500)

        handle = store.begin.return_value
        store.create_transfer.assert_awaited_once_with(
            handle, 1, 2, 2500, TransferStatus.COMPLETED
        )
        assert store.create_ledger_entry.await_args_list == [
            call(handle, 1, LedgerEntryType.TRANSFER_OUT, -2500, 7500, transfer_id=7),
            call(handle, 2, LedgerEntryType.TRANSFER_IN, 2500, 3000, transfer_id=7),
        ]
        assert store.update_account_balance.await_args_list == [
            call(handle, 1, 7500),
            call(handle, 2, 3000),
        ]
        store.commit.assert_awaited_once_with(handle)
        store.abort.assert_not_called()

        assert result.transfer.id == 7
        assert result.from_account.balance_cents == 7500
        assert result.to_account.balance_cents == 3000
        assert result.from_entry.amount_cents + result.to_entry.amount_cents == 0

    async def test_exact_balance_can_be_moved(self) -> None:
        store = _mock_store(_account(1, balance=2500), _account(2, balance=0))
        mgr = TransactionManager(store)

        result = await mgr.transfer_money(1, 2, 2500)

        assert result.from_account.balance_cents == 0
        assert result.to_account.balance_cents == 2500

    @pytest.mark.parametrize("from_id, to_id", [(3, 8), (8, 3)])
    async def test_locks_taken_in_ascending_order(self, from_id: int, to_id: int) -> None:
        store = _mock_store(_account(3), _account(8))
        mgr = TransactionManager(store)

        await mgr.transfer_money(from_id, to_id, 100)

        locked = [c.args[1] for c in store.get_account_for_update.await_args_list]
        assert locked == [3, 8]

    async def test_store_failure_mid_write_aborts(self) -> None:
        store = _mock_store(_account(1), _account(2))
        store.update_account_balance.side_effect = ConstraintViolationError(
            "ck_accounts_balance_gte_0"
        )
        mgr = TransactionManager(store)

        with pytest.raises(ConstraintViolationError):
            await mgr.transfer_money(1, 2, 100)

        store.abort.assert_awaited_once()
        store.commit.assert_not_called()

    async def test_isolation_level_forwarded(self) -> None:
        store = _mock_store(_account(1), _account(2))
        mgr = TransactionManager(store, IsolationLevel.SERIALIZABLE)

        await mgr.transfer_money(1, 2, 100)

        store.begin.assert_awaited_once_with(IsolationLevel.SERIALIZABLE)


class TestDeposit:
    async def test_deposit_credits_and_records_entry(self) -> None:
        store = _mock_store(_account(1, balance=1000))
        mgr = TransactionManager(store)

        result = await mgr.deposit_money(1, 500)

        handle = store.begin.return_value
        store.create_ledger_entry.assert_awaited_once_with(
            handle, 1, LedgerEntryType.DEPOSIT, 500, 1500
        )
        store.update_account_balance.assert_awaited_once_with(handle, 1, 1500)
        assert result.account.balance_cents == 1500
        assert result.entry.entry_type == LedgerEntryType.DEPOSIT

    @pytest.mark.parametrize("amount", [0, -1])
    async def test_invalid_amount_rejected_before_begin(self, amount: int) -> None:
        store = _mock_store(_account(1))
        mgr = TransactionManager(store)

        with pytest.raises(InvalidAmountError):
            await mgr.deposit_money(1, amount)

        store.begin.assert_not_called()

    async def test_closed_account_rejected(self) -> None:
        store = _mock_store(_account(1, balance=0, status=AccountStatus.CLOSED))
        mgr = TransactionManager(store)

        with pytest.raises(AccountClosedError):
            await mgr.deposit_money(1, 100)

        store.create_ledger_entry.assert_not_called()


class TestWithdraw:
    async def test_withdraw_debits_with_negative_entry(self) -> None:
        store = _mock_store(_account(1, balance=1000))
        mgr = TransactionManager(store)

        result = await mgr.withdraw_money(1, 300)

        handle = store.begin.return_value
        store.create_ledger_entry.assert_awaited_once_with(
            handle, 1, LedgerEntryType.WITHDRAWAL, -300, 700
        )
        assert result.account.balance_cents == 700

    @pytest.mark.parametrize("amount", [0, -1])
    async def test_invalid_amount_rejected_before_begin(self, amount: int) -> None:
        store = _mock_store(_account(1, balance=1000))
        mgr = TransactionManager(store)

        with pytest.raises(InvalidAmountError):
            await mgr.withdraw_money(1, amount)

        store.begin.assert_not_called()
        store.create_ledger_entry.assert_not_called()
        store.update_account_balance.assert_not_called()

    async def test_overdraft_rejected(self) -> None:
        store = _mock_store(_account(1, balance=100))
        mgr = TransactionManager(store)

        with pytest.raises(InsufficientBalanceError):
            await mgr.withdraw_money(1, 101)

        store.abort.assert_awaited_once()
        store.create_ledger_entry.assert_not_called()
