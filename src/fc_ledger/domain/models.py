"""Domain models for fc_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: int                          # BIGSERIAL, defines lock order
    owner_id: str
    balance_cents: int
    currency: str                    # Currency value
    status: str                      # AccountStatus value
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    account_id: int
    entry_type: str                  # LedgerEntryType value
    amount_cents: int                # positive=credit negative=debit
    balance_after_cents: int         # account balance snapshot after this entry
    transfer_id: int | None = None
    created_at: datetime | None = None


@dataclass
class Transfer:
    id: int
    from_account_id: int
    to_account_id: int
    amount_cents: int                # always positive
    status: str                      # TransferStatus value
    created_at: datetime | None = None


@dataclass
class TransferResult:
    transfer: Transfer
    from_account: Account
    to_account: Account
    from_entry: LedgerEntry
    to_entry: LedgerEntry


@dataclass
class AccountOperationResult:
    entry: LedgerEntry
    account: Account
