"""Pydantic schemas and cursor utilities for the fc_ledger API."""

import base64
import json
from uuid import UUID

from pydantic import BaseModel, Field

from src.fc_common.cents import cents_to_display
from src.fc_common.enums import Currency
from src.fc_ledger.domain.models import (
    Account,
    AccountOperationResult,
    LedgerEntry,
    Transfer,
    TransferResult,
)

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


def _iso(value: object) -> str:
    return value.isoformat() if value is not None else ""  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OpenAccountRequest(BaseModel):
    owner_id: UUID
    currency: Currency = Currency.USD


class DepositRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to deposit in cents")


class WithdrawRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to withdraw in cents")


class TransferRequest(BaseModel):
    from_account_id: int = Field(..., gt=0)
    to_account_id: int = Field(..., gt=0)
    amount_cents: int = Field(..., gt=0, description="Amount to transfer in cents")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    id: int
    owner_id: str
    balance_cents: int
    balance_display: str
    currency: str
    status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            owner_id=account.owner_id,
            balance_cents=account.balance_cents,
            balance_display=cents_to_display(account.balance_cents),
            currency=account.currency,
            status=account.status,
            created_at=_iso(account.created_at),
            updated_at=_iso(account.updated_at),
        )


class AccountListResponse(BaseModel):
    items: list[AccountResponse]


class LedgerEntryItem(BaseModel):
    id: int
    account_id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    transfer_id: int | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            account_id=entry.account_id,
            entry_type=entry.entry_type,
            amount_cents=entry.amount_cents,
            amount_display=cents_to_display(entry.amount_cents),
            balance_after_cents=entry.balance_after_cents,
            balance_after_display=cents_to_display(entry.balance_after_cents),
            transfer_id=entry.transfer_id,
            created_at=_iso(entry.created_at),
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class TransferItem(BaseModel):
    id: int
    from_account_id: int
    to_account_id: int
    amount_cents: int
    amount_display: str
    status: str
    created_at: str

    @classmethod
    def from_domain(cls, transfer: Transfer) -> "TransferItem":
        return cls(
            id=transfer.id,
            from_account_id=transfer.from_account_id,
            to_account_id=transfer.to_account_id,
            amount_cents=transfer.amount_cents,
            amount_display=cents_to_display(transfer.amount_cents),
            status=transfer.status,
            created_at=_iso(transfer.created_at),
        )


class TransferResponse(BaseModel):
    transfer: TransferItem
    from_account: AccountResponse
    to_account: AccountResponse
    from_entry: LedgerEntryItem
    to_entry: LedgerEntryItem

    @classmethod
    def from_result(cls, result: TransferResult) -> "TransferResponse":
        return cls(
            transfer=TransferItem.from_domain(result.transfer),
            from_account=AccountResponse.from_domain(result.from_account),
            to_account=AccountResponse.from_domain(result.to_account),
            from_entry=LedgerEntryItem.from_domain(result.from_entry),
            to_entry=LedgerEntryItem.from_domain(result.to_entry),
        )


class AccountOperationResponse(BaseModel):
    account: AccountResponse
    entry: LedgerEntryItem

    @classmethod
    def from_result(cls, result: AccountOperationResult) -> "AccountOperationResponse":
        return cls(
            account=AccountResponse.from_domain(result.account),
            entry=LedgerEntryItem.from_domain(result.entry),
        )


class ConsistencyResponse(BaseModel):
    account_id: int
    balance_cents: int
    entry_count: int
    consistent: bool
    violations: list[str]
