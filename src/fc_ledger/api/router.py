"""fc_ledger REST API: accounts, deposits/withdrawals, transfers, ledger entries.

Body validation (positive amounts, UUID owners) happens in the pydantic
schemas; the manager re-checks its own preconditions regardless.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from config.settings import settings
from src.fc_common.database import async_session_factory
from src.fc_common.enums import IsolationLevel
from src.fc_common.response import ApiResponse, success_response
from src.fc_ledger.application.account_service import AccountService
from src.fc_ledger.application.manager import TransactionManager
from src.fc_ledger.application.schemas import (
    AccountListResponse,
    AccountOperationResponse,
    AccountResponse,
    DepositRequest,
    LedgerEntryItem,
    OpenAccountRequest,
    TransferItem,
    TransferRequest,
    TransferResponse,
    WithdrawRequest,
)
from src.fc_ledger.infrastructure.persistence import LedgerStore

router = APIRouter(tags=["ledger"])

_store = LedgerStore(async_session_factory)
_isolation_level = IsolationLevel(settings.LEDGER_ISOLATION_LEVEL)
_manager = TransactionManager(
    _store, _isolation_level, settings.LEDGER_OPERATION_TIMEOUT_SECONDS
)
_accounts = AccountService(_store, _isolation_level)


def _respond(request: Request, data: dict[str, Any]) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.post("/accounts", status_code=status.HTTP_201_CREATED)
async def open_account(body: OpenAccountRequest, request: Request) -> ApiResponse:
    account = await _accounts.open_account(str(body.owner_id), body.currency.value)
    return _respond(request, AccountResponse.from_domain(account).model_dump())


@router.get("/accounts")
async def list_accounts(
    request: Request,
    owner_id: UUID | None = Query(None, description="Filter by owner user id"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    accounts = await _accounts.list_accounts(
        str(owner_id) if owner_id else None, limit, offset
    )
    data = AccountListResponse(items=[AccountResponse.from_domain(a) for a in accounts])
    return _respond(request, data.model_dump())


@router.get("/accounts/{account_id}")
async def get_account(account_id: int, request: Request) -> ApiResponse:
    account = await _accounts.get_account(account_id)
    return _respond(request, AccountResponse.from_domain(account).model_dump())


@router.post("/accounts/{account_id}/close")
async def close_account(account_id: int, request: Request) -> ApiResponse:
    account = await _accounts.close_account(account_id)
    return _respond(request, AccountResponse.from_domain(account).model_dump())


@router.post("/accounts/{account_id}/deposit")
async def deposit(account_id: int, body: DepositRequest, request: Request) -> ApiResponse:
    result = await _manager.deposit_money(account_id, body.amount_cents)
    return _respond(request, AccountOperationResponse.from_result(result).model_dump())


@router.post("/accounts/{account_id}/withdraw")
async def withdraw(account_id: int, body: WithdrawRequest, request: Request) -> ApiResponse:
    result = await _manager.withdraw_money(account_id, body.amount_cents)
    return _respond(request, AccountOperationResponse.from_result(result).model_dump())


@router.get("/accounts/{account_id}/entries")
async def list_entries(
    account_id: int,
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _accounts.list_ledger_entries(account_id, cursor, limit)
    return _respond(request, data.model_dump())


@router.get("/accounts/{account_id}/consistency")
async def verify_account(account_id: int, request: Request) -> ApiResponse:
    data = await _accounts.verify_account(account_id)
    return _respond(request, data.model_dump())


# ---------------------------------------------------------------------------
# Transfers and entries
# ---------------------------------------------------------------------------


@router.post("/transfers", status_code=status.HTTP_201_CREATED)
async def create_transfer(body: TransferRequest, request: Request) -> ApiResponse:
    result = await _manager.transfer_money(
        body.from_account_id, body.to_account_id, body.amount_cents
    )
    return _respond(request, TransferResponse.from_result(result).model_dump())


@router.get("/transfers/{transfer_id}")
async def get_transfer(transfer_id: int, request: Request) -> ApiResponse:
    transfer = await _accounts.get_transfer(transfer_id)
    return _respond(request, TransferItem.from_domain(transfer).model_dump())


@router.get("/entries/{entry_id}")
async def get_entry(entry_id: int, request: Request) -> ApiResponse:
    entry = await _accounts.get_ledger_entry(entry_id)
    return _respond(request, LedgerEntryItem.from_domain(entry).model_dump())
