"""LedgerStore: PostgreSQL implementation of LedgerStoreProtocol.

Each atomic unit is one AsyncSession opened by ``begin`` with the requested
isolation level; the session stays in a single transaction until ``commit``
or ``abort`` closes it. Row locks come from ``SELECT ... FOR UPDATE`` and are
held until that transaction ends.

Driver errors never escape raw: every statement goes through ``_execute``,
which translates SQLAlchemy DBAPIError into the AppError taxonomy by SQLSTATE.
"""

from typing import Any

from sqlalchemy import TextClause, text
from sqlalchemy.engine import Result
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.fc_common.enums import IsolationLevel
from src.fc_common.errors import (
    AccountNotFoundError,
    AppError,
    ConstraintViolationError,
    InternalError,
    LedgerEntryNotFoundError,
    SerializationConflictError,
    TransferNotFoundError,
)
from src.fc_ledger.domain.models import Account, LedgerEntry, Transfer

_SQLSTATE_SERIALIZATION_FAILURE = "40001"
_SQLSTATE_DEADLOCK_DETECTED = "40P01"
_SQLSTATE_INTEGRITY_CLASS = "23"

# ---------------------------------------------------------------------------
# SQL: accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, owner_id, balance_cents, currency, status, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :id
""")

_GET_ACCOUNT_FOR_UPDATE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :id
    FOR UPDATE
""")

_UPDATE_BALANCE_SQL = text(f"""
    UPDATE accounts
    SET balance_cents = :balance_cents,
        updated_at = NOW()
    WHERE id = :id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE accounts
    SET status = :status,
        updated_at = NOW()
    WHERE id = :id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_INSERT_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (owner_id, balance_cents, currency, status)
    VALUES (CAST(:owner_id AS UUID), 0, :currency, 'ACTIVE')
    RETURNING {_ACCOUNT_COLUMNS}
""")

_LIST_ACCOUNTS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE (CAST(:owner_id AS UUID) IS NULL OR owner_id = CAST(:owner_id AS UUID))
    ORDER BY id ASC
    LIMIT :limit OFFSET :offset
""")

# ---------------------------------------------------------------------------
# SQL: ledger entries (append-only)
# ---------------------------------------------------------------------------

_ENTRY_COLUMNS = (
    "id, account_id, entry_type, amount_cents, balance_after_cents, transfer_id, created_at"
)

_INSERT_LEDGER_SQL = text(f"""
    INSERT INTO ledger_entries
        (account_id, entry_type, amount_cents, balance_after_cents, transfer_id)
    VALUES
        (:account_id, :entry_type, :amount_cents, :balance_after_cents, :transfer_id)
    RETURNING {_ENTRY_COLUMNS}
""")

_GET_LEDGER_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM ledger_entries
    WHERE id = :id
""")

_LIST_LEDGER_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM ledger_entries
    WHERE account_id = :account_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_ALL_LEDGER_SQL = text(f"""
    SELECT {_ENTRY_COLUMNS}
    FROM ledger_entries
    WHERE account_id = :account_id
    ORDER BY id ASC
""")

# ---------------------------------------------------------------------------
# SQL: transfers
# ---------------------------------------------------------------------------

_TRANSFER_COLUMNS = "id, from_account_id, to_account_id, amount_cents, status, created_at"

_INSERT_TRANSFER_SQL = text(f"""
    INSERT INTO transfers (from_account_id, to_account_id, amount_cents, status)
    VALUES (:from_account_id, :to_account_id, :amount_cents, :status)
    RETURNING {_TRANSFER_COLUMNS}
""")

_GET_TRANSFER_SQL = text(f"""
    SELECT {_TRANSFER_COLUMNS}
    FROM transfers
    WHERE id = :id
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        id=row.id,
        owner_id=str(row.owner_id),
        balance_cents=row.balance_cents,
        currency=row.currency,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        account_id=row.account_id,
        entry_type=row.entry_type,
        amount_cents=row.amount_cents,
        balance_after_cents=row.balance_after_cents,
        transfer_id=row.transfer_id,
        created_at=row.created_at,
    )


def _row_to_transfer(row: Any) -> Transfer:
    return Transfer(
        id=row.id,
        from_account_id=row.from_account_id,
        to_account_id=row.to_account_id,
        amount_cents=row.amount_cents,
        status=row.status,
        created_at=row.created_at,
    )


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    state = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if state is None and orig is not None:
        state = getattr(orig.__cause__, "sqlstate", None)
    return state


def _constraint_name(exc: DBAPIError) -> str | None:
    orig = exc.orig
    name = getattr(orig, "constraint_name", None)
    if name is None and orig is not None:
        name = getattr(orig.__cause__, "constraint_name", None)
    return name


def translate_db_error(exc: DBAPIError) -> AppError:
    """Map a driver-level failure onto the ledger's error taxonomy."""
    state = _sqlstate(exc)
    if state in (_SQLSTATE_SERIALIZATION_FAILURE, _SQLSTATE_DEADLOCK_DETECTED):
        return SerializationConflictError(state)
    if isinstance(exc, IntegrityError) or (state or "").startswith(_SQLSTATE_INTEGRITY_CLASS):
        return ConstraintViolationError(_constraint_name(exc), str(exc.orig))
    return InternalError(f"Ledger store failure: {exc.orig}")


class LedgerStore:
    """Concrete store: one AsyncSession per atomic unit."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _execute(
        self, db: AsyncSession, stmt: TextClause, params: dict[str, Any]
    ) -> Result[Any]:
        try:
            return await db.execute(stmt, params)
        except DBAPIError as exc:
            raise translate_db_error(exc) from exc

    # --- atomic unit primitives ---

    async def begin(self, isolation_level: IsolationLevel) -> AsyncSession:
        session = self._session_factory()
        try:
            await session.connection(
                execution_options={"isolation_level": isolation_level.value}
            )
        except DBAPIError as exc:
            await session.close()
            raise translate_db_error(exc) from exc
        except BaseException:
            await session.close()
            raise
        return session

    async def commit(self, db: AsyncSession) -> None:
        try:
            await db.commit()
        except DBAPIError as exc:
            raise translate_db_error(exc) from exc
        await db.close()

    async def abort(self, db: AsyncSession) -> None:
        try:
            await db.rollback()
        except DBAPIError as exc:
            raise translate_db_error(exc) from exc
        finally:
            await db.close()

    # --- accounts ---

    async def get_account(self, db: AsyncSession, account_id: int) -> Account:
        result = await self._execute(db, _GET_ACCOUNT_SQL, {"id": account_id})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def get_account_for_update(self, db: AsyncSession, account_id: int) -> Account:
        result = await self._execute(db, _GET_ACCOUNT_FOR_UPDATE_SQL, {"id": account_id})
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def update_account_balance(
        self, db: AsyncSession, account_id: int, balance_cents: int
    ) -> Account:
        result = await self._execute(
            db, _UPDATE_BALANCE_SQL, {"id": account_id, "balance_cents": balance_cents}
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def create_account(self, db: AsyncSession, owner_id: str, currency: str) -> Account:
        result = await self._execute(
            db, _INSERT_ACCOUNT_SQL, {"owner_id": owner_id, "currency": currency}
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows: this should never happen")
        return _row_to_account(row)

    async def list_accounts(
        self, db: AsyncSession, owner_id: str | None, limit: int, offset: int
    ) -> list[Account]:
        result = await self._execute(
            db,
            _LIST_ACCOUNTS_SQL,
            {"owner_id": owner_id, "limit": limit, "offset": offset},
        )
        return [_row_to_account(row) for row in result.fetchall()]

    async def update_account_status(
        self, db: AsyncSession, account_id: int, status: str
    ) -> Account:
        result = await self._execute(
            db, _UPDATE_STATUS_SQL, {"id": account_id, "status": status}
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    # --- ledger entries ---

    async def create_ledger_entry(
        self,
        db: AsyncSession,
        account_id: int,
        entry_type: str,
        amount_cents: int,
        balance_after_cents: int,
        transfer_id: int | None = None,
    ) -> LedgerEntry:
        result = await self._execute(
            db,
            _INSERT_LEDGER_SQL,
            {
                "account_id": account_id,
                "entry_type": entry_type,
                "amount_cents": amount_cents,
                "balance_after_cents": balance_after_cents,
                "transfer_id": transfer_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows: this should never happen")
        return _row_to_ledger(row)

    async def get_ledger_entry(self, db: AsyncSession, entry_id: int) -> LedgerEntry:
        result = await self._execute(db, _GET_LEDGER_SQL, {"id": entry_id})
        row = result.fetchone()
        if row is None:
            raise LedgerEntryNotFoundError(entry_id)
        return _row_to_ledger(row)

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: int,
        cursor_id: int | None,
        limit: int,
    ) -> list[LedgerEntry]:
        result = await self._execute(
            db,
            _LIST_LEDGER_SQL,
            {"account_id": account_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def list_all_ledger_entries(
        self, db: AsyncSession, account_id: int
    ) -> list[LedgerEntry]:
        result = await self._execute(db, _LIST_ALL_LEDGER_SQL, {"account_id": account_id})
        return [_row_to_ledger(row) for row in result.fetchall()]

    # --- transfers ---

    async def create_transfer(
        self,
        db: AsyncSession,
        from_account_id: int,
        to_account_id: int,
        amount_cents: int,
        status: str,
    ) -> Transfer:
        result = await self._execute(
            db,
            _INSERT_TRANSFER_SQL,
            {
                "from_account_id": from_account_id,
                "to_account_id": to_account_id,
                "amount_cents": amount_cents,
                "status": status,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transfer insert returned no rows: this should never happen")
        return _row_to_transfer(row)

    async def get_transfer(self, db: AsyncSession, transfer_id: int) -> Transfer:
        result = await self._execute(db, _GET_TRANSFER_SQL, {"id": transfer_id})
        row = result.fetchone()
        if row is None:
            raise TransferNotFoundError(transfer_id)
        return _row_to_transfer(row)
