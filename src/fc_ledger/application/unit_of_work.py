"""Scoped atomic unit for ledger operations.

``atomic_unit`` opens one store transaction, yields an AtomicUnit (the store
handle plus the operation's lifecycle state) and guarantees exactly one of
commit/abort on every exit path:

    async with atomic_unit(store, IsolationLevel.READ_COMMITTED, timeout=5) as unit:
        unit.advance(OperationState.LOCKING)
        account = await store.get_account_for_update(unit.handle, account_id)
        ...

A body that raises, a failing commit and an expired deadline all abort the
unit. The deadline covers the body only (locking, validating, writing) and
surfaces as OperationTimeoutError chained to the TimeoutError. COMMIT runs
outside it: once COMMIT is sent its outcome is reported as-is, never as a
retryable timeout.

If the rollback itself fails, the error that caused the abort is still the
one raised; the rollback failure is logged and attached as a note.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from src.fc_common.enums import IsolationLevel, OperationState
from src.fc_common.errors import InternalError, OperationTimeoutError
from src.fc_ledger.domain.store import LedgerStoreProtocol

logger = logging.getLogger(__name__)

# STARTED -> COMMITTED is the path of units outside the lock/validate/write
# pipeline: reads, consistency checks and inserts of fresh rows.
_TRANSITIONS: dict[OperationState, frozenset[OperationState]] = {
    OperationState.STARTED: frozenset(
        {OperationState.LOCKING, OperationState.COMMITTED, OperationState.ABORTED}
    ),
    OperationState.LOCKING: frozenset({OperationState.VALIDATING, OperationState.ABORTED}),
    OperationState.VALIDATING: frozenset({OperationState.WRITING, OperationState.ABORTED}),
    OperationState.WRITING: frozenset({OperationState.COMMITTED, OperationState.ABORTED}),
    OperationState.COMMITTED: frozenset(),
    OperationState.ABORTED: frozenset(),
}


class AtomicUnit:
    """One open store transaction and where its operation currently is."""

    def __init__(self, handle: Any, isolation_level: IsolationLevel, operation: str) -> None:
        self.handle = handle
        self.isolation_level = isolation_level
        self.operation = operation
        self.state = OperationState.STARTED

    def check(self, state: OperationState) -> None:
        """Raise InternalError unless ``state`` may follow the current one."""
        if state not in _TRANSITIONS[self.state]:
            raise InternalError(
                f"Illegal {self.operation} state transition: {self.state.value} -> {state.value}"
            )

    def advance(self, state: OperationState) -> None:
        self.check(state)
        logger.debug("%s: %s -> %s", self.operation, self.state.value, state.value)
        self.state = state


async def _abort(store: LedgerStoreProtocol, unit: AtomicUnit, cause: BaseException) -> None:
    if unit.state is not OperationState.ABORTED:
        unit.advance(OperationState.ABORTED)
    try:
        await store.abort(unit.handle)
    except Exception as exc:
        logger.error("%s: rollback failed after %r: %s", unit.operation, cause, exc)
        cause.add_note(f"rollback failed: {exc!r}")


@asynccontextmanager
async def atomic_unit(
    store: LedgerStoreProtocol,
    isolation_level: IsolationLevel,
    timeout: float | None = None,
    operation: str = "operation",
) -> AsyncIterator[AtomicUnit]:
    handle = await store.begin(isolation_level)
    unit = AtomicUnit(handle, isolation_level, operation)
    deadline = asyncio.timeout(timeout)
    try:
        async with deadline:
            yield unit
        unit.check(OperationState.COMMITTED)
    except TimeoutError as exc:
        if not deadline.expired():
            await _abort(store, unit, exc)
            raise
        err = OperationTimeoutError(timeout)
        await _abort(store, unit, err)
        raise err from exc
    except BaseException as exc:
        await _abort(store, unit, exc)
        raise

    try:
        await store.commit(handle)
    except BaseException as exc:
        await _abort(store, unit, exc)
        raise
    unit.advance(OperationState.COMMITTED)
