"""Unified error codes and custom exceptions.

Every error the ledger raises belongs to one ErrorKind. The kind is what
callers branch on; the numeric code is what the API envelope carries.

Error code ranges:
  1xxx: User
  2xxx: Account / ledger entry
  3xxx: Transfer
  9xxx: Store / system
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"
    INTERNAL = "INTERNAL"


class AppError(Exception):
    """Base application error."""

    kind: ErrorKind = ErrorKind.INTERNAL
    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: User ---

class EmailExistsError(AppError):
    kind = ErrorKind.CONFLICT

    def __init__(self) -> None:
        super().__init__(1001, "Email already exists", 409)


class UserNotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, user_id: object) -> None:
        super().__init__(1002, f"User not found: {user_id}", 404)


# --- 2xxx: Account / ledger entry ---

class AccountNotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, account_id: object) -> None:
        super().__init__(2001, f"Account not found: {account_id}", 404)


class InvalidAmountError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, amount: object) -> None:
        super().__init__(
            2002, f"Amount must be a positive integer number of cents, got {amount!r}", 422
        )


class InsufficientBalanceError(AppError):
    kind = ErrorKind.CONFLICT

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2003,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class AccountClosedError(AppError):
    kind = ErrorKind.CONFLICT

    def __init__(self, account_id: object) -> None:
        super().__init__(2004, f"Account is closed: {account_id}", 422)


class CurrencyMismatchError(AppError):
    kind = ErrorKind.CONFLICT

    def __init__(self, from_currency: str, to_currency: str) -> None:
        super().__init__(
            2005, f"Currency mismatch: cannot move {from_currency} into {to_currency}", 422
        )


class AccountBalanceNotZeroError(AppError):
    kind = ErrorKind.CONFLICT

    def __init__(self, account_id: object, balance: int) -> None:
        super().__init__(
            2006, f"Account {account_id} still holds {balance} cents", 422
        )


class LedgerEntryNotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, entry_id: object) -> None:
        super().__init__(2007, f"Ledger entry not found: {entry_id}", 404)


# --- 3xxx: Transfer ---

class SameAccountTransferError(AppError):
    kind = ErrorKind.VALIDATION

    def __init__(self, account_id: object) -> None:
        super().__init__(3001, f"Cannot transfer to the same account: {account_id}", 422)


class TransferNotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, transfer_id: object) -> None:
        super().__init__(3002, f"Transfer not found: {transfer_id}", 404)


# --- 9xxx: Store / system ---

class ConstraintViolationError(AppError):
    kind = ErrorKind.CONSTRAINT_VIOLATION

    def __init__(self, constraint: str | None, detail: str = "") -> None:
        self.constraint = constraint
        message = f"Constraint violated: {constraint or 'unknown'}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(9001, message, 409)


class SerializationConflictError(AppError):
    kind = ErrorKind.CONFLICT
    retryable = True

    def __init__(self, sqlstate: str | None = None) -> None:
        super().__init__(
            9002, f"Concurrent update conflict (sqlstate={sqlstate}), retry the operation", 409
        )


class OperationTimeoutError(AppError):
    retryable = True

    def __init__(self, timeout: float | None) -> None:
        super().__init__(9003, f"Operation exceeded its deadline of {timeout}s", 504)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9009, detail, 500)
