"""Global enums: must match DB CHECK constraints exactly.

See alembic/versions/003_create_accounts.py .. 005_create_ledger_entries.py
"""

from enum import Enum


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    CAD = "CAD"
    BDT = "BDT"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    # Transfer legs (paired, same transfer_id)
    TRANSFER_OUT = "TRANSFER_OUT"
    TRANSFER_IN = "TRANSFER_IN"


class TransferStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class IsolationLevel(str, Enum):
    """Values are the strings SQLAlchemy passes to the driver."""
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class OperationState(str, Enum):
    """Lifecycle of one atomic unit inside the transaction manager."""
    STARTED = "STARTED"
    LOCKING = "LOCKING"
    VALIDATING = "VALIDATING"
    WRITING = "WRITING"
    COMMITTED = "COMMITTED"
    ABORTED = "ABORTED"
