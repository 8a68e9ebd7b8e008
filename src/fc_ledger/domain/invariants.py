"""Ledger-balance consistency check for a single account."""

import logging

from src.fc_ledger.domain.models import Account, LedgerEntry

logger = logging.getLogger(__name__)


def check_ledger_consistency(account: Account, entries: list[LedgerEntry]) -> list[str]:
    """Verify an account against its full ledger. Returns list of violation strings.

    INV-L1: every entry's balance_after equals the running sum up to and including it
    INV-L2: the stored balance equals the sum of all entry amounts

    ``entries`` must be in ascending id order (commit order per account).
    """
    violations: list[str] = []
    running = 0
    for entry in entries:
        if entry.account_id != account.id:
            violations.append(
                f"INV-L1 violated: entry {entry.id} belongs to account "
                f"{entry.account_id}, not {account.id}"
            )
            continue
        running += entry.amount_cents
        if entry.balance_after_cents != running:
            violations.append(
                f"INV-L1 violated: entry {entry.id} balance_after="
                f"{entry.balance_after_cents} != running_sum={running}"
            )

    if account.balance_cents != running:
        violations.append(
            f"INV-L2 violated: account {account.id} balance={account.balance_cents} "
            f"!= ledger_sum={running}"
        )

    for msg in violations:
        logger.error(msg)
    if not violations:
        logger.debug(
            "Ledger OK: account=%s, balance=%d, entries=%d",
            account.id, account.balance_cents, len(entries),
        )
    return violations
