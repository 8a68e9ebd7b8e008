"""Deterministic lock ordering for multi-account operations.

Every operation that locks more than one account acquires the row locks in
ascending identifier order. Two transfers over the same pair, in either
direction, therefore queue on the same first row and can never wait on each
other in a cycle.

Identifiers only need a total order: BIGSERIAL ints and opaque string tokens
both work.
"""

from collections.abc import Hashable
from functools import cmp_to_key
from typing import Any


def compare_account_ids(a: Any, b: Any) -> int:
    """Three-way comparison: negative if a locks first, 0 if equal, positive otherwise."""
    if a == b:
        return 0
    return -1 if a < b else 1


def lock_order(*account_ids: Hashable) -> list[Any]:
    """Return the distinct ids in the order their row locks must be taken."""
    unique = list(dict.fromkeys(account_ids))
    return sorted(unique, key=cmp_to_key(compare_account_ids))
