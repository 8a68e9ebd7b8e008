"""Integer arithmetic utilities for cents-denominated balances.

All amounts and balances are int minor units. No float, no Decimal.
"""

from src.fc_common.errors import InvalidAmountError


def validate_amount(amount_cents: object) -> int:
    """Reject anything that is not a positive int (bool is not an amount)."""
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidAmountError(amount_cents)
    if amount_cents <= 0:
        raise InvalidAmountError(amount_cents)
    return amount_cents


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
