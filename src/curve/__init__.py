"""Curve — gross liquidity, математика LP shares и pricing FX пула."""

from .liquidity import (
    SHARE_DECIMALS_MULTIPLIER,
    deposit_amounts_for_shares,
    gross_liquidity,
    shares_to_mint,
    view_deposit,
    view_withdraw,
    withdraw_amounts_for_shares,
)
from .pool import DEFAULT_EPSILON, FXPool

__all__ = [
    "DEFAULT_EPSILON",
    "FXPool",
    "SHARE_DECIMALS_MULTIPLIER",
    "deposit_amounts_for_shares",
    "gross_liquidity",
    "shares_to_mint",
    "view_deposit",
    "view_withdraw",
    "withdraw_amounts_for_shares",
]
