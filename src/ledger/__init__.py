"""Ledger — граница с внешним vault: балансы, swap/join/exit, атомарность."""

from .guard import ReentrancyGuard, non_reentrant
from .vault import BalanceLedger, InMemoryVault, VaultState, read_pool_balances

__all__ = [
    "BalanceLedger",
    "InMemoryVault",
    "ReentrancyGuard",
    "VaultState",
    "non_reentrant",
    "read_pool_balances",
]
