"""Rebalance — своп к целевому соотношению пула перед депозитом."""

from .engine import (
    ALLOWED_TRANSITIONS,
    PoolRatio,
    RebalanceEngine,
    require_min_shares,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "PoolRatio",
    "RebalanceEngine",
    "require_min_shares",
]
