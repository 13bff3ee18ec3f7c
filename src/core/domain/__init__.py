"""
Domain models and value objects.

Contains tokens, pool balances and weights, oracle rounds, and the
ephemeral plans and quotes built per call.
"""

from src.core.domain.plans import (
    DepositPlan,
    MigrationQuote,
    MigrationResult,
    RebalancedDepositQuote,
    RebalancedDepositResult,
    RebalancePlan,
    RebalanceState,
    WithdrawPlan,
)
from src.core.domain.pool_state import (
    EMPTY_LIQUIDITY,
    GrossLiquidity,
    PoolBalances,
    WeightedPair,
)
from src.core.domain.rate import RateSnapshot, RoundData
from src.core.domain.token import (
    MAX_TOKEN_DECIMALS,
    ZERO_ADDRESS,
    Token,
    require_address,
    require_token,
)

__all__ = [
    # Token
    "MAX_TOKEN_DECIMALS",
    "ZERO_ADDRESS",
    "Token",
    "require_address",
    "require_token",
    # Pool state
    "EMPTY_LIQUIDITY",
    "GrossLiquidity",
    "PoolBalances",
    "WeightedPair",
    # Oracle rounds
    "RateSnapshot",
    "RoundData",
    # Plans
    "DepositPlan",
    "WithdrawPlan",
    "RebalancePlan",
    "RebalanceState",
    "RebalancedDepositQuote",
    "RebalancedDepositResult",
    "MigrationQuote",
    "MigrationResult",
]
