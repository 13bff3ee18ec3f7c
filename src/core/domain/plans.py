"""
Plans — Эфемерные планы и котировки операций

Все планы строятся заново на каждый вызов и никогда не переиспользуются
между вызовами: балансы пула могут измениться между quote и execute.
Котировки сериализуются в JSON контракты через to_contract().
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.core.math.fixed_point import Fixed64x64

from .token import Token


# =============================================================================
# ENUMS
# =============================================================================


class RebalanceState(str, Enum):
    """Состояния ребалансировки перед депозитом."""

    BALANCED = "BALANCED"
    NEEDS_QUOTE_IN = "NEEDS_QUOTE_IN"
    NEEDS_BASE_IN = "NEEDS_BASE_IN"
    SWAPPED = "SWAPPED"
    LIQUIDITY_PRICED = "LIQUIDITY_PRICED"
    EXECUTED = "EXECUTED"


# =============================================================================
# DEPOSIT / WITHDRAW
# =============================================================================


class DepositPlan(BaseModel):
    """
    План депозита: ожидаемые shares и требуемые raw суммы.

    При исполнении фактически выпущенные shares сверяются с expected_shares
    (через min_shares вызывающей стороны).
    """

    deposit_numeraire: Fixed64x64 = Field(..., description="Депозит в numeraire")
    expected_shares: int = Field(..., ge=0, description="Ожидаемые shares (1e18)")
    base_token_amount: int = Field(..., ge=0, description="Требуемый base (raw)")
    quote_token_amount: int = Field(..., ge=0, description="Требуемый quote (raw)")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    def to_contract(self) -> Dict[str, Any]:
        return {
            "deposit_numeraire_raw": str(self.deposit_numeraire.raw),
            "expected_shares": str(self.expected_shares),
            "base_token_amount": str(self.base_token_amount),
            "quote_token_amount": str(self.quote_token_amount),
        }


class WithdrawPlan(BaseModel):
    """План вывода: сжигаемые shares и получаемые raw суммы."""

    shares: int = Field(..., ge=0, description="Сжигаемые shares (1e18)")
    base_token_amount: int = Field(..., ge=0, description="Получаемый base (raw)")
    quote_token_amount: int = Field(..., ge=0, description="Получаемый quote (raw)")

    model_config = {"frozen": True}


# =============================================================================
# REBALANCE
# =============================================================================


class RebalancePlan(BaseModel):
    """
    План свопа перед депозитом.

    BALANCED ⇒ swap_amount_in_raw == 0 и target_asset_in is None.
    """

    state: RebalanceState
    target_asset_in: Optional[Token] = None
    asset_in_index: Optional[int] = Field(default=None, ge=0, le=1)
    swap_amount_in_raw: int = Field(default=0, ge=0)
    swap_amount_out_raw: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def needs_swap(self) -> bool:
        return self.swap_amount_in_raw > 0


class RebalancedDepositQuote(BaseModel):
    """Котировка swap-then-deposit со slippage envelope."""

    min_shares: int = Field(..., ge=0)
    max_base: int = Field(..., ge=0)
    max_quote: int = Field(..., ge=0)
    swap_asset: Optional[Token] = None
    swap_amount_raw: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def to_contract(self) -> Dict[str, Any]:
        return {
            "min_shares": str(self.min_shares),
            "max_base": str(self.max_base),
            "max_quote": str(self.max_quote),
            "swap_asset": self.swap_asset.address if self.swap_asset else None,
            "swap_amount_raw": str(self.swap_amount_raw),
        }


class RebalancedDepositResult(BaseModel):
    """
    Результат исполнения swap-then-deposit.

    base_spent / quote_spent — чистый расход вызывающей стороны по токену:
    вход свопа плюс сумма депозита минус выход свопа. Отрицательное
    значение означает, что сторона получила больше, чем внесла.
    """

    state: RebalanceState = RebalanceState.EXECUTED
    shares_minted: int = Field(..., ge=0)
    base_spent: int
    quote_spent: int
    swap_amount_in_raw: int = Field(default=0, ge=0)
    swap_amount_out_raw: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


# =============================================================================
# MIGRATION
# =============================================================================


class MigrationQuote(BaseModel):
    """
    Котировка миграции позиции.

    base_delta/quote_delta — остаток (dust), возвращаемый вызывающей стороне.
    """

    min_shares: int = Field(..., ge=0)
    base_delta: int = Field(..., ge=0)
    quote_delta: int = Field(..., ge=0)

    model_config = {"frozen": True}

    def to_contract(self) -> Dict[str, Any]:
        return {
            "min_shares": str(self.min_shares),
            "base_delta": str(self.base_delta),
            "quote_delta": str(self.quote_delta),
        }


class MigrationResult(BaseModel):
    """Результат исполнения миграции."""

    shares_burned: int = Field(..., ge=0)
    shares_minted: int = Field(..., ge=0)
    base_returned: int = Field(..., ge=0)
    quote_returned: int = Field(..., ge=0)

    model_config = {"frozen": True}
