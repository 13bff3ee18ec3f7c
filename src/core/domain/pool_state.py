"""
PoolState — Балансы и веса пула

PoolBalances всегда читаются из ledger в момент вызова и никогда не
кэшируются между вызовами. Симулированные балансы (после свопа) строятся
через adjusted() и не могут уйти в минус.
"""

from dataclasses import dataclass
from typing import Sequence

from pydantic import BaseModel, Field, model_validator

from src.core.errors import BaseBalanceViolation, QuoteBalanceViolation
from src.core.math.fixed_point import ZERO, Fixed64x64
from src.core.math.integer_math import WAD

from .token import Token


# =============================================================================
# BALANCES
# =============================================================================


class PoolBalances(BaseModel):
    """Raw балансы пула (в native decimals каждого токена)."""

    base_raw: int = Field(..., ge=0, description="Баланс base токена (raw)")
    quote_raw: int = Field(..., ge=0, description="Баланс quote токена (raw)")

    model_config = {"frozen": True}

    @classmethod
    def from_ledger(
        cls,
        tokens: Sequence[Token],
        balances: Sequence[int],
        base_token: Token,
        quote_token: Token,
    ) -> "PoolBalances":
        """
        Сопоставление канонического порядка ledger с base/quote.

        Args:
            tokens: Токены пула в порядке ledger
            balances: Балансы в том же порядке
            base_token: Base токен пула
            quote_token: Quote токен пула

        Raises:
            ValueError: Если набор токенов ledger не совпадает с base/quote
        """
        by_address = {t.address: b for t, b in zip(tokens, balances)}
        if set(by_address) != {base_token.address, quote_token.address}:
            raise ValueError(
                f"ledger tokens {sorted(by_address)} do not match pool tokens "
                f"{base_token.symbol}/{quote_token.symbol}"
            )
        return cls(
            base_raw=by_address[base_token.address],
            quote_raw=by_address[quote_token.address],
        )

    def adjusted(self, base_delta: int, quote_delta: int) -> "PoolBalances":
        """
        Симулированные балансы после изменения на (base_delta, quote_delta).

        Raises:
            BaseBalanceViolation: Если base стал бы отрицательным
            QuoteBalanceViolation: Если quote стал бы отрицательным
        """
        base = self.base_raw + base_delta
        quote = self.quote_raw + quote_delta
        if base < 0:
            raise BaseBalanceViolation(
                f"simulated base balance {base} < 0 (balance={self.base_raw}, delta={base_delta})"
            )
        if quote < 0:
            raise QuoteBalanceViolation(
                f"simulated quote balance {quote} < 0 (balance={self.quote_raw}, delta={quote_delta})"
            )
        return PoolBalances(base_raw=base, quote_raw=quote)

    def is_empty(self) -> bool:
        return self.base_raw == 0 or self.quote_raw == 0


# =============================================================================
# WEIGHTS
# =============================================================================


class WeightedPair(BaseModel):
    """
    Веса сторон пула (1e18 scale).

    Обычно 0.5/0.5. Сумма весов обязана быть ровно 1e18.
    """

    base_weight: int = Field(default=WAD // 2, gt=0, le=WAD, description="Вес base (1e18)")
    quote_weight: int = Field(default=WAD // 2, gt=0, le=WAD, description="Вес quote (1e18)")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_sum(self) -> "WeightedPair":
        total = self.base_weight + self.quote_weight
        if total != WAD:
            raise ValueError(f"weights must sum to 1e18, got {total}")
        return self

    def base_fraction(self) -> Fixed64x64:
        return Fixed64x64.divu(self.base_weight, WAD)

    def quote_fraction(self) -> Fixed64x64:
        return Fixed64x64.divu(self.quote_weight, WAD)


# =============================================================================
# LIQUIDITY
# =============================================================================


@dataclass(frozen=True)
class GrossLiquidity:
    """Gross liquidity пула и numeraire значение каждой стороны."""

    total: Fixed64x64
    base: Fixed64x64
    quote: Fixed64x64

    def is_zero(self) -> bool:
        return self.total.is_zero()


EMPTY_LIQUIDITY = GrossLiquidity(total=ZERO, base=ZERO, quote=ZERO)
