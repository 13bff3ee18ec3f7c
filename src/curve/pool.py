"""
FXPool — двухсторонний FX пул (base/quote)

Пул не владеет состоянием: балансы токенов и supply shares хранятся во
внешнем ledger и передаются в каждый hook в момент вызова. Пул отвечает
только за pricing:
- on_join: план депозита (shares и raw суммы)
- on_exit: план вывода
- quote_swap: выход свопа по курсу оракула с комиссией epsilon
"""

from dataclasses import dataclass, field
from typing import Final

from src.assimilators.assimilator import Assimilator
from src.core.domain.plans import DepositPlan, WithdrawPlan
from src.core.domain.pool_state import GrossLiquidity, PoolBalances, WeightedPair
from src.core.domain.token import Token
from src.core.errors import (
    BaseBalanceViolation,
    InputError,
    QuoteBalanceViolation,
    TokenMismatch,
)
from src.core.math.fixed_point import Fixed64x64
from src.core.math.integer_math import WAD, validate_positive

from .liquidity import gross_liquidity, view_deposit, view_withdraw


# Комиссия свопа по умолчанию: 0.05% (1e18 scale)
DEFAULT_EPSILON: Final[int] = 5 * 10**14


@dataclass(frozen=True)
class FXPool:
    """
    Конфигурация и pricing FX пула.

    Attributes:
        pool_id: Идентификатор пула в ledger
        base_assimilator: Assimilator base токена
        quote_assimilator: Assimilator quote токена
        weights: Веса сторон (1e18 scale)
        epsilon: Комиссия свопа (1e18 scale), остаётся в пуле
    """

    pool_id: str
    base_assimilator: Assimilator
    quote_assimilator: Assimilator
    weights: WeightedPair = field(default_factory=WeightedPair)
    epsilon: int = DEFAULT_EPSILON

    def __post_init__(self) -> None:
        if not self.pool_id:
            raise InputError("pool_id must be non-empty")
        if not 0 <= self.epsilon < WAD:
            raise InputError(f"epsilon must be in [0, 1e18), got {self.epsilon}")
        if self.base_token.address == self.quote_token.address:
            raise InputError("base and quote tokens must differ")

    @property
    def base_token(self) -> Token:
        return self.base_assimilator.token

    @property
    def quote_token(self) -> Token:
        return self.quote_assimilator.token

    @property
    def tokens(self) -> list[Token]:
        """Токены в каноническом порядке ledger (по возрастанию адреса)."""
        return sorted([self.base_token, self.quote_token], key=lambda t: t.sort_key())

    def token_index(self, token: Token) -> int:
        """Индекс токена в каноническом порядке ledger."""
        for index, candidate in enumerate(self.tokens):
            if candidate.address == token.address:
                return index
        raise TokenMismatch(f"token {token.symbol} does not belong to pool {self.pool_id}")

    def assimilator_for(self, token: Token) -> Assimilator:
        if token.address == self.base_token.address:
            return self.base_assimilator
        if token.address == self.quote_token.address:
            return self.quote_assimilator
        raise TokenMismatch(f"token {token.symbol} does not belong to pool {self.pool_id}")

    def same_tokens(self, other: "FXPool") -> bool:
        return (
            self.base_token.address == other.base_token.address
            and self.quote_token.address == other.quote_token.address
        )

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def liquidity(self, balances: PoolBalances) -> GrossLiquidity:
        return gross_liquidity(
            self.base_assimilator, self.quote_assimilator, balances, self.weights
        )

    def on_join(
        self, deposit: Fixed64x64, balances: PoolBalances, total_supply: int
    ) -> DepositPlan:
        return view_deposit(
            deposit,
            self.base_assimilator,
            self.quote_assimilator,
            self.weights,
            balances,
            total_supply,
        )

    def on_exit(self, shares: int, balances: PoolBalances, total_supply: int) -> WithdrawPlan:
        return view_withdraw(shares, total_supply, balances)

    def quote_swap(self, token_in: Token, amount_in: int, balances: PoolBalances) -> int:
        """
        Выход свопа exact-in по курсу оракула за вычетом epsilon.

        Raises:
            AmountMustBePositive: Если amount_in <= 0
            TokenMismatch: Если token_in не принадлежит пулу
            BaseBalanceViolation / QuoteBalanceViolation: Если в пуле
                недостаточно выходного токена
        """
        validate_positive(amount_in, "amount_in")
        assimilator_in = self.assimilator_for(token_in)
        is_base_in = assimilator_in is self.base_assimilator
        assimilator_out = self.quote_assimilator if is_base_in else self.base_assimilator

        numeraire_in = assimilator_in.view_numeraire_amount(amount_in)
        numeraire_out = Fixed64x64(numeraire_in.raw * (WAD - self.epsilon) // WAD)
        amount_out = assimilator_out.view_raw_amount(numeraire_out)

        if is_base_in and amount_out > balances.quote_raw:
            raise QuoteBalanceViolation(
                f"swap output {amount_out} exceeds quote balance {balances.quote_raw}"
            )
        if not is_base_in and amount_out > balances.base_raw:
            raise BaseBalanceViolation(
                f"swap output {amount_out} exceeds base balance {balances.base_raw}"
            )
        return amount_out
