"""
Assimilator — адаптер raw ↔ numeraire для одного токена пула

Две реализации с общим интерфейсом:
- BaseToUsdAssimilator: курс из оракула (с валидацией staleness)
- UsdToUsdAssimilator: фиксированный курс 1.0 (quote токен сам является
  numeraire)

Assimilator immutable после создания и никогда не хранит балансы: все
операции над балансами принимают PoolBalances, прочитанные из ledger в
момент вызова.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from src.core.config import OracleConfig
from src.core.domain.pool_state import PoolBalances, WeightedPair
from src.core.domain.token import Token
from src.core.errors import OracleError, RateUnavailable
from src.core.math.fixed_point import Fixed64x64
from src.core.math.integer_math import RATE_SCALE
from src.oracle.rate_oracle import Clock, RateOracle, system_clock, validate_round

from .conversions import (
    base_numeraire_balance_lp_ratio,
    base_raw_from_numeraire_lp_ratio,
    numeraire_from_raw,
    raw_from_numeraire,
)

logger = logging.getLogger(__name__)


# =============================================================================
# TEMPLATES
# =============================================================================

BASE_TO_USD_TEMPLATE = "base_to_usd"
USD_TO_USD_TEMPLATE = "usd_to_usd"


# =============================================================================
# INTERFACE
# =============================================================================


@runtime_checkable
class Assimilator(Protocol):
    """Общий интерфейс assimilator."""

    token: Token
    template: str

    @property
    def decimals_multiplier(self) -> int:
        ...

    def get_rate(self) -> int:
        ...

    def own_balance(self, balances: PoolBalances) -> int:
        ...

    def view_raw_amount(self, numeraire: Fixed64x64) -> int:
        ...

    def intake_raw_amount(self, numeraire: Fixed64x64) -> int:
        ...

    def view_numeraire_amount(self, raw: int) -> Fixed64x64:
        ...

    def view_numeraire_balance(self, balances: PoolBalances) -> Fixed64x64:
        ...

    def virtual_view_numeraire_balance_intake(
        self, balances: PoolBalances, raw_in: int
    ) -> Fixed64x64:
        ...

    def virtual_view_numeraire_balance_output(
        self, balances: PoolBalances, raw_out: int
    ) -> Fixed64x64:
        ...

    def view_raw_amount_lp_ratio(
        self, weights: WeightedPair, numeraire: Fixed64x64, balances: PoolBalances
    ) -> int:
        ...

    def intake_raw_amount_lp_ratio(
        self, weights: WeightedPair, numeraire: Fixed64x64, balances: PoolBalances
    ) -> int:
        ...

    def view_numeraire_balance_lp_ratio(
        self, weights: WeightedPair, balances: PoolBalances
    ) -> Fixed64x64:
        ...


# =============================================================================
# BASE → USD (ORACLE)
# =============================================================================


@dataclass(frozen=True)
class BaseToUsdAssimilator:
    """
    Assimilator base токена (например, XSGD) с курсом из оракула.

    Attributes:
        token: Base токен
        quote_token: Quote токен пула (нужен для LP-ratio курса)
        oracle: Price feed base/USD (1e8 scale)
        oracle_config: Параметры валидации раунда
        clock: Источник текущего времени (unix seconds)
    """

    token: Token
    quote_token: Token
    oracle: RateOracle
    oracle_config: OracleConfig = field(default_factory=OracleConfig)
    clock: Clock = system_clock
    template: str = BASE_TO_USD_TEMPLATE

    @property
    def decimals_multiplier(self) -> int:
        return self.token.decimals_multiplier

    def get_rate(self) -> int:
        """
        Курс base/USD из оракула (1e8 scale).

        Raises:
            StalePrice, OracleRoundIncomplete, StaleOraclePrice,
            ZeroOrNegativePrice: Невалидный раунд
            RateUnavailable: Вызов оракула завершился ошибкой
        """
        try:
            round_data = self.oracle.latest_round_data()
        except OracleError:
            raise
        except Exception as exc:
            logger.warning(f"Oracle {self.oracle.address} call failed for {self.token.symbol}: {exc}")
            raise RateUnavailable(
                f"rate for {self.token.symbol} unavailable: {exc}"
            ) from exc

        snapshot = validate_round(round_data, self.clock(), self.oracle_config)
        return snapshot.price

    def own_balance(self, balances: PoolBalances) -> int:
        return balances.base_raw

    def view_raw_amount(self, numeraire: Fixed64x64) -> int:
        return raw_from_numeraire(numeraire, self.decimals_multiplier, self.get_rate())

    def intake_raw_amount(self, numeraire: Fixed64x64) -> int:
        return raw_from_numeraire(
            numeraire, self.decimals_multiplier, self.get_rate(), round_up=True
        )

    def view_numeraire_amount(self, raw: int) -> Fixed64x64:
        return numeraire_from_raw(raw, self.decimals_multiplier, self.get_rate())

    def view_numeraire_balance(self, balances: PoolBalances) -> Fixed64x64:
        return self.view_numeraire_amount(balances.base_raw)

    def virtual_view_numeraire_balance_intake(
        self, balances: PoolBalances, raw_in: int
    ) -> Fixed64x64:
        return self.view_numeraire_amount(balances.base_raw + raw_in)

    def virtual_view_numeraire_balance_output(
        self, balances: PoolBalances, raw_out: int
    ) -> Fixed64x64:
        # Гипотетический баланс не уходит в минус
        return self.view_numeraire_amount(max(balances.base_raw - raw_out, 0))

    def view_raw_amount_lp_ratio(
        self, weights: WeightedPair, numeraire: Fixed64x64, balances: PoolBalances
    ) -> int:
        """
        numeraire → raw base по курсу, выведенному из взвешенных балансов пула.

        Оракул не используется: депозит оценивается по текущему соотношению
        пула, а не по потенциально stale курсу.
        """
        return base_raw_from_numeraire_lp_ratio(
            numeraire, weights, balances, self.quote_token.decimals_multiplier
        )

    def intake_raw_amount_lp_ratio(
        self, weights: WeightedPair, numeraire: Fixed64x64, balances: PoolBalances
    ) -> int:
        return base_raw_from_numeraire_lp_ratio(
            numeraire, weights, balances, self.quote_token.decimals_multiplier, round_up=True
        )

    def view_numeraire_balance_lp_ratio(
        self, weights: WeightedPair, balances: PoolBalances
    ) -> Fixed64x64:
        return base_numeraire_balance_lp_ratio(
            weights, balances, self.quote_token.decimals_multiplier
        )


# =============================================================================
# USD → USD (FIXED RATE)
# =============================================================================


@dataclass(frozen=True)
class UsdToUsdAssimilator:
    """Assimilator quote токена (USD stablecoin): курс всегда 1.0."""

    token: Token
    template: str = USD_TO_USD_TEMPLATE

    @property
    def decimals_multiplier(self) -> int:
        return self.token.decimals_multiplier

    def get_rate(self) -> int:
        return RATE_SCALE

    def own_balance(self, balances: PoolBalances) -> int:
        return balances.quote_raw

    def view_raw_amount(self, numeraire: Fixed64x64) -> int:
        return raw_from_numeraire(numeraire, self.decimals_multiplier, RATE_SCALE)

    def intake_raw_amount(self, numeraire: Fixed64x64) -> int:
        return raw_from_numeraire(numeraire, self.decimals_multiplier, RATE_SCALE, round_up=True)

    def view_numeraire_amount(self, raw: int) -> Fixed64x64:
        return numeraire_from_raw(raw, self.decimals_multiplier, RATE_SCALE)

    def view_numeraire_balance(self, balances: PoolBalances) -> Fixed64x64:
        return self.view_numeraire_amount(balances.quote_raw)

    def virtual_view_numeraire_balance_intake(
        self, balances: PoolBalances, raw_in: int
    ) -> Fixed64x64:
        return self.view_numeraire_amount(balances.quote_raw + raw_in)

    def virtual_view_numeraire_balance_output(
        self, balances: PoolBalances, raw_out: int
    ) -> Fixed64x64:
        return self.view_numeraire_amount(max(balances.quote_raw - raw_out, 0))

    # Quote токен является numeraire: LP-ratio вариант совпадает с обычным
    def view_raw_amount_lp_ratio(
        self, weights: WeightedPair, numeraire: Fixed64x64, balances: PoolBalances
    ) -> int:
        return self.view_raw_amount(numeraire)

    def intake_raw_amount_lp_ratio(
        self, weights: WeightedPair, numeraire: Fixed64x64, balances: PoolBalances
    ) -> int:
        return self.intake_raw_amount(numeraire)

    def view_numeraire_balance_lp_ratio(
        self, weights: WeightedPair, balances: PoolBalances
    ) -> Fixed64x64:
        return self.view_numeraire_balance(balances)
