"""
Тесты для CurveLiquidityEngine (gross liquidity и математика shares)

Проверяет:
1. Сценарий 1_000_000 / 1_000_000_000 (6 decimals) → gross liquidity 2000
2. Bootstrap: D numeraire → D shares (18 decimals)
3. Пропорциональный выпуск floor(D / L * S)
4. Rounding bias: внесённые суммы оцениваются не ниже D
5. Вывод: floor пропорциональной доли
"""

import pytest

from src.assimilators.assimilator import BaseToUsdAssimilator, UsdToUsdAssimilator
from src.assimilators.conversions import normalized_balances
from src.core.domain.plans import WithdrawPlan
from src.core.domain.pool_state import EMPTY_LIQUIDITY, PoolBalances, WeightedPair
from src.core.errors import AmountMustBePositive, InsufficientLedgerBalance, PoolNotLiquid
from src.core.math.fixed_point import ONE_WEI, Fixed64x64
from src.curve.liquidity import (
    deposit_amounts_for_shares,
    gross_liquidity,
    shares_to_mint,
    view_deposit,
    view_withdraw,
    withdraw_amounts_for_shares,
)

from .conftest import USDC, XSGD, fixed_clock


WEIGHTS = WeightedPair()


@pytest.fixture
def base(oracle):
    return BaseToUsdAssimilator(token=XSGD, quote_token=USDC, oracle=oracle, clock=fixed_clock)


@pytest.fixture
def quote():
    return UsdToUsdAssimilator(token=USDC)


def lp_value(a_base: int, a_quote: int, balances: PoolBalances) -> Fixed64x64:
    """Numeraire оценка сумм (a_base, a_quote) по LP-ratio курсу балансов."""
    base_norm, quote_norm = normalized_balances(WEIGHTS, balances)
    base_value = Fixed64x64.divu(a_base * quote_norm, base_norm * USDC.decimals_multiplier)
    quote_value = Fixed64x64.divu(a_quote, USDC.decimals_multiplier)
    return base_value + quote_value


# =============================================================================
# GROSS LIQUIDITY
# =============================================================================


class TestGrossLiquidity:
    """Тесты gross_liquidity"""

    def test_scenario_pool(self, base, quote) -> None:
        """base=1_000_000, quote=1_000_000_000, курс 1.00, веса 0.5/0.5 → 2000"""
        balances = PoolBalances(base_raw=1_000_000, quote_raw=1_000_000_000)
        liquidity = gross_liquidity(base, quote, balances, WEIGHTS)

        assert liquidity.total == Fixed64x64.from_int(2_000)
        assert liquidity.base == Fixed64x64.from_int(1_000)
        assert liquidity.quote / liquidity.total == Fixed64x64.divu(1, 2)

    def test_empty_side_is_zero_liquidity(self, base, quote) -> None:
        balances = PoolBalances(base_raw=0, quote_raw=10**9)
        assert gross_liquidity(base, quote, balances, WEIGHTS) == EMPTY_LIQUIDITY

    def test_base_side_independent_of_oracle(self, base, quote, oracle) -> None:
        balances = PoolBalances(base_raw=10**9, quote_raw=10**9)
        before = gross_liquidity(base, quote, balances, WEIGHTS)
        oracle.set_price(300_000_000)
        assert gross_liquidity(base, quote, balances, WEIGHTS) == before


# =============================================================================
# SHARES
# =============================================================================


class TestSharesToMint:
    """Тесты shares_to_mint"""

    def test_bootstrap_share_price(self) -> None:
        """Депозит 200 в пул с нулевым supply → 200e18 shares"""
        shares = shares_to_mint(Fixed64x64.from_int(200), Fixed64x64.from_int(2_000), 0)
        assert shares == 200 * 10**18

    def test_proportional_minting(self) -> None:
        liquidity = Fixed64x64.from_int(2_000)
        assert shares_to_mint(Fixed64x64.from_int(100), liquidity, 2_000 * 10**18) == 100 * 10**18

    @pytest.mark.parametrize("deposit_num,deposit_den", [(1, 3), (7, 1), (123_456, 1_000)])
    def test_minting_never_exceeds_exact_share(self, deposit_num, deposit_den) -> None:
        """shares ≤ D / L * S (floor)"""
        deposit = Fixed64x64.divu(deposit_num, deposit_den)
        liquidity = Fixed64x64.divu(3_000_001, 1_000)
        supply = 2_999_999 * 10**15 + 1

        shares = shares_to_mint(deposit, liquidity, supply)
        assert shares == deposit.raw * supply // liquidity.raw
        assert shares * liquidity.raw <= deposit.raw * supply

    def test_supply_without_liquidity(self) -> None:
        with pytest.raises(PoolNotLiquid):
            shares_to_mint(Fixed64x64.from_int(1), Fixed64x64(0), 10**18)

    def test_non_positive_deposit(self) -> None:
        with pytest.raises(AmountMustBePositive):
            shares_to_mint(Fixed64x64(0), Fixed64x64.from_int(1), 0)


# =============================================================================
# DEPOSIT AMOUNTS
# =============================================================================


class TestDepositAmounts:
    """Тесты deposit_amounts_for_shares"""

    def test_bootstrap_split_by_weights(self, base, quote) -> None:
        """Bootstrap 200 → 100 base / 100 quote (по курсу оракула)"""
        balances = PoolBalances(base_raw=0, quote_raw=0)
        amounts = deposit_amounts_for_shares(
            Fixed64x64.from_int(200), EMPTY_LIQUIDITY, base, quote, WEIGHTS, balances
        )
        assert amounts == (100 * 10**6, 100 * 10**6)

    def test_existing_pool_adds_one_wei(self, base, quote) -> None:
        """Каждая сторона: ceil(side * D / L) + ONE_WEI, конверсия вверх"""
        balances = PoolBalances(base_raw=1_000 * 10**6, quote_raw=1_000 * 10**6)
        liquidity = gross_liquidity(base, quote, balances, WEIGHTS)
        amounts = deposit_amounts_for_shares(
            Fixed64x64.from_int(100), liquidity, base, quote, WEIGHTS, balances
        )
        assert amounts == (50_000_001, 50_000_001)

    @pytest.mark.parametrize(
        "base_raw,quote_raw",
        [(1_000 * 10**6, 1_000 * 10**6), (1_234_567_891, 987_654_321), (3, 10**12)],
    )
    @pytest.mark.parametrize("deposit", [Fixed64x64.divu(1, 7), Fixed64x64.from_int(100), ONE_WEI])
    def test_rounding_bias(self, base, quote, base_raw, quote_raw, deposit) -> None:
        """Внесённые суммы, оценённые заново, покрывают исходный депозит"""
        balances = PoolBalances(base_raw=base_raw, quote_raw=quote_raw)
        liquidity = gross_liquidity(base, quote, balances, WEIGHTS)
        a_base, a_quote = deposit_amounts_for_shares(
            deposit, liquidity, base, quote, WEIGHTS, balances
        )
        assert lp_value(a_base, a_quote, balances) >= deposit

    def test_view_deposit_plan(self, base, quote) -> None:
        balances = PoolBalances(base_raw=1_000 * 10**6, quote_raw=1_000 * 10**6)
        plan = view_deposit(Fixed64x64.from_int(100), base, quote, WEIGHTS, balances, 2_000 * 10**18)

        assert plan.expected_shares == 100 * 10**18
        assert plan.base_token_amount == 50_000_001
        assert plan.quote_token_amount == 50_000_001
        assert plan.deposit_numeraire == Fixed64x64.from_int(100)


# =============================================================================
# WITHDRAW
# =============================================================================


class TestWithdrawAmounts:
    """Тесты withdraw_amounts_for_shares"""

    def test_withdraw_floors(self) -> None:
        balances = PoolBalances(base_raw=1_000_000_001, quote_raw=10)
        assert withdraw_amounts_for_shares(3, 7, balances) == (428_571_429, 4)

    def test_full_withdraw(self) -> None:
        balances = PoolBalances(base_raw=123, quote_raw=456)
        assert withdraw_amounts_for_shares(10, 10, balances) == (123, 456)

    def test_shares_above_supply(self) -> None:
        with pytest.raises(InsufficientLedgerBalance):
            withdraw_amounts_for_shares(11, 10, PoolBalances(base_raw=1, quote_raw=1))

    def test_view_withdraw_plan(self) -> None:
        balances = PoolBalances(base_raw=1_000 * 10**6, quote_raw=1_000 * 10**6)
        plan = view_withdraw(500 * 10**18, 2_000 * 10**18, balances)
        assert plan == WithdrawPlan(
            shares=500 * 10**18,
            base_token_amount=250 * 10**6,
            quote_token_amount=250 * 10**6,
        )
