"""
CurveLiquidityEngine — gross liquidity и математика shares

Чистые функции без побочных эффектов (кроме чтения курса оракула через
assimilator):
- gross_liquidity: numeraire значение обеих сторон пула
- shares_to_mint: пропорциональный выпуск LP shares (floor)
- deposit_amounts_for_shares: raw суммы депозита (ceil, против депозитора)
- withdraw_amounts_for_shares: raw суммы вывода (floor, против выводящего)

Base сторона оценивается по LP-ratio курсу: депозиты не зависят от
потенциально stale или манипулируемого курса оракула.
"""

from typing import Final

from src.assimilators.assimilator import Assimilator
from src.core.domain.plans import DepositPlan, WithdrawPlan
from src.core.domain.pool_state import (
    EMPTY_LIQUIDITY,
    GrossLiquidity,
    PoolBalances,
    WeightedPair,
)
from src.core.errors import InsufficientLedgerBalance, PoolNotLiquid
from src.core.math.fixed_point import ONE_WEI, Fixed64x64
from src.core.math.integer_math import (
    WAD,
    mul_div,
    validate_non_negative,
    validate_positive,
)


# Share токен имеет 18 decimals
SHARE_DECIMALS_MULTIPLIER: Final[int] = WAD


# =============================================================================
# GROSS LIQUIDITY
# =============================================================================


def gross_liquidity(
    base_assimilator: Assimilator,
    quote_assimilator: Assimilator,
    balances: PoolBalances,
    weights: WeightedPair,
) -> GrossLiquidity:
    """
    Gross liquidity пула в numeraire.

    Quote сторона — её decimals-нормированное значение, base сторона — по
    LP-ratio курсу. Если любая сторона пуста или любой компонент не
    положителен, возвращается нулевая liquidity (bootstrap пул).

    Args:
        base_assimilator: Assimilator base токена
        quote_assimilator: Assimilator quote токена
        balances: Балансы пула, прочитанные из ledger в момент вызова
        weights: Веса сторон

    Returns:
        GrossLiquidity(total, base, quote)
    """
    if balances.is_empty():
        return EMPTY_LIQUIDITY

    quote_value = quote_assimilator.view_numeraire_balance(balances)
    base_value = base_assimilator.view_numeraire_balance_lp_ratio(weights, balances)

    if not quote_value.is_positive() or not base_value.is_positive():
        return EMPTY_LIQUIDITY

    return GrossLiquidity(total=base_value + quote_value, base=base_value, quote=quote_value)


# =============================================================================
# SHARES
# =============================================================================


def shares_to_mint(deposit: Fixed64x64, liquidity: Fixed64x64, total_supply: int) -> int:
    """
    Количество LP shares (18 decimals) за депозит.

    - total_supply == 0: shares = deposit (первый депозит задаёт цену 1:1)
    - иначе: shares = floor(deposit / liquidity * total_supply)

    Args:
        deposit: Депозит в numeraire (> 0)
        liquidity: Gross liquidity пула до депозита
        total_supply: Текущий supply shares (18 decimals)

    Raises:
        AmountMustBePositive: Если deposit <= 0
        PoolNotLiquid: Если supply > 0, а liquidity == 0
    """
    validate_positive(deposit.raw, "deposit")
    validate_non_negative(total_supply, "total_supply")

    if total_supply == 0:
        return deposit.mulu(SHARE_DECIMALS_MULTIPLIER)

    if not liquidity.is_positive():
        raise PoolNotLiquid(f"pool has supply {total_supply} but zero gross liquidity")

    # Одно деление в конце: floor, в пользу пула
    return deposit.raw * total_supply // liquidity.raw


def _scaled_side(side: Fixed64x64, deposit: Fixed64x64, total: Fixed64x64) -> Fixed64x64:
    """side * deposit / total, округление вверх."""
    return Fixed64x64(mul_div(side.raw, deposit.raw, total.raw, round_up=True))


def deposit_amounts_for_shares(
    deposit: Fixed64x64,
    liquidity: GrossLiquidity,
    base_assimilator: Assimilator,
    quote_assimilator: Assimilator,
    weights: WeightedPair,
    balances: PoolBalances,
) -> tuple[int, int]:
    """
    Raw суммы (base, quote), которые депозитор вносит за deposit numeraire.

    Bootstrap (liquidity == 0): депозит делится по весам и конвертируется по
    курсу оракула. Иначе каждая сторона масштабируется на
    deposit / liquidity.total, к ней добавляется ONE_WEI, и сумма
    конвертируется по LP-ratio курсу. Все конверсии округляются вверх:
    пул никогда не получает меньше расчётного минимума.

    Returns:
        (base_raw, quote_raw)
    """
    validate_positive(deposit.raw, "deposit")

    if liquidity.is_zero():
        base_numeraire = deposit.mul(weights.base_fraction())
        quote_numeraire = deposit.mul(weights.quote_fraction())
        return (
            base_assimilator.intake_raw_amount(base_numeraire),
            quote_assimilator.intake_raw_amount(quote_numeraire),
        )

    base_numeraire = _scaled_side(liquidity.base, deposit, liquidity.total).add(ONE_WEI)
    quote_numeraire = _scaled_side(liquidity.quote, deposit, liquidity.total).add(ONE_WEI)

    return (
        base_assimilator.intake_raw_amount_lp_ratio(weights, base_numeraire, balances),
        quote_assimilator.intake_raw_amount_lp_ratio(weights, quote_numeraire, balances),
    )


def withdraw_amounts_for_shares(
    shares: int,
    total_supply: int,
    balances: PoolBalances,
) -> tuple[int, int]:
    """
    Raw суммы (base, quote) за сжигаемые shares: floor пропорциональной доли.

    Raises:
        AmountMustBePositive: Если shares <= 0
        InsufficientLedgerBalance: Если shares > total_supply
    """
    validate_positive(shares, "shares")
    if shares > total_supply:
        raise InsufficientLedgerBalance(f"shares {shares} exceed total supply {total_supply}")

    return (
        balances.base_raw * shares // total_supply,
        balances.quote_raw * shares // total_supply,
    )


# =============================================================================
# VIEWS
# =============================================================================


def view_deposit(
    deposit: Fixed64x64,
    base_assimilator: Assimilator,
    quote_assimilator: Assimilator,
    weights: WeightedPair,
    balances: PoolBalances,
    total_supply: int,
) -> DepositPlan:
    """
    План депозита против заданных балансов.

    Raises:
        PoolNotLiquid: Если supply > 0, а gross liquidity == 0
    """
    liquidity = gross_liquidity(base_assimilator, quote_assimilator, balances, weights)
    shares = shares_to_mint(deposit, liquidity.total, total_supply)
    base_amount, quote_amount = deposit_amounts_for_shares(
        deposit, liquidity, base_assimilator, quote_assimilator, weights, balances
    )
    return DepositPlan(
        deposit_numeraire=deposit,
        expected_shares=shares,
        base_token_amount=base_amount,
        quote_token_amount=quote_amount,
    )


def view_withdraw(shares: int, total_supply: int, balances: PoolBalances) -> WithdrawPlan:
    base_amount, quote_amount = withdraw_amounts_for_shares(shares, total_supply, balances)
    return WithdrawPlan(
        shares=shares,
        base_token_amount=base_amount,
        quote_token_amount=quote_amount,
    )
