"""
Conversions — общие формулы raw ↔ numeraire

Обе реализации assimilator (oracle-backed и fixed-rate) используют одни и
те же формулы; различается только источник курса.

Формулы (rate в 1e8 scale):
    raw       = numeraire * decimals_multiplier * 1e8 / rate
    numeraire = raw * rate / 1e8 / decimals_multiplier

LP-ratio курс выводится из взвешенных балансов пула:
    base_norm  = base_raw  * 1e18 / base_weight
    quote_norm = quote_raw * 1e18 / quote_weight
    rate_lp    = quote_norm / base_norm   (quote raw за base raw)

Каждая формула вычисляется одним целочисленным делением в конце
(умножение до деления), чтобы минимизировать ошибку усечения.
"""

from src.core.domain.pool_state import PoolBalances, WeightedPair
from src.core.errors import ZeroBalanceViolation
from src.core.math.fixed_point import FRACTION_BITS, Fixed64x64
from src.core.math.integer_math import RATE_SCALE, WAD, mul_div


def _require_non_negative(numeraire: Fixed64x64) -> None:
    if numeraire.raw < 0:
        raise ValueError(f"numeraire amount must be non-negative, got {numeraire}")


# =============================================================================
# ORACLE RATE
# =============================================================================


def raw_from_numeraire(
    numeraire: Fixed64x64,
    decimals_multiplier: int,
    rate: int,
    round_up: bool = False,
) -> int:
    """
    numeraire → raw по курсу оракула.

    Args:
        numeraire: Сумма в numeraire (>= 0)
        decimals_multiplier: 10**decimals токена
        rate: Курс в 1e8 scale (> 0)
        round_up: True для сумм, поступающих в пул

    Returns:
        Сумма в raw-единицах токена
    """
    _require_non_negative(numeraire)
    return mul_div(
        numeraire.raw,
        decimals_multiplier * RATE_SCALE,
        rate << FRACTION_BITS,
        round_up=round_up,
    )


def numeraire_from_raw(raw: int, decimals_multiplier: int, rate: int) -> Fixed64x64:
    """raw → numeraire по курсу оракула (floor)."""
    if raw < 0:
        raise ValueError(f"raw amount must be non-negative, got {raw}")
    return Fixed64x64.divu(raw * rate, RATE_SCALE * decimals_multiplier)


# =============================================================================
# LP-RATIO RATE
# =============================================================================


def normalized_balances(weights: WeightedPair, balances: PoolBalances) -> tuple[int, int]:
    """Балансы, нормированные на веса: (base_norm, quote_norm)."""
    base_norm = balances.base_raw * WAD // weights.base_weight
    quote_norm = balances.quote_raw * WAD // weights.quote_weight
    return base_norm, quote_norm


def base_raw_from_numeraire_lp_ratio(
    numeraire: Fixed64x64,
    weights: WeightedPair,
    balances: PoolBalances,
    quote_decimals_multiplier: int,
    round_up: bool = False,
) -> int:
    """
    numeraire → raw base по LP-ratio курсу (без оракула).

    raw_base = numeraire * quote_dec * base_norm / quote_norm

    Raises:
        ZeroBalanceViolation: Если base или quote баланс пула нулевой
    """
    _require_non_negative(numeraire)
    base_norm, quote_norm = normalized_balances(weights, balances)
    if base_norm == 0:
        raise ZeroBalanceViolation("base")
    if quote_norm == 0:
        raise ZeroBalanceViolation("quote")
    return mul_div(
        numeraire.raw,
        quote_decimals_multiplier * base_norm,
        quote_norm << FRACTION_BITS,
        round_up=round_up,
    )


def base_numeraire_balance_lp_ratio(
    weights: WeightedPair,
    balances: PoolBalances,
    quote_decimals_multiplier: int,
) -> Fixed64x64:
    """
    Numeraire значение base баланса по LP-ratio курсу.

    value = base_raw * quote_norm / base_norm / quote_dec

    Raises:
        ZeroBalanceViolation: Если base баланс нулевой
    """
    base_norm, quote_norm = normalized_balances(weights, balances)
    if base_norm == 0:
        raise ZeroBalanceViolation("base")
    return Fixed64x64.divu(
        balances.base_raw * quote_norm,
        base_norm * quote_decimals_multiplier,
    )
