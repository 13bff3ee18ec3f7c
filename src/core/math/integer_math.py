"""
Integer Math — целочисленные примитивы pricing path

Все отношения считаются в целых: сначала умножение, потом деление, чтобы
минимизировать ошибку усечения. Направление округления задаётся явно:
вниз — когда сумма уходит из пула, вверх — когда сумма поступает в пул.
"""

from typing import Final

from src.core.errors import AmountMustBePositive, DivisionByZero


# =============================================================================
# МАСШТАБЫ
# =============================================================================

# Масштаб весов пула и share токена (18 decimals)
WAD: Final[int] = 10**18

# Масштаб цены оракула (8 decimals)
RATE_SCALE: Final[int] = 10**8

# Знаменатель basis points
BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# ДЕЛЕНИЕ
# =============================================================================


def floor_div(numerator: int, denominator: int) -> int:
    """floor(numerator / denominator) для неотрицательных операндов."""
    if denominator == 0:
        raise DivisionByZero("floor_div: division by zero")
    return numerator // denominator


def ceil_div(numerator: int, denominator: int) -> int:
    """
    ceil(numerator / denominator) для неотрицательных операндов.

    Examples:
        >>> ceil_div(10, 3)
        4
        >>> ceil_div(9, 3)
        3
    """
    if denominator == 0:
        raise DivisionByZero("ceil_div: division by zero")
    return -(-numerator // denominator)


def mul_div(a: int, b: int, denominator: int, round_up: bool = False) -> int:
    """a * b / denominator с одним округлением в конце."""
    if round_up:
        return ceil_div(a * b, denominator)
    return floor_div(a * b, denominator)


# =============================================================================
# BASIS POINTS
# =============================================================================


def bps_down(amount: int, bps: int) -> int:
    """
    Сужение суммы на bps (floor): amount * (10000 - bps) / 10000.

    Используется для нижних границ (min_shares, min_out).
    """
    validate_bps(bps)
    return floor_div(amount * (BPS_DENOMINATOR - bps), BPS_DENOMINATOR)


def bps_up(amount: int, bps: int) -> int:
    """
    Расширение суммы на bps (ceil): amount * (10000 + bps) / 10000.

    Используется для верхних границ (max_base, max_quote).
    """
    validate_bps(bps)
    return ceil_div(amount * (BPS_DENOMINATOR + bps), BPS_DENOMINATOR)


def bps_of(amount: int, bps: int) -> int:
    """Доля amount в bps (floor): amount * bps / 10000."""
    validate_bps(bps)
    return floor_div(amount * bps, BPS_DENOMINATOR)


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_bps(bps: int) -> None:
    if not 0 <= bps <= BPS_DENOMINATOR:
        raise ValueError(f"bps must be in [0, {BPS_DENOMINATOR}], got {bps}")


def validate_positive(value: int, name: str) -> None:
    """
    Проверка, что сумма строго положительна.

    Raises:
        AmountMustBePositive: Если value <= 0
    """
    if value <= 0:
        raise AmountMustBePositive(f"{name} must be positive, got {value}")


def validate_non_negative(value: int, name: str) -> None:
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
