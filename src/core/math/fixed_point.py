"""
Fixed64x64 — знаковое число с фиксированной точкой 64.64

Numeraire (USD) во всём pricing path хранится как 128-битное знаковое
число, младшие 64 бита — дробная часть. Float не используется нигде.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Целая часть всегда в диапазоне signed int64, иначе ArithmeticOverflow
2. Деление на ноль → DivisionByZero (никогда не возвращается fallback)
3. Все операции детерминированы: округление задано явно для каждой операции
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Final

from src.core.errors import ArithmeticOverflow, DivisionByZero


# =============================================================================
# ГРАНИЦЫ ДИАПАЗОНА
# =============================================================================

FRACTION_BITS: Final[int] = 64

MIN_64X64: Final[int] = -(1 << 127)
MAX_64X64: Final[int] = (1 << 127) - 1

MIN_INT64: Final[int] = -(1 << 63)
MAX_INT64: Final[int] = (1 << 63) - 1

MAX_UINT256: Final[int] = (1 << 256) - 1


def _trunc_div(numerator: int, denominator: int) -> int:
    """Целочисленное деление с усечением к нулю."""
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def _checked(raw: int, operation: str) -> "Fixed64x64":
    if raw < MIN_64X64 or raw > MAX_64X64:
        raise ArithmeticOverflow(f"{operation}: result {raw} outside 64.64 range")
    return Fixed64x64(raw)


@dataclass(frozen=True, order=True)
class Fixed64x64:
    """
    Значение numeraire в формате 64.64.

    Конструктор принимает уже масштабированное значение (raw). Для создания
    из целых используйте from_int / divu.

    Examples:
        >>> Fixed64x64.from_int(3).to_int()
        3
        >>> Fixed64x64.divu(1, 2) == HALF
        True
    """

    raw: int

    def __post_init__(self) -> None:
        if not isinstance(self.raw, int) or isinstance(self.raw, bool):
            raise TypeError(f"raw must be int, got {type(self.raw).__name__}")
        if self.raw < MIN_64X64 or self.raw > MAX_64X64:
            raise ArithmeticOverflow(f"raw value {self.raw} outside 64.64 range")

    # -------------------------------------------------------------------------
    # Конверсии
    # -------------------------------------------------------------------------

    @classmethod
    def from_int(cls, value: int) -> "Fixed64x64":
        """Целое → 64.64. Целое вне int64 → ArithmeticOverflow."""
        if value < MIN_INT64 or value > MAX_INT64:
            raise ArithmeticOverflow(f"from_int: {value} outside int64 range")
        return cls(value << FRACTION_BITS)

    def to_int(self) -> int:
        """64.64 → целое с усечением к нулю."""
        return _trunc_div(self.raw, 1 << FRACTION_BITS)

    @classmethod
    def divu(cls, numerator: int, denominator: int) -> "Fixed64x64":
        """
        Деление двух беззнаковых целых с результатом в 64.64.

        Args:
            numerator: Делимое (>= 0)
            denominator: Делитель (> 0)

        Returns:
            floor(numerator / denominator) в формате 64.64

        Raises:
            DivisionByZero: Если denominator == 0
            ArithmeticOverflow: Если результат не помещается в 64.64
        """
        if denominator == 0:
            raise DivisionByZero("divu: division by zero")
        if numerator < 0 or denominator < 0:
            raise ValueError(f"divu expects unsigned operands, got {numerator}, {denominator}")
        return _checked((numerator << FRACTION_BITS) // denominator, "divu")

    def mulu(self, multiplier: int) -> int:
        """
        Умножение 64.64 на беззнаковое целое с результатом-целым (floor).

        Используется для перевода numeraire в raw-единицы токена:
        numeraire.mulu(10**decimals).

        Raises:
            ValueError: Если self < 0 или multiplier < 0
            ArithmeticOverflow: Если результат превышает uint256
        """
        if multiplier < 0:
            raise ValueError(f"mulu expects unsigned multiplier, got {multiplier}")
        if multiplier == 0:
            return 0
        if self.raw < 0:
            raise ValueError(f"mulu expects non-negative value, got {self}")
        result = (self.raw * multiplier) >> FRACTION_BITS
        if result > MAX_UINT256:
            raise ArithmeticOverflow("mulu: result exceeds uint256")
        return result

    def to_decimal(self) -> Decimal:
        """Точное десятичное представление (только для отображения)."""
        return Decimal(self.raw) / Decimal(1 << FRACTION_BITS)

    # -------------------------------------------------------------------------
    # Арифметика
    # -------------------------------------------------------------------------

    def add(self, other: "Fixed64x64") -> "Fixed64x64":
        return _checked(self.raw + other.raw, "add")

    def sub(self, other: "Fixed64x64") -> "Fixed64x64":
        return _checked(self.raw - other.raw, "sub")

    def mul(self, other: "Fixed64x64") -> "Fixed64x64":
        # Арифметический сдвиг: округление к -inf
        return _checked((self.raw * other.raw) >> FRACTION_BITS, "mul")

    def div(self, other: "Fixed64x64") -> "Fixed64x64":
        if other.raw == 0:
            raise DivisionByZero("div: division by zero")
        return _checked(_trunc_div(self.raw << FRACTION_BITS, other.raw), "div")

    def inv(self) -> "Fixed64x64":
        """Обратное значение 1/x (усечение к нулю)."""
        if self.raw == 0:
            raise DivisionByZero("inv: reciprocal of zero")
        return _checked(_trunc_div(1 << (2 * FRACTION_BITS), self.raw), "inv")

    def neg(self) -> "Fixed64x64":
        return _checked(-self.raw, "neg")

    def abs(self) -> "Fixed64x64":
        return _checked(abs(self.raw), "abs")

    def is_positive(self) -> bool:
        return self.raw > 0

    def is_zero(self) -> bool:
        return self.raw == 0

    # Операторы делегируют проверенным методам
    def __add__(self, other: "Fixed64x64") -> "Fixed64x64":
        return self.add(other)

    def __sub__(self, other: "Fixed64x64") -> "Fixed64x64":
        return self.sub(other)

    def __mul__(self, other: "Fixed64x64") -> "Fixed64x64":
        return self.mul(other)

    def __truediv__(self, other: "Fixed64x64") -> "Fixed64x64":
        return self.div(other)

    def __neg__(self) -> "Fixed64x64":
        return self.neg()

    def __abs__(self) -> "Fixed64x64":
        return self.abs()

    def __repr__(self) -> str:
        return f"Fixed64x64({self.to_decimal():.18f})"


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

ZERO: Final[Fixed64x64] = Fixed64x64(0)
ONE: Final[Fixed64x64] = Fixed64x64(1 << FRACTION_BITS)
HALF: Final[Fixed64x64] = Fixed64x64(1 << (FRACTION_BITS - 1))

# ~1e-18 numeraire: добавляется к доле депозита для смещения округления
ONE_WEI: Final[Fixed64x64] = Fixed64x64(0x12)


def min_fixed(a: Fixed64x64, b: Fixed64x64) -> Fixed64x64:
    return a if a <= b else b
