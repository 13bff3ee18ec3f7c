"""
Типизированная таксономия ошибок FX pool engine.

Классы ошибок:
- InputError: невалидный ввод, отклоняется до любого чтения состояния
- OracleError: stale/невалидные данные оракула, без автоматических повторов
- InvariantViolation: нарушение инварианта в середине вычисления
  (до любой мутации балансов)
- SlippageViolation: результат исполнения вне slippage envelope,
  вся составная операция откатывается
"""


class FXPoolError(Exception):
    """Базовый класс всех ошибок engine."""


# =============================================================================
# АРИФМЕТИКА
# =============================================================================


class ArithmeticOverflow(FXPoolError, ArithmeticError):
    """Результат не помещается в диапазон 64.64 (или uint256 для mulu)."""


class DivisionByZero(FXPoolError, ZeroDivisionError):
    """Деление на ноль в fixed-point арифметике."""


# =============================================================================
# INPUT ERRORS
# =============================================================================


class InputError(FXPoolError, ValueError):
    """Невалидный ввод вызывающей стороны."""


class ZeroAddress(InputError):
    """Нулевой адрес токена/оракула/отправителя."""


class AmountMustBePositive(InputError):
    """Сумма должна быть строго положительной."""


class TokenMismatch(InputError):
    """Пулы миграции имеют разные base/quote токены."""


class UnknownPool(InputError):
    """pool_id не зарегистрирован в ledger."""


# =============================================================================
# ORACLE ERRORS
# =============================================================================


class OracleError(FXPoolError):
    """Ошибка получения курса из оракула."""


class StalePrice(OracleError):
    """Раунд не инициализирован (started_at == 0)."""


class StaleOraclePrice(OracleError):
    """Данные оракула старше окна staleness."""


class ZeroOrNegativePrice(OracleError):
    """Цена оракула <= 0."""


class OracleRoundIncomplete(OracleError):
    """answered_in_round < round_id: раунд не завершён."""


class RateUnavailable(OracleError):
    """Вызов оракула завершился ошибкой коллаборатора."""


# =============================================================================
# INVARIANT VIOLATIONS
# =============================================================================


class InvariantViolation(FXPoolError):
    """Нарушение инварианта в середине вычисления."""


class PoolNotLiquid(InvariantViolation):
    """Gross liquidity пула равна нулю."""


class BaseBalanceViolation(InvariantViolation):
    """Симулированный base баланс стал бы отрицательным."""


class QuoteBalanceViolation(InvariantViolation):
    """Симулированный quote баланс стал бы отрицательным."""


class ZeroBalanceViolation(InvariantViolation):
    """Нулевой баланс одной из сторон при расчёте LP-ratio курса."""

    def __init__(self, side: str):
        super().__init__(f"{side} balance is zero, LP-ratio rate undefined")
        self.side = side


class InsufficientLedgerBalance(InvariantViolation):
    """На счёте в ledger недостаточно токенов или shares."""


class ContractViolation(InvariantViolation):
    """Сериализованная котировка или план не соответствует JSON Schema."""

    def __init__(self, schema_name: str, errors: list):
        super().__init__(f"{schema_name} contract violated: {'; '.join(errors)}")
        self.schema_name = schema_name
        self.errors = errors


# =============================================================================
# SLIPPAGE VIOLATIONS
# =============================================================================


class SlippageViolation(FXPoolError):
    """Результат исполнения вне slippage envelope вызывающей стороны."""


class ExpectedSharesViolation(SlippageViolation):
    """Выпущено меньше shares, чем min_shares."""


class MaxAmountViolation(SlippageViolation):
    """Требуемый вход превышает потолок вызывающей стороны."""


class MinAmountViolation(SlippageViolation):
    """Полученная сумма ниже минимума вызывающей стороны."""


# =============================================================================
# ПРОЧЕЕ
# =============================================================================


class ReentrancyViolation(FXPoolError):
    """Вложенный вход в операцию до её завершения."""


class AssimilatorAlreadyInitialized(FXPoolError):
    """Assimilator для (token, oracle, template) уже создан."""


class TemplateAlreadyRecorded(FXPoolError):
    """Для пула уже записан assimilator template."""
