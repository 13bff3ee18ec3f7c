"""Rate Oracle — интерфейс price feed и валидация раундов.

Оракул — внешний read-only коллаборатор. Engine не повторяет вызовы
автоматически: при stale/невалидных данных вся операция отклоняется, и
вызывающая сторона повторяет её позже.
"""

import logging
import time
from typing import Callable, Optional, Protocol, runtime_checkable

from src.core.config import OracleConfig
from src.core.domain.rate import RateSnapshot, RoundData
from src.core.errors import (
    OracleRoundIncomplete,
    StaleOraclePrice,
    StalePrice,
    ZeroOrNegativePrice,
)
from src.core.math.integer_math import RATE_SCALE

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def system_clock() -> int:
    """Текущее время (unix seconds)."""
    return int(time.time())


@runtime_checkable
class RateOracle(Protocol):
    """Price feed: цена — знаковое целое в 1e8 scale."""

    @property
    def address(self) -> str:
        ...

    def latest_round_data(self) -> RoundData:
        ...

    def latest_answer(self) -> int:
        ...


def validate_round(round_data: RoundData, now: int, config: OracleConfig) -> RateSnapshot:
    """Валидация раунда оракула.

    Порядок проверок:
    1. started_at == 0 → StalePrice (раунд не инициализирован)
    2. answered_in_round < round_id → OracleRoundIncomplete
    3. now > started_at + staleness_window → StaleOraclePrice
    4. price <= 0 → ZeroOrNegativePrice

    Args:
        round_data: ответ latest_round_data()
        now: текущее время (unix seconds)
        config: конфигурация оракула

    Returns:
        RateSnapshot, пригодный для pricing
    """
    if round_data.started_at == 0:
        raise StalePrice(f"round {round_data.round_id} has started_at == 0")

    if config.require_complete_round and round_data.answered_in_round < round_data.round_id:
        raise OracleRoundIncomplete(
            f"answered_in_round {round_data.answered_in_round} < round_id {round_data.round_id}"
        )

    if now > round_data.started_at + config.staleness_window_sec:
        age = now - round_data.started_at
        raise StaleOraclePrice(
            f"oracle data age {age}s exceeds window {config.staleness_window_sec}s"
        )

    if round_data.answer <= 0:
        raise ZeroOrNegativePrice(f"oracle price {round_data.answer} <= 0")

    return RateSnapshot(
        price=round_data.answer,
        started_at=round_data.started_at,
        answered_in_round=round_data.answered_in_round,
    )


class InMemoryRateOracle:
    """In-memory price feed для симуляций и тестов.

    Каждый set_price открывает новый завершённый раунд.
    """

    decimals = 8

    def __init__(
        self,
        address: str,
        price: int = RATE_SCALE,
        clock: Clock = system_clock,
        started_at: Optional[int] = None,
    ):
        self._address = address.lower()
        self._clock = clock
        self._round_id = 1
        self._price = price
        self._started_at = clock() if started_at is None else started_at
        self._answered_in_round = 1

    @property
    def address(self) -> str:
        return self._address

    def set_price(self, price: int, started_at: Optional[int] = None) -> None:
        self._round_id += 1
        self._answered_in_round = self._round_id
        self._price = price
        self._started_at = self._clock() if started_at is None else started_at
        logger.debug(f"Oracle {self._address} round {self._round_id}: price={price}")

    def set_round(
        self,
        round_id: int,
        price: int,
        started_at: int,
        answered_in_round: int,
    ) -> None:
        """Прямая установка раунда (в т.ч. невалидного)."""
        self._round_id = round_id
        self._price = price
        self._started_at = started_at
        self._answered_in_round = answered_in_round

    def latest_round_data(self) -> RoundData:
        return RoundData(
            round_id=self._round_id,
            answer=self._price,
            started_at=self._started_at,
            updated_at=self._started_at,
            answered_in_round=self._answered_in_round,
        )

    def latest_answer(self) -> int:
        return self._price
