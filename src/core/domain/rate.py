"""
Rate — Данные раунда оракула

RoundData повторяет кортеж latestRoundData() price feed. RateSnapshot —
провалидированный снапшот, пригодный для pricing.
"""

from typing import NamedTuple

from pydantic import BaseModel, Field


class RoundData(NamedTuple):
    """Ответ latest_round_data() оракула (цена в 1e8 scale)."""

    round_id: int
    answer: int
    started_at: int
    updated_at: int
    answered_in_round: int


class RateSnapshot(BaseModel):
    """
    Провалидированный снапшот курса.

    Инвариант: price > 0 и started_at != 0.
    """

    price: int = Field(..., gt=0, description="Курс в 1e8 scale")
    started_at: int = Field(..., gt=0, description="Начало раунда (unix seconds)")
    answered_in_round: int = Field(..., ge=0, description="Раунд, в котором получен ответ")

    model_config = {"frozen": True}
