"""Oracle — интерфейс внешнего price feed и валидация staleness."""

from .rate_oracle import (
    Clock,
    InMemoryRateOracle,
    RateOracle,
    system_clock,
    validate_round,
)

__all__ = [
    "Clock",
    "InMemoryRateOracle",
    "RateOracle",
    "system_clock",
    "validate_round",
]
