"""
Конфигурация FX pool engine.

Параметры сгруппированы в frozen dataclasses по компонентам. Значения по
умолчанию можно переопределить переменными окружения FXPOOL_* через
EngineConfig.from_env().
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Final, Optional

from src.core.math.integer_math import BPS_DENOMINATOR, WAD


# =============================================================================
# DEFAULTS
# =============================================================================

# 24h + 15min: окно, после которого данные оракула считаются stale
DEFAULT_STALENESS_WINDOW_SEC: Final[int] = 24 * 60 * 60 + 15 * 60

# Dead-band доли quote стороны и целевая доля (1e18 scale)
DEFAULT_LOWER_BAND: Final[int] = 48 * 10**16
DEFAULT_UPPER_BAND: Final[int] = 52 * 10**16
DEFAULT_TARGET_RATIO: Final[int] = 50 * 10**16

# Буфер миграции: депозит деградирует до 99% от оценки выхода
DEFAULT_MIGRATION_BUFFER_BPS: Final[int] = 9_900

LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# =============================================================================
# COMPONENT CONFIGS
# =============================================================================


@dataclass(frozen=True)
class OracleConfig:
    """Конфигурация валидации данных оракула."""

    staleness_window_sec: int = DEFAULT_STALENESS_WINDOW_SEC
    require_complete_round: bool = True

    def __post_init__(self) -> None:
        if self.staleness_window_sec <= 0:
            raise ValueError(
                f"staleness_window_sec must be positive, got {self.staleness_window_sec}"
            )


@dataclass(frozen=True)
class RebalanceConfig:
    """
    Конфигурация dead-band ребалансировки.

    Доля quote стороны в [lower_band, upper_band] → пул сбалансирован.
    Вне диапазона своп возвращает долю ровно к target_ratio.
    """

    lower_band: int = DEFAULT_LOWER_BAND
    upper_band: int = DEFAULT_UPPER_BAND
    target_ratio: int = DEFAULT_TARGET_RATIO

    def __post_init__(self) -> None:
        if not 0 < self.lower_band <= self.target_ratio <= self.upper_band < WAD:
            raise ValueError(
                "RebalanceConfig requires 0 < lower_band <= target_ratio <= upper_band < 1e18, "
                f"got {self.lower_band}, {self.target_ratio}, {self.upper_band}"
            )


@dataclass(frozen=True)
class MigrationConfig:
    """Конфигурация миграции позиции между пулами."""

    deposit_buffer_bps: int = DEFAULT_MIGRATION_BUFFER_BPS

    def __post_init__(self) -> None:
        if not 0 < self.deposit_buffer_bps <= BPS_DENOMINATOR:
            raise ValueError(
                f"deposit_buffer_bps must be in (0, {BPS_DENOMINATOR}], "
                f"got {self.deposit_buffer_bps}"
            )


@dataclass(frozen=True)
class EngineConfig:
    """Агрегированная конфигурация engine."""

    oracle: OracleConfig = field(default_factory=OracleConfig)
    rebalance: RebalanceConfig = field(default_factory=RebalanceConfig)
    migration: MigrationConfig = field(default_factory=MigrationConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Сборка конфигурации из переменных окружения FXPOOL_*."""
        oracle = OracleConfig(
            staleness_window_sec=int(
                os.getenv("FXPOOL_STALENESS_WINDOW_SEC", str(DEFAULT_STALENESS_WINDOW_SEC))
            ),
            require_complete_round=bool(int(os.getenv("FXPOOL_REQUIRE_COMPLETE_ROUND", "1"))),
        )
        rebalance = RebalanceConfig(
            lower_band=int(os.getenv("FXPOOL_LOWER_BAND", str(DEFAULT_LOWER_BAND))),
            upper_band=int(os.getenv("FXPOOL_UPPER_BAND", str(DEFAULT_UPPER_BAND))),
            target_ratio=int(os.getenv("FXPOOL_TARGET_RATIO", str(DEFAULT_TARGET_RATIO))),
        )
        migration = MigrationConfig(
            deposit_buffer_bps=int(
                os.getenv("FXPOOL_MIGRATION_BUFFER_BPS", str(DEFAULT_MIGRATION_BUFFER_BPS))
            ),
        )
        return cls(
            oracle=oracle,
            rebalance=rebalance,
            migration=migration,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


# =============================================================================
# LOGGING
# =============================================================================


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Настройка логирования для engine.

    Args:
        level: Уровень логирования (DEBUG/INFO/WARNING/ERROR)
        log_file: Опциональный путь к файлу лога
    """
    root_logger = logging.getLogger("src")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stdout_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)
