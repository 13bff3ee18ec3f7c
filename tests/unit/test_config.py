"""Тесты конфигурации engine и настройки логирования."""

import logging

import pytest

from src.core.config import (
    DEFAULT_STALENESS_WINDOW_SEC,
    EngineConfig,
    MigrationConfig,
    OracleConfig,
    RebalanceConfig,
    configure_logging,
)


class TestDefaults:
    """Значения по умолчанию."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.oracle.staleness_window_sec == DEFAULT_STALENESS_WINDOW_SEC == 87_300
        assert config.oracle.require_complete_round
        assert config.rebalance.lower_band == 48 * 10**16
        assert config.rebalance.upper_band == 52 * 10**16
        assert config.rebalance.target_ratio == 50 * 10**16
        assert config.migration.deposit_buffer_bps == 9_900
        assert config.log_level == "INFO"

    def test_frozen(self):
        with pytest.raises(AttributeError):
            EngineConfig().log_level = "DEBUG"


class TestValidation:
    """Отклонение некорректных значений."""

    def test_non_positive_staleness(self):
        with pytest.raises(ValueError, match="staleness"):
            OracleConfig(staleness_window_sec=0)

    @pytest.mark.parametrize(
        "lower,target,upper",
        [
            (52 * 10**16, 50 * 10**16, 48 * 10**16),
            (0, 50 * 10**16, 52 * 10**16),
            (48 * 10**16, 50 * 10**16, 10**18),
            (48 * 10**16, 53 * 10**16, 52 * 10**16),
        ],
    )
    def test_invalid_band(self, lower, target, upper):
        with pytest.raises(ValueError, match="RebalanceConfig"):
            RebalanceConfig(lower_band=lower, upper_band=upper, target_ratio=target)

    @pytest.mark.parametrize("bps", [0, -1, 10_001])
    def test_invalid_buffer(self, bps):
        with pytest.raises(ValueError, match="deposit_buffer_bps"):
            MigrationConfig(deposit_buffer_bps=bps)


class TestFromEnv:
    """Сборка из переменных окружения FXPOOL_*."""

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("FXPOOL_STALENESS_WINDOW_SEC", "3600")
        monkeypatch.setenv("FXPOOL_REQUIRE_COMPLETE_ROUND", "0")
        monkeypatch.setenv("FXPOOL_LOWER_BAND", str(45 * 10**16))
        monkeypatch.setenv("FXPOOL_MIGRATION_BUFFER_BPS", "9950")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = EngineConfig.from_env()

        assert config.oracle.staleness_window_sec == 3_600
        assert not config.oracle.require_complete_round
        assert config.rebalance.lower_band == 45 * 10**16
        assert config.rebalance.upper_band == 52 * 10**16
        assert config.migration.deposit_buffer_bps == 9_950
        assert config.log_level == "DEBUG"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("FXPOOL_UPPER_BAND", str(40 * 10**16))
        with pytest.raises(ValueError):
            EngineConfig.from_env()


class TestConfigureLogging:
    """Тесты configure_logging."""

    @pytest.fixture(autouse=True)
    def restore_logger(self):
        logger = logging.getLogger("src")
        handlers, level = list(logger.handlers), logger.level
        yield
        logger.handlers[:] = handlers
        logger.setLevel(level)

    def test_stdout_handler(self):
        configure_logging("debug")
        logger = logging.getLogger("src")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "engine.log"
        configure_logging("INFO", str(log_file))

        logging.getLogger("src.orchestration").info("deposit executed")
        for handler in logging.getLogger("src").handlers:
            handler.flush()

        assert "deposit executed" in log_file.read_text(encoding="utf-8")

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("verbose")
        assert logging.getLogger("src").level == logging.INFO
