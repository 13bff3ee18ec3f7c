"""
Тесты для Assimilator и валидации оракула

Проверяет:
1. Round-trip raw → numeraire → raw в пределах 1 единицы
2. Staleness gate (24h15m)
3. Невалидные раунды оракула
4. RateUnavailable при сбое вызова оракула
5. LP-ratio конверсии
"""

import pytest

from src.assimilators.assimilator import BaseToUsdAssimilator, UsdToUsdAssimilator
from src.core.config import OracleConfig
from src.core.domain.pool_state import PoolBalances, WeightedPair
from src.core.domain.rate import RoundData
from src.core.domain.token import Token
from src.core.errors import (
    OracleError,
    OracleRoundIncomplete,
    RateUnavailable,
    StaleOraclePrice,
    StalePrice,
    ZeroBalanceViolation,
    ZeroOrNegativePrice,
)
from src.core.math.fixed_point import Fixed64x64
from src.core.math.integer_math import RATE_SCALE
from src.oracle.rate_oracle import InMemoryRateOracle, validate_round

from .conftest import NOW, ORACLE_ADDRESS, USDC, XSGD, fixed_clock


HOUR = 3_600
MINUTE = 60


def make_base(oracle, token: Token = XSGD, quote: Token = USDC) -> BaseToUsdAssimilator:
    return BaseToUsdAssimilator(token=token, quote_token=quote, oracle=oracle, clock=fixed_clock)


class FailingOracle:
    """Оракул, вызов которого всегда завершается сетевой ошибкой."""

    address = ORACLE_ADDRESS

    def latest_round_data(self) -> RoundData:
        raise ConnectionError("feed unreachable")

    def latest_answer(self) -> int:
        raise ConnectionError("feed unreachable")


# =============================================================================
# RATE / STALENESS
# =============================================================================


class TestGetRate:
    """Тесты get_rate и валидации раунда"""

    def test_rate_from_oracle(self, oracle) -> None:
        oracle.set_price(74_123_456)
        assert make_base(oracle).get_rate() == 74_123_456

    def test_stale_after_window(self, oracle) -> None:
        """started_at = now - 24h16m → StaleOraclePrice"""
        oracle.set_price(RATE_SCALE, started_at=NOW - 24 * HOUR - 16 * MINUTE)
        with pytest.raises(StaleOraclePrice):
            make_base(oracle).get_rate()

    def test_fresh_within_window(self, oracle) -> None:
        """started_at = now - 24h14m → курс доступен"""
        oracle.set_price(RATE_SCALE, started_at=NOW - 24 * HOUR - 14 * MINUTE)
        assert make_base(oracle).get_rate() == RATE_SCALE

    def test_window_boundary_is_inclusive(self, oracle) -> None:
        oracle.set_price(RATE_SCALE, started_at=NOW - 24 * HOUR - 15 * MINUTE)
        assert make_base(oracle).get_rate() == RATE_SCALE

    def test_started_at_zero(self, oracle) -> None:
        oracle.set_round(round_id=3, price=RATE_SCALE, started_at=0, answered_in_round=3)
        with pytest.raises(StalePrice):
            make_base(oracle).get_rate()

    def test_incomplete_round(self, oracle) -> None:
        oracle.set_round(round_id=5, price=RATE_SCALE, started_at=NOW, answered_in_round=4)
        with pytest.raises(OracleRoundIncomplete):
            make_base(oracle).get_rate()

    def test_incomplete_round_allowed_when_disabled(self) -> None:
        config = OracleConfig(require_complete_round=False)
        round_data = RoundData(
            round_id=5, answer=RATE_SCALE, started_at=NOW, updated_at=NOW, answered_in_round=4
        )
        assert validate_round(round_data, NOW, config).price == RATE_SCALE

    @pytest.mark.parametrize("price", [0, -1])
    def test_non_positive_price(self, oracle, price) -> None:
        oracle.set_price(price)
        with pytest.raises(ZeroOrNegativePrice):
            make_base(oracle).get_rate()

    def test_oracle_failure_is_rate_unavailable(self) -> None:
        assimilator = make_base(FailingOracle())
        with pytest.raises(RateUnavailable, match="XSGD") as excinfo:
            assimilator.get_rate()
        assert isinstance(excinfo.value.__cause__, ConnectionError)

    def test_rate_unavailable_is_oracle_error(self) -> None:
        with pytest.raises(OracleError):
            make_base(FailingOracle()).view_raw_amount(Fixed64x64.from_int(1))


# =============================================================================
# CONVERSIONS
# =============================================================================


class TestConversions:
    """Тесты view_raw_amount / view_numeraire_amount"""

    def test_view_raw_amount(self, oracle) -> None:
        """100 numeraire при курсе 1.00 и 6 decimals = 100e6 raw"""
        assert make_base(oracle).view_raw_amount(Fixed64x64.from_int(100)) == 100 * 10**6

    def test_view_numeraire_amount_uses_rate(self, oracle) -> None:
        """1000 XSGD при курсе 1.5 = 1500 numeraire"""
        oracle.set_price(150_000_000)
        value = make_base(oracle).view_numeraire_amount(1_000 * 10**6)
        assert value == Fixed64x64.from_int(1_500)

    @pytest.mark.parametrize("rate", [RATE_SCALE, 137_000_000, 74_123_456])
    @pytest.mark.parametrize("decimals", [2, 6, 8, 18])
    @pytest.mark.parametrize("raw", [1, 999, 1_234_567_891, 10**18 + 7])
    def test_round_trip_within_one_unit(self, rate, decimals, raw) -> None:
        """viewRawAmount(viewNumeraireAmount(r)) ∈ [r - 1, r]"""
        token = Token(address="0x" + "f" * 40, symbol="TKN", decimals=decimals)
        oracle = InMemoryRateOracle(ORACLE_ADDRESS, price=rate, clock=fixed_clock, started_at=NOW)
        assimilator = make_base(oracle, token=token)

        back = assimilator.view_raw_amount(assimilator.view_numeraire_amount(raw))
        assert raw - 1 <= back <= raw

    def test_intake_rounds_up(self, oracle) -> None:
        oracle.set_price(300_000_000)
        assimilator = make_base(oracle)
        numeraire = Fixed64x64.from_int(1)
        assert assimilator.intake_raw_amount(numeraire) == assimilator.view_raw_amount(numeraire) + 1

    def test_virtual_balances(self, oracle) -> None:
        assimilator = make_base(oracle)
        balances = PoolBalances(base_raw=100 * 10**6, quote_raw=0)
        assert assimilator.virtual_view_numeraire_balance_intake(
            balances, 50 * 10**6
        ) == Fixed64x64.from_int(150)
        assert assimilator.virtual_view_numeraire_balance_output(
            balances, 500 * 10**6
        ) == Fixed64x64.from_int(0)

    def test_usd_assimilator_fixed_rate(self) -> None:
        assimilator = UsdToUsdAssimilator(token=USDC)
        balances = PoolBalances(base_raw=1, quote_raw=250 * 10**6)
        assert assimilator.get_rate() == RATE_SCALE
        assert assimilator.view_numeraire_balance(balances) == Fixed64x64.from_int(250)
        assert assimilator.own_balance(balances) == 250 * 10**6


# =============================================================================
# LP RATIO
# =============================================================================


class TestLpRatio:
    """Тесты LP-ratio конверсий (без оракула)"""

    def test_lp_ratio_ignores_oracle(self, oracle) -> None:
        """Курс из соотношения пула 2:1 не зависит от цены оракула"""
        balances = PoolBalances(base_raw=500 * 10**6, quote_raw=1_000 * 10**6)
        weights = WeightedPair()
        assimilator = make_base(oracle)

        oracle.set_price(10 * RATE_SCALE)
        raw = assimilator.view_raw_amount_lp_ratio(weights, Fixed64x64.from_int(100), balances)
        assert raw == 50 * 10**6
        assert assimilator.view_numeraire_balance_lp_ratio(
            weights, balances
        ) == Fixed64x64.from_int(1_000)

    def test_lp_ratio_works_with_stale_oracle(self, oracle) -> None:
        oracle.set_price(RATE_SCALE, started_at=NOW - 48 * HOUR)
        balances = PoolBalances(base_raw=10**6, quote_raw=10**6)
        assimilator = make_base(oracle)
        assert assimilator.view_raw_amount_lp_ratio(
            WeightedPair(), Fixed64x64.from_int(1), balances
        ) == 10**6

    def test_zero_base_balance(self, oracle) -> None:
        balances = PoolBalances(base_raw=0, quote_raw=10**6)
        with pytest.raises(ZeroBalanceViolation) as excinfo:
            make_base(oracle).view_raw_amount_lp_ratio(
                WeightedPair(), Fixed64x64.from_int(1), balances
            )
        assert excinfo.value.side == "base"

    def test_zero_quote_balance(self, oracle) -> None:
        balances = PoolBalances(base_raw=10**6, quote_raw=0)
        with pytest.raises(ZeroBalanceViolation):
            make_base(oracle).intake_raw_amount_lp_ratio(
                WeightedPair(), Fixed64x64.from_int(1), balances
            )

    def test_usd_lp_ratio_matches_plain(self) -> None:
        assimilator = UsdToUsdAssimilator(token=USDC)
        balances = PoolBalances(base_raw=3, quote_raw=7 * 10**6)
        numeraire = Fixed64x64.divu(7, 3)
        assert assimilator.view_raw_amount_lp_ratio(
            WeightedPair(), numeraire, balances
        ) == assimilator.view_raw_amount(numeraire)
