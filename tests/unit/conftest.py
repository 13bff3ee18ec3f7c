"""Общие фикстуры: токены, оракул с фиксированным временем, vault и пулы."""

import pytest

from src.core.domain.token import Token
from src.core.math.fixed_point import Fixed64x64
from src.core.math.integer_math import RATE_SCALE
from src.ledger.vault import InMemoryVault
from src.oracle.rate_oracle import InMemoryRateOracle
from src.orchestration.deployment import PoolDeployer


NOW = 1_700_000_000

XSGD = Token(address="0x" + "a" * 40, symbol="XSGD", decimals=6)
USDC = Token(address="0x" + "b" * 40, symbol="USDC", decimals=6)
EURS = Token(address="0x" + "d" * 40, symbol="EURS", decimals=2)

ORACLE_ADDRESS = "0x" + "c" * 40
EURS_ORACLE_ADDRESS = "0x" + "e" * 40

LP = "0x" + "1" * 40
ALICE = "0x" + "2" * 40
BOB = "0x" + "3" * 40

POOL_ID = "xsgd-usdc"

# Потолок join без ограничения
UNBOUNDED = 10**40


def fixed_clock() -> int:
    return NOW


def seed_pool(vault: InMemoryVault, pool, holder: str, numeraire: int) -> int:
    """Депозит numeraire от holder с достаточным балансом обоих токенов."""
    vault.mint(holder, pool.base_token, 10**30)
    vault.mint(holder, pool.quote_token, 10**30)
    shares, _ = vault.join(
        holder, pool.pool_id, [UNBOUNDED, UNBOUNDED], Fixed64x64.from_int(numeraire)
    )
    return shares


@pytest.fixture
def oracle():
    """XSGD/USD оракул: курс 1.00, раунд начат в NOW."""
    return InMemoryRateOracle(
        ORACLE_ADDRESS, price=RATE_SCALE, clock=fixed_clock, started_at=NOW
    )


@pytest.fixture
def vault():
    return InMemoryVault()


@pytest.fixture
def deployer(vault):
    return PoolDeployer(vault, clock=fixed_clock)


@pytest.fixture
def pool(deployer, oracle):
    """Пустой пул XSGD/USDC 50/50."""
    return deployer.deploy_pool(POOL_ID, XSGD, USDC, oracle)


@pytest.fixture
def seeded_pool(vault, pool):
    """Пул с балансами 1000 XSGD / 1000 USDC и supply 2000 shares у LP."""
    vault.mint(LP, XSGD, 1_000 * 10**6)
    vault.mint(LP, USDC, 1_000 * 10**6)
    vault.join(LP, POOL_ID, [UNBOUNDED, UNBOUNDED], Fixed64x64.from_int(2_000))
    return pool
