"""
PoolDeployer — связывание assimilator с пулом и регистрация в ledger

Assimilator берутся из реестра (один экземпляр на тройку token, oracle,
template). Для каждого пула один раз записывается использованный
template base assimilator.
"""

import logging
from typing import Dict, Optional

from src.assimilators.assimilator import (
    BASE_TO_USD_TEMPLATE,
    USD_TO_USD_TEMPLATE,
    Assimilator,
    BaseToUsdAssimilator,
    UsdToUsdAssimilator,
)
from src.assimilators.registry import AssimilatorRegistry
from src.core.config import EngineConfig
from src.core.domain.pool_state import WeightedPair
from src.core.domain.token import Token, require_address, require_token
from src.core.errors import TemplateAlreadyRecorded, TokenMismatch
from src.curve.pool import DEFAULT_EPSILON, FXPool
from src.ledger.vault import BalanceLedger
from src.oracle.rate_oracle import Clock, RateOracle, system_clock

logger = logging.getLogger(__name__)


class PoolDeployer:
    """Сборка FX пулов из assimilator реестра."""

    def __init__(
        self,
        ledger: BalanceLedger,
        registry: Optional[AssimilatorRegistry] = None,
        config: Optional[EngineConfig] = None,
        clock: Clock = system_clock,
    ):
        self.ledger = ledger
        self.registry = registry or AssimilatorRegistry()
        self.config = config or EngineConfig()
        self.clock = clock
        self._pool_templates: Dict[str, str] = {}

    def base_assimilator(
        self, base_token: Token, quote_token: Token, oracle: RateOracle
    ) -> Assimilator:
        """Assimilator base токена с курсом оракула (создаётся при первом запросе).

        Raises:
            TokenMismatch: Если существующий assimilator привязан к другому quote
        """
        require_address(oracle.address, "oracle")
        assimilator = self.registry.get_or_create(
            base_token.address,
            oracle.address,
            BASE_TO_USD_TEMPLATE,
            lambda: BaseToUsdAssimilator(
                token=base_token,
                quote_token=quote_token,
                oracle=oracle,
                oracle_config=self.config.oracle,
                clock=self.clock,
            ),
        )
        if assimilator.quote_token.address != quote_token.address:
            raise TokenMismatch(
                f"assimilator for {base_token.symbol} is bound to quote "
                f"{assimilator.quote_token.symbol}, not {quote_token.symbol}"
            )
        return assimilator

    def quote_assimilator(self, quote_token: Token) -> Assimilator:
        return self.registry.get_or_create(
            quote_token.address,
            None,
            USD_TO_USD_TEMPLATE,
            lambda: UsdToUsdAssimilator(token=quote_token),
        )

    def record_template(self, pool_id: str, template: str) -> None:
        if pool_id in self._pool_templates:
            raise TemplateAlreadyRecorded(
                f"pool {pool_id} already uses template {self._pool_templates[pool_id]}"
            )
        self._pool_templates[pool_id] = template

    def template_of(self, pool_id: str) -> Optional[str]:
        return self._pool_templates.get(pool_id)

    def deploy_pool(
        self,
        pool_id: str,
        base_token: Token,
        quote_token: Token,
        oracle: RateOracle,
        weights: Optional[WeightedPair] = None,
        epsilon: int = DEFAULT_EPSILON,
    ) -> FXPool:
        """
        Создание пула base/quote и регистрация в ledger.

        Raises:
            ZeroAddress: Нулевой адрес токена или оракула
            TemplateAlreadyRecorded: Пул с таким pool_id уже развёрнут
        """
        require_token(base_token, "base_token")
        require_token(quote_token, "quote_token")

        pool = FXPool(
            pool_id=pool_id,
            base_assimilator=self.base_assimilator(base_token, quote_token, oracle),
            quote_assimilator=self.quote_assimilator(quote_token),
            weights=weights or WeightedPair(),
            epsilon=epsilon,
        )
        self.record_template(pool_id, pool.base_assimilator.template)
        self.ledger.register_pool(pool)

        logger.info(
            f"Pool deployed: {pool_id} {base_token.symbol}/{quote_token.symbol} "
            f"oracle={oracle.address} template={pool.base_assimilator.template}"
        )
        return pool
