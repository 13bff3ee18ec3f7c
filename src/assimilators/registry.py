"""
AssimilatorRegistry — реестр assimilator по ключу (token, oracle, template)

Для каждой тройки существует ровно один экземпляр. Ключ — sha256 от
нормализованной тройки. get_or_create идемпотентен, повторная регистрация
существующего ключа запрещена.
"""

import hashlib
import logging
from typing import Callable, Dict, Optional

from src.core.errors import AssimilatorAlreadyInitialized
from src.core.domain.token import require_address

from .assimilator import Assimilator

logger = logging.getLogger(__name__)

AssimilatorFactory = Callable[[], Assimilator]

# Ключ для assimilator без оракула (фиксированный курс)
NO_ORACLE = "fixed-rate"


def assimilator_key(token_address: str, oracle_address: Optional[str], template: str) -> str:
    """sha256 от тройки (token, oracle, template)."""
    payload = "|".join(
        [token_address.lower(), (oracle_address or NO_ORACLE).lower(), template]
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class AssimilatorRegistry:
    """Write-once реестр assimilator."""

    def __init__(self):
        self._assimilators: Dict[str, Assimilator] = {}

    def __len__(self) -> int:
        return len(self._assimilators)

    def get(
        self, token_address: str, oracle_address: Optional[str], template: str
    ) -> Optional[Assimilator]:
        return self._assimilators.get(assimilator_key(token_address, oracle_address, template))

    def register(
        self,
        token_address: str,
        oracle_address: Optional[str],
        template: str,
        assimilator: Assimilator,
    ) -> Assimilator:
        """
        Регистрация нового assimilator.

        Raises:
            ZeroAddress: Если адрес токена (или оракула) нулевой
            AssimilatorAlreadyInitialized: Если тройка уже зарегистрирована
        """
        require_address(token_address, "token")
        if oracle_address is not None:
            require_address(oracle_address, "oracle")

        key = assimilator_key(token_address, oracle_address, template)
        if key in self._assimilators:
            raise AssimilatorAlreadyInitialized(
                f"assimilator already initialized for token={token_address}, "
                f"oracle={oracle_address}, template={template}"
            )
        self._assimilators[key] = assimilator
        logger.info(f"Assimilator registered: token={token_address} template={template} key={key[:12]}")
        return assimilator

    def get_or_create(
        self,
        token_address: str,
        oracle_address: Optional[str],
        template: str,
        factory: AssimilatorFactory,
    ) -> Assimilator:
        """Идемпотентный insert-if-absent: factory вызывается только для нового ключа."""
        existing = self.get(token_address, oracle_address, template)
        if existing is not None:
            return existing
        return self.register(token_address, oracle_address, template, factory())
