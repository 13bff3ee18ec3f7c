"""Orchestration — операционная поверхность: депозит с ребалансировкой, миграция, деплой пулов."""

from .deployment import PoolDeployer
from .deposit import DepositService, numeraire_from_wad
from .migration import MigrationService

__all__ = [
    "DepositService",
    "MigrationService",
    "PoolDeployer",
    "numeraire_from_wad",
]
