"""Assimilators — конверсия raw ↔ numeraire для токенов пула."""

from .assimilator import (
    BASE_TO_USD_TEMPLATE,
    USD_TO_USD_TEMPLATE,
    Assimilator,
    BaseToUsdAssimilator,
    UsdToUsdAssimilator,
)
from .registry import AssimilatorRegistry, assimilator_key

__all__ = [
    "BASE_TO_USD_TEMPLATE",
    "USD_TO_USD_TEMPLATE",
    "Assimilator",
    "AssimilatorRegistry",
    "BaseToUsdAssimilator",
    "UsdToUsdAssimilator",
    "assimilator_key",
]
