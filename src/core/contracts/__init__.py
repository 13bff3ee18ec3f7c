"""Contracts — JSON Schema для котировок и планов, выходящих за границу engine."""

from .validators import (
    CONTRACT_SCHEMAS,
    ContractValidator,
    SchemaLoader,
    validate_contract,
    validator_for,
)

__all__ = [
    "CONTRACT_SCHEMAS",
    "ContractValidator",
    "SchemaLoader",
    "validate_contract",
    "validator_for",
]
