"""
Contract Validators — проверка сериализованных котировок и планов

Каждая модель, выходящая за границу engine (котировки и план депозита),
сериализуется через to_contract() и проверяется против своей JSON Schema
(Draft 2020-12) до возврата вызывающей стороне. Нарушение схемы означает
ошибку в самом engine и поднимается как ContractViolation.

Соответствие модель → схема задаётся CONTRACT_SCHEMAS.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Type

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import BaseModel

from src.core.domain.plans import DepositPlan, MigrationQuote, RebalancedDepositQuote
from src.core.errors import ContractViolation

SCHEMA_DIR = Path(__file__).parent / "schema"

CONTRACT_SCHEMAS: Dict[Type[BaseModel], str] = {
    RebalancedDepositQuote: "rebalanced_deposit_quote",
    MigrationQuote: "migration_quote",
    DepositPlan: "deposit_plan",
}


class SchemaLoader:
    """Чтение схем из каталога с meta-validation и кэшем."""

    def __init__(self, schema_dir: Optional[Path] = None):
        self._schema_dir = schema_dir or SCHEMA_DIR
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Raises:
            FileNotFoundError: Если файла схемы нет
            ValueError: Если файл не является валидной JSON Schema
        """
        if schema_name not in self._schemas:
            schema_path = self._schema_dir / f"{schema_name}.json"
            if not schema_path.exists():
                raise FileNotFoundError(f"Schema not found: {schema_path}")

            schema = json.loads(schema_path.read_text(encoding="utf-8"))
            try:
                Draft202012Validator.check_schema(schema)
            except jsonschema.SchemaError as e:
                raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e.message}") from e
            self._schemas[schema_name] = schema
        return self._schemas[schema_name]


_LOADER = SchemaLoader()


class ContractValidator:
    """Проверка словаря против одной схемы."""

    def __init__(self, schema_name: str, loader: Optional[SchemaLoader] = None):
        self.schema_name = schema_name
        self._validator = Draft202012Validator((loader or _LOADER).load_schema(schema_name))

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[jsonschema.ValidationError]:
        return self._validator.iter_errors(data)

    def errors(self, data: Dict[str, Any]) -> List[str]:
        """Описания нарушений вида '<путь>: <сообщение>' в стабильном порядке."""
        described = []
        for error in sorted(self.iter_errors(data), key=lambda e: list(e.path)):
            path = ".".join(str(p) for p in error.path) or "<root>"
            described.append(f"{path}: {error.message}")
        return described

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self._validator.is_valid(data)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            ContractViolation: Со всеми найденными нарушениями
        """
        errors = self.errors(data)
        if errors:
            raise ContractViolation(self.schema_name, errors)


_VALIDATORS: Dict[str, ContractValidator] = {}


def validator_for(schema_name: str) -> ContractValidator:
    if schema_name not in _VALIDATORS:
        _VALIDATORS[schema_name] = ContractValidator(schema_name)
    return _VALIDATORS[schema_name]


def validate_contract(model: BaseModel) -> Dict[str, Any]:
    """
    Сериализация модели через to_contract() и проверка против её схемы.

    Returns:
        Проверенный словарь контракта

    Raises:
        KeyError: Если для типа модели схема не задана
        ContractViolation: Если сериализация не соответствует схеме
    """
    validator = validator_for(CONTRACT_SCHEMAS[type(model)])
    data = model.to_contract()
    validator.validate(data)
    return data
