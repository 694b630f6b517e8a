"""
JSON Schema Contract Validators

Модуль для валидации внешних (недоверенных) JSON данных согласно
формальным JSON Schema контрактам. Использует библиотеку jsonschema.

Схемы (src/core/contracts/schema/):
- price_record.json: одна запись сырого price feed
- priority_table.json: конфигурация приоритетов блокчейнов
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator

import jsonschema
from jsonschema import Draft202012Validator, ValidationError


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы поставляются вместе с пакетом в каталоге schema/ рядом с модулем.
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'price_record')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если файл не является валидной JSON Schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Any) -> None:
        """
        Валидация данных против схемы.

        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Any) -> bool:
        """Проверка валидности данных без exception."""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Any) -> Iterator[ValidationError]:
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)

    def first_error_message(self, data: Any) -> str | None:
        """
        Краткое описание первой (по пути) ошибки валидации.

        Returns:
            'path: message' или None, если данные валидны
        """
        errors = sorted(self.iter_errors(data), key=lambda e: list(e.path))
        if not errors:
            return None
        error = errors[0]
        location = ".".join(str(p) for p in error.path) or "<root>"
        return f"{location}: {error.message}"


class PriceRecordValidator(ContractValidator):
    """Валидатор для записи price feed."""

    def __init__(self):
        super().__init__("price_record")


class PriorityTableValidator(ContractValidator):
    """Валидатор для конфигурации приоритетов блокчейнов."""

    def __init__(self):
        super().__init__("priority_table")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_price_record(data: Any) -> None:
    """
    Валидация одной записи price feed.

    Raises:
        ValidationError: Если запись не соответствует схеме
    """
    PriceRecordValidator().validate(data)


def validate_priority_table(data: Any) -> None:
    """
    Валидация конфигурации приоритетов.

    Raises:
        ValidationError: Если конфигурация не соответствует схеме
    """
    PriorityTableValidator().validate(data)
