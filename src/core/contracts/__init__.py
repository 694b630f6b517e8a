"""
Contract Validation Module

Модуль для валидации внешних JSON контрактов: price feed и конфигурация
приоритетов блокчейнов.
"""

from .validators import (
    ContractValidator,
    PriceRecordValidator,
    PriorityTableValidator,
    SchemaLoader,
    validate_price_record,
    validate_priority_table,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "PriceRecordValidator",
    "PriorityTableValidator",
    # Functions
    "validate_price_record",
    "validate_priority_table",
]
