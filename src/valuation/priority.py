"""
PriorityClassifier — Приоритет отображения блокчейна

Статическая immutable таблица blockchain → integer score.
Неизвестный блокчейн получает sentinel UNKNOWN_PRIORITY (-99), который
исключает баланс из вывода BalanceProcessor.

Таблица расширяется конфигурацией (from_mapping / from_json_file /
with_overrides создают НОВУЮ таблицу), но не мутацией во время работы.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Final, Iterator, Mapping

from src.core.contracts import PriorityTableValidator

# Sentinel для блокчейнов, отсутствующих в таблице
UNKNOWN_PRIORITY: Final[int] = -99

# Приоритеты по умолчанию
DEFAULT_BLOCKCHAIN_PRIORITY: Final[Mapping[str, int]] = MappingProxyType(
    {
        "Osmosis": 100,
        "Ethereum": 50,
        "Arbitrum": 30,
        "Zilliqa": 20,
        "Neo": 20,
    }
)


def _validated(entries: Mapping[str, int]) -> Mapping[str, int]:
    if not isinstance(entries, Mapping):
        raise ValueError(
            f"Invalid priority table: expected a mapping, got {type(entries).__name__}"
        )
    message = PriorityTableValidator().first_error_message(dict(entries))
    if message is not None:
        raise ValueError(f"Invalid priority table: {message}")
    return MappingProxyType(dict(entries))


@dataclass(frozen=True)
class PriorityTable:
    """
    Immutable таблица приоритетов блокчейнов.

    Используется как callable: table("Ethereum") → 50.

    Sentinel неизвестного блокчейна не настраивается: BalanceProcessor
    исключает балансы именно по UNKNOWN_PRIORITY.
    """

    entries: Mapping[str, int] = field(default_factory=lambda: DEFAULT_BLOCKCHAIN_PRIORITY)

    def __post_init__(self) -> None:
        # Копия входного mapping: внешняя мутация не влияет на таблицу
        object.__setattr__(self, "entries", _validated(self.entries))

    @classmethod
    def from_mapping(cls, entries: Mapping[str, int]) -> "PriorityTable":
        return cls(entries=entries)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "PriorityTable":
        """
        Загрузка таблицы из JSON файла {"Osmosis": 100, ...}.

        Raises:
            FileNotFoundError: Если файл не найден
            ValueError: Если содержимое не соответствует контракту priority_table
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(entries=data)

    def with_overrides(self, overrides: Mapping[str, int]) -> "PriorityTable":
        """Новая таблица: текущие записи, дополненные / переопределённые overrides."""
        merged = dict(self.entries)
        merged.update(overrides)
        return PriorityTable(entries=merged)

    def priority_of(self, blockchain: str) -> int:
        """
        Приоритет блокчейна.

        Returns:
            Значение из таблицы или UNKNOWN_PRIORITY (-99)
        """
        return self.entries.get(blockchain, UNKNOWN_PRIORITY)

    def __call__(self, blockchain: str) -> int:
        return self.priority_of(blockchain)

    def __contains__(self, blockchain: object) -> bool:
        return blockchain in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


DEFAULT_PRIORITY_TABLE: Final[PriorityTable] = PriorityTable()


def priority_of(blockchain: str, table: PriorityTable = DEFAULT_PRIORITY_TABLE) -> int:
    """
    Приоритет блокчейна по таблице (по умолчанию — DEFAULT_PRIORITY_TABLE).

    Examples:
        >>> priority_of("Osmosis")
        100
        >>> priority_of("Unknown")
        -99
    """
    return table.priority_of(blockchain)
