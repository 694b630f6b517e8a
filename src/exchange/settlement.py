"""
Settlement — Порт подтверждения обмена

Реального исполнения против ledger нет: SimulatedSettler выдерживает
фиксированную задержку. Settler можно подменить (например, в тестах).
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from src.core.math.numerical_safeguards import validate_non_negative


@dataclass(frozen=True)
class ExchangeRequest:
    """Снапшот параметров обмена на момент перехода в SETTLING."""

    from_symbol: str
    to_symbol: str
    from_amount: str
    to_amount: str
    rate: float


@dataclass(frozen=True)
class ExchangeReceipt:
    """Подтверждение успешного обмена."""

    request: ExchangeRequest
    message: str


class Settler(Protocol):
    """
    Коллаборатор settlement.

    При отказе бросает SettlementError.
    """

    async def settle(self, request: ExchangeRequest) -> None:
        ...


class SimulatedSettler:
    """Симуляция settlement: фиксированная задержка."""

    def __init__(self, delay_sec: float = 2.0):
        validate_non_negative(delay_sec, "delay_sec")
        self.delay_sec = delay_sec

    async def settle(self, request: ExchangeRequest) -> None:
        await asyncio.sleep(self.delay_sec)
