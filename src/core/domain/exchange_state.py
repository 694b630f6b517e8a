"""
ExchangeState — Модель состояния обмена двух активов

Immutable Pydantic модель. Изменяется только операциями ExchangeEngine:
каждая операция создаёт новый экземпляр через model_copy(update=...).

Жизненный цикл: IDLE → VALIDATING → SETTLING → IDLE
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .asset import Asset


# =============================================================================
# ENUMS
# =============================================================================


class ExchangePhase(str, Enum):
    """Фаза state machine обмена."""

    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    SETTLING = "SETTLING"


# =============================================================================
# QUOTE
# =============================================================================


class Quote(BaseModel):
    """Результат цикла пересчёта: курс и сконвертированная сумма."""

    rate: float = Field(0.0, ge=0, description="to.price / from.price, 0 если не задан")
    to_amount: str = Field("", description="from_amount * rate (6 знаков) или ''")

    model_config = {"frozen": True}


EMPTY_QUOTE = Quote()


# =============================================================================
# EXCHANGE STATE
# =============================================================================


class ExchangeState(BaseModel):
    """
    Снапшот состояния формы обмена.

    from_amount / to_amount хранятся как текст ввода: пустая строка означает
    "не задано".
    """

    from_asset: Optional[Asset] = Field(None, description="Отдаваемый актив")
    to_asset: Optional[Asset] = Field(None, description="Получаемый актив")
    from_amount: str = Field("", description="Сумма к обмену (текст ввода)")
    to_amount: str = Field("", description="Сконвертированная сумма (текст)")
    rate: float = Field(0.0, ge=0, description="Текущий курс, 0 если не задан")

    phase: ExchangePhase = Field(ExchangePhase.IDLE, description="Фаза state machine")
    quote_error: Optional[str] = Field(
        None, description="Причина, по которой курс не определён (например, нулевая цена)"
    )

    model_config = {"frozen": True}

    @property
    def has_pair(self) -> bool:
        """Оба актива выбраны."""
        return self.from_asset is not None and self.to_asset is not None

    def with_quote(self, quote: Quote, quote_error: Optional[str] = None) -> "ExchangeState":
        """Новый снапшот с применённым результатом пересчёта."""
        return self.model_copy(
            update={
                "rate": quote.rate,
                "to_amount": quote.to_amount,
                "quote_error": quote_error,
            }
        )
