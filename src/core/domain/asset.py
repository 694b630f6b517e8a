"""
Asset — Модель торгуемого актива и записи price feed

Immutable Pydantic модели:
- PriceRecord: одна запись сырого price feed {currency, price}
- Asset: запись каталога (один Asset на symbol, "latest wins")
"""

import math

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# PRICE FEED RECORD
# =============================================================================


class PriceRecord(BaseModel):
    """
    Одна запись сырого price feed после валидации контракта.

    Дополнительные поля внешнего feed (например, date) игнорируются.
    """

    currency: str = Field(..., min_length=1, description="Символ актива (ключ каталога)")
    price: float = Field(..., ge=0, description="Последняя цена в USD")

    model_config = {"frozen": True}

    @field_validator("price")
    @classmethod
    def validate_price_finite(cls, v: float) -> float:
        """NaN/Inf цены не допускаются в каталог."""
        if not math.isfinite(v):
            raise ValueError(f"price must be finite, got {v}")
        return v


# =============================================================================
# ASSET MODEL
# =============================================================================


class Asset(BaseModel):
    """
    Модель актива в каталоге цен.

    Immutable модель (frozen=True). Обновление цены создаёт новый экземпляр
    при следующем refresh каталога.
    """

    symbol: str = Field(..., min_length=1, description="Уникальный символ (например, 'ETH')")
    name: str = Field(..., min_length=1, description="Отображаемое имя")
    icon_url: str = Field(..., description="URI иконки, выведенный из symbol по шаблону")
    price: float = Field(..., ge=0, description="Последняя цена в USD")

    model_config = {"frozen": True}

    @field_validator("price")
    @classmethod
    def validate_price_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"price must be finite, got {v}")
        return v

    @property
    def is_priced(self) -> bool:
        """True если цена ненулевая (актив пригоден как базовый для курса)."""
        return self.price > 0
