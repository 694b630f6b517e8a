"""
Wallet — Модели балансов кошелька

- WalletBalance: внешний (read-only для ядра) баланс {currency, amount, blockchain}
- FormattedWalletBalance: баланс + amount в фиксированной записи (4 знака)
- WalletRow: готовая к отображению строка (форматированная сумма + USD-оценка)
"""

import math

from pydantic import BaseModel, Field, field_validator


class WalletBalance(BaseModel):
    """
    Баланс кошелька по одной валюте в одном блокчейне.

    amount может быть <= 0: фильтрация — задача BalanceProcessor, не модели.
    """

    currency: str = Field(..., min_length=1, description="Символ валюты")
    amount: float = Field(..., description="Количество единиц валюты")
    blockchain: str = Field(..., description="Имя блокчейна-источника")

    model_config = {"frozen": True}

    @field_validator("amount")
    @classmethod
    def validate_amount_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError(f"amount must be finite, got {v}")
        return v


class FormattedWalletBalance(WalletBalance):
    """Баланс с amount, отформатированным до фиксированного числа знаков."""

    formatted: str = Field(..., description="amount с ровно 4 знаками после запятой")


class WalletRow(BaseModel):
    """Строка кошелька для внешнего коллаборатора отображения."""

    key: str = Field(..., description="Стабильный ключ строки '{currency}-{blockchain}'")
    currency: str
    blockchain: str
    amount: float
    formatted_amount: str
    usd_value: float = Field(..., ge=0, description="price * amount или 0 без цены")

    model_config = {"frozen": True}
