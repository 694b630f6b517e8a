"""
Domain models and value objects.

Contains fundamental domain entities like Asset, WalletBalance, ExchangeState.
"""

from src.core.domain.asset import Asset, PriceRecord
from src.core.domain.exchange_state import (
    EMPTY_QUOTE,
    ExchangePhase,
    ExchangeState,
    Quote,
)
from src.core.domain.wallet import FormattedWalletBalance, WalletBalance, WalletRow

__all__ = [
    # Asset model
    "Asset",
    "PriceRecord",
    # Wallet models
    "WalletBalance",
    "FormattedWalletBalance",
    "WalletRow",
    # Exchange models
    "ExchangeState",
    "ExchangePhase",
    "Quote",
    "EMPTY_QUOTE",
]
