"""Valuation — приоритеты блокчейнов, обработка балансов и форматирование."""

from .balances import (
    AMOUNT_DISPLAY_DECIMALS,
    BalanceProcessor,
    build_wallet_rows,
    classify_and_sort,
    format_balances,
    row_key,
    usd_value,
)
from .formatter import (
    EUR_FORMAT,
    USD_FORMAT,
    CurrencyFormat,
    format_currency,
    format_rate_line,
    format_usd_value,
)
from .priority import (
    DEFAULT_BLOCKCHAIN_PRIORITY,
    DEFAULT_PRIORITY_TABLE,
    UNKNOWN_PRIORITY,
    PriorityTable,
    priority_of,
)
from .wallet_view import WalletView

__all__ = [
    # Priority
    "DEFAULT_BLOCKCHAIN_PRIORITY",
    "DEFAULT_PRIORITY_TABLE",
    "UNKNOWN_PRIORITY",
    "PriorityTable",
    "priority_of",
    # Balances
    "AMOUNT_DISPLAY_DECIMALS",
    "BalanceProcessor",
    "build_wallet_rows",
    "classify_and_sort",
    "format_balances",
    "row_key",
    "usd_value",
    # Formatter
    "CurrencyFormat",
    "EUR_FORMAT",
    "USD_FORMAT",
    "format_currency",
    "format_rate_line",
    "format_usd_value",
    # View
    "WalletView",
]
