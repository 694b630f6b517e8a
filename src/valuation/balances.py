"""
BalanceProcessor — Фильтрация, сортировка и оценка балансов кошелька

Pipeline:
    balances → classify_and_sort → format_balances → build_wallet_rows

ИНВАРИАНТЫ:
1. Баланс с priority == -99 (неизвестный блокчейн) или amount <= 0 не попадает в вывод
2. Сортировка по убыванию priority; равные priority сохраняют порядок входа (stable)
3. usd_value без известной цены = 0 (ошибка не пробрасывается)
"""

import logging
from typing import Callable, Final, List, Optional, Sequence

from src.core.domain.wallet import FormattedWalletBalance, WalletBalance, WalletRow
from src.core.math.numerical_safeguards import format_fixed
from src.valuation.priority import DEFAULT_PRIORITY_TABLE, UNKNOWN_PRIORITY, PriorityTable

logger = logging.getLogger(__name__)

# Знаков в отображаемом amount
AMOUNT_DISPLAY_DECIMALS: Final[int] = 4

PriorityLookup = Callable[[str], int]
PriceLookup = Callable[[str], Optional[float]]


# =============================================================================
# CLASSIFY / SORT
# =============================================================================


def classify_and_sort(
    balances: Sequence[WalletBalance],
    priority_of: PriorityLookup,
) -> List[WalletBalance]:
    """
    Фильтрация и сортировка балансов по приоритету блокчейна.

    Args:
        balances: Балансы кошелька (порядок входа значим для tie-break)
        priority_of: Функция blockchain → priority

    Returns:
        Балансы с priority > -99 и amount > 0, по убыванию priority
    """
    retained: List[tuple[int, WalletBalance]] = []
    for balance in balances:
        priority = priority_of(balance.blockchain)
        if priority > UNKNOWN_PRIORITY and balance.amount > 0:
            retained.append((priority, balance))

    # list.sort стабилен (и с reverse=True): равные priority остаются в порядке входа
    retained.sort(key=lambda pair: pair[0], reverse=True)
    return [balance for _, balance in retained]


def format_balances(
    balances: Sequence[WalletBalance],
    decimals: int = AMOUNT_DISPLAY_DECIMALS,
) -> List[FormattedWalletBalance]:
    """
    Добавление formatted: amount с ровно decimals знаками (default: 4).

    Examples:
        1.5 → "1.5000", 2 → "2.0000"
    """
    return [
        FormattedWalletBalance(
            **balance.model_dump(),
            formatted=format_fixed(balance.amount, decimals),
        )
        for balance in balances
    ]


# =============================================================================
# VALUATION
# =============================================================================


def usd_value(balance: WalletBalance, price_of: PriceLookup) -> float:
    """
    USD-оценка баланса.

    Returns:
        price * amount, либо 0.0 если цена валюты неизвестна
    """
    price = price_of(balance.currency)
    if price is None:
        logger.debug("No price for %s, valuing balance at 0", balance.currency)
        return 0.0
    return price * balance.amount


def row_key(balance: WalletBalance) -> str:
    """Стабильный ключ строки: '{currency}-{blockchain}'."""
    return f"{balance.currency}-{balance.blockchain}"


def build_wallet_rows(
    balances: Sequence[WalletBalance],
    priority_of: PriorityLookup,
    price_of: PriceLookup,
    decimals: int = AMOUNT_DISPLAY_DECIMALS,
) -> List[WalletRow]:
    """
    Полный pipeline: фильтр → сортировка → форматирование → оценка.

    Returns:
        Строки кошелька для внешнего коллаборатора отображения
    """
    formatted = format_balances(classify_and_sort(balances, priority_of), decimals)
    return [
        WalletRow(
            key=row_key(balance),
            currency=balance.currency,
            blockchain=balance.blockchain,
            amount=balance.amount,
            formatted_amount=balance.formatted,
            usd_value=usd_value(balance, price_of),
        )
        for balance in formatted
    ]


# =============================================================================
# PROCESSOR
# =============================================================================


class BalanceProcessor:
    """
    BalanceProcessor с внедрённой таблицей приоритетов.

    Таблица приоритетов передаётся в конструктор (а не читается из
    глобального состояния), поэтому подменяется в тестах.
    """

    def __init__(
        self,
        priority_table: PriorityTable = DEFAULT_PRIORITY_TABLE,
        amount_decimals: int = AMOUNT_DISPLAY_DECIMALS,
    ):
        if amount_decimals < 0:
            raise ValueError(f"amount_decimals must be non-negative, got {amount_decimals}")
        self.priority_table = priority_table
        self.amount_decimals = amount_decimals

    def classify_and_sort(self, balances: Sequence[WalletBalance]) -> List[WalletBalance]:
        return classify_and_sort(balances, self.priority_table.priority_of)

    def format(self, balances: Sequence[WalletBalance]) -> List[FormattedWalletBalance]:
        return format_balances(balances, self.amount_decimals)

    def usd_value(self, balance: WalletBalance, price_of: PriceLookup) -> float:
        return usd_value(balance, price_of)

    def rows(self, balances: Sequence[WalletBalance], price_of: PriceLookup) -> List[WalletRow]:
        return build_wallet_rows(
            balances, self.priority_table.priority_of, price_of, self.amount_decimals
        )
