"""
WalletView — Производное состояние кошелька с пересчётом при изменениях

Строки кошелька пересчитываются синхронно после каждой изменяющей операции:
- смена набора балансов (set_balances)
- смена таблицы приоритетов (set_priority_table)
- refresh каталога цен (подписка на PriceCatalog)

Пересчёт никогда не приостанавливается и завершается до приёма следующего ввода.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from src.catalog.price_catalog import CatalogSnapshot, PriceCatalog
from src.core.domain.wallet import WalletBalance, WalletRow
from src.valuation.balances import BalanceProcessor
from src.valuation.priority import DEFAULT_PRIORITY_TABLE, PriorityTable

logger = logging.getLogger(__name__)


class WalletView:
    """Отсортированные, отформатированные и оценённые балансы кошелька."""

    def __init__(
        self,
        catalog: PriceCatalog,
        balances: Sequence[WalletBalance] = (),
        priority_table: PriorityTable = DEFAULT_PRIORITY_TABLE,
    ):
        self._catalog = catalog
        self._balances: Tuple[WalletBalance, ...] = tuple(balances)
        self._processor = BalanceProcessor(priority_table)
        self._rows: List[WalletRow] = []
        self._unsubscribe: Optional[Callable[[], None]] = catalog.subscribe(
            self._on_catalog_refresh
        )
        self.recompute()

    @property
    def rows(self) -> List[WalletRow]:
        return list(self._rows)

    @property
    def balances(self) -> Tuple[WalletBalance, ...]:
        return self._balances

    @property
    def priority_table(self) -> PriorityTable:
        return self._processor.priority_table

    @property
    def total_usd_value(self) -> float:
        return sum(row.usd_value for row in self._rows)

    def set_balances(self, balances: Sequence[WalletBalance]) -> List[WalletRow]:
        self._balances = tuple(balances)
        return self.recompute()

    def set_priority_table(self, priority_table: PriorityTable) -> List[WalletRow]:
        self._processor = BalanceProcessor(priority_table, self._processor.amount_decimals)
        return self.recompute()

    def recompute(self) -> List[WalletRow]:
        """Полный пересчёт строк по текущему снапшоту каталога."""
        snapshot = self._catalog.snapshot
        self._rows = self._processor.rows(self._balances, snapshot.price_of)
        logger.debug(
            "Wallet rows recomputed: balances=%d rows=%d catalog_version=%d",
            len(self._balances),
            len(self._rows),
            snapshot.version,
        )
        return self.rows

    def close(self) -> None:
        """Отписка от refresh каталога."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_catalog_refresh(self, snapshot: CatalogSnapshot) -> None:
        self.recompute()
