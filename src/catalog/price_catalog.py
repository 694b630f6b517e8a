"""
PriceCatalog — Дедуплицированная таблица цен symbol → Asset

Каталог читают одновременно BalanceProcessor и ExchangeEngine, поэтому
refresh заменяет таблицу целиком (атомарная замена ссылки на immutable
снапшот). Частичное слияние не выполняется: читатель видит либо полностью
новую, либо полностью старую таблицу.

Политика некорректного feed:
- Некорректные записи пропускаются (snapshot.rejected, snapshot.is_degraded)
- Непустой feed без единой валидной записи таблицу не заменяет → stale
- Сбой источника (NetworkError / ParseError) таблицу не заменяет → stale
"""

import functools
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Iterator, List, Mapping, Optional, Sequence, Tuple

from src.catalog.feed import (
    DEFAULT_ICON_URL_TEMPLATE,
    PriceFeedSource,
    RejectedRecord,
    ingest_lenient,
    token_icon_url,
)
from src.core.domain.asset import Asset
from src.core.errors import FeedSourceError, MissingPriceError

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class CatalogConfig:
    """Конфигурация каталога цен."""

    icon_url_template: str = DEFAULT_ICON_URL_TEMPLATE

    def __post_init__(self) -> None:
        if "{symbol}" not in self.icon_url_template:
            raise ValueError(
                f"icon_url_template must contain '{{symbol}}', got {self.icon_url_template!r}"
            )


# =============================================================================
# SNAPSHOT
# =============================================================================


def _freeze(assets: Mapping[str, Asset]) -> Mapping[str, Asset]:
    return MappingProxyType(dict(assets))


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Immutable снапшот таблицы цен.

    Порядок активов — порядок первого появления symbol в feed.
    """

    assets: Mapping[str, Asset] = field(default_factory=lambda: _freeze({}))
    version: int = 0
    rejected: Tuple[RejectedRecord, ...] = ()

    @property
    def is_degraded(self) -> bool:
        """True если при построении часть записей feed была отброшена."""
        return bool(self.rejected)

    def ordered(self) -> Tuple[Asset, ...]:
        """Активы в порядке feed (для выбора значений по умолчанию вызывающим)."""
        return tuple(self.assets.values())

    def get(self, symbol: str) -> Optional[Asset]:
        return self.assets.get(symbol)

    def price_of(self, symbol: str) -> Optional[float]:
        """Цена актива или None, если symbol отсутствует."""
        asset = self.assets.get(symbol)
        return asset.price if asset is not None else None

    def __len__(self) -> int:
        return len(self.assets)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.assets

    def __iter__(self) -> Iterator[Asset]:
        return iter(self.assets.values())


RefreshListener = Callable[[CatalogSnapshot], None]


# =============================================================================
# PRICE CATALOG
# =============================================================================


class PriceCatalog:
    """
    Каталог цен с атомарной заменой снапшота.

    Подписчики (subscribe) вызываются синхронно после каждой успешной
    замены — это точка запуска пересчёта производного состояния.
    Исключение подписчика логируется и не прерывает оповещение остальных.
    """

    def __init__(self, config: Optional[CatalogConfig] = None):
        self.config = config or CatalogConfig()
        self._icon_url = functools.partial(
            token_icon_url, template=self.config.icon_url_template
        )
        self._snapshot = CatalogSnapshot()
        self._is_stale = False
        self._last_error: Optional[str] = None
        self._listeners: List[RefreshListener] = []

    # -------------------------------------------------------------------------
    # Чтение
    # -------------------------------------------------------------------------

    @property
    def snapshot(self) -> CatalogSnapshot:
        """Текущий снапшот (единственная ссылка, заменяемая атомарно)."""
        return self._snapshot

    @property
    def is_stale(self) -> bool:
        """True если последняя попытка refresh не удалась и таблица устарела."""
        return self._is_stale

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def assets(self) -> Tuple[Asset, ...]:
        return self._snapshot.ordered()

    def get(self, symbol: str) -> Optional[Asset]:
        return self._snapshot.get(symbol)

    def price_of(self, symbol: str) -> Optional[float]:
        return self._snapshot.price_of(symbol)

    def require(self, symbol: str) -> Asset:
        """
        Актив по symbol.

        Raises:
            MissingPriceError: Если symbol отсутствует в каталоге
        """
        asset = self._snapshot.get(symbol)
        if asset is None:
            raise MissingPriceError(symbol)
        return asset

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._snapshot

    # -------------------------------------------------------------------------
    # Подписки
    # -------------------------------------------------------------------------

    def subscribe(self, listener: RefreshListener) -> Callable[[], None]:
        """
        Регистрация подписчика на успешный refresh.

        Returns:
            Функция отписки
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def refresh(self, records: Sequence[Mapping[str, Any]]) -> Optional[CatalogSnapshot]:
        """
        Построение новой таблицы из feed и атомарная замена.

        Args:
            records: Сырой feed

        Returns:
            Новый снапшот, либо None если feed целиком некорректен
            (таблица не заменена, каталог помечен stale)
        """
        result = ingest_lenient(records, icon_url=self._icon_url)

        if result.total_records > 0 and not result.assets:
            self._mark_stale(
                f"all {result.total_records} price feed records were malformed"
            )
            return None

        snapshot = CatalogSnapshot(
            assets=_freeze(result.assets),
            version=self._snapshot.version + 1,
            rejected=result.rejected,
        )

        # Атомарная замена: одна операция присваивания ссылки
        self._snapshot = snapshot
        self._is_stale = False
        self._last_error = None

        logger.info(
            "Price catalog refreshed: version=%d assets=%d records=%d rejected=%d",
            snapshot.version,
            len(snapshot),
            result.total_records,
            len(result.rejected),
        )

        self._notify_listeners(snapshot)
        return snapshot

    def _notify_listeners(self, snapshot: CatalogSnapshot) -> None:
        # Сбой одного подписчика не лишает остальных нового снапшота
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(
                    "Price catalog listener %r failed on version=%d", listener, snapshot.version
                )

    async def refresh_from(self, source: PriceFeedSource) -> bool:
        """
        Получение feed от внешнего источника и refresh.

        Сбой источника не пробрасывается: таблица остаётся прежней,
        каталог помечается stale.

        Returns:
            True если таблица заменена
        """
        try:
            records = await source.fetch()
        except FeedSourceError as e:
            self._mark_stale(f"price feed unavailable: {e}")
            return False

        return self.refresh(records) is not None

    def _mark_stale(self, reason: str) -> None:
        self._is_stale = True
        self._last_error = reason
        logger.warning(
            "Price catalog is stale (version=%d kept): %s", self._snapshot.version, reason
        )
