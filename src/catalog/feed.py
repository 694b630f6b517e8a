"""
Price Feed — Разбор и дедупликация сырого price feed

Сырой feed: последовательность {currency, price} (возможны дубли symbol).
Результат ingest: упорядоченный mapping symbol → Asset.

ИНВАРИАНТЫ:
1. Не более одного Asset на symbol
2. "Latest wins": значение symbol — последняя запись с этим symbol в порядке feed
3. Порядок ключей — порядок первого появления symbol в feed
4. Icon URI выводится из symbol чистой функцией (без сетевых обращений)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Final, Mapping, Protocol, Sequence, Tuple

from pydantic import ValidationError as ModelValidationError

from src.core.contracts import PriceRecordValidator
from src.core.domain.asset import Asset, PriceRecord
from src.core.errors import FeedParseError

logger = logging.getLogger(__name__)

# Шаблон URI иконки токена
DEFAULT_ICON_URL_TEMPLATE: Final[str] = (
    "https://raw.githubusercontent.com/Switcheo/token-icons/main/tokens/{symbol}.svg"
)

IconUrlResolver = Callable[[str], str]


# =============================================================================
# ICON RESOLUTION
# =============================================================================


def token_icon_url(symbol: str, template: str = DEFAULT_ICON_URL_TEMPLATE) -> str:
    """
    URI иконки актива по фиксированному шаблону.

    Существование ресурса не проверяется.

    Examples:
        >>> token_icon_url("ETH")
        'https://raw.githubusercontent.com/Switcheo/token-icons/main/tokens/ETH.svg'
    """
    return template.format(symbol=symbol)


# =============================================================================
# RECORD PARSING
# =============================================================================

# Глобальный экземпляр валидатора записи
_RECORD_VALIDATOR = PriceRecordValidator()


def parse_price_record(raw: Any, index: int | None = None) -> PriceRecord:
    """
    Валидация одной сырой записи feed.

    Args:
        raw: Запись feed (ожидается mapping с currency и price)
        index: Позиция записи в feed (для диагностики)

    Returns:
        PriceRecord

    Raises:
        FeedParseError: Если нет currency, price нечисловая / отрицательная / не конечная
    """
    message = _RECORD_VALIDATOR.first_error_message(raw)
    if message is not None:
        raise FeedParseError(message, index=index, record=raw)

    try:
        return PriceRecord(currency=raw["currency"], price=raw["price"])
    except ModelValidationError as e:
        reason = "; ".join(err["msg"] for err in e.errors())
        raise FeedParseError(reason, index=index, record=raw) from e


def _asset_from_record(record: PriceRecord, icon_url: IconUrlResolver) -> Asset:
    return Asset(
        symbol=record.currency,
        name=record.currency,
        icon_url=icon_url(record.currency),
        price=record.price,
    )


# =============================================================================
# INGEST
# =============================================================================


@dataclass(frozen=True)
class RejectedRecord:
    """Отклонённая запись feed."""

    index: int
    record: Any
    reason: str


@dataclass(frozen=True)
class IngestResult:
    """Результат нестрогого ingest: принятые активы и отклонённые записи."""

    assets: Dict[str, Asset] = field(default_factory=dict)
    rejected: Tuple[RejectedRecord, ...] = ()
    total_records: int = 0

    @property
    def accepted_count(self) -> int:
        return self.total_records - len(self.rejected)


def ingest(
    records: Sequence[Mapping[str, Any]],
    icon_url: IconUrlResolver = token_icon_url,
) -> Dict[str, Asset]:
    """
    Строгий ingest feed: первая некорректная запись прерывает разбор.

    Args:
        records: Последовательность сырых записей {currency, price}
        icon_url: Функция symbol → URI иконки

    Returns:
        Упорядоченный dict symbol → Asset (latest wins)

    Raises:
        FeedParseError: На первой некорректной записи
    """
    assets: Dict[str, Asset] = {}
    for index, raw in enumerate(records):
        record = parse_price_record(raw, index=index)
        assets[record.currency] = _asset_from_record(record, icon_url)
    return assets


def ingest_lenient(
    records: Sequence[Mapping[str, Any]],
    icon_url: IconUrlResolver = token_icon_url,
) -> IngestResult:
    """
    Нестрогий ingest feed: некорректные записи пропускаются и логируются.

    Returns:
        IngestResult с принятыми активами (latest wins) и отклонёнными записями
    """
    assets: Dict[str, Asset] = {}
    rejected: list[RejectedRecord] = []

    for index, raw in enumerate(records):
        try:
            record = parse_price_record(raw, index=index)
        except FeedParseError as e:
            logger.warning("Skipping malformed price feed record #%d: %s", index, e.reason)
            rejected.append(RejectedRecord(index=index, record=raw, reason=e.reason))
            continue
        assets[record.currency] = _asset_from_record(record, icon_url)

    return IngestResult(assets=assets, rejected=tuple(rejected), total_records=len(records))


# =============================================================================
# FEED SOURCE PORT
# =============================================================================


class PriceFeedSource(Protocol):
    """
    Внешний коллаборатор, получающий сырой feed.

    Реализация транспорта вне ядра. При сбое бросает NetworkError или
    ParseError (подклассы FeedSourceError).
    """

    async def fetch(self) -> Sequence[Mapping[str, Any]]:
        ...
