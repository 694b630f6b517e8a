"""
Errors — Иерархия исключений ядра оценки и обмена

Все ошибки ядра восстановимы: повторная загрузка feed или повторный ввод
перезапускают pipeline. Ни одна из них не должна ронять host-процесс.

Таксономия:
- FeedParseError: некорректная запись price feed
- InvalidAmountError: нечисловая / неположительная сумма обмена
- MissingPriceError: актив отсутствует в каталоге при оценке
- DivisionByZeroError: цена базового актива равна 0 при расчёте курса
- ExchangeInProgressError: повторный запрос обмена во время settlement
- FeedSourceError (NetworkError, ParseError): сбой внешнего источника цен
- SettlementError: сбой settlement-коллаборатора
"""

from typing import Any, Optional


class ValuationError(Exception):
    """Базовое исключение ядра оценки активов."""


# =============================================================================
# PRICE FEED
# =============================================================================


class FeedParseError(ValuationError):
    """
    Некорректная запись price feed (нет currency или нечисловая price).

    Attributes:
        index: Позиция записи в feed (None, если неизвестна)
        record: Исходная запись
        reason: Текстовое описание нарушения
    """

    def __init__(self, reason: str, index: Optional[int] = None, record: Any = None):
        self.reason = reason
        self.index = index
        self.record = record
        location = f"record #{index}" if index is not None else "record"
        super().__init__(f"Malformed price feed {location}: {reason}")


class FeedSourceError(ValuationError):
    """Сбой внешнего источника price feed (каталог помечается stale)."""


class NetworkError(FeedSourceError):
    """Транспортная ошибка при получении feed."""


class ParseError(FeedSourceError):
    """Тело ответа источника не удалось разобрать как последовательность записей."""


# =============================================================================
# VALUATION / EXCHANGE
# =============================================================================


class MissingPriceError(ValuationError):
    """Актив отсутствует в каталоге (при оценке деградирует в usd_value = 0)."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"No price for {symbol!r} in catalog")


class DivisionByZeroError(ValuationError, ZeroDivisionError):
    """Цена базового актива равна нулю: курс не определён."""

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Cannot compute rate: base asset {symbol!r} has zero price")


class InvalidAmountError(ValuationError):
    """Сумма обмена пустая, нечисловая или <= 0 (блокируется локально)."""

    def __init__(self, amount_text: str, reason: str):
        self.amount_text = amount_text
        self.reason = reason
        super().__init__(f"Invalid exchange amount {amount_text!r}: {reason}")


class ExchangeInProgressError(ValuationError):
    """Обмен уже находится в фазе SETTLING (не более одного обмена в полёте)."""


class SettlementError(ValuationError):
    """Settlement-коллаборатор не смог подтвердить обмен."""
