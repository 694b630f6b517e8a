"""
Conversion — Курс и сконвертированная сумма между двумя активами

Формулы:
    rate = to_asset.price / from_asset.price        (from_asset.price != 0)
    to_amount = round_half_up(from_amount * rate, 6)

ИНВАРИАНТЫ:
1. rate(A, B) * rate(B, A) == 1 для ненулевых цен (в пределах float-толерантности)
2. Нулевая цена базового актива → DivisionByZeroError (не NaN/Inf)
3. Пустой / нечисловой ввод суммы → пустой результат, курс 0
"""

from typing import Final, Optional

from src.core.domain.asset import Asset
from src.core.domain.exchange_state import EMPTY_QUOTE, Quote
from src.core.errors import DivisionByZeroError
from src.core.math.numerical_safeguards import (
    format_fixed,
    is_valid_float,
    is_zero,
    parse_non_negative_float,
)

# Количество знаков сконвертированной суммы
CONVERTED_AMOUNT_DECIMALS: Final[int] = 6


def compute_rate(from_asset: Asset, to_asset: Asset) -> float:
    """
    Курс обмена: сколько единиц to_asset даёт одна единица from_asset.

    Args:
        from_asset: Базовый (отдаваемый) актив
        to_asset: Получаемый актив

    Returns:
        to_asset.price / from_asset.price

    Raises:
        DivisionByZeroError: Если from_asset.price == 0 или результат не конечен

    Examples:
        >>> compute_rate(eth(price=2000.0), arb(price=1.5))
        0.00075
    """
    if is_zero(from_asset.price):
        raise DivisionByZeroError(from_asset.symbol)

    rate = to_asset.price / from_asset.price

    # Субнормальная цена базы может дать overflow
    if not is_valid_float(rate):
        raise DivisionByZeroError(from_asset.symbol)

    return rate


def compute_converted_amount(
    from_amount_text: str,
    rate: float,
    decimals: int = CONVERTED_AMOUNT_DECIMALS,
) -> str:
    """
    Сконвертированная сумма в текстовой фиксированной записи.

    Args:
        from_amount_text: Текст суммы из поля ввода
        rate: Курс обмена (>= 0)
        decimals: Знаков после запятой (default: 6)

    Returns:
        from_amount * rate с ровно decimals знаками, либо '' если ввод
        пустой или не разбирается как неотрицательное число

    Examples:
        >>> compute_converted_amount("1", 0.00075)
        '0.000750'
        >>> compute_converted_amount("", 0.00075)
        ''
    """
    amount = parse_non_negative_float(from_amount_text)
    if amount is None:
        return ""

    converted = amount * rate
    if not is_valid_float(converted):
        return ""

    return format_fixed(converted, decimals)


def evaluate_quote(
    from_asset: Optional[Asset],
    to_asset: Optional[Asset],
    from_amount_text: str,
    decimals: int = CONVERTED_AMOUNT_DECIMALS,
) -> Quote:
    """
    Один цикл пересчёта курса и суммы.

    Если актив не выбран или сумма пустая / нечисловая — курс считается
    не заданным: Quote(rate=0.0, to_amount='').

    Raises:
        DivisionByZeroError: Если цена from_asset равна нулю
    """
    if from_asset is None or to_asset is None:
        return EMPTY_QUOTE

    if parse_non_negative_float(from_amount_text) is None:
        return EMPTY_QUOTE

    rate = compute_rate(from_asset, to_asset)
    return Quote(
        rate=rate,
        to_amount=compute_converted_amount(from_amount_text, rate, decimals),
    )
