"""
ValuationFormatter — Отображение цен и сумм в текст

Чистые функции без состояния:
- format_currency: валютная запись с 2–6 знаками после запятой ("$2,000.00", "$0.000123")
- format_usd_value: USD-оценка строки кошелька, ровно 2 знака ("$3000.00")
- format_rate_line: строка курса "1 ETH = 0.000750 ARB"
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Final, Optional

from src.core.math.numerical_safeguards import format_fixed, is_valid_float, round_half_up


# =============================================================================
# CURRENCY FORMAT
# =============================================================================


@dataclass(frozen=True)
class CurrencyFormat:
    """
    Локальные правила валютной записи.

    Attributes:
        symbol: Символ валюты
        symbol_first: True — "$1.50", False — "1,50 €"
        group_separator: Разделитель разрядов
        decimal_separator: Десятичный разделитель
        min_fraction_digits: Минимум знаков после запятой
        max_fraction_digits: Максимум знаков после запятой
    """

    symbol: str = "$"
    symbol_first: bool = True
    group_separator: str = ","
    decimal_separator: str = "."
    min_fraction_digits: int = 2
    max_fraction_digits: int = 6

    def __post_init__(self) -> None:
        if self.min_fraction_digits < 0:
            raise ValueError(
                f"min_fraction_digits must be non-negative, got {self.min_fraction_digits}"
            )
        if self.max_fraction_digits < self.min_fraction_digits:
            raise ValueError(
                f"max_fraction_digits ({self.max_fraction_digits}) must be >= "
                f"min_fraction_digits ({self.min_fraction_digits})"
            )
        if self.group_separator == self.decimal_separator:
            raise ValueError("group_separator and decimal_separator must differ")


# en-US, USD
USD_FORMAT: Final[CurrencyFormat] = CurrencyFormat()

# de-DE, EUR
EUR_FORMAT: Final[CurrencyFormat] = CurrencyFormat(
    symbol="€", symbol_first=False, group_separator=".", decimal_separator=","
)

# Знаков в строке курса
RATE_DISPLAY_DECIMALS: Final[int] = 6


def _split_fraction(rounded: Decimal, fmt: CurrencyFormat) -> tuple[str, str]:
    integer_part, _, fraction = f"{rounded.copy_abs():f}".partition(".")

    # Обрезаем хвостовые нули до минимума знаков
    fraction = fraction.rstrip("0")
    if len(fraction) < fmt.min_fraction_digits:
        fraction = fraction.ljust(fmt.min_fraction_digits, "0")

    grouped = f"{int(integer_part):,}".replace(",", fmt.group_separator)
    return grouped, fraction


def format_currency(value: float, fmt: CurrencyFormat = USD_FORMAT) -> str:
    """
    Валютная запись значения.

    Округление half-up до max_fraction_digits, затем хвостовые нули
    отбрасываются до min_fraction_digits.

    Args:
        value: Цена или сумма
        fmt: Локальные правила записи (default: en-US USD)

    Returns:
        Текст вида "$2,000.00", "-$1.50", "1.234,50 €"

    Raises:
        ValueError: Если value NaN/Inf

    Examples:
        >>> format_currency(2000)
        '$2,000.00'
        >>> format_currency(0.000123456)
        '$0.000123'
        >>> format_currency(1.5)
        '$1.50'
    """
    if not is_valid_float(value):
        raise ValueError(f"value must be a valid float (not NaN/Inf), got {value}")

    rounded = round_half_up(float(value), fmt.max_fraction_digits)
    grouped, fraction = _split_fraction(rounded, fmt)

    number = grouped if not fraction else f"{grouped}{fmt.decimal_separator}{fraction}"
    text = f"{fmt.symbol}{number}" if fmt.symbol_first else f"{number} {fmt.symbol}"

    if rounded < 0:
        return f"-{text}"
    return text


def format_usd_value(value: float) -> str:
    """
    USD-оценка строки кошелька: ровно 2 знака, без разделителя разрядов.

    Examples:
        >>> format_usd_value(3000)
        '$3000.00'
    """
    if not is_valid_float(value):
        raise ValueError(f"value must be a valid float (not NaN/Inf), got {value}")
    return f"${format_fixed(value, 2)}"


def format_rate_line(
    from_symbol: str,
    to_symbol: str,
    rate: float,
    decimals: int = RATE_DISPLAY_DECIMALS,
) -> Optional[str]:
    """
    Строка курса для панели обмена.

    Returns:
        "1 {from} = {rate} {to}" или None, если курс не задан (rate <= 0)

    Examples:
        >>> format_rate_line("ETH", "ARB", 0.00075)
        '1 ETH = 0.000750 ARB'
    """
    if not is_valid_float(rate) or rate <= 0:
        return None
    return f"1 {from_symbol} = {format_fixed(rate, decimals)} {to_symbol}"
