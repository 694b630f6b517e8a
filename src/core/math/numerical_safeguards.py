"""
Numerical Safeguards — Safe Math Primitives для оценки активов

Модуль обеспечивает численную устойчивость операций с ценами и суммами:
- Проверка валидности float (NaN/Inf никогда не пропагируют)
- Epsilon-сравнения float с учётом машинной точности
- Разбор пользовательского ввода сумм (текст → неотрицательный float)
- Детерминированное округление half-up до N знаков

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Разбор ввода никогда не бросает исключение (невалидный ввод → None)
2. NaN/Inf не проходят через разбор и валидацию
3. Округление детерминировано и не зависит от двоичного представления
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Final, Optional

# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Epsilon для сравнения float (относительная толерантность)
EPS_FLOAT_COMPARE_REL: Final[float] = 1e-9

# Epsilon для сравнения float (абсолютная толерантность)
EPS_FLOAT_COMPARE_ABS: Final[float] = 1e-12

# Минимальная precision Decimal-контекста при округлении
DECIMAL_MIN_PRECISION: Final[int] = 64

# Формат числового ввода: десятичная запись с опциональной экспонентой.
# Соответствует тому, что принимает числовое поле ввода (без "inf"/"nan").
_AMOUNT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$"
)


# =============================================================================
# NaN/Inf ПРОВЕРКИ
# =============================================================================


def is_valid_float(value: float) -> bool:
    """
    Проверка, является ли float валидным (не NaN, не Inf).

    Args:
        value: Проверяемое значение

    Returns:
        True если значение валидное (finite), False если NaN или Inf
    """
    return math.isfinite(value)


# =============================================================================
# EPSILON-СРАВНЕНИЯ FLOAT
# =============================================================================


def is_close(
    a: float,
    b: float,
    rel_tol: float = EPS_FLOAT_COMPARE_REL,
    abs_tol: float = EPS_FLOAT_COMPARE_ABS,
) -> bool:
    """
    Сравнение float с учётом машинной точности.

    Алгоритм:
        abs(a - b) <= max(rel_tol * max(abs(a), abs(b)), abs_tol)

    Examples:
        >>> is_close(1.0, 1.0 + 1e-10)
        True
        >>> is_close(1.0, 1.1)
        False
    """
    return math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol)


def is_zero(value: float, tol: float = 0.0) -> bool:
    """
    Проверка, равно ли значение нулю с учётом толерантности.

    По умолчанию tol = 0.0: цена 1e-13 — валидная (хоть и малая) цена,
    делить на неё можно.

    Args:
        value: Проверяемое значение
        tol: Абсолютная толерантность

    Returns:
        True если abs(value) <= tol
    """
    return abs(value) <= tol


# =============================================================================
# РАЗБОР ВВОДА
# =============================================================================


def parse_non_negative_float(text: Optional[str]) -> Optional[float]:
    """
    Разбор текстовой суммы в неотрицательный конечный float.

    Args:
        text: Текст из поля ввода (может быть None или пустым)

    Returns:
        float >= 0 или None, если текст пустой, нечисловой,
        отрицательный или не конечный

    Examples:
        >>> parse_non_negative_float("1.5")
        1.5
        >>> parse_non_negative_float("")
        None
        >>> parse_non_negative_float("-2")
        None
        >>> parse_non_negative_float("abc")
        None
    """
    if text is None:
        return None

    stripped = text.strip()
    if not stripped or not _AMOUNT_PATTERN.match(stripped):
        return None

    value = float(stripped)
    if not is_valid_float(value) or value < 0:
        return None

    # "-0" разбирается в -0.0: нормализуем знак
    return abs(value)


# =============================================================================
# ОКРУГЛЕНИЕ
# =============================================================================


def round_half_up(value: float, decimals: int) -> Decimal:
    """
    Округление до decimals знаков по правилу half-up (от нуля).

    Округление выполняется над кратчайшим десятичным представлением float
    (repr), поэтому 0.000750 * 1 даёт ровно "0.000750", а не хвост
    двоичной погрешности.

    Args:
        value: Конечное значение
        decimals: Количество знаков после запятой (>= 0)

    Returns:
        Decimal с ровно decimals знаками после запятой

    Raises:
        ValueError: Если value не конечное или decimals < 0
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    if not is_valid_float(value):
        raise ValueError(f"value must be a valid float (not NaN/Inf), got {value}")

    exact = Decimal(repr(value))
    quantum = Decimal(1).scaleb(-decimals)
    try:
        with localcontext() as ctx:
            # Все целые разряды + decimals знаков должны поместиться в precision
            ctx.prec = max(DECIMAL_MIN_PRECISION, exact.adjusted() + decimals + 2)
            return exact.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise ValueError(f"Cannot round {value} to {decimals} decimals: {e}") from e


def format_fixed(value: float, decimals: int) -> str:
    """
    Фиксированная запись с ровно decimals знаками (half-up).

    Examples:
        >>> format_fixed(1.5, 4)
        '1.5000'
        >>> format_fixed(0.00075, 6)
        '0.000750'
    """
    rounded = round_half_up(value, decimals)
    if rounded == 0:
        # Без "-0.0000"
        rounded = rounded.copy_abs()
    return f"{rounded:.{decimals}f}"


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_non_negative(value: float, name: str) -> None:
    """
    Валидация, что значение неотрицательное и конечное.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)

    Raises:
        ValueError: Если value < 0 или NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_positive(value: float, name: str) -> None:
    """
    Валидация, что значение строго положительное и конечное.

    Raises:
        ValueError: Если value <= 0 или NaN/Inf
    """
    if not is_valid_float(value):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
