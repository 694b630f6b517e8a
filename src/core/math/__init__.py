"""
Core math modules для оценки активов

Математические примитивы и численные алгоритмы с гарантией стабильности.
"""

# Numerical Safeguards
from src.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    # NaN/Inf
    is_valid_float,
    # Epsilon comparisons
    is_close,
    is_zero,
    # Parsing / rounding
    format_fixed,
    parse_non_negative_float,
    round_half_up,
    # Validation
    validate_non_negative,
    validate_positive,
)

# Conversion
from src.core.math.conversion import (
    CONVERTED_AMOUNT_DECIMALS,
    compute_converted_amount,
    compute_rate,
    evaluate_quote,
)

__all__ = [
    # Numerical Safeguards — Epsilon constants
    "EPS_FLOAT_COMPARE_ABS",
    "EPS_FLOAT_COMPARE_REL",
    # Numerical Safeguards — NaN/Inf
    "is_valid_float",
    # Numerical Safeguards — Epsilon comparisons
    "is_close",
    "is_zero",
    # Numerical Safeguards — Parsing / rounding
    "format_fixed",
    "parse_non_negative_float",
    "round_half_up",
    # Numerical Safeguards — Validation
    "validate_non_negative",
    "validate_positive",
    # Conversion — Constants
    "CONVERTED_AMOUNT_DECIMALS",
    # Conversion — Functions
    "compute_converted_amount",
    "compute_rate",
    "evaluate_quote",
]
