"""Decimal rounding of floats.

Rounding goes through the shortest decimal representation of the float
(``str(x)``), so ``round_float(2.675, 2)`` is ``2.68`` even though the
binary value of ``2.675`` is slightly below it.
"""

import math
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext


def _quantize(value: float, precision: int, rounding: str) -> float:
    if not math.isfinite(value):
        return value
    number = Decimal(str(value))
    exponent = Decimal(1).scaleb(-precision)
    # Enough digits for the integer part plus the requested fraction
    with localcontext() as ctx:
        ctx.prec = max(number.adjusted(), 0) + max(precision, 0) + 2
        return float(number.quantize(exponent, rounding=rounding))


def round_float(value: float, precision: int) -> float:
    """Round half away from zero to ``precision`` decimal digits."""
    return _quantize(value, precision, ROUND_HALF_UP)


def round_down_float(value: float, precision: int) -> float:
    """Round toward negative infinity at ``precision`` decimal digits."""
    return _quantize(value, precision, ROUND_FLOOR)


def round_up_float(value: float, precision: int) -> float:
    """Round toward positive infinity at ``precision`` decimal digits."""
    return _quantize(value, precision, ROUND_CEILING)
