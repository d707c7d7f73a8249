"""
Full-width fixed-point helpers.

Every multiply-divide in the CLMM math goes through `mul_div`: the product
is computed exactly (Python ints are unbounded, so the intermediate is
effectively 512-bit) and only the final quotient has to fit in a uint256.
"""

from __future__ import annotations

from ..constants import MAX_UINT256
from ..exceptions import MathOverflowError


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a full-width intermediate."""
    if denominator <= 0:
        raise ZeroDivisionError("mul_div denominator must be positive")
    if a < 0 or b < 0:
        raise ValueError("mul_div operands must be non-negative")
    result = (a * b) // denominator
    if result > MAX_UINT256:
        raise MathOverflowError(f"mul_div result exceeds uint256: {a} * {b} / {denominator}")
    return result


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator) with a full-width intermediate."""
    result = mul_div(a, b, denominator)
    if (a * b) % denominator:
        if result >= MAX_UINT256:
            raise MathOverflowError("mul_div_rounding_up result exceeds uint256")
        result += 1
    return result


def div_rounding_up(x: int, y: int) -> int:
    """ceil(x / y) for non-negative x and positive y."""
    if y <= 0:
        raise ZeroDivisionError("div_rounding_up divisor must be positive")
    return -(-x // y)
