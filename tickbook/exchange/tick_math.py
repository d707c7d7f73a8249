"""
Tick math (Uniswap V3 style)

    price(tick)      = 1.0001 ** tick
    sqrt_price(tick) = sqrt(1.0001 ** tick) * 2**96      (Q64.96, integer)

Conversions are evaluated in a 78-digit decimal context and rounded up, so
`tick_to_sqrt_price` is monotonic and `sqrt_price_to_tick` returns the
greatest tick whose sqrt price does not exceed the input.
"""

from __future__ import annotations

import math
from decimal import Context, Decimal, ROUND_CEILING, ROUND_HALF_UP
from functools import lru_cache

from ..constants import MAX_TICK, MIN_TICK, Q96

# Q96 arithmetic requires high precision
_CTX = Context(prec=78)
_TICK_BASE = Decimal("1.0001")
_Q96_DEC = Decimal(Q96)
_LOG_TICK_BASE = math.log(1.0001)


@lru_cache(maxsize=8192)
def tick_to_sqrt_price(tick: int) -> int:
    """Convert tick index → sqrt-price (Q64.96)."""
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"Tick {tick} out of range [{MIN_TICK}, {MAX_TICK}]")
    root = _CTX.sqrt(_CTX.power(_TICK_BASE, tick))
    return int(_CTX.multiply(root, _Q96_DEC).to_integral_value(rounding=ROUND_CEILING))


MIN_SQRT_RATIO = tick_to_sqrt_price(MIN_TICK)
MAX_SQRT_RATIO = tick_to_sqrt_price(MAX_TICK)


def sqrt_price_to_tick(sqrt_price: int) -> int:
    """Greatest tick whose sqrt-price is <= `sqrt_price`."""
    if sqrt_price < MIN_SQRT_RATIO or sqrt_price > MAX_SQRT_RATIO:
        raise ValueError(f"sqrt price {sqrt_price} out of range")

    # float estimate, then walk to the exact boundary
    estimate = math.floor(2 * math.log(sqrt_price / Q96) / _LOG_TICK_BASE)
    tick = min(max(estimate, MIN_TICK), MAX_TICK)
    while tick < MAX_TICK and tick_to_sqrt_price(tick + 1) <= sqrt_price:
        tick += 1
    while tick > MIN_TICK and tick_to_sqrt_price(tick) > sqrt_price:
        tick -= 1
    return tick


def sqrt_price_to_price(sqrt_price: int) -> Decimal:
    """Convert sqrt-price (Q64.96) → human-readable price of token0 in token1."""
    ratio = _CTX.divide(Decimal(sqrt_price), _Q96_DEC)
    return _CTX.multiply(ratio, ratio).quantize(Decimal("0.00000001"), rounding=ROUND_HALF_UP)


def encode_sqrt_price(amount1: int, amount0: int) -> int:
    """sqrt(amount1 / amount0) as Q64.96, e.g. encode_sqrt_price(1, 1) == 2**96."""
    if amount0 <= 0 or amount1 <= 0:
        raise ValueError("Reserves must be positive")
    return math.isqrt((amount1 << 192) // amount0)
