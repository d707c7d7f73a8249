"""
CLMM swap math on Q64.96 sqrt prices.

Integer port of the concentrated-liquidity formulas:

    amount0 = L * (sqrtB - sqrtA) / (sqrtA * sqrtB)      (scaled by Q96)
    amount1 = L * (sqrtB - sqrtA)                        (scaled by 1/Q96)

`compute_swap_step` is the bounded exact-input step used both by the pool
engine's swap loop and by the limit-order fill engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import FEE_PIPS_DENOMINATOR, Q96
from .fixed_point import div_rounding_up, mul_div, mul_div_rounding_up


@dataclass(frozen=True)
class SwapStep:
    """Result of a single bounded swap step."""
    sqrt_price_next: int
    amount_in: int
    amount_out: int
    fee_amount: int


def get_amount0_delta(sqrt_price_a: int, sqrt_price_b: int, liquidity: int, round_up: bool) -> int:
    """Token0 needed to move between two sqrt prices at constant liquidity."""
    if sqrt_price_a > sqrt_price_b:
        sqrt_price_a, sqrt_price_b = sqrt_price_b, sqrt_price_a
    if sqrt_price_a <= 0:
        raise ValueError("sqrt price must be positive")
    if liquidity == 0 or sqrt_price_a == sqrt_price_b:
        return 0

    numerator1 = liquidity << 96
    numerator2 = sqrt_price_b - sqrt_price_a
    if round_up:
        return div_rounding_up(mul_div_rounding_up(numerator1, numerator2, sqrt_price_b), sqrt_price_a)
    return mul_div(numerator1, numerator2, sqrt_price_b) // sqrt_price_a


def get_amount1_delta(sqrt_price_a: int, sqrt_price_b: int, liquidity: int, round_up: bool) -> int:
    """Token1 needed to move between two sqrt prices at constant liquidity."""
    if sqrt_price_a > sqrt_price_b:
        sqrt_price_a, sqrt_price_b = sqrt_price_b, sqrt_price_a
    if liquidity == 0 or sqrt_price_a == sqrt_price_b:
        return 0
    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_price_b - sqrt_price_a, Q96)
    return mul_div(liquidity, sqrt_price_b - sqrt_price_a, Q96)


def get_next_sqrt_price_from_input(sqrt_price: int, liquidity: int, amount_in: int, zero_for_one: bool) -> int:
    """
    Next sqrt price after adding `amount_in` of the input token.

    token0 in rounds the price up, token1 in rounds it down, so the price
    never moves further than the input pays for.
    """
    if sqrt_price <= 0:
        raise ValueError("sqrt price must be positive")
    if liquidity <= 0:
        raise ValueError("liquidity must be positive")
    if amount_in == 0:
        return sqrt_price

    if zero_for_one:
        numerator1 = liquidity << 96
        denominator = numerator1 + amount_in * sqrt_price
        return mul_div_rounding_up(numerator1, sqrt_price, denominator)
    return sqrt_price + mul_div(amount_in, Q96, liquidity)


def compute_swap_step(
    sqrt_price_current: int,
    sqrt_price_target: int,
    liquidity: int,
    amount_remaining: int,
    fee_pips: int,
) -> SwapStep:
    """
    Swap exact input within [current, target].

    Direction is implied by the bounds: target <= current means token0 in.
    With zero liquidity the price moves straight to the target and no tokens
    change hands.
    """
    if amount_remaining < 0:
        raise ValueError("amount_remaining must be non-negative")
    if not 0 <= fee_pips < FEE_PIPS_DENOMINATOR:
        raise ValueError(f"fee_pips out of range: {fee_pips}")

    zero_for_one = sqrt_price_current >= sqrt_price_target
    amount_remaining_less_fee = mul_div(amount_remaining, FEE_PIPS_DENOMINATOR - fee_pips, FEE_PIPS_DENOMINATOR)

    if zero_for_one:
        amount_in = get_amount0_delta(sqrt_price_target, sqrt_price_current, liquidity, True)
    else:
        amount_in = get_amount1_delta(sqrt_price_current, sqrt_price_target, liquidity, True)

    if amount_remaining_less_fee >= amount_in:
        sqrt_price_next = sqrt_price_target
    else:
        sqrt_price_next = get_next_sqrt_price_from_input(
            sqrt_price_current, liquidity, amount_remaining_less_fee, zero_for_one
        )

    reached_target = sqrt_price_next == sqrt_price_target

    if zero_for_one:
        if not reached_target:
            amount_in = get_amount0_delta(sqrt_price_next, sqrt_price_current, liquidity, True)
        amount_out = get_amount1_delta(sqrt_price_next, sqrt_price_current, liquidity, False)
    else:
        if not reached_target:
            amount_in = get_amount1_delta(sqrt_price_current, sqrt_price_next, liquidity, True)
        amount_out = get_amount0_delta(sqrt_price_current, sqrt_price_next, liquidity, False)

    if not reached_target:
        # remainder of the input is the fee
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_rounding_up(amount_in, fee_pips, FEE_PIPS_DENOMINATOR - fee_pips)

    return SwapStep(
        sqrt_price_next=sqrt_price_next,
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=fee_amount,
    )


def convert_at_sqrt_price(amount: int, sqrt_price: int, zero_for_one: bool) -> int:
    """
    Convert `amount` of the input token at a fixed sqrt price.

    Two sequential mul-divs keep every intermediate within uint256:
    token0 → token1 multiplies by price, token1 → token0 divides by it.
    """
    if sqrt_price <= 0:
        raise ValueError("sqrt price must be positive")
    if zero_for_one:
        return mul_div(mul_div(amount, sqrt_price, Q96), sqrt_price, Q96)
    return mul_div(mul_div(amount, Q96, sqrt_price), Q96, sqrt_price)
