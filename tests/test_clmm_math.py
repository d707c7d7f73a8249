"""
Test suite for Tickbook CLMM math

Covers:
  - Full-width mul_div / rounding helpers
  - Tick ↔ sqrt-price conversion (Q64.96)
  - Amount deltas and the bounded swap step
  - Direct price conversion
"""

from decimal import Decimal

import pytest

from tickbook.constants import MAX_TICK, MAX_UINT256, MIN_TICK, Q96
from tickbook.exceptions import MathOverflowError
from tickbook.exchange.fixed_point import div_rounding_up, mul_div, mul_div_rounding_up
from tickbook.exchange.swap_math import (
    compute_swap_step,
    convert_at_sqrt_price,
    get_amount0_delta,
    get_amount1_delta,
    get_next_sqrt_price_from_input,
)
from tickbook.exchange.tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    encode_sqrt_price,
    sqrt_price_to_price,
    sqrt_price_to_tick,
    tick_to_sqrt_price,
)


# ============================================================================
# Fixed point
# ============================================================================

class TestMulDiv:

    def test_floor(self):
        assert mul_div(6, 7, 4) == 10

    def test_rounding_up(self):
        assert mul_div_rounding_up(6, 7, 4) == 11
        assert mul_div_rounding_up(6, 8, 4) == 12

    def test_full_width_intermediate(self):
        # a * b overflows 256 bits but the quotient fits
        assert mul_div(2 ** 255, 4, 8) == 2 ** 254
        assert mul_div(MAX_UINT256, MAX_UINT256, MAX_UINT256) == MAX_UINT256

    def test_result_overflow(self):
        with pytest.raises(MathOverflowError):
            mul_div(MAX_UINT256, 2, 1)

    def test_rounding_up_overflow(self):
        with pytest.raises(MathOverflowError):
            mul_div_rounding_up(MAX_UINT256, MAX_UINT256, MAX_UINT256 - 1)

    def test_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            mul_div(1, 1, 0)

    def test_negative_operand(self):
        with pytest.raises(ValueError):
            mul_div(-1, 1, 1)

    def test_div_rounding_up(self):
        assert div_rounding_up(7, 2) == 4
        assert div_rounding_up(6, 2) == 3
        assert div_rounding_up(0, 5) == 0


# ============================================================================
# Tick math
# ============================================================================

class TestTickMath:

    def test_tick_zero_is_q96(self):
        assert tick_to_sqrt_price(0) == Q96
        assert sqrt_price_to_tick(Q96) == 0

    def test_price_at_tick_one(self):
        assert sqrt_price_to_price(tick_to_sqrt_price(1)) == Decimal("1.00010000")
        assert sqrt_price_to_price(Q96) == Decimal("1.00000000")

    def test_monotonic(self):
        ticks = [-50000, -600, -1, 0, 1, 600, 50000]
        prices = [tick_to_sqrt_price(t) for t in ticks]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)

    @pytest.mark.parametrize("tick", [MIN_TICK, -887000, -12345, -60, -1, 1, 60, 12345, 887000, MAX_TICK])
    def test_roundtrip(self, tick):
        assert sqrt_price_to_tick(tick_to_sqrt_price(tick)) == tick

    @pytest.mark.parametrize("tick", [-1000, -1, 1, 200, 5000])
    def test_just_below_boundary_is_previous_tick(self, tick):
        assert sqrt_price_to_tick(tick_to_sqrt_price(tick) - 1) == tick - 1

    def test_bounds(self):
        assert MIN_SQRT_RATIO == tick_to_sqrt_price(MIN_TICK)
        assert MAX_SQRT_RATIO == tick_to_sqrt_price(MAX_TICK)
        assert MIN_SQRT_RATIO < Q96 < MAX_SQRT_RATIO

    def test_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            tick_to_sqrt_price(MAX_TICK + 1)
        with pytest.raises(ValueError, match="out of range"):
            tick_to_sqrt_price(MIN_TICK - 1)
        with pytest.raises(ValueError, match="out of range"):
            sqrt_price_to_tick(MIN_SQRT_RATIO - 1)

    def test_encode_sqrt_price(self):
        assert encode_sqrt_price(1, 1) == Q96
        assert encode_sqrt_price(4, 1) == 2 * Q96
        with pytest.raises(ValueError):
            encode_sqrt_price(0, 1)


# ============================================================================
# Swap math
# ============================================================================

class TestAmountDeltas:

    def test_amount1_delta(self):
        assert get_amount1_delta(Q96, 2 * Q96, Q96, False) == Q96

    def test_amount0_delta(self):
        # L * (1/sqrtA - 1/sqrtB) = L * (1 - 1/2)
        assert get_amount0_delta(Q96, 2 * Q96, Q96, False) == Q96 // 2

    def test_order_of_bounds_irrelevant(self):
        a, b = tick_to_sqrt_price(-60), tick_to_sqrt_price(60)
        assert get_amount0_delta(a, b, 10 ** 18, True) == get_amount0_delta(b, a, 10 ** 18, True)
        assert get_amount1_delta(a, b, 10 ** 18, False) == get_amount1_delta(b, a, 10 ** 18, False)

    def test_rounding_direction(self):
        a, b = tick_to_sqrt_price(-60), tick_to_sqrt_price(60)
        assert get_amount0_delta(a, b, 10 ** 18, True) >= get_amount0_delta(a, b, 10 ** 18, False)
        assert get_amount1_delta(a, b, 10 ** 18, True) >= get_amount1_delta(a, b, 10 ** 18, False)

    def test_zero_liquidity(self):
        assert get_amount0_delta(Q96, 2 * Q96, 0, True) == 0
        assert get_amount1_delta(Q96, 2 * Q96, 0, True) == 0

    def test_next_price_direction(self):
        up = get_next_sqrt_price_from_input(Q96, 10 ** 18, 10 ** 15, zero_for_one=False)
        down = get_next_sqrt_price_from_input(Q96, 10 ** 18, 10 ** 15, zero_for_one=True)
        assert down < Q96 < up
        assert get_next_sqrt_price_from_input(Q96, 10 ** 18, 0, zero_for_one=True) == Q96


class TestComputeSwapStep:

    def test_zero_liquidity_jumps_to_target(self):
        step = compute_swap_step(Q96, 2 * Q96, 0, 1000, 3000)
        assert step.sqrt_price_next == 2 * Q96
        assert step.amount_in == 0
        assert step.amount_out == 0
        assert step.fee_amount == 0

    def test_exhausts_input_before_target(self):
        target = tick_to_sqrt_price(-60)
        step = compute_swap_step(Q96, target, 10 ** 21, 10 ** 15, 3000)
        assert target < step.sqrt_price_next < Q96
        assert step.amount_in + step.fee_amount == 10 ** 15
        assert step.fee_amount > 0
        assert 0 < step.amount_out <= step.amount_in

    def test_reaches_target(self):
        target = tick_to_sqrt_price(-60)
        step = compute_swap_step(Q96, target, 10 ** 18, 10 ** 20, 0)
        assert step.sqrt_price_next == target
        assert step.fee_amount == 0
        assert 0 < step.amount_in < 10 ** 20
        assert step.amount_in == get_amount0_delta(target, Q96, 10 ** 18, True)

    def test_one_for_zero_direction(self):
        target = tick_to_sqrt_price(60)
        step = compute_swap_step(Q96, target, 10 ** 21, 10 ** 15, 500)
        assert Q96 < step.sqrt_price_next < target
        assert step.amount_in + step.fee_amount == 10 ** 15

    def test_fee_out_of_range(self):
        with pytest.raises(ValueError, match="fee_pips"):
            compute_swap_step(Q96, 2 * Q96, 10 ** 18, 1000, 1_000_000)


class TestDirectConversion:

    def test_unit_price(self):
        assert convert_at_sqrt_price(10 ** 18, Q96, True) == 10 ** 18
        assert convert_at_sqrt_price(10 ** 18, Q96, False) == 10 ** 18

    def test_price_four(self):
        # sqrt price 2 => price 4
        assert convert_at_sqrt_price(10 ** 18, 2 * Q96, True) == 4 * 10 ** 18
        assert convert_at_sqrt_price(10 ** 18, 2 * Q96, False) == 10 ** 18 // 4

    def test_large_amount_stays_in_range(self):
        amount = 2 ** 200
        assert convert_at_sqrt_price(amount, Q96, True) == amount

    def test_invalid_price(self):
        with pytest.raises(ValueError):
            convert_at_sqrt_price(1, 0, True)
