"""
Tickbook Concentrated-Liquidity Pool Engine

Reference CLMM engine the limit-order hook runs against:
  - Concentrated liquidity (Uniswap V3 model): tick-based, Q64.96 sqrt-price
  - Four fee tiers: 0.01%, 0.05%, 0.30%, 1.00%
  - Exact-input swaps stepping across initialised ticks, bounded by a
    sqrt-price limit
  - Liquidity positions per (owner, tick range)
  - Token settlement through the TokenVault (each pool owns a reserve account)
  - Lifecycle hooks: afterInitialize, beforeSwap, afterSwap
  - Hook fills settled along the curve inside the current tick, or at a
    fixed price from the free reserve (never from what positions are owed)

Security features:
  - Slippage protection (min_amount_out on every swap)
  - Reentrancy lock on swap + liquidity mutations
  - Deterministic IDs (blake2b, no uuid4)
  - Emergency pause
  - Pool, vault and hook ledgers restored when a hook refuses a swap
"""

from __future__ import annotations

import bisect
import hashlib
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from ..constants import MAX_TICK, MIN_TICK
from ..exceptions import (
    HookRejectedError,
    InsufficientBalanceError,
    InsufficientReserveError,
    PoolAlreadyInitializedError,
    PoolError,
    PoolNotFoundError,
)
from ..logger import get_logger
from .hooks import HookContext, HookRegistry
from .swap_math import SwapStep, compute_swap_step, get_amount0_delta, get_amount1_delta
from .tick_math import (
    MAX_SQRT_RATIO,
    MIN_SQRT_RATIO,
    sqrt_price_to_price,
    sqrt_price_to_tick,
    tick_to_sqrt_price,
)
from .vault import TokenVault

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class FeeTier(IntEnum):
    """Fee tiers in pips (hundredths of a basis point)."""
    ULTRA_LOW = 100      # 0.01 %
    LOW = 500            # 0.05 %
    MEDIUM = 3000        # 0.30 %
    HIGH = 10000         # 1.00 %

    @property
    def rate(self) -> Decimal:
        return Decimal(int(self)) / Decimal("1000000")

    @property
    def tick_spacing(self) -> int:
        return _TICK_SPACINGS[int(self)]


_TICK_SPACINGS = {
    100: 1,
    500: 10,
    3000: 60,
    10000: 200,
}


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PoolKey:
    """Identity of a pool. currency0 < currency1 (canonical ordering)."""
    currency0: str
    currency1: str
    fee: FeeTier
    tick_spacing: int

    @property
    def id(self) -> str:
        """Deterministic pool ID."""
        raw = f"{self.currency0}:{self.currency1}:{int(self.fee)}:{self.tick_spacing}".encode()
        return hashlib.blake2b(raw, digest_size=8).hexdigest()


@dataclass
class TickInfo:
    """Liquidity info at a single tick boundary."""
    tick: int
    liquidity_net: int = 0
    liquidity_gross: int = 0

    @property
    def initialized(self) -> bool:
        return self.liquidity_gross > 0


@dataclass
class Position:
    """A concentrated-liquidity position."""
    id: str
    owner: str
    pool_id: str
    tick_lower: int
    tick_upper: int
    liquidity: int = 0
    created_at: float = field(default_factory=time.time)

    @property
    def is_active(self) -> bool:
        return self.liquidity > 0


@dataclass
class PoolState:
    """State of a concentrated-liquidity pool."""
    key: PoolKey
    sqrt_price: int
    tick: int
    liquidity: int = 0

    ticks: Dict[int, TickInfo] = field(default_factory=dict)
    positions: Dict[str, Position] = field(default_factory=dict)

    # Stats
    fees_collected_0: int = 0
    fees_collected_1: int = 0
    total_volume_0: int = 0
    total_volume_1: int = 0
    created_at: float = field(default_factory=time.time)

    @property
    def id(self) -> str:
        return self.key.id

    @property
    def price(self) -> Decimal:
        return sqrt_price_to_price(self.sqrt_price)


@dataclass(frozen=True)
class SwapResult:
    """Outcome of an exact-input swap."""
    pool_id: str
    zero_for_one: bool
    amount_in: int
    amount_out: int
    fee_amount: int
    sqrt_price_after: int
    tick_after: int


# ---------------------------------------------------------------------------
# Concentrated Liquidity Pool
# ---------------------------------------------------------------------------

class ConcentratedLiquidityPool:
    """
    Single concentrated-liquidity pool engine.

    Implements:
      - Swap (exact-in) across initialised ticks with a sqrt-price limit
      - Add / remove liquidity at tick ranges
      - Token settlement against the pool's vault reserve account
      - Reentrancy protection
    """

    def __init__(self, state: PoolState, vault: TokenVault, hooks: HookRegistry):
        self.state = state
        self.vault = vault
        self.hooks = hooks
        self._locked: bool = False   # reentrancy guard
        self._paused: bool = False   # emergency pause

    @property
    def reserve_account(self) -> str:
        return f"pool:{self.state.id}"

    # -- Reentrancy guard ---------------------------------------------------

    def _acquire_lock(self) -> None:
        if self._locked:
            raise PoolError("Reentrancy detected: pool is locked")
        self._locked = True

    def _release_lock(self) -> None:
        self._locked = False

    # -- Emergency controls -------------------------------------------------

    def pause(self) -> None:
        self._paused = True
        logger.warning("Pool %s PAUSED", self.state.id)

    def unpause(self) -> None:
        self._paused = False
        logger.info("Pool %s resumed", self.state.id)

    @property
    def is_paused(self) -> bool:
        return self._paused

    # -- Liquidity ----------------------------------------------------------

    def modify_liquidity(
        self,
        owner: str,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int,
    ) -> Tuple[int, int]:
        """
        Add (delta > 0) or remove (delta < 0) liquidity in [tick_lower, tick_upper).

        Returns:
            (amount0, amount1) deposited or withdrawn
        """
        if self._paused:
            raise PoolError("Pool is paused: emergency mode")
        if tick_lower >= tick_upper:
            raise PoolError("tick_lower must be < tick_upper")
        if tick_lower < MIN_TICK or tick_upper > MAX_TICK:
            raise PoolError("Tick out of range")
        spacing = self.state.key.tick_spacing
        if tick_lower % spacing != 0 or tick_upper % spacing != 0:
            raise PoolError(f"Ticks must be multiples of tick_spacing ({spacing})")
        if liquidity_delta == 0:
            raise PoolError("Liquidity delta must be non-zero")

        self._acquire_lock()
        try:
            return self._execute_modify_liquidity(owner, tick_lower, tick_upper, liquidity_delta)
        finally:
            self._release_lock()

    def _execute_modify_liquidity(
        self,
        owner: str,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int,
    ) -> Tuple[int, int]:
        key = self.state.key
        position_id = self._deterministic_position_id(self.state.id, owner, tick_lower, tick_upper)
        position = self.state.positions.get(position_id)
        adding = liquidity_delta > 0
        liquidity = abs(liquidity_delta)

        if not adding and (position is None or position.liquidity < liquidity):
            raise PoolError("Cannot remove more liquidity than position holds")

        amount0, amount1 = self._amounts_for_liquidity(tick_lower, tick_upper, liquidity, round_up=adding)

        # Settle tokens before touching pool state
        if adding:
            for currency, amount in ((key.currency0, amount0), (key.currency1, amount1)):
                balance = self.vault.balance_of(currency, owner)
                if balance < amount:
                    raise InsufficientBalanceError(f"Balance {balance} < {amount} for {currency} held by {owner}")
            self.vault.transfer(key.currency0, owner, self.reserve_account, amount0)
            self.vault.transfer(key.currency1, owner, self.reserve_account, amount1)
        else:
            self.vault.pay_out(key.currency0, self.reserve_account, owner, amount0)
            self.vault.pay_out(key.currency1, self.reserve_account, owner, amount1)

        if position is None:
            position = Position(
                id=position_id,
                owner=owner,
                pool_id=self.state.id,
                tick_lower=tick_lower,
                tick_upper=tick_upper,
            )
            self.state.positions[position_id] = position
        position.liquidity += liquidity_delta

        self._update_tick(tick_lower, liquidity_delta, is_lower=True)
        self._update_tick(tick_upper, liquidity_delta, is_lower=False)

        if tick_lower <= self.state.tick < tick_upper:
            self.state.liquidity += liquidity_delta

        if position.liquidity == 0:
            del self.state.positions[position_id]

        logger.info(
            "Liquidity %s pool %s [%d, %d) L=%d amounts=(%d, %d)",
            "added to" if adding else "removed from",
            self.state.id, tick_lower, tick_upper, liquidity, amount0, amount1,
        )
        return amount0, amount1

    def _amounts_for_liquidity(self, tick_lower: int, tick_upper: int, liquidity: int, round_up: bool) -> Tuple[int, int]:
        sqrt_lower = tick_to_sqrt_price(tick_lower)
        sqrt_upper = tick_to_sqrt_price(tick_upper)
        current = self.state.sqrt_price

        if self.state.tick < tick_lower:
            return get_amount0_delta(sqrt_lower, sqrt_upper, liquidity, round_up), 0
        if self.state.tick < tick_upper:
            return (
                get_amount0_delta(current, sqrt_upper, liquidity, round_up),
                get_amount1_delta(sqrt_lower, current, liquidity, round_up),
            )
        return 0, get_amount1_delta(sqrt_lower, sqrt_upper, liquidity, round_up)

    # -- Swap ---------------------------------------------------------------

    def swap(
        self,
        sender: str,
        zero_for_one: bool,
        amount_in: int,
        sqrt_price_limit: Optional[int] = None,
        min_amount_out: int = 0,
    ) -> SwapResult:
        """
        Execute an exact-input swap on this pool.

        Args:
            sender: address paying the input and receiving the output
            zero_for_one: True if swapping token0→token1 (price moves down)
            amount_in: exact input amount (fees included)
            sqrt_price_limit: price the swap may not cross (defaults to the range bound)
            min_amount_out: minimum acceptable output (slippage protection)

        Raises:
            PoolError: on zero amount, bad limit, slippage exceeded, reentrancy or pause
            HookRejectedError: when a lifecycle hook refuses the swap
        """
        if self._paused:
            raise PoolError("Pool is paused: emergency mode")
        if amount_in <= 0:
            raise PoolError("Swap amount must be positive")

        current = self.state.sqrt_price
        if sqrt_price_limit is None:
            sqrt_price_limit = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
        if zero_for_one:
            if not MIN_SQRT_RATIO < sqrt_price_limit < current:
                raise PoolError(f"Invalid sqrt price limit {sqrt_price_limit} for token0 → token1")
        else:
            if not current < sqrt_price_limit < MAX_SQRT_RATIO:
                raise PoolError(f"Invalid sqrt price limit {sqrt_price_limit} for token1 → token0")

        self._acquire_lock()
        try:
            return self._execute_swap(sender, zero_for_one, amount_in, sqrt_price_limit, min_amount_out)
        finally:
            self._release_lock()

    def _execute_swap(
        self,
        sender: str,
        zero_for_one: bool,
        amount_in: int,
        sqrt_price_limit: int,
        min_amount_out: int,
    ) -> SwapResult:
        """Core swap logic, called under reentrancy lock."""
        state = self.state
        key = state.key
        currency_in, currency_out = (
            (key.currency0, key.currency1) if zero_for_one else (key.currency1, key.currency0)
        )

        ctx = self.hook_context(sender, zero_for_one, amount_in)
        verdict = self.hooks.run_before_swap(ctx)
        if not verdict.allow:
            raise HookRejectedError(verdict.reason)

        balance = self.vault.balance_of(currency_in, sender)
        if balance < amount_in:
            raise InsufficientBalanceError(f"Balance {balance} < {amount_in} for {currency_in} held by {sender}")

        remaining = amount_in
        amount_out = 0
        fee_total = 0
        sqrt_price = state.sqrt_price
        tick = state.tick
        liquidity = state.liquidity

        while remaining > 0 and sqrt_price != sqrt_price_limit:
            next_tick = self._next_initialized_tick(tick, zero_for_one)
            sqrt_next = tick_to_sqrt_price(next_tick)
            if zero_for_one:
                target = max(sqrt_next, sqrt_price_limit)
            else:
                target = min(sqrt_next, sqrt_price_limit)

            step: SwapStep = compute_swap_step(sqrt_price, target, liquidity, remaining, int(key.fee))
            remaining -= step.amount_in + step.fee_amount
            amount_out += step.amount_out
            fee_total += step.fee_amount

            if step.sqrt_price_next == sqrt_next:
                # crossed an initialised boundary
                info = state.ticks.get(next_tick)
                if info is not None and info.initialized:
                    liquidity += -info.liquidity_net if zero_for_one else info.liquidity_net
                tick = next_tick - 1 if zero_for_one else next_tick
            elif step.sqrt_price_next != sqrt_price:
                tick = sqrt_price_to_tick(step.sqrt_price_next)
            sqrt_price = step.sqrt_price_next

        amount_used = amount_in - remaining

        # --- Slippage protection ---
        if min_amount_out > 0 and amount_out < min_amount_out:
            raise PoolError(f"Slippage exceeded: got {amount_out}, minimum {min_amount_out}")

        reserve = self.vault.balance_of(currency_out, self.reserve_account)
        if reserve < amount_out:
            raise InsufficientReserveError(f"Insufficient reserves: {reserve} < {amount_out}")

        # afterSwap hooks settle fills through this pool; a refusal reverts all of it
        snapshot = self.take_snapshot()
        vault_snapshot = self.vault.take_snapshot()

        state.sqrt_price = sqrt_price
        state.tick = tick
        state.liquidity = liquidity
        self.vault.transfer(currency_in, sender, self.reserve_account, amount_used)
        self.vault.pay_out(currency_out, self.reserve_account, sender, amount_out)

        hook_snapshot = self.hooks.take_snapshot(state.id)
        ctx = self.hook_context(sender, zero_for_one, amount_used, amount_out)
        verdict = self.hooks.run_after_swap(ctx)
        if not verdict.allow:
            self.hooks.restore_snapshot(hook_snapshot)
            self.vault.restore_snapshot(vault_snapshot)
            self._restore_snapshot(snapshot)
            raise HookRejectedError(verdict.reason)

        if zero_for_one:
            state.total_volume_0 += amount_used
            state.fees_collected_0 += fee_total
        else:
            state.total_volume_1 += amount_used
            state.fees_collected_1 += fee_total

        logger.debug(
            "Swap on pool %s: in=%d out=%d fee=%d -> tick %d",
            state.id, amount_used, amount_out, fee_total, state.tick,
        )
        return SwapResult(
            pool_id=state.id,
            zero_for_one=zero_for_one,
            amount_in=amount_used,
            amount_out=amount_out,
            fee_amount=fee_total,
            sqrt_price_after=state.sqrt_price,
            tick_after=state.tick,
        )

    # -- Hook settlement ----------------------------------------------------

    def free_reserve(self) -> Tuple[int, int]:
        """Reserve balances not owed to any position at the current price."""
        key = self.state.key
        owed0 = owed1 = 0
        for position in self.state.positions.values():
            amount0, amount1 = self._amounts_for_liquidity(
                position.tick_lower, position.tick_upper, position.liquidity, round_up=True
            )
            owed0 += amount0
            owed1 += amount1
        free0 = self.vault.balance_of(key.currency0, self.reserve_account) - owed0
        free1 = self.vault.balance_of(key.currency1, self.reserve_account) - owed1
        return max(free0, 0), max(free1, 0)

    def settle_fill(
        self,
        payer: str,
        zero_for_one: bool,
        amount_in: int,
        amount_out: int,
        sqrt_price_next: Optional[int] = None,
    ) -> None:
        """
        Settle a trade a hook executes against this pool.

        With `sqrt_price_next` the trade ran along the active liquidity: the
        amounts must match the curve between the current and next price,
        which must stay inside the current tick, and the pool moves there.
        Without it the trade converted at a fixed price and is paid only
        from the free reserve; the price does not move.

        Raises:
            InsufficientReserveError: the reserve cannot pay `amount_out`
            PoolError: the amounts or the next price are off the curve
        """
        state = self.state
        key = state.key
        currency_in, currency_out = (
            (key.currency0, key.currency1) if zero_for_one else (key.currency1, key.currency0)
        )

        if sqrt_price_next is None:
            free0, free1 = self.free_reserve()
            available = free1 if zero_for_one else free0
        else:
            self._check_curve(zero_for_one, amount_in, amount_out, sqrt_price_next)
            available = self.vault.balance_of(currency_out, self.reserve_account)
        if available < amount_out:
            raise InsufficientReserveError(
                f"Pool {state.id} can settle {available} of {amount_out} {currency_out}"
            )

        self.vault.transfer(currency_in, payer, self.reserve_account, amount_in)
        self.vault.pay_out(currency_out, self.reserve_account, payer, amount_out)
        if sqrt_price_next is not None:
            state.sqrt_price = sqrt_price_next

        if zero_for_one:
            state.total_volume_0 += amount_in
        else:
            state.total_volume_1 += amount_in

    def donate(self, sender: str, amount0: int, amount1: int) -> None:
        """Add tokens to the free reserve without minting a position."""
        if self._paused:
            raise PoolError("Pool is paused: emergency mode")
        key = self.state.key
        for currency, amount in ((key.currency0, amount0), (key.currency1, amount1)):
            balance = self.vault.balance_of(currency, sender)
            if balance < amount:
                raise InsufficientBalanceError(f"Balance {balance} < {amount} for {currency} held by {sender}")
        self.vault.transfer(key.currency0, sender, self.reserve_account, amount0)
        self.vault.transfer(key.currency1, sender, self.reserve_account, amount1)
        logger.info("Donation to pool %s: amounts=(%d, %d)", self.state.id, amount0, amount1)

    def _check_curve(self, zero_for_one: bool, amount_in: int, amount_out: int, sqrt_price_next: int) -> None:
        state = self.state
        current = state.sqrt_price
        if zero_for_one and not sqrt_price_next <= current:
            raise PoolError("Token0 in must not raise the price")
        if not zero_for_one and not sqrt_price_next >= current:
            raise PoolError("Token1 in must not lower the price")
        if not MIN_SQRT_RATIO <= sqrt_price_next < MAX_SQRT_RATIO:
            raise PoolError(f"Sqrt price out of range: {sqrt_price_next}")
        if sqrt_price_to_tick(sqrt_price_next) != state.tick:
            raise PoolError(f"Hook trades must stay inside tick {state.tick}")

        if zero_for_one:
            required = get_amount0_delta(sqrt_price_next, current, state.liquidity, True)
            produced = get_amount1_delta(sqrt_price_next, current, state.liquidity, False)
        else:
            required = get_amount1_delta(current, sqrt_price_next, state.liquidity, True)
            produced = get_amount0_delta(current, sqrt_price_next, state.liquidity, False)
        if amount_in < required or amount_out > produced:
            raise PoolError(
                f"Trade off the curve: in {amount_in} (needs {required}), out {amount_out} (max {produced})"
            )

    # -- Snapshots ----------------------------------------------------------

    def take_snapshot(self) -> Dict[str, int]:
        state = self.state
        return {
            "sqrt_price": state.sqrt_price,
            "tick": state.tick,
            "liquidity": state.liquidity,
            "total_volume_0": state.total_volume_0,
            "total_volume_1": state.total_volume_1,
        }

    def _restore_snapshot(self, snapshot: Dict[str, int]) -> None:
        state = self.state
        state.sqrt_price = snapshot["sqrt_price"]
        state.tick = snapshot["tick"]
        state.liquidity = snapshot["liquidity"]
        state.total_volume_0 = snapshot["total_volume_0"]
        state.total_volume_1 = snapshot["total_volume_1"]

    # -- Internal -----------------------------------------------------------

    def hook_context(self, sender: str, zero_for_one: bool, amount_in: int, amount_out: int = 0) -> HookContext:
        key = self.state.key
        return HookContext(
            pool_id=self.state.id,
            sender=sender,
            currency0=key.currency0,
            currency1=key.currency1,
            fee=int(key.fee),
            tick_spacing=key.tick_spacing,
            zero_for_one=zero_for_one,
            amount_in=amount_in,
            amount_out=amount_out,
            sqrt_price=self.state.sqrt_price,
            tick=self.state.tick,
        )

    def _next_initialized_tick(self, tick: int, lte: bool) -> int:
        """Nearest initialised tick at or below `tick` (lte) or strictly above it."""
        initialized: List[int] = sorted(t for t, info in self.state.ticks.items() if info.initialized)
        if lte:
            idx = bisect.bisect_right(initialized, tick)
            return initialized[idx - 1] if idx > 0 else MIN_TICK
        idx = bisect.bisect_right(initialized, tick)
        return initialized[idx] if idx < len(initialized) else MAX_TICK

    def _update_tick(self, tick: int, liquidity_delta: int, is_lower: bool) -> None:
        info = self.state.ticks.get(tick)
        if info is None:
            info = TickInfo(tick=tick)
            self.state.ticks[tick] = info

        info.liquidity_gross += liquidity_delta
        if is_lower:
            info.liquidity_net += liquidity_delta
        else:
            info.liquidity_net -= liquidity_delta

        if not info.initialized:
            del self.state.ticks[tick]

    @staticmethod
    def _deterministic_position_id(pool_id: str, owner: str, tick_lower: int, tick_upper: int) -> str:
        """Deterministic position ID."""
        raw = f"{pool_id}:{owner}:{tick_lower}:{tick_upper}".encode()
        return hashlib.blake2b(raw, digest_size=8).hexdigest()


# ---------------------------------------------------------------------------
# Pool Manager  (singleton-like registry)
# ---------------------------------------------------------------------------

class PoolManager:
    """
    Manages all pools and exposes the pool-engine interface the limit-order
    hook consumes:

      - get_price_state / get_liquidity
      - bounded_swap_step (one exact-input step, fee override)
      - reserve_account + vault (custody)
      - settle_fill (moves the price for curve fills, free reserve otherwise)
    """

    def __init__(self, vault: Optional[TokenVault] = None, hooks: Optional[HookRegistry] = None) -> None:
        self.vault = vault if vault is not None else TokenVault()
        self.hooks = hooks if hooks is not None else HookRegistry()
        self._pools: Dict[str, ConcentratedLiquidityPool] = {}

    @property
    def pool_count(self) -> int:
        return len(self._pools)

    def initialize(
        self,
        currency0: str,
        currency1: str,
        fee_tier: FeeTier,
        sqrt_price: int,
        tick_spacing: Optional[int] = None,
    ) -> str:
        """
        Create and initialise a pool at `sqrt_price`.

        Returns:
            The deterministic pool id
        """
        # Canonical ordering
        if currency0 == currency1:
            raise PoolError("Pool currencies must differ")
        if currency0 > currency1:
            currency0, currency1 = currency1, currency0
            sqrt_price = (1 << 192) // sqrt_price

        fee_tier = FeeTier(fee_tier)
        spacing = tick_spacing if tick_spacing is not None else fee_tier.tick_spacing
        if spacing <= 0:
            raise PoolError("tick_spacing must be positive")
        if not MIN_SQRT_RATIO <= sqrt_price < MAX_SQRT_RATIO:
            raise PoolError(f"Initial sqrt price out of range: {sqrt_price}")

        key = PoolKey(currency0=currency0, currency1=currency1, fee=fee_tier, tick_spacing=spacing)
        if key.id in self._pools:
            raise PoolAlreadyInitializedError(f"Pool already exists for {currency0}:{currency1} fee={int(fee_tier)}")

        state = PoolState(key=key, sqrt_price=sqrt_price, tick=sqrt_price_to_tick(sqrt_price))
        pool = ConcentratedLiquidityPool(state, self.vault, self.hooks)
        self._pools[key.id] = pool

        verdict = self.hooks.run_after_initialize(pool.hook_context("", False, 0))
        if not verdict.allow:
            del self._pools[key.id]
            raise HookRejectedError(verdict.reason)

        logger.info("Pool %s initialized: %s/%s fee=%d tick %d", key.id, currency0, currency1, int(fee_tier), state.tick)
        return key.id

    def get_pool(self, pool_id: str) -> ConcentratedLiquidityPool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise PoolNotFoundError(f"Pool {pool_id} not found")
        return pool

    def has_pool(self, pool_id: str) -> bool:
        return pool_id in self._pools

    def get_all_pools(self) -> List[ConcentratedLiquidityPool]:
        return list(self._pools.values())

    # -- Pool-engine interface ----------------------------------------------

    def get_price_state(self, pool_id: str) -> Tuple[int, int]:
        state = self.get_pool(pool_id).state
        return state.sqrt_price, state.tick

    def get_liquidity(self, pool_id: str) -> int:
        return self.get_pool(pool_id).state.liquidity

    def reserve_account(self, pool_id: str) -> str:
        return self.get_pool(pool_id).reserve_account

    def free_reserve(self, pool_id: str) -> Tuple[int, int]:
        return self.get_pool(pool_id).free_reserve()

    def settle_fill(
        self,
        pool_id: str,
        payer: str,
        zero_for_one: bool,
        amount_in: int,
        amount_out: int,
        sqrt_price_next: Optional[int] = None,
    ) -> None:
        self.get_pool(pool_id).settle_fill(payer, zero_for_one, amount_in, amount_out, sqrt_price_next)

    @staticmethod
    def bounded_swap_step(
        sqrt_price_current: int,
        sqrt_price_target: int,
        liquidity: int,
        amount_remaining: int,
        fee_pips: int = 0,
    ) -> SwapStep:
        return compute_swap_step(sqrt_price_current, sqrt_price_target, liquidity, amount_remaining, fee_pips)

    # -- Convenience --------------------------------------------------------

    def modify_liquidity(
        self,
        owner: str,
        pool_id: str,
        tick_lower: int,
        tick_upper: int,
        liquidity_delta: int,
    ) -> Tuple[int, int]:
        return self.get_pool(pool_id).modify_liquidity(owner, tick_lower, tick_upper, liquidity_delta)

    def swap(
        self,
        sender: str,
        pool_id: str,
        zero_for_one: bool,
        amount_in: int,
        sqrt_price_limit: Optional[int] = None,
        min_amount_out: int = 0,
    ) -> SwapResult:
        return self.get_pool(pool_id).swap(sender, zero_for_one, amount_in, sqrt_price_limit, min_amount_out)

    def donate(self, sender: str, pool_id: str, amount0: int, amount1: int) -> None:
        self.get_pool(pool_id).donate(sender, amount0, amount1)
