"""
Tickbook Limit-Order Hook

Resting limit orders on a concentrated-liquidity pool, executed when the
pool's price lands on an order's target tick:
  - Order ledger: integer ids from 1, orders are never deleted
  - Tick index: bounded bucket of order ids per (pool, tick)
  - Fill engine: exact fill amounts from CLMM swap math, partial fills,
    proportional slippage protection
  - Settlement: a fill trades against the curve and moves the pool price
    back toward the target tick; without active liquidity it converts at
    the tick price out of the pool's free reserve only
  - Claim ledger: per-order proceeds in both pool currencies
  - Lifecycle callbacks: afterInitialize binds the pool, beforeSwap observes,
    afterSwap fills; a swap refused later in afterSwap reverts the fill pass

Security features:
  - Escrow of the full input at placement; the hook is the custodian
  - Owner-only cancel / claim / reclaim
  - Bounded per-tick capacity: caps the work of one fill pass
  - Public cleanup: anyone can compact a tick bucket
  - Validation before any balance moves; failed calls leave no state
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Protocol, Tuple

from ..constants import (
    BPS_DENOMINATOR,
    DEFAULT_EXECUTION_FEE_BPS,
    MAX_EXECUTION_FEE_BPS,
    MAX_ORDERS_PER_TICK,
    MAX_TICK,
    MIN_TICK,
)
from ..exceptions import (
    InsufficientReserveError,
    InvalidAmountError,
    InvalidFeeError,
    InvalidTickError,
    NothingToClaimError,
    OrderAlreadyCancelledError,
    OrderAlreadyFilledError,
    OrderAlreadyReclaimedError,
    OrderExpiredError,
    OrderNotExpiredError,
    OrderNotFoundError,
    PoolNotInitializedError,
    TickCapacityExceededError,
    UnauthorizedError,
)
from ..logger import get_logger
from .fixed_point import mul_div_rounding_up
from .hooks import HookContext, HookFlags, HookResult
from .swap_math import SwapStep, convert_at_sqrt_price
from .tick_math import MAX_SQRT_RATIO, tick_to_sqrt_price
from .vault import TokenVault

if TYPE_CHECKING:
    from ..config.loader import EngineConfig

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OrderStatus(str, Enum):
    OPEN = "open"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


LIVE_STATUSES = (OrderStatus.OPEN, OrderStatus.PARTIALLY_FILLED)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass
class Order:
    """A resting limit order."""
    id: int
    owner: str
    pool_id: str
    zero_for_one: bool          # True = sell token0 for token1
    target_tick: int
    amount_in: int
    amount_out_minimum: int
    deadline: float
    amount_filled: int = 0
    status: OrderStatus = OrderStatus.OPEN
    created_at: float = field(default_factory=time.time)
    reclaimed: bool = False     # expired escrow returned

    @property
    def remaining(self) -> int:
        return self.amount_in - self.amount_filled

    @property
    def is_active(self) -> bool:
        return self.status in LIVE_STATUSES

    def is_expired(self, now: float) -> bool:
        return now > self.deadline


@dataclass
class ClaimableAmount:
    """Unclaimed proceeds of one order."""
    amount0: int = 0
    amount1: int = 0

    @property
    def is_empty(self) -> bool:
        return self.amount0 == 0 and self.amount1 == 0


@dataclass(frozen=True)
class PoolBinding:
    """Pool metadata captured when the pool was initialised."""
    pool_id: str
    currency0: str
    currency1: str
    fee: int
    tick_spacing: int

    def currencies(self, zero_for_one: bool) -> Tuple[str, str]:
        """(input, output) currency for an order direction."""
        if zero_for_one:
            return self.currency0, self.currency1
        return self.currency1, self.currency0


# ---------------------------------------------------------------------------
# Pool engine interface (Protocol for structural typing)
# ---------------------------------------------------------------------------

class PoolEngine(Protocol):
    """What the hook needs from the pool engine."""

    vault: TokenVault

    def get_price_state(self, pool_id: str) -> Tuple[int, int]: ...
    def get_liquidity(self, pool_id: str) -> int: ...
    def settle_fill(
        self,
        pool_id: str,
        payer: str,
        zero_for_one: bool,
        amount_in: int,
        amount_out: int,
        sqrt_price_next: Optional[int] = None,
    ) -> None: ...

    def bounded_swap_step(
        self,
        sqrt_price_current: int,
        sqrt_price_target: int,
        liquidity: int,
        amount_remaining: int,
        fee_pips: int = 0,
    ) -> SwapStep: ...


# ---------------------------------------------------------------------------
# Limit-Order Hook
# ---------------------------------------------------------------------------

class LimitOrderHook:
    """
    Limit-order book attached to pools as a lifecycle hook.

    Usage::

        hook = LimitOrderHook(manager, owner="admin")
        manager.hooks.register(hook)
        pool_id = manager.initialize(token_a, token_b, FeeTier.MEDIUM, sqrt_price)
        order_id = hook.place_order(alice, pool_id, True, 0, 10**18, 0, deadline)
    """

    def __init__(
        self,
        pools: PoolEngine,
        owner: str,
        address: str = "hook:limit-orders",
        max_orders_per_tick: int = MAX_ORDERS_PER_TICK,
        execution_fee_bps: int = DEFAULT_EXECUTION_FEE_BPS,
        fee_collector: str = "",
        clock: Callable[[], float] = time.time,
    ):
        if max_orders_per_tick <= 0:
            raise ValueError("max_orders_per_tick must be positive")
        if not 0 <= execution_fee_bps <= MAX_EXECUTION_FEE_BPS:
            raise InvalidFeeError(f"Execution fee {execution_fee_bps} bps exceeds {MAX_EXECUTION_FEE_BPS}")

        self.pools = pools
        self.owner = owner
        self.address = address
        self.max_orders_per_tick = max_orders_per_tick
        self.execution_fee_bps = execution_fee_bps
        self.fee_collector = fee_collector or owner
        self._clock = clock

        self._orders: Dict[int, Order] = {}
        self._next_order_id: int = 1
        self._tick_orders: Dict[Tuple[str, int], List[int]] = {}
        self._user_orders: Dict[str, List[int]] = {}
        self._claimable: Dict[int, ClaimableAmount] = {}
        self._bindings: Dict[str, PoolBinding] = {}
        self.accrued_fees: Dict[str, int] = {}

    @classmethod
    def from_config(cls, config: "EngineConfig", pools: PoolEngine, owner: str, **kwargs) -> "LimitOrderHook":
        section = config.limit_orders
        return cls(
            pools,
            owner,
            max_orders_per_tick=section.max_orders_per_tick,
            execution_fee_bps=section.execution_fee_bps,
            fee_collector=section.fee_collector,
            **kwargs,
        )

    @property
    def flags(self) -> HookFlags:
        return HookFlags.AFTER_INITIALIZE | HookFlags.BEFORE_SWAP | HookFlags.AFTER_SWAP

    @property
    def vault(self) -> TokenVault:
        return self.pools.vault

    # -- Lifecycle callbacks ------------------------------------------------

    def on_after_initialize(self, ctx: HookContext) -> HookResult:
        self._bindings[ctx.pool_id] = PoolBinding(
            pool_id=ctx.pool_id,
            currency0=ctx.currency0,
            currency1=ctx.currency1,
            fee=ctx.fee,
            tick_spacing=ctx.tick_spacing,
        )
        logger.info("Limit orders enabled for pool %s", ctx.pool_id)
        return HookResult(allow=True)

    def on_before_swap(self, ctx: HookContext) -> HookResult:
        try:
            self.before_swap(ctx.pool_id, ctx.zero_for_one)
        except PoolNotInitializedError as e:
            return HookResult(allow=False, reason=str(e))
        return HookResult(allow=True)

    def on_after_swap(self, ctx: HookContext) -> HookResult:
        self.after_swap(ctx.pool_id, ctx.zero_for_one)
        return HookResult(allow=True)

    def before_swap(self, pool_id: str, zero_for_one: bool) -> int:
        """Advisory scan of the current tick. Returns the number of live candidates."""
        self._require_binding(pool_id)
        _, tick = self.pools.get_price_state(pool_id)
        now = self._clock()
        candidates = sum(
            1 for order_id in self._tick_orders.get((pool_id, tick), ())
            if self._orders[order_id].is_active and not self._orders[order_id].is_expired(now)
        )
        logger.debug("Pool %s tick %d: %d resting candidates before swap", pool_id, tick, candidates)
        return candidates

    def after_swap(self, pool_id: str, zero_for_one: bool) -> int:
        """
        Fill pass over the bucket at the pool's new tick.

        Args:
            pool_id: pool that just swapped
            zero_for_one: direction of that swap

        Returns:
            Number of orders that received a fill
        """
        binding = self._require_binding(pool_id)
        _, tick = self.pools.get_price_state(pool_id)
        now = self._clock()
        filled = 0

        for order_id in list(self._tick_orders.get((pool_id, tick), ())):
            order = self._orders[order_id]
            if not order.is_active:
                continue
            if order.is_expired(now):
                order.status = OrderStatus.EXPIRED
                logger.info("Order %d expired at tick %d", order.id, tick)
                continue
            if order.zero_for_one == zero_for_one or not self._price_reached(order, tick):
                continue
            if self._execute_fill(order, binding):
                filled += 1

        return filled

    # -- Order lifecycle ----------------------------------------------------

    def place_order(
        self,
        sender: str,
        pool_id: str,
        zero_for_one: bool,
        target_tick: int,
        amount_in: int,
        amount_out_minimum: int,
        deadline: float,
    ) -> int:
        """
        Escrow `amount_in` and rest an order at `target_tick`.

        Raises:
            PoolNotInitializedError, InvalidAmountError, InvalidTickError,
            TickCapacityExceededError, and the vault's balance/allowance errors
        """
        binding = self._require_binding(pool_id)
        now = self._clock()

        if amount_in <= 0:
            raise InvalidAmountError("Order amount must be positive")
        if amount_out_minimum < 0:
            raise InvalidAmountError("Minimum output cannot be negative")
        if deadline <= now:
            raise InvalidAmountError("Deadline must be in the future")
        if target_tick < MIN_TICK or target_tick > MAX_TICK:
            raise InvalidTickError(f"Tick {target_tick} out of range [{MIN_TICK}, {MAX_TICK}]")

        bucket_key = (pool_id, target_tick)
        bucket = self._tick_orders.get(bucket_key, [])
        if len(bucket) >= self.max_orders_per_tick:
            raise TickCapacityExceededError(
                f"Tick {target_tick} already holds {self.max_orders_per_tick} orders"
            )

        currency_in, _ = binding.currencies(zero_for_one)
        self.vault.escrow_from(currency_in, sender, self.address, amount_in)

        order_id = self._next_order_id
        self._next_order_id += 1
        self._orders[order_id] = Order(
            id=order_id,
            owner=sender,
            pool_id=pool_id,
            zero_for_one=zero_for_one,
            target_tick=target_tick,
            amount_in=amount_in,
            amount_out_minimum=amount_out_minimum,
            deadline=deadline,
            created_at=now,
        )
        self._tick_orders.setdefault(bucket_key, bucket).append(order_id)
        self._user_orders.setdefault(sender, []).append(order_id)

        logger.info(
            "Order %d placed: %s sells %d %s at tick %d (pool %s)",
            order_id, sender, amount_in, currency_in, target_tick, pool_id,
        )
        return order_id

    def cancel_order(self, sender: str, order_id: int) -> int:
        """Cancel a live order and refund its unfilled input. Returns the refund."""
        order = self._get_owned_order(sender, order_id)
        if order.status == OrderStatus.FILLED:
            raise OrderAlreadyFilledError(f"Order {order_id} is already filled")
        if order.status == OrderStatus.CANCELLED:
            raise OrderAlreadyCancelledError(f"Order {order_id} is already cancelled")
        if order.status == OrderStatus.EXPIRED:
            raise OrderExpiredError(f"Order {order_id} expired; use reclaim_expired")

        refund = order.remaining
        currency_in, _ = self._bindings[order.pool_id].currencies(order.zero_for_one)
        self.vault.pay_out(currency_in, self.address, sender, refund)
        order.status = OrderStatus.CANCELLED

        logger.info("Order %d cancelled by %s, refunded %d", order_id, sender, refund)
        return refund

    def claim_order(self, sender: str, order_id: int) -> ClaimableAmount:
        """Pay out accumulated proceeds of an order to its owner."""
        order = self._get_owned_order(sender, order_id)
        claimable = self._claimable.get(order_id)
        if claimable is None or claimable.is_empty:
            raise NothingToClaimError(f"Order {order_id} has nothing to claim")

        binding = self._bindings[order.pool_id]
        paid = ClaimableAmount(claimable.amount0, claimable.amount1)
        self.vault.pay_out(binding.currency0, self.address, sender, paid.amount0)
        self.vault.pay_out(binding.currency1, self.address, sender, paid.amount1)
        claimable.amount0 = 0
        claimable.amount1 = 0

        logger.info("Order %d claimed by %s: amount0=%d amount1=%d", order_id, sender, paid.amount0, paid.amount1)
        return paid

    def reclaim_expired(self, sender: str, order_id: int) -> int:
        """Return the unfilled escrow of an expired order, once."""
        order = self._get_owned_order(sender, order_id)
        if order.status != OrderStatus.EXPIRED:
            raise OrderNotExpiredError(f"Order {order_id} is {order.status.value}, not expired")
        if order.reclaimed:
            raise OrderAlreadyReclaimedError(f"Order {order_id} escrow already reclaimed")

        refund = order.remaining
        currency_in, _ = self._bindings[order.pool_id].currencies(order.zero_for_one)
        self.vault.pay_out(currency_in, self.address, sender, refund)
        order.reclaimed = True

        logger.info("Order %d expired escrow returned to %s: %d", order_id, sender, refund)
        return refund

    def cleanup_tick_orders(self, pool_id: str, tick: int) -> int:
        """
        Expire stale orders in a bucket and compact it to live entries.

        Callable by anyone. Returns the number of slots freed.
        """
        bucket = self._tick_orders.get((pool_id, tick))
        if not bucket:
            return 0

        now = self._clock()
        before = len(bucket)
        i = 0
        while i < len(bucket):
            order = self._orders[bucket[i]]
            if order.is_active and order.is_expired(now):
                order.status = OrderStatus.EXPIRED
            if order.is_active:
                i += 1
            else:
                # swap-and-truncate
                bucket[i] = bucket[-1]
                bucket.pop()

        removed = before - len(bucket)
        if removed:
            logger.info("Cleaned %d orders from pool %s tick %d", removed, pool_id, tick)
        return removed

    # -- Queries ------------------------------------------------------------

    def get_order(self, order_id: int) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        return order

    def get_user_orders(self, owner: str) -> List[int]:
        return list(self._user_orders.get(owner, ()))

    def get_tick_orders(self, pool_id: str, tick: int) -> List[int]:
        return list(self._tick_orders.get((pool_id, tick), ()))

    def get_tick_order_count(self, pool_id: str, tick: int) -> int:
        return len(self._tick_orders.get((pool_id, tick), ()))

    def get_claimable(self, order_id: int) -> ClaimableAmount:
        self.get_order(order_id)
        claimable = self._claimable.get(order_id)
        if claimable is None:
            return ClaimableAmount()
        return ClaimableAmount(claimable.amount0, claimable.amount1)

    def get_pool_binding(self, pool_id: str) -> Optional[PoolBinding]:
        return self._bindings.get(pool_id)

    def is_fillable(self, order_id: int) -> bool:
        """Live, unexpired and the pool price has reached the target."""
        order = self.get_order(order_id)
        if not order.is_active or order.is_expired(self._clock()):
            return False
        _, tick = self.pools.get_price_state(order.pool_id)
        return self._price_reached(order, tick)

    # -- Admin --------------------------------------------------------------

    def set_execution_fee(self, sender: str, fee_bps: int) -> None:
        self._require_owner(sender)
        if not 0 <= fee_bps <= MAX_EXECUTION_FEE_BPS:
            raise InvalidFeeError(f"Execution fee {fee_bps} bps exceeds {MAX_EXECUTION_FEE_BPS}")
        self.execution_fee_bps = fee_bps
        logger.info("Execution fee set to %d bps", fee_bps)

    def set_fee_collector(self, sender: str, collector: str) -> None:
        self._require_owner(sender)
        if not collector:
            raise ValueError("Fee collector address required")
        self.fee_collector = collector
        logger.info("Fee collector set to %s", collector)

    def collect_fees(self, sender: str, currency: str) -> int:
        """Send accrued execution fees in `currency` to the fee collector."""
        self._require_owner(sender)
        amount = self.accrued_fees.get(currency, 0)
        if amount == 0:
            return 0
        self.vault.pay_out(currency, self.address, self.fee_collector, amount)
        self.accrued_fees[currency] = 0
        logger.info("Collected %d %s fees to %s", amount, currency, self.fee_collector)
        return amount

    # -- Fill engine --------------------------------------------------------

    def _execute_fill(self, order: Order, binding: PoolBinding) -> bool:
        consumed, gross, sqrt_price_next = self._compute_fill(order)
        if consumed == 0 or gross == 0:
            logger.debug("Order %d: fill yields nothing, skipped", order.id)
            return False

        fee = gross * self.execution_fee_bps // BPS_DENOMINATOR
        net = gross - fee

        required = mul_div_rounding_up(order.amount_out_minimum, consumed, order.amount_in)
        if net < required:
            logger.debug("Order %d: output %d below minimum %d, skipped", order.id, net, required)
            return False

        try:
            self.pools.settle_fill(
                order.pool_id, self.address, order.zero_for_one, consumed, gross, sqrt_price_next,
            )
        except InsufficientReserveError as e:
            logger.debug("Order %d: %s, skipped", order.id, e)
            return False

        _, currency_out = binding.currencies(order.zero_for_one)
        order.amount_filled += consumed
        order.status = OrderStatus.FILLED if order.amount_filled == order.amount_in else OrderStatus.PARTIALLY_FILLED

        claimable = self._claimable.setdefault(order.id, ClaimableAmount())
        if order.zero_for_one:
            claimable.amount1 += net
        else:
            claimable.amount0 += net
        if fee:
            self.accrued_fees[currency_out] = self.accrued_fees.get(currency_out, 0) + fee

        logger.info(
            "Order %d %s: in=%d out=%d fee=%d",
            order.id, order.status.value, consumed, net, fee,
        )
        return True

    def _compute_fill(self, order: Order) -> Tuple[int, int, Optional[int]]:
        """
        Fill amounts for the order's remaining input.

        With active liquidity the fill is a bounded swap step that pushes the
        price through the order's tick, toward its lower edge when selling
        token0 and its upper edge when selling token1. With no liquidity, or
        no room left in the tick, the remainder converts at the target price.

        Returns:
            (input consumed, gross output, pool sqrt price after the fill or
            None for a fixed-price conversion)
        """
        remaining = order.remaining
        target = tick_to_sqrt_price(order.target_tick)
        sqrt_price, _ = self.pools.get_price_state(order.pool_id)
        liquidity = self.pools.get_liquidity(order.pool_id)
        bound = self._step_bound(order)

        room = sqrt_price > bound if order.zero_for_one else sqrt_price < bound
        if liquidity == 0 or not room:
            return remaining, convert_at_sqrt_price(remaining, target, order.zero_for_one), None

        step = self.pools.bounded_swap_step(sqrt_price, bound, liquidity, remaining, 0)
        # rounding dust left short of the bound counts as consumed
        consumed = step.amount_in + step.fee_amount
        if step.amount_out == 0:
            consumed = consumed or remaining
            return consumed, convert_at_sqrt_price(consumed, target, order.zero_for_one), None
        return consumed, step.amount_out, step.sqrt_price_next

    @staticmethod
    def _step_bound(order: Order) -> int:
        """Farthest sqrt price a fill may reach without leaving the target tick."""
        if order.zero_for_one:
            return tick_to_sqrt_price(order.target_tick)
        if order.target_tick >= MAX_TICK:
            return MAX_SQRT_RATIO - 1
        return tick_to_sqrt_price(order.target_tick + 1) - 1

    # -- Revert support -----------------------------------------------------

    def take_snapshot(self, pool_id: str) -> Dict[str, Any]:
        """Capture everything a fill pass at the pool's current tick can change."""
        if pool_id not in self._bindings:
            return {}
        _, tick = self.pools.get_price_state(pool_id)
        order_ids = self._tick_orders.get((pool_id, tick), ())
        claimable = {}
        for order_id in order_ids:
            saved = self._claimable.get(order_id)
            claimable[order_id] = None if saved is None else (saved.amount0, saved.amount1)
        return {
            "orders": {i: (self._orders[i].amount_filled, self._orders[i].status) for i in order_ids},
            "claimable": claimable,
            "accrued_fees": dict(self.accrued_fees),
        }

    def restore_snapshot(self, snapshot: Dict[str, Any]) -> None:
        if not snapshot:
            return
        for order_id, (amount_filled, status) in snapshot["orders"].items():
            order = self._orders[order_id]
            order.amount_filled = amount_filled
            order.status = status
        for order_id, saved in snapshot["claimable"].items():
            if saved is None:
                self._claimable.pop(order_id, None)
            else:
                self._claimable[order_id] = ClaimableAmount(*saved)
        self.accrued_fees = snapshot["accrued_fees"]
        logger.info("Fill pass reverted: %d orders restored", len(snapshot["orders"]))

    # -- Internal -----------------------------------------------------------

    @staticmethod
    def _price_reached(order: Order, tick: int) -> bool:
        if order.zero_for_one:
            return tick <= order.target_tick
        return tick >= order.target_tick

    def _require_binding(self, pool_id: str) -> PoolBinding:
        binding = self._bindings.get(pool_id)
        if binding is None:
            raise PoolNotInitializedError(f"Pool {pool_id} is not initialized for limit orders")
        return binding

    def _require_owner(self, sender: str) -> None:
        if sender != self.owner:
            raise UnauthorizedError("Only the hook owner can do this")

    def _get_owned_order(self, sender: str, order_id: int) -> Order:
        order = self.get_order(order_id)
        if order.owner != sender:
            raise UnauthorizedError(f"Order {order_id} belongs to another address")
        return order
