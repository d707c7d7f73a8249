"""
Tickbook Exchange Engine

Resting limit orders executed by a concentrated-liquidity pool.

Components:
  - Fixed-point, tick and swap-step math (Q64.96)
  - Token vault (custody, native-asset sentinel)
  - Pool engine (concentrated liquidity, Uniswap V3 model)
  - Hook system (afterInitialize / beforeSwap / afterSwap)
  - Limit-order hook (order ledger, tick index, fill engine, claims)
"""

from .fixed_point import (
    mul_div,
    mul_div_rounding_up,
    div_rounding_up,
)
from .tick_math import (
    MIN_SQRT_RATIO,
    MAX_SQRT_RATIO,
    tick_to_sqrt_price,
    sqrt_price_to_tick,
    sqrt_price_to_price,
    encode_sqrt_price,
)
from .swap_math import (
    SwapStep,
    compute_swap_step,
    convert_at_sqrt_price,
)
from .vault import (
    TokenVault,
    TransferEvent,
    TransferKind,
    is_native,
)
from .hooks import (
    HookFlags,
    HookContext,
    HookResult,
    HookRegistry,
    PoolHook,
)
from .amm import (
    FeeTier,
    PoolKey,
    PoolState,
    Position,
    TickInfo,
    SwapResult,
    ConcentratedLiquidityPool,
    PoolManager,
)
from .limit_orders import (
    ClaimableAmount,
    LimitOrderHook,
    Order,
    OrderStatus,
    PoolBinding,
    PoolEngine,
)

__all__ = [
    # Math
    "mul_div",
    "mul_div_rounding_up",
    "div_rounding_up",
    "MIN_SQRT_RATIO",
    "MAX_SQRT_RATIO",
    "tick_to_sqrt_price",
    "sqrt_price_to_tick",
    "sqrt_price_to_price",
    "encode_sqrt_price",
    "SwapStep",
    "compute_swap_step",
    "convert_at_sqrt_price",
    # Vault
    "TokenVault",
    "TransferEvent",
    "TransferKind",
    "is_native",
    # Hooks
    "HookFlags",
    "HookContext",
    "HookResult",
    "HookRegistry",
    "PoolHook",
    # AMM
    "FeeTier",
    "PoolKey",
    "PoolState",
    "Position",
    "TickInfo",
    "SwapResult",
    "ConcentratedLiquidityPool",
    "PoolManager",
    # Limit orders
    "ClaimableAmount",
    "LimitOrderHook",
    "Order",
    "OrderStatus",
    "PoolBinding",
    "PoolEngine",
]
