"""
Tickbook Pool Hook System

Lifecycle callbacks the pool engine fires into registered hooks:
  - afterInitialize  (pool created, initial price set)
  - beforeSwap       (advisory, may refuse the swap)
  - afterSwap        (price has moved; the limit-order fill trigger)

Each hook declares the callbacks it wants through `HookFlags`; the registry
only dispatches callbacks whose flag is set. Hooks run synchronously inside
the pool operation and can refuse it by returning allow=False.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Flag, auto
from typing import Any, Dict, List, Protocol, Tuple

from ..logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Hook flags: which callbacks a hook wants to receive
# ---------------------------------------------------------------------------

class HookFlags(Flag):
    NONE = 0
    AFTER_INITIALIZE = auto()
    BEFORE_SWAP = auto()
    AFTER_SWAP = auto()
    ALL = AFTER_INITIALIZE | BEFORE_SWAP | AFTER_SWAP


# ---------------------------------------------------------------------------
# Hook context: data passed to hooks
# ---------------------------------------------------------------------------

@dataclass
class HookContext:
    """Data passed to hook callbacks."""
    pool_id: str = ""
    sender: str = ""
    currency0: str = ""
    currency1: str = ""
    fee: int = 0
    tick_spacing: int = 0
    zero_for_one: bool = False
    amount_in: int = 0
    amount_out: int = 0
    sqrt_price: int = 0
    tick: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HookResult:
    """Result from a hook execution."""
    allow: bool = True        # False = revert the operation
    reason: str = ""          # reason for revert (if allow=False)


# ---------------------------------------------------------------------------
# Hook interface (Protocol for structural typing)
# ---------------------------------------------------------------------------

class PoolHook(Protocol):
    """Protocol that pool hooks must implement."""

    @property
    def flags(self) -> HookFlags: ...

    def on_after_initialize(self, ctx: HookContext) -> HookResult: ...
    def on_before_swap(self, ctx: HookContext) -> HookResult: ...
    def on_after_swap(self, ctx: HookContext) -> HookResult: ...


# ---------------------------------------------------------------------------
# Hook Registry: manages all registered hooks
# ---------------------------------------------------------------------------

class HookRegistry:
    """
    Central registry for pool hooks.

    Hooks are executed in registration order. If any hook returns
    allow=False (or raises), dispatch stops and the operation is reverted.
    """

    def __init__(self) -> None:
        self._hooks: List[PoolHook] = []

    def register(self, hook: PoolHook) -> None:
        self._hooks.append(hook)
        logger.info("Hook registered: %s (flags=%s)", type(hook).__name__, hook.flags)

    def unregister(self, hook: PoolHook) -> None:
        self._hooks = [h for h in self._hooks if h is not hook]

    @property
    def hook_count(self) -> int:
        return len(self._hooks)

    def run_after_initialize(self, ctx: HookContext) -> HookResult:
        return self._run(HookFlags.AFTER_INITIALIZE, "on_after_initialize", ctx)

    def run_before_swap(self, ctx: HookContext) -> HookResult:
        return self._run(HookFlags.BEFORE_SWAP, "on_before_swap", ctx)

    def run_after_swap(self, ctx: HookContext) -> HookResult:
        return self._run(HookFlags.AFTER_SWAP, "on_after_swap", ctx)

    # -- Revert support -----------------------------------------------------

    def take_snapshot(self, pool_id: str) -> List[Tuple[PoolHook, Any]]:
        """
        Capture the state an afterSwap pass may change.

        Only hooks that receive afterSwap and implement
        take_snapshot / restore_snapshot take part.
        """
        saved = []
        for hook in self._hooks:
            if HookFlags.AFTER_SWAP in hook.flags and hasattr(hook, "take_snapshot"):
                saved.append((hook, hook.take_snapshot(pool_id)))
        return saved

    def restore_snapshot(self, saved: List[Tuple[PoolHook, Any]]) -> None:
        for hook, snapshot in reversed(saved):
            hook.restore_snapshot(snapshot)

    def _run(self, flag: HookFlags, method: str, ctx: HookContext) -> HookResult:
        for hook in self._hooks:
            if flag in hook.flags:
                try:
                    result = getattr(hook, method)(ctx)
                    if not result.allow:
                        logger.warning("Hook %s.%s refused: %s", type(hook).__name__, method, result.reason)
                        return result
                except Exception as e:
                    logger.error("Hook %s.%s failed: %s", type(hook).__name__, method, e)
                    return HookResult(allow=False, reason=f"Hook error: {e}")
        return HookResult(allow=True)
