"""
Tickbook Exceptions

Custom exception classes for the limit-order engine, the reference pool
engine and the token vault.

Errors raised for rejected exchange operations also subclass ValueError, so
callers that only care about "the operation was refused" can catch that.
"""


class TickbookException(Exception):
    """Base exception for Tickbook."""
    pass


class ConfigurationError(TickbookException):
    """Configuration error."""
    pass


class MathOverflowError(TickbookException, ArithmeticError):
    """Fixed-point result does not fit in 256 bits."""
    pass


# ---------------------------------------------------------------------------
# Custody
# ---------------------------------------------------------------------------

class VaultError(TickbookException, ValueError):
    """Base exception for vault (custody) operations."""
    pass


class InsufficientBalanceError(VaultError):
    """Raised when a holder's balance is too low."""
    pass


class InsufficientAllowanceError(VaultError):
    """Raised when the custodian's allowance is too low."""
    pass


# ---------------------------------------------------------------------------
# Pool engine
# ---------------------------------------------------------------------------

class PoolError(TickbookException, ValueError):
    """Base exception for pool engine operations."""
    pass


class PoolNotFoundError(PoolError):
    """No pool with the given id."""
    pass


class PoolAlreadyInitializedError(PoolError):
    """A pool with the same key already exists."""
    pass


class HookRejectedError(PoolError):
    """A lifecycle hook refused the operation."""
    pass


class InsufficientReserveError(PoolError):
    """The pool reserve cannot pay out without touching what positions are owed."""
    pass


# ---------------------------------------------------------------------------
# Limit orders
# ---------------------------------------------------------------------------

class LimitOrderError(TickbookException, ValueError):
    """Base exception for limit-order operations."""
    pass


class PoolNotInitializedError(LimitOrderError):
    """The pool was never bound to the limit-order hook."""
    pass


class InvalidAmountError(LimitOrderError):
    """Zero amount, negative minimum or a deadline that already passed."""
    pass


class InvalidTickError(LimitOrderError):
    """Target tick outside the global tick bounds."""
    pass


class TickCapacityExceededError(LimitOrderError):
    """The tick bucket already holds the maximum number of entries."""
    pass


class InvalidFeeError(LimitOrderError):
    """Execution fee above the allowed maximum."""
    pass


class UnauthorizedError(LimitOrderError):
    """Caller is not the order (or hook) owner."""
    pass


class OrderNotFoundError(LimitOrderError):
    """No order with the given id."""
    pass


class OrderAlreadyFilledError(LimitOrderError):
    """Order is completely filled."""
    pass


class OrderAlreadyCancelledError(LimitOrderError):
    """Order was already cancelled."""
    pass


class OrderExpiredError(LimitOrderError):
    """Order is marked expired; its escrow is returned by reclaim."""
    pass


class OrderNotExpiredError(LimitOrderError):
    """Reclaim requested for an order that is not expired."""
    pass


class OrderAlreadyReclaimedError(LimitOrderError):
    """Expired escrow was already returned."""
    pass


class NothingToClaimError(LimitOrderError):
    """Order has no claimable proceeds."""
    pass
