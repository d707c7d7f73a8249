"""
Tickbook Package

Resting limit orders on a concentrated-liquidity AMM.

Core imports are lazily loaded so that importing the package does not
configure logging or pull in the exchange engine. For direct access, import
from submodules:

    from tickbook.exchange import LimitOrderHook, PoolManager
    from tickbook.config import load_config
    from tickbook.exceptions import LimitOrderError
"""

__version__ = "0.3.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'LimitOrderHook':
        from .exchange.limit_orders import LimitOrderHook
        return LimitOrderHook
    elif name == 'PoolManager':
        from .exchange.amm import PoolManager
        return PoolManager
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'tickbook' has no attribute {name!r}")


__all__ = ['LimitOrderHook', 'PoolManager', 'load_config', '__version__']
