"""
Tickbook Configuration

Loads the sections of config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    EngineConfig,
    LimitOrderSectionConfig,
    LoggingSectionConfig,
    load_config,
)

__all__ = [
    "EngineConfig",
    "LimitOrderSectionConfig",
    "LoggingSectionConfig",
    "load_config",
]
