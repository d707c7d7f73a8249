"""
Tickbook TOML Configuration Loader

Loads the sections of config.toml at startup with environment variable overrides.

Environment variable mapping:
    [limit_orders] max_orders_per_tick → TICKBOOK_MAX_ORDERS_PER_TICK
    [limit_orders] execution_fee_bps   → TICKBOOK_EXECUTION_FEE_BPS
    [limit_orders] fee_collector       → TICKBOOK_FEE_COLLECTOR
    [logging] level                    → TICKBOOK_LOG_LEVEL
    [logging] file_output              → TICKBOOK_LOG_FILE_OUTPUT
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import DEFAULT_EXECUTION_FEE_BPS, MAX_EXECUTION_FEE_BPS, MAX_ORDERS_PER_TICK
from ..exceptions import ConfigurationError
from ..logger import configure_logging, get_logger

logger = get_logger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return _env_bool(value)
    return bool(value)


# ---------------------------------------------------------------------------
# Section dataclasses: mirror every [section] of config.example.toml
# ---------------------------------------------------------------------------

@dataclass
class LimitOrderSectionConfig:
    """[limit_orders] section."""
    max_orders_per_tick: int = MAX_ORDERS_PER_TICK
    execution_fee_bps: int = DEFAULT_EXECUTION_FEE_BPS
    fee_collector: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LimitOrderSectionConfig":
        try:
            return cls(
                max_orders_per_tick=int(data.get("max_orders_per_tick", MAX_ORDERS_PER_TICK)),
                execution_fee_bps=int(data.get("execution_fee_bps", DEFAULT_EXECUTION_FEE_BPS)),
                fee_collector=str(data.get("fee_collector", "")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid [limit_orders] value: {e}") from e

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("TICKBOOK_MAX_ORDERS_PER_TICK"):
            self.max_orders_per_tick = int(v)
        if v := os.environ.get("TICKBOOK_EXECUTION_FEE_BPS"):
            self.execution_fee_bps = int(v)
        if v := os.environ.get("TICKBOOK_FEE_COLLECTOR"):
            self.fee_collector = v

    def validate(self) -> None:
        if self.max_orders_per_tick < 1:
            raise ConfigurationError("max_orders_per_tick must be >= 1")
        if not 0 <= self.execution_fee_bps <= MAX_EXECUTION_FEE_BPS:
            raise ConfigurationError(
                f"execution_fee_bps must be in [0, {MAX_EXECUTION_FEE_BPS}], got {self.execution_fee_bps}"
            )


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = "INFO"
    file_output: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file_output=_as_bool(data.get("file_output", False)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("TICKBOOK_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("TICKBOOK_LOG_FILE_OUTPUT"):
            self.file_output = _env_bool(v)

    def validate(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.level}")


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class EngineConfig:
    """
    Engine configuration.

    Loads every section of config.toml and applies environment variable
    overrides.
    """
    limit_orders: LimitOrderSectionConfig = field(default_factory=LimitOrderSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create EngineConfig from a parsed TOML dict."""
        return cls(
            limit_orders=LimitOrderSectionConfig.from_dict(data.get("limit_orders", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "EngineConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides); a malformed one
        raises ConfigurationError.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Malformed config file {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.limit_orders.apply_env()
        self.logging.apply_env()

    def apply_logging(self) -> None:
        """Reconfigure the root logger from the [logging] section."""
        configure_logging(log_level=self.logging.level, file_output=self.logging.file_output)

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.limit_orders.validate()
        self.logging.validate()
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "limit_orders": {
                "max_orders_per_tick": self.limit_orders.max_orders_per_tick,
                "execution_fee_bps": self.limit_orders.execution_fee_bps,
                "fee_collector": self.limit_orders.fee_collector,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
            },
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load and validate engine configuration.

    Resolution order:
        1. Explicit *path* argument
        2. TICKBOOK_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("TICKBOOK_CONFIG", "config.toml")

    cfg = EngineConfig.from_file(path)
    cfg.validate()
    return cfg
