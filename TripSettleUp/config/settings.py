"""
Settings Module

Environment-driven configuration for the trip settlement service.

Values are read from the process environment, optionally seeded from a
.env file next to this package or in the project root.

Environment:
    SETTLE_STRATEGY: Default settlement strategy (net-greedy | pairwise-cancellation).
    SETTLE_EPSILON: Tolerance below which a balance counts as settled.
    CURRENCY_SYMBOL: Symbol used when formatting amounts.
    LOG_LEVEL: Root logging level.

Functions:
    get_settings: Return the cached Settings instance.
    configure_logging: Configure root logging from settings.
"""

import logging
import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load .env from the config directory or its parents
env_path = Path(__file__).parent / ".env"
if not env_path.exists():
    env_path = Path(__file__).parent.parent / ".env"
if not env_path.exists():
    env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


NET_GREEDY = "net-greedy"
PAIRWISE_CANCELLATION = "pairwise-cancellation"
STRATEGIES = (NET_GREEDY, PAIRWISE_CANCELLATION)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings:
    """Runtime settings resolved from the environment."""

    def __init__(
        self,
        strategy: str = NET_GREEDY,
        epsilon: str = "0.01",
        currency_symbol: str = "₹",
        log_level: str = "INFO"
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"SETTLE_STRATEGY must be one of {STRATEGIES}, got: {strategy}")

        try:
            self.epsilon = Decimal(str(epsilon))
        except InvalidOperation:
            raise ValueError(f"SETTLE_EPSILON must be a number, got: {epsilon}")
        if self.epsilon <= 0:
            raise ValueError(f"SETTLE_EPSILON must be positive, got: {epsilon}")

        self.strategy = strategy
        self.currency_symbol = currency_symbol
        self.log_level = log_level.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            strategy=os.environ.get("SETTLE_STRATEGY", NET_GREEDY),
            epsilon=os.environ.get("SETTLE_EPSILON", "0.01"),
            currency_symbol=os.environ.get("CURRENCY_SYMBOL", "₹"),
            log_level=os.environ.get("LOG_LEVEL", "INFO")
        )

    def __repr__(self) -> str:
        return f"Settings(strategy='{self.strategy}', epsilon={self.epsilon}, log_level='{self.log_level}')"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Return the process-wide Settings, loading them on first use.

    Raises:
        ValueError: If an environment value is invalid.
    """
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging at the level named in settings."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
