"""
PURPOSE: Export configuration settings and constants for Strategy Forge.

This module centralizes access to all configuration settings and constants
used throughout the extraction and lifecycle engines.
"""

from .constants import (
    PUBLISHED_STRATEGIES_KEY,
    SAVED_STRATEGIES_KEY,
    USER_PROFILE_KEY_PREFIX,
    RiskLevel,
    StorageBackend,
    StrategyStatus,
    StrategyType,
)
from .settings import Settings, settings

__all__ = [
    "settings",
    "Settings",
    "RiskLevel",
    "StorageBackend",
    "StrategyStatus",
    "StrategyType",
    "SAVED_STRATEGIES_KEY",
    "PUBLISHED_STRATEGIES_KEY",
    "USER_PROFILE_KEY_PREFIX",
]
