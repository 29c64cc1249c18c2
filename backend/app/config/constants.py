"""
PURPOSE: Enumerations, storage keys and extraction defaults for Strategy Forge.

Everything that more than one module needs to agree on lives here so the
extractors, the composer and the lifecycle engine never drift apart.
"""

from enum import Enum


class StrategyType(str, Enum):
    """Supported strategy families."""

    GRID = "grid"
    DCA = "dca"
    MA_CROSS = "ma_cross"
    RSI = "rsi"
    MOMENTUM = "momentum"


class RiskLevel(str, Enum):
    """Heuristic risk bucket derived from the grid range width."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StrategyStatus(str, Enum):
    """
    Lifecycle status of a strategy record.

    PAUSED is declared for compatibility with stored records but no
    transition produces it.
    """

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    STOPPED = "stopped"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


STRATEGY_NAMES: dict[StrategyType, str] = {
    StrategyType.GRID: "Grid Trading",
    StrategyType.DCA: "Dollar-Cost Averaging",
    StrategyType.MA_CROSS: "Moving Average Crossover",
    StrategyType.RSI: "RSI Strategy",
    StrategyType.MOMENTUM: "Momentum Strategy",
}

# ── Persistence keys ─────────────────────────────────────────
SAVED_STRATEGIES_KEY = "savedStrategies"
PUBLISHED_STRATEGIES_KEY = "publishedStrategies"
USER_PROFILE_KEY_PREFIX = "userProfile_"

# ── Extraction defaults ──────────────────────────────────────
DEFAULT_STRATEGY_TYPE = StrategyType.GRID
DEFAULT_PAIR = "INJ/USDT"
KNOWN_PAIRS = ("inj/usdt", "btc/usdt", "eth/usdt")
DEFAULT_INVESTMENT = 1000.0
DEFAULT_LOWER_BOUND = 15.0
DEFAULT_UPPER_BOUND = 25.0
DEFAULT_GRID_COUNT = 10
DEFAULT_DURATION_DAYS = 30

# Risk thresholds on range width, in percent of the lower bound
LOW_RISK_MAX_RANGE_PCT = 20.0
HIGH_RISK_MIN_RANGE_PCT = 50.0

# ── Composer fixed texts ─────────────────────────────────────
CONTRACT_NAME = "StrategyExecutor"
CONTRACT_METHOD = "deployStrategy"
UI_PAGE_TITLE = "Confirm Strategy Deployment"

DEPLOYMENT_WARNING = (
    "⚠️ Once deployed, your strategy will run automatically on-chain using your "
    "wallet's authorized funds. Please double-check your parameters. Use at your own risk."
)

FOLLOW_UP_SUGGESTIONS = (
    "Save this strategy as a template?",
    "Make this strategy public for others to subscribe to?",
    "Auto-close the strategy when ROI hits a threshold?",
)

UNKNOWN_CREATOR = "Unknown"
