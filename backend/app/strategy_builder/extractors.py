"""
PURPOSE: Field-level pattern extractors for natural language strategy descriptions.

Each extractor is a pure function text -> value with a fixed fallback. They
never raise and never depend on each other; an unmatched pattern always yields
the documented default so every description produces some valid strategy.

Examples:
    "Create a BTC/usdt grid strategy from $20 to $22 with 12 grids"
    "DCA into ETH/USDT with 500 USDT over 60 days"
    "Momentum on INJ, buy when price drops 5%, sell at +8%"

CALLED BY:
    - strategy_builder/composer.py
"""

import math
import re
from dataclasses import dataclass
from typing import Optional

from app.config.constants import (
    DEFAULT_DURATION_DAYS,
    DEFAULT_GRID_COUNT,
    DEFAULT_INVESTMENT,
    DEFAULT_LOWER_BOUND,
    DEFAULT_PAIR,
    DEFAULT_STRATEGY_TYPE,
    DEFAULT_UPPER_BOUND,
    KNOWN_PAIRS,
    StrategyType,
)

_NUM = r"(\d+(?:\.\d+)?)"

# Priority order matters: the first keyword group found in the text wins.
_TYPE_KEYWORDS: tuple[tuple[StrategyType, tuple[str, ...]], ...] = (
    (StrategyType.GRID, ("grid",)),
    (StrategyType.DCA, ("dca", "dollar-cost", "dollar cost")),
    (StrategyType.MA_CROSS, ("ma cross", "moving average")),
    (StrategyType.RSI, ("rsi",)),
    (StrategyType.MOMENTUM, ("momentum",)),
)

_PAIR_RE = re.compile(r"([A-Za-z0-9]+)/([A-Za-z0-9]+)", re.ASCII)

# Evaluated in order, first match wins. Reordering changes results for inputs
# that mention an amount more than once.
_INVESTMENT_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(_NUM + r"\s*(?:usdt|usd)", re.IGNORECASE | re.ASCII),
    re.compile(r"\$\s*" + _NUM, re.ASCII),
    re.compile(r"invest\s*" + _NUM, re.IGNORECASE | re.ASCII),
    re.compile(r"with\s*" + _NUM + r"\s*(?:usdt|usd)", re.IGNORECASE | re.ASCII),
    re.compile(r"capital\s*" + _NUM, re.IGNORECASE | re.ASCII),
    re.compile(r"amount\s*" + _NUM, re.IGNORECASE | re.ASCII),
)

_BUY_TRIGGER_RE = re.compile(
    r"buy\s*when\s*(?:price\s*)?(?:drops?|falls?)\s*" + _NUM + r"%",
    re.IGNORECASE | re.ASCII,
)
_SELL_TRIGGER_RE = re.compile(
    r"sell\s*(?:when\s*(?:price\s*)?(?:rises?|increases?)\s*|at\s*)\+?" + _NUM + r"%",
    re.IGNORECASE | re.ASCII,
)

_LOWER_BOUND_RE = re.compile(r"from\s*\$?\s*" + _NUM, re.IGNORECASE | re.ASCII)
_UPPER_BOUND_RE = re.compile(r"to\s*\$?\s*" + _NUM, re.IGNORECASE | re.ASCII)
_GRID_COUNT_RE = re.compile(r"(\d+)\s*grids", re.IGNORECASE | re.ASCII)
_DURATION_RE = re.compile(r"(\d+)\s*days", re.IGNORECASE | re.ASCII)


@dataclass(frozen=True)
class PercentageTriggers:
    buy_drop_pct: Optional[float] = None
    sell_rise_pct: Optional[float] = None

    @property
    def any(self) -> bool:
        return bool(self.buy_drop_pct or self.sell_rise_pct)


@dataclass(frozen=True)
class ExtractedFields:
    """All extractor outputs for one description, normalized for composition."""

    strategy_type: StrategyType
    pair: str
    total_investment: float
    lower_bound: float
    upper_bound: float
    grid_count: int
    duration_days: int
    triggers: PercentageTriggers


def _extract_number(text: str, pattern: re.Pattern, default: float) -> float:
    match = pattern.search(text)
    return float(match.group(1)) if match else default


def _positive_or(value: float, default: float) -> float:
    return value if math.isfinite(value) and value > 0 else default


def extract_strategy_type(text: str) -> StrategyType:
    """Return the first strategy family whose keyword appears in the text."""
    lowered = text.lower()
    for strategy_type, keywords in _TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return strategy_type
    return DEFAULT_STRATEGY_TYPE


def extract_pair(text: str) -> str:
    """
    Return the first BASE/QUOTE pair in the text, upper-cased.

    Falls back to the known-pair allow-list and then to INJ/USDT.
    """
    match = _PAIR_RE.search(text)
    if match:
        return match.group(0).upper()

    lowered = text.lower()
    for known in KNOWN_PAIRS:
        if known in lowered:
            return known.upper()

    return DEFAULT_PAIR


def extract_investment(text: str) -> float:
    """Return the total investment using the ordered pattern list, default 1000."""
    for pattern in _INVESTMENT_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1))
    return DEFAULT_INVESTMENT


def extract_percentage_triggers(text: str) -> PercentageTriggers:
    buy = _BUY_TRIGGER_RE.search(text)
    sell = _SELL_TRIGGER_RE.search(text)
    return PercentageTriggers(
        buy_drop_pct=float(buy.group(1)) if buy else None,
        sell_rise_pct=float(sell.group(1)) if sell else None,
    )


def extract_lower_bound(text: str) -> float:
    return _extract_number(text, _LOWER_BOUND_RE, DEFAULT_LOWER_BOUND)


def extract_upper_bound(text: str) -> float:
    return _extract_number(text, _UPPER_BOUND_RE, DEFAULT_UPPER_BOUND)


def extract_grid_count(text: str) -> int:
    value = _extract_number(text, _GRID_COUNT_RE, DEFAULT_GRID_COUNT)
    return int(value) if math.isfinite(value) else DEFAULT_GRID_COUNT


def extract_duration(text: str) -> int:
    value = _extract_number(text, _DURATION_RE, DEFAULT_DURATION_DAYS)
    return int(value) if math.isfinite(value) else DEFAULT_DURATION_DAYS


def extract_all(text: str) -> ExtractedFields:
    """
    PURPOSE: Run every extractor and clamp degenerate values to their defaults.

    Zero amounts, zero counts and an unordered or zero-based price range cannot
    form a valid strategy, so they are replaced by the documented defaults.

    Args:
        text: Free-form strategy description.

    Returns:
        ExtractedFields: Values ready for the composer.
    """
    total_investment = _positive_or(extract_investment(text), DEFAULT_INVESTMENT)
    grid_count = extract_grid_count(text) or DEFAULT_GRID_COUNT
    duration_days = extract_duration(text) or DEFAULT_DURATION_DAYS

    lower_bound = _positive_or(extract_lower_bound(text), DEFAULT_LOWER_BOUND)
    upper_bound = _positive_or(extract_upper_bound(text), DEFAULT_UPPER_BOUND)
    if lower_bound >= upper_bound:
        lower_bound, upper_bound = DEFAULT_LOWER_BOUND, DEFAULT_UPPER_BOUND

    return ExtractedFields(
        strategy_type=extract_strategy_type(text),
        pair=extract_pair(text),
        total_investment=total_investment,
        lower_bound=lower_bound,
        upper_bound=upper_bound,
        grid_count=grid_count,
        duration_days=duration_days,
        triggers=extract_percentage_triggers(text),
    )
