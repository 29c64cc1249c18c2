"""
PURPOSE: Strategy Builder package for Strategy Forge.

Turns plain English strategy descriptions into structured, validated strategy
records. Extraction is pattern based and deterministic: every input yields a
well-formed draft, ambiguous phrasing falls back to documented defaults.
"""

from app.strategy_builder.composer import StrategyComposer, classify_risk, compose_strategy
from app.strategy_builder.extractors import (
    extract_all,
    extract_duration,
    extract_grid_count,
    extract_investment,
    extract_lower_bound,
    extract_pair,
    extract_percentage_triggers,
    extract_strategy_type,
    extract_upper_bound,
)

__all__ = [
    "StrategyComposer",
    "compose_strategy",
    "classify_risk",
    "extract_all",
    "extract_strategy_type",
    "extract_pair",
    "extract_investment",
    "extract_percentage_triggers",
    "extract_lower_bound",
    "extract_upper_bound",
    "extract_grid_count",
    "extract_duration",
]
