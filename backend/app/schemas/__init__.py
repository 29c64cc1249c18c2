"""
Pydantic v2 schemas for Strategy Forge.

This module exports all schema classes used by the extraction engine,
the lifecycle engine and the API.
"""

from .strategy import (
    ChainResult,
    OperationResult,
    SmartContractCall,
    StrategyParameters,
    StrategyPerformance,
    StrategyResult,
    StrategyUIAction,
    StrategyUILayout,
    StrategyUISection,
    UserProfile,
    WalletState,
)

__all__ = [
    # Strategy record
    "StrategyParameters",
    "StrategyResult",
    "StrategyPerformance",
    "StrategyUISection",
    "StrategyUIAction",
    "StrategyUILayout",
    "SmartContractCall",
    # Wallet / profile
    "UserProfile",
    "WalletState",
    # Operation outcomes
    "ChainResult",
    "OperationResult",
]
