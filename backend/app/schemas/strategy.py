"""
Strategy-related Pydantic schemas for Strategy Forge.

Handles validation and serialization of strategy parameters, the full
strategy record produced by the composer, performance snapshots, user
profiles and the structured results returned by lifecycle operations.

Records and operation results serialize with camelCase keys (uiLayout,
txHash, isConnected, ...) while StrategyParameters keeps its snake_case
layout; both spellings are accepted on input.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.config.constants import RiskLevel, StrategyStatus, StrategyType


class _CamelModel(BaseModel):
    """Base for models persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrategyParameters(BaseModel):
    """
    Normalized configuration of a strategy.

    Attributes:
        strategy_name: Display name derived from the strategy type
        strategy_type: grid | dca | ma_cross | rsi | momentum
        pair: Trading pair in BASE/QUOTE form
        lower_bound: Lower price bound (grid)
        upper_bound: Upper price bound (grid)
        grid_count: Number of grid levels
        total_investment: Capital committed, in the quote asset
        amount_per_order: Size of each order, derived by the composer
        token_invested: Quote asset of the pair
        duration_days: Lifetime of the strategy in days
        risk_level: low | medium | high, derived from the range width
        deploy_to_chain: Whether the strategy targets on-chain execution
    """

    strategy_name: str
    strategy_type: StrategyType
    pair: str
    lower_bound: Optional[float] = None
    upper_bound: Optional[float] = None
    grid_count: Optional[int] = Field(default=None, ge=1)
    total_investment: float = Field(..., gt=0)
    amount_per_order: Optional[float] = Field(default=None, gt=0)
    token_invested: str
    duration_days: int = Field(..., gt=0)
    risk_level: RiskLevel
    deploy_to_chain: bool = True

    @model_validator(mode="after")
    def validate_grid_bounds(self) -> "StrategyParameters":
        """Grid strategies need an ordered price range."""
        if self.strategy_type == StrategyType.GRID:
            if self.lower_bound is None or self.upper_bound is None:
                raise ValueError("grid strategies require lower_bound and upper_bound")
            if not self.lower_bound < self.upper_bound:
                raise ValueError("lower_bound must be below upper_bound")
        return self


class StrategyUISection(BaseModel):
    title: str
    value: str


class StrategyUIAction(BaseModel):
    label: str
    action: str


class StrategyUILayout(BaseModel):
    page_title: str
    sections: list[StrategyUISection]
    actions: list[StrategyUIAction]


class SmartContractCall(BaseModel):
    """Execution-call descriptor handed to the chain backend."""

    contract_name: str
    method: str
    params: dict[str, Any]


class StrategyPerformance(_CamelModel):
    """
    Mutable performance snapshot of an active strategy.

    Attributes:
        roi: Return on investment, percent
        trade_count: Cumulative number of trades
        total_volume: Cumulative traded volume
        win_rate: Winning trades, percent
        current_value: total_investment + pnl
        pnl: Profit or loss in the quote asset
        last_updated: When the snapshot was last recomputed
    """

    roi: float = 0.0
    trade_count: int = Field(default=0, ge=0)
    total_volume: float = Field(default=0.0, ge=0)
    win_rate: float = 0.0
    current_value: float
    pnl: float = 0.0
    last_updated: datetime


class StrategyResult(_CamelModel):
    """
    Full artifact produced for one strategy request, and the persisted record.

    An absent status is read as draft. The id is only assigned on save,
    deploy or subscribe.
    """

    id: Optional[str] = None
    parameters: StrategyParameters
    summary: str
    ui_layout: StrategyUILayout
    contract_call: SmartContractCall
    backtesting_feedback: Optional[str] = None
    deployment_warning: str
    follow_up_suggestions: list[str] = Field(default_factory=list)
    status: Optional[StrategyStatus] = None
    deployed_at: Optional[datetime] = None
    tx_hash: Optional[str] = None
    performance: Optional[StrategyPerformance] = None
    is_published: Optional[bool] = None
    published_at: Optional[datetime] = None
    subscribers: Optional[int] = Field(default=None, ge=0)
    creator: Optional[str] = None
    subscribed_from: Optional[str] = None

    @property
    def effective_status(self) -> StrategyStatus:
        return self.status or StrategyStatus.DRAFT

    def to_storage(self) -> dict:
        """Serialize with camelCase keys and JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserProfile(_CamelModel):
    """Per-wallet aggregate counters persisted under userProfile_<address>."""

    wallet_address: str
    total_strategies: int = 0
    active_strategies: int = 0
    total_returns: float = 0.0
    total_volume: float = 0.0
    joined_at: datetime
    last_active: datetime


class ChainResult(_CamelModel):
    """Return shape of the chain backend's deploy and stop calls."""

    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None


class OperationResult(_CamelModel):
    """
    Structured outcome of a lifecycle operation.

    Attributes:
        success: Whether the operation was applied
        tx_hash: Transaction reference returned by the chain backend, if any
        error: Human-readable failure reason when success is False
        strategy: The record as persisted after the operation
    """

    success: bool
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    strategy: Optional[StrategyResult] = None


class WalletState(_CamelModel):
    is_connected: bool
    address: Optional[str] = None
    profile: Optional[UserProfile] = None
