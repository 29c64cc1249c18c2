"""
PURPOSE: Tests for the strategy Pydantic schemas.

Tests validation and serialization of the strategy record:
- Parameter constraints and grid bound ordering
- camelCase storage round trip with snake_case input accepted
- Operation result and wallet state serialization
"""

import pytest
from pydantic import ValidationError

from app.config.constants import RiskLevel, StrategyStatus, StrategyType
from app.schemas.strategy import OperationResult, StrategyParameters, StrategyResult, WalletState


def _params(**overrides):
    data = dict(
        strategy_name="Grid Trading",
        strategy_type=StrategyType.GRID,
        pair="INJ/USDT",
        lower_bound=15.0,
        upper_bound=25.0,
        grid_count=10,
        total_investment=1000.0,
        amount_per_order=100.0,
        token_invested="USDT",
        duration_days=30,
        risk_level=RiskLevel.HIGH,
    )
    data.update(overrides)
    return data


class TestStrategyParameters:
    """Test StrategyParameters validation."""

    def test_valid(self):
        params = StrategyParameters(**_params())
        assert params.deploy_to_chain is True

    def test_grid_requires_ordered_bounds(self):
        """Test lower_bound must be below upper_bound for grid strategies."""
        with pytest.raises(ValidationError):
            StrategyParameters(**_params(lower_bound=25.0, upper_bound=25.0))

    def test_non_grid_allows_missing_bounds(self):
        params = StrategyParameters(
            **_params(strategy_type=StrategyType.DCA, lower_bound=None, upper_bound=None)
        )
        assert params.lower_bound is None

    @pytest.mark.parametrize(
        "field,value",
        [("total_investment", 0), ("duration_days", 0), ("grid_count", 0), ("amount_per_order", -1)],
    )
    def test_positive_fields(self, field, value):
        """Test amounts, counts and durations must be positive."""
        with pytest.raises(ValidationError):
            StrategyParameters(**_params(**{field: value}))


class TestStrategyResult:
    """Test record serialization."""

    def test_storage_uses_camel_case_and_drops_none(self, grid_draft):
        data = grid_draft.to_storage()
        assert "uiLayout" in data
        assert "contractCall" in data
        assert "deploymentWarning" in data
        assert "followUpSuggestions" in data
        assert "id" not in data
        assert "status" not in data
        assert "total_investment" in data["parameters"]

    def test_storage_round_trip(self, grid_draft):
        """Test a stored record validates back to an equal model."""
        assert StrategyResult.model_validate(grid_draft.to_storage()) == grid_draft

    def test_snake_case_input_accepted(self, grid_draft):
        data = grid_draft.model_dump()
        assert StrategyResult.model_validate(data) == grid_draft

    def test_effective_status(self, grid_draft):
        assert grid_draft.effective_status == StrategyStatus.DRAFT
        stopped = grid_draft.model_copy(update={"status": StrategyStatus.STOPPED})
        assert stopped.effective_status == StrategyStatus.STOPPED

    def test_unknown_status_rejected(self, grid_draft):
        data = grid_draft.to_storage()
        data["status"] = "archived"
        with pytest.raises(ValidationError):
            StrategyResult.model_validate(data)


class TestOperationShapes:
    """Test operation result serialization."""

    def test_operation_result_aliases(self):
        result = OperationResult(success=True, tx_hash="0x1")
        assert result.model_dump(by_alias=True, exclude_none=True) == {"success": True, "txHash": "0x1"}

    def test_wallet_state_aliases(self):
        state = WalletState(is_connected=False)
        assert state.model_dump(by_alias=True, exclude_none=True) == {"isConnected": False}
