"""
PURPOSE: Tests for the pure lifecycle transition functions.

Tests the state machine without persistence or chain calls:
- Allowed and rejected transitions
- Save, subscribe, deploy, stop and publish record shapes
- Simulated performance refresh
"""

import random
from datetime import datetime, timezone

import pytest

from app.config.constants import StrategyStatus
from app.engine.lifecycle import (
    InvalidTransitionError,
    apply_deployment,
    apply_performance_tick,
    apply_publication,
    apply_stop,
    can_transition,
    deployment_payload,
    prepare_saved_draft,
    prepare_subscription,
)

NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _active(draft):
    return apply_deployment(draft, "0xdeadbeef", now=NOW)


class TestTransitions:
    """Test the transition table."""

    def test_draft_can_become_active(self):
        """Test draft -> active is allowed, including an absent status."""
        assert can_transition(StrategyStatus.DRAFT, StrategyStatus.ACTIVE)
        assert can_transition(None, StrategyStatus.ACTIVE)

    def test_stopped_is_terminal(self):
        """Test nothing leaves stopped."""
        for target in StrategyStatus:
            assert not can_transition(StrategyStatus.STOPPED, target)

    def test_paused_is_unreachable(self):
        """Test no status can move to paused."""
        for current in StrategyStatus:
            assert not can_transition(current, StrategyStatus.PAUSED)

    def test_active_cannot_go_back_to_draft(self):
        assert not can_transition(StrategyStatus.ACTIVE, StrategyStatus.DRAFT)


class TestSaveAndSubscribe:
    """Test record preparation for save and subscribe."""

    def test_saved_draft_gets_id_and_creator(self, grid_draft):
        """Test save assigns a strategy- id, draft status and creator."""
        saved = prepare_saved_draft(grid_draft, "0xwallet")
        assert saved.id.startswith("strategy-")
        assert saved.status == StrategyStatus.DRAFT
        assert saved.creator == "0xwallet"
        assert saved.parameters == grid_draft.parameters
        assert grid_draft.id is None

    def test_cannot_save_active_record(self, grid_draft):
        """Test an active record cannot be re-saved as draft."""
        with pytest.raises(InvalidTransitionError):
            prepare_saved_draft(_active(grid_draft), None)

    def test_subscription_copy_clears_runtime_fields(self, grid_draft):
        """Test the subscribed copy drops deployment, performance and publication data."""
        published = apply_publication(_active(grid_draft), "0xauthor", now=NOW)
        copy = prepare_subscription(published)
        assert copy.id.startswith("subscribed-")
        assert copy.status == StrategyStatus.DRAFT
        assert copy.subscribed_from == published.id
        assert copy.creator == "0xauthor"
        assert copy.deployed_at is None
        assert copy.performance is None
        assert copy.tx_hash is None
        assert copy.is_published is None
        assert copy.subscribers is None


class TestDeployment:
    """Test deployment payloads and results."""

    def test_payload_statuses(self, grid_draft):
        """Test enrollments go out as drafts and real deploys without a status."""
        saved = prepare_saved_draft(grid_draft, None)
        assert deployment_payload(saved).status is None
        assert deployment_payload(saved, enroll_only=True).status == StrategyStatus.DRAFT

    def test_deploy_activates_draft(self, grid_draft):
        """Test a draft becomes active with a zeroed performance snapshot."""
        active = _active(grid_draft)
        assert active.id == "0xdeadbeef"
        assert active.tx_hash == "0xdeadbeef"
        assert active.status == StrategyStatus.ACTIVE
        assert active.deployed_at == NOW
        perf = active.performance
        assert perf.roi == 0
        assert perf.trade_count == 0
        assert perf.total_volume == 0
        assert perf.current_value == grid_draft.parameters.total_investment
        assert perf.last_updated == NOW

    def test_enrollment_stays_draft(self, grid_draft):
        """Test the subscribe flow keeps the record a draft."""
        enrolled = apply_deployment(grid_draft, "draft-1", enroll_only=True, now=NOW)
        assert enrolled.status == StrategyStatus.DRAFT
        assert enrolled.id == "draft-1"
        assert enrolled.deployed_at is None
        assert enrolled.performance is None

    def test_cannot_redeploy_active(self, grid_draft):
        """Test deploying an active record is rejected."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_deployment(_active(grid_draft), "0xother")
        assert exc_info.value.current == StrategyStatus.ACTIVE
        assert exc_info.value.target == StrategyStatus.ACTIVE


class TestStopAndPublish:
    """Test stop and publish."""

    def test_stop_active(self, grid_draft):
        """Test active -> stopped keeps everything else."""
        active = _active(grid_draft)
        stopped = apply_stop(active)
        assert stopped.status == StrategyStatus.STOPPED
        assert stopped.performance == active.performance

    def test_stop_draft_rejected(self, grid_draft):
        """Test only active records can be stopped."""
        with pytest.raises(InvalidTransitionError):
            apply_stop(grid_draft)

    def test_stop_stopped_rejected(self, grid_draft):
        """Test stopped is terminal."""
        with pytest.raises(InvalidTransitionError):
            apply_stop(apply_stop(_active(grid_draft)))

    def test_publish_resets_subscribers(self, grid_draft):
        """Test publication always restarts the subscriber count at zero."""
        stale = grid_draft.model_copy(update={"subscribers": 17, "is_published": True})
        published = apply_publication(stale, None, now=NOW)
        assert published.subscribers == 0
        assert published.is_published is True
        assert published.published_at == NOW
        assert published.creator == "Unknown"
        assert published.status == stale.status


class TestPerformanceTick:
    """Test simulated performance refresh."""

    def test_tick_updates_active(self, grid_draft):
        """Test figures move within their documented ranges."""
        active = _active(grid_draft)
        total = grid_draft.parameters.total_investment
        refreshed = apply_performance_tick(active, random.Random(3), now=NOW)
        perf = refreshed.performance
        assert -10 <= perf.roi < 10
        assert 0 <= perf.trade_count <= 2
        assert 0 <= perf.win_rate < 100
        assert 0 <= perf.total_volume < 10000
        assert perf.pnl == pytest.approx(total * perf.roi / 100)
        assert perf.current_value == pytest.approx(total + perf.pnl)
        assert perf.last_updated == NOW

    def test_counters_never_decrease(self, grid_draft):
        """Test trade count and volume are monotonic over many ticks."""
        record = _active(grid_draft)
        rng = random.Random(11)
        for _ in range(25):
            nxt = apply_performance_tick(record, rng, now=NOW)
            assert nxt.performance.trade_count >= record.performance.trade_count
            assert nxt.performance.total_volume >= record.performance.total_volume
            record = nxt

    def test_tick_is_noop_for_stopped_and_draft(self, grid_draft):
        """Test records that are not active come back unchanged."""
        stopped = apply_stop(_active(grid_draft))
        assert apply_performance_tick(stopped, random.Random(1)) is stopped
        assert apply_performance_tick(grid_draft, random.Random(1)) is grid_draft
