"""
PURPOSE: Strategy lifecycle state machine.

Pure transition functions over StrategyResult records. Each one checks that
the transition is legal and returns a new record; none of them touch
persistence or the chain backend. StrategyService runs the side effects and
persists whatever these functions return.

States:
    draft   -> entered by compose and subscribe, left by save/deploy
    active  -> entered by a deploy outside the subscribe flow, left by stop, refreshed in place
    stopped -> terminal
    paused  -> declared only, nothing produces it

CALLED BY:
    - services/strategy_service.py
"""

import random
from datetime import datetime
from typing import Optional

from app.config.constants import UNKNOWN_CREATOR, StrategyStatus
from app.schemas.strategy import StrategyPerformance, StrategyResult
from app.utils.time_utils import get_utc_now, new_record_id

ALLOWED_TRANSITIONS: dict[StrategyStatus, frozenset[StrategyStatus]] = {
    StrategyStatus.DRAFT: frozenset({StrategyStatus.DRAFT, StrategyStatus.ACTIVE}),
    StrategyStatus.ACTIVE: frozenset({StrategyStatus.ACTIVE, StrategyStatus.STOPPED}),
    StrategyStatus.STOPPED: frozenset(),
    StrategyStatus.PAUSED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Raised when a record cannot move from its current status to the requested one."""

    def __init__(self, current: StrategyStatus, target: StrategyStatus) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move strategy from {current.value} to {target.value}")


def can_transition(current: Optional[StrategyStatus], target: StrategyStatus) -> bool:
    """Return True when `target` is reachable from `current` (None reads as draft)."""
    return target in ALLOWED_TRANSITIONS[current or StrategyStatus.DRAFT]


def _require(strategy: StrategyResult, target: StrategyStatus) -> None:
    if not can_transition(strategy.status, target):
        raise InvalidTransitionError(strategy.effective_status, target)


def initial_performance(total_investment: float, now: Optional[datetime] = None) -> StrategyPerformance:
    """Zeroed snapshot whose current value is the full investment."""
    return StrategyPerformance(
        roi=0.0,
        trade_count=0,
        total_volume=0.0,
        win_rate=0.0,
        current_value=total_investment,
        pnl=0.0,
        last_updated=now or get_utc_now(),
    )


def prepare_saved_draft(strategy: StrategyResult, creator: Optional[str]) -> StrategyResult:
    """
    PURPOSE: Turn a composed strategy into a persistable draft.

    Args:
        strategy: Draft produced by the composer.
        creator: Connected wallet address, if any.

    Returns:
        StrategyResult: Copy with a fresh id, status draft and the creator set.

    Raises:
        InvalidTransitionError: If the record is not a draft.
    """
    _require(strategy, StrategyStatus.DRAFT)
    return strategy.model_copy(
        update={
            "id": new_record_id("strategy"),
            "status": StrategyStatus.DRAFT,
            "creator": creator,
        },
        deep=True,
    )


def prepare_subscription(source: StrategyResult) -> StrategyResult:
    """
    PURPOSE: Copy a marketplace strategy into a new draft for the subscriber.

    Deployment, performance and publication fields of the source are dropped;
    the creator is kept so the copy still credits its author.

    Args:
        source: Published strategy from the marketplace feed.

    Returns:
        StrategyResult: Draft marked with subscribed_from = source id.
    """
    return source.model_copy(
        update={
            "id": new_record_id("subscribed"),
            "status": StrategyStatus.DRAFT,
            "subscribed_from": source.id,
            "deployed_at": None,
            "tx_hash": None,
            "performance": None,
            "is_published": None,
            "published_at": None,
            "subscribers": None,
        },
        deep=True,
    )


def deployment_payload(strategy: StrategyResult, enroll_only: bool = False) -> StrategyResult:
    """
    Record handed to the chain backend.

    Enrollments go out as drafts (local acknowledgment); everything else goes
    out without a draft status so the backend performs the on-chain call.
    """
    if enroll_only:
        return strategy.model_copy(update={"status": StrategyStatus.DRAFT})
    return strategy.model_copy(update={"status": None})


def apply_deployment(
    strategy: StrategyResult,
    tx_hash: str,
    enroll_only: bool = False,
    now: Optional[datetime] = None,
) -> StrategyResult:
    """
    PURPOSE: Build the record that results from a successful deployment.

    Enrollments (subscribe flow) stay draft with no timestamp or performance.
    Any other draft becomes active with deployed_at stamped and a zeroed
    performance snapshot.
    In both cases the id becomes the transaction reference.

    Args:
        strategy: Record that was deployed.
        tx_hash: Reference returned by the chain backend.
        enroll_only: True for the subscribe flow.
        now: Deployment time, defaults to the current UTC time.

    Returns:
        StrategyResult: The deployed record.

    Raises:
        InvalidTransitionError: If the record is not a draft.
    """
    if enroll_only:
        _require(strategy, StrategyStatus.DRAFT)
        return strategy.model_copy(
            update={
                "id": tx_hash,
                "tx_hash": tx_hash,
                "status": StrategyStatus.DRAFT,
                "deployed_at": None,
                "performance": None,
            },
            deep=True,
        )

    if strategy.effective_status != StrategyStatus.DRAFT:
        raise InvalidTransitionError(strategy.effective_status, StrategyStatus.ACTIVE)

    now = now or get_utc_now()
    return strategy.model_copy(
        update={
            "id": tx_hash,
            "tx_hash": tx_hash,
            "status": StrategyStatus.ACTIVE,
            "deployed_at": now,
            "performance": initial_performance(strategy.parameters.total_investment, now),
        },
        deep=True,
    )


def apply_stop(strategy: StrategyResult) -> StrategyResult:
    """Active -> stopped. Raises InvalidTransitionError from any other status."""
    if strategy.effective_status != StrategyStatus.ACTIVE:
        raise InvalidTransitionError(strategy.effective_status, StrategyStatus.STOPPED)
    return strategy.model_copy(update={"status": StrategyStatus.STOPPED}, deep=True)


def apply_publication(
    strategy: StrategyResult,
    creator: Optional[str],
    now: Optional[datetime] = None,
) -> StrategyResult:
    """
    Mark a persisted strategy as published. Status is left untouched and the
    subscriber count always restarts at zero.
    """
    return strategy.model_copy(
        update={
            "is_published": True,
            "published_at": now or get_utc_now(),
            "subscribers": 0,
            "creator": creator or UNKNOWN_CREATOR,
        },
        deep=True,
    )


def apply_performance_tick(
    strategy: StrategyResult,
    rng: random.Random,
    now: Optional[datetime] = None,
) -> StrategyResult:
    """
    PURPOSE: Recompute the simulated performance snapshot of an active strategy.

    ROI is drawn from [-10, 10) percent; trade count grows by 0-2 and volume by
    [0, 10000), so both never decrease. P&L and current value follow from ROI.
    Records that are not active, or have no snapshot, come back unchanged.

    Args:
        strategy: Record to refresh.
        rng: Random source for the simulated figures.
        now: Refresh time, defaults to the current UTC time.

    Returns:
        StrategyResult: Refreshed copy, or the same record for a no-op.
    """
    perf = strategy.performance
    if strategy.status != StrategyStatus.ACTIVE or perf is None:
        return strategy

    total = strategy.parameters.total_investment
    roi = (rng.random() - 0.5) * 20
    pnl = total * roi / 100

    refreshed = perf.model_copy(
        update={
            "roi": roi,
            "trade_count": perf.trade_count + rng.randrange(3),
            "pnl": pnl,
            "current_value": total + pnl,
            "win_rate": rng.random() * 100,
            "total_volume": perf.total_volume + rng.random() * 10000,
            "last_updated": now or get_utc_now(),
        }
    )
    return strategy.model_copy(update={"performance": refreshed}, deep=True)
