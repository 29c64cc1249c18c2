"""
PURPOSE: Lifecycle engine package for Strategy Forge.

Exports the pure state machine used by StrategyService.
"""

from app.engine.lifecycle import (
    ALLOWED_TRANSITIONS,
    InvalidTransitionError,
    apply_deployment,
    apply_performance_tick,
    apply_publication,
    apply_stop,
    can_transition,
    deployment_payload,
    initial_performance,
    prepare_saved_draft,
    prepare_subscription,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "InvalidTransitionError",
    "can_transition",
    "initial_performance",
    "prepare_saved_draft",
    "prepare_subscription",
    "deployment_payload",
    "apply_deployment",
    "apply_stop",
    "apply_publication",
    "apply_performance_tick",
]
