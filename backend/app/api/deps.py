"""
PURPOSE: FastAPI dependencies resolving the per-application singletons.

The service and the in-flight guard are created by main.create_app() and
stored on app.state so tests can inject their own instances.
"""

from fastapi import Request

from app.api.guard import OperationGuard
from app.services.strategy_service import StrategyService


def get_strategy_service(request: Request) -> StrategyService:
    return request.app.state.strategy_service


def get_operation_guard(request: Request) -> OperationGuard:
    return request.app.state.operation_guard
