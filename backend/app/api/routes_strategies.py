"""
PURPOSE: Strategy lifecycle API routes for Strategy Forge.

Compose a draft from free-form text, then save, deploy, stop, publish,
refresh and delete persisted strategies. Operation failures come back as
200 with success=false; unknown ids are 404 and a deploy or stop that is
already running for the same record is 409.

CALLED BY:
    - Frontend strategy builder and portfolio pages
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from app.api.deps import get_operation_guard, get_strategy_service
from app.api.guard import OperationGuard, OperationInFlightError, record_key
from app.config.settings import settings
from app.core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from app.schemas.strategy import OperationResult, StrategyResult
from app.services.strategy_service import STRATEGY_NOT_FOUND, StrategyService
from app.utils.logger import get_logger

logger = get_logger("api.strategies")

router = APIRouter(prefix="/strategies", tags=["strategies"])


# ════════════════════════════════════════════════════════════════
# Request Models / helpers
# ════════════════════════════════════════════════════════════════


class ParseRequest(BaseModel):
    input: str = Field(
        ...,
        max_length=settings.MAX_INPUT_LENGTH,
        description="Free-form strategy description, e.g. 'grid trade INJ between 2000 and 2500'",
    )


def _not_found(strategy_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{STRATEGY_NOT_FOUND}: {strategy_id}")


def _in_flight(exc: OperationInFlightError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


def _raise_if_missing(result: OperationResult, strategy_id: str) -> OperationResult:
    """Translate a "Strategy not found" outcome into a 404."""
    if not result.success and result.error == STRATEGY_NOT_FOUND:
        raise _not_found(strategy_id)
    return result


# ════════════════════════════════════════════════════════════════
# Compose and read
# ════════════════════════════════════════════════════════════════


@router.post("/parse", response_model=StrategyResult, response_model_exclude_none=True)
@limiter.limit(READ_LIMIT)
async def parse_strategy(
    request: Request,
    body: ParseRequest,
    service: StrategyService = Depends(get_strategy_service),
) -> StrategyResult:
    """
    PURPOSE: Compose a draft strategy from free-form text.

    Never fails for well-formed input: anything the extractors cannot find
    falls back to defaults.

    Args:
        body.input: e.g. "DCA 500 USDT into BTC over 14 days"

    Returns:
        StrategyResult: Draft with parameters, summary, UI layout, contract
        call, backtest feedback, warning and follow-up suggestions.
    """
    logger.info("strategy_parse_request", input_length=len(body.input))
    return service.compose(body.input)


@router.get("", response_model=List[StrategyResult], response_model_exclude_none=True)
@limiter.limit(READ_LIMIT)
async def list_strategies(
    request: Request,
    service: StrategyService = Depends(get_strategy_service),
) -> List[StrategyResult]:
    """List the saved strategy collection in stored order."""
    return await service.list_strategies()


@router.get("/{strategy_id}", response_model=StrategyResult, response_model_exclude_none=True)
@limiter.limit(READ_LIMIT)
async def get_strategy(
    request: Request,
    strategy_id: str,
    service: StrategyService = Depends(get_strategy_service),
) -> StrategyResult:
    strategy = await service.get_strategy(strategy_id)
    if strategy is None:
        raise _not_found(strategy_id)
    return strategy


# ════════════════════════════════════════════════════════════════
# Transitions
# ════════════════════════════════════════════════════════════════


@router.post("/save", response_model=OperationResult, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def save_strategy(
    request: Request,
    body: StrategyResult,
    service: StrategyService = Depends(get_strategy_service),
) -> OperationResult:
    """Persist a composed draft under a fresh id."""
    return await service.save_draft(body)


@router.post("/deploy", response_model=OperationResult, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def deploy_strategy(
    request: Request,
    body: StrategyResult,
    service: StrategyService = Depends(get_strategy_service),
    guard: OperationGuard = Depends(get_operation_guard),
) -> OperationResult:
    """
    PURPOSE: Deploy a draft strategy through the chain backend.

    The record may be a freshly composed draft (no id) or a saved draft. A
    second deploy of the same record while the first is still running is
    refused with 409.

    Returns:
        OperationResult: tx_hash and the active record on success, otherwise
        the backend's error with the record unchanged.
    """
    try:
        async with guard.hold(record_key(body)):
            return await service.deploy(body)
    except OperationInFlightError as e:
        raise _in_flight(e)


@router.post("/{strategy_id}/stop", response_model=OperationResult, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def stop_strategy(
    request: Request,
    strategy_id: str,
    service: StrategyService = Depends(get_strategy_service),
    guard: OperationGuard = Depends(get_operation_guard),
) -> OperationResult:
    """Stop an active strategy. Stopped is terminal."""
    try:
        async with guard.hold(strategy_id):
            result = await service.stop(strategy_id)
    except OperationInFlightError as e:
        raise _in_flight(e)
    return _raise_if_missing(result, strategy_id)


@router.post("/{strategy_id}/publish", response_model=OperationResult, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def publish_strategy(
    request: Request,
    strategy_id: str,
    service: StrategyService = Depends(get_strategy_service),
) -> OperationResult:
    """Publish a saved strategy to the marketplace feed."""
    result = await service.publish(strategy_id)
    return _raise_if_missing(result, strategy_id)


@router.post("/{strategy_id}/refresh", response_model=StrategyResult, response_model_exclude_none=True)
@limiter.limit(READ_LIMIT)
async def refresh_strategy(
    request: Request,
    strategy_id: str,
    service: StrategyService = Depends(get_strategy_service),
) -> StrategyResult:
    """Recompute simulated performance; records that are not active come back unchanged."""
    strategy = await service.refresh_performance(strategy_id)
    if strategy is None:
        raise _not_found(strategy_id)
    return strategy


@router.delete("/{strategy_id}", response_model=OperationResult, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def delete_strategy(
    request: Request,
    strategy_id: str,
    service: StrategyService = Depends(get_strategy_service),
) -> OperationResult:
    """Remove a strategy from the saved collection; the result carries the removed record."""
    result = await service.delete_by_id(strategy_id)
    return _raise_if_missing(result, strategy_id)
