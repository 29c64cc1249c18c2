"""
PURPOSE: Marketplace API routes for Strategy Forge.

Lists the published strategy feed and subscribes the connected wallet to a
published strategy (the copy lands in the saved collection as a draft).
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import get_operation_guard, get_strategy_service
from app.api.guard import OperationGuard, OperationInFlightError
from app.core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from app.schemas.strategy import OperationResult, StrategyResult
from app.services.strategy_service import STRATEGY_NOT_FOUND, StrategyService

router = APIRouter(prefix="/marketplace", tags=["marketplace"])


@router.get("", response_model=List[StrategyResult], response_model_exclude_none=True)
@limiter.limit(READ_LIMIT)
async def list_marketplace(
    request: Request,
    service: StrategyService = Depends(get_strategy_service),
) -> List[StrategyResult]:
    """Published strategies in publication order."""
    return await service.list_published()


@router.post("/{strategy_id}/subscribe", response_model=OperationResult, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def subscribe_strategy(
    request: Request,
    strategy_id: str,
    service: StrategyService = Depends(get_strategy_service),
    guard: OperationGuard = Depends(get_operation_guard),
) -> OperationResult:
    """
    PURPOSE: Copy a published strategy into the caller's collection.

    Requires a connected wallet. The copy is a draft with subscribed_from set
    to the published id; deploying it is a separate step.

    Returns:
        OperationResult: the enrolled draft, or the error.
    """
    try:
        async with guard.hold(f"subscribe:{strategy_id}"):
            result = await service.subscribe(strategy_id)
    except OperationInFlightError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if not result.success and result.error == STRATEGY_NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{STRATEGY_NOT_FOUND}: {strategy_id}",
        )
    return result
