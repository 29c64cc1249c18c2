"""
PURPOSE: Wallet connection API routes for Strategy Forge.

Connecting a wallet loads (or creates) the user profile stored under
"userProfile_<address>"; the address becomes the creator of saved and
published strategies.
"""

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_strategy_service
from app.core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from app.schemas.strategy import WalletState
from app.services.strategy_service import StrategyService
from app.utils.logger import get_logger

logger = get_logger("api.wallet")

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("", response_model=WalletState, response_model_exclude_none=True)
@limiter.limit(READ_LIMIT)
async def get_wallet(
    request: Request,
    service: StrategyService = Depends(get_strategy_service),
) -> WalletState:
    return service.wallet_state()


@router.post("/connect", response_model=WalletState, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def connect_wallet(
    request: Request,
    service: StrategyService = Depends(get_strategy_service),
) -> WalletState:
    """Connect a wallet through the chain backend; is_connected reports the outcome."""
    connected = await service.connect_wallet()
    logger.info("wallet_connect_request", connected=connected)
    return service.wallet_state()


@router.post("/disconnect", response_model=WalletState, response_model_exclude_none=True)
@limiter.limit(WRITE_LIMIT)
async def disconnect_wallet(
    request: Request,
    service: StrategyService = Depends(get_strategy_service),
) -> WalletState:
    await service.disconnect_wallet()
    logger.info("wallet_disconnect_request")
    return service.wallet_state()
