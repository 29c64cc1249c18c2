"""
PURPOSE: API router initialization and exports for Strategy Forge.

This module aggregates all API routers (strategies, marketplace, wallet,
system) into a single api_router that is included in the main FastAPI
application.
"""

from fastapi import APIRouter

from app.api.routes_marketplace import router as marketplace_router
from app.api.routes_strategies import router as strategies_router
from app.api.routes_system import router as system_router
from app.api.routes_wallet import router as wallet_router

# Create the main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(strategies_router, tags=["strategies"])
api_router.include_router(marketplace_router, tags=["marketplace"])
api_router.include_router(wallet_router, tags=["wallet"])
api_router.include_router(system_router, tags=["system"])

__all__ = ["api_router"]
