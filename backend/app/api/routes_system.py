"""
PURPOSE: System-level API routes for Strategy Forge.

Liveness and version information. Public, no state is touched.
"""

import time

from fastapi import APIRouter, Request

from app.config.settings import settings
from app.core.rate_limit import READ_LIMIT, limiter
from app.utils.logger import get_logger
from app.version import get_version

logger = get_logger("api.system")
router = APIRouter(tags=["system"])

_startup_time = time.time()


@router.get("/health", response_model=None, tags=["health"])
@limiter.limit(READ_LIMIT)
async def health_check(request: Request):
    """Liveness check with version, uptime and the configured backends."""
    try:
        version_data = get_version()
    except (OSError, ValueError) as e:
        logger.warning("version_data_unavailable", error=str(e))
        version_data = {}

    service = request.app.state.strategy_service
    return {
        "status": "ok",
        "version": version_data.get("version", "unknown"),
        "codename": version_data.get("codename", "Forge"),
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "storage_backend": settings.STORAGE_BACKEND,
        "wallet_connected": service.wallet_address is not None,
    }
