"""
PURPOSE: Rate limiting configuration for the Strategy Forge API using slowapi.

Provides a shared Limiter instance keyed by client IP address and
pre-defined rate limit strings for different endpoint categories:
    - WRITE_LIMIT:   moderate (30/minute): save, deploy, stop, publish, subscribe
    - READ_LIMIT:    relaxed  (60/minute): list/get endpoints, parse, refresh, health
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config.settings import settings

# Shared limiter instance, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# ── Rate limit tiers ──────────────────────────────────────────
WRITE_LIMIT = "30/minute"
READ_LIMIT = "60/minute"
