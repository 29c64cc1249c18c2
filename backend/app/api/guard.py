"""
PURPOSE: Per-record in-flight guard for mutating strategy operations.

A deploy or stop that is still waiting on the chain backend holds its record
key; a second request for the same record is refused with 409 instead of
racing the first one into the saved collection.

CALLED BY:
    - api/routes_strategies.py (deploy, stop)
    - api/routes_marketplace.py (subscribe)
"""

import hashlib
import json
from contextlib import asynccontextmanager
from typing import AsyncIterator

from app.schemas.strategy import StrategyResult
from app.utils.logger import get_logger

logger = get_logger("api.guard")


class OperationInFlightError(Exception):
    """Raised when an operation for the same record is already running."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Operation already in progress for {key}")


def record_key(strategy: StrategyResult) -> str:
    """
    Guard key for a record: its id, or a digest of its parameters for
    composed drafts that have no id yet.
    """
    if strategy.id:
        return strategy.id
    params = json.dumps(strategy.parameters.model_dump(mode="json"), sort_keys=True)
    return "draft:" + hashlib.sha256(params.encode("utf-8")).hexdigest()


class OperationGuard:
    """Set of record keys with an operation in flight."""

    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        # Check and add run without an await in between, so no other task can interleave.
        if key in self._in_flight:
            logger.warning("operation_in_flight", key=key)
            raise OperationInFlightError(key)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)
