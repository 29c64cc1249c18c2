"""
PURPOSE: Pytest fixtures for Strategy Forge tests.

Provides shared test doubles and builders including:
- In-memory key-value store
- Simulated chain backend with zero latency and no random failures
- Scriptable chain backend for failure injection
- Store that yields on every call, for interleaving tests
- StrategyService wired to the above
- Composed draft strategies
"""

import os

# Must run before anything imports app.core.rate_limit
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

import asyncio
import random
from typing import Optional

import pytest
import pytest_asyncio

from app.bridge.chain_client import SimulatedChainClient
from app.config.constants import StrategyStatus
from app.schemas.strategy import ChainResult, StrategyResult
from app.services.strategy_service import StrategyService
from app.storage.kv_store import InMemoryKVStore
from app.strategy_builder.composer import StrategyComposer


GRID_TEXT = "Create a grid strategy for BTC/USDT from $20 to $22 with 12 grids using 600 USDT over 14 days"
DCA_TEXT = "DCA into ETH/USDT with 500 USDT over 60 days"


class YieldingStore(InMemoryKVStore):
    """In-memory store that suspends on every call so concurrent operations interleave."""

    async def get(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value: str) -> bool:
        await asyncio.sleep(0)
        return await super().set(key, value)


class ScriptedChainClient:
    """
    PURPOSE: Chain backend double whose outcomes are set by the test.

    Attributes:
        deploy_results: Queue of ChainResult or Exception returned by deploy_strategy.
        stop_results: Queue of ChainResult or Exception returned by stop_strategy.
        deployed: Records passed to deploy_strategy, in call order.
        stopped: Ids passed to stop_strategy, in call order.
    """

    def __init__(self, address: Optional[str] = "0xabc123") -> None:
        self._address = address
        self.deploy_results: list = []
        self.stop_results: list = []
        self.deployed: list[StrategyResult] = []
        self.stopped: list[str] = []
        self._counter = 0

    async def connect_wallet(self) -> bool:
        self._address = self._address or "0xabc123"
        return True

    async def disconnect_wallet(self) -> None:
        self._address = None

    async def get_wallet_address(self) -> Optional[str]:
        return self._address

    def is_connected(self) -> bool:
        return self._address is not None

    async def deploy_strategy(self, strategy: StrategyResult) -> ChainResult:
        self.deployed.append(strategy)
        if self.deploy_results:
            outcome = self.deploy_results.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        self._counter += 1
        prefix = "draft" if strategy.status == StrategyStatus.DRAFT else "0xtx"
        return ChainResult(success=True, tx_hash=f"{prefix}-{self._counter}")

    async def stop_strategy(self, strategy_id: str) -> ChainResult:
        self.stopped.append(strategy_id)
        if self.stop_results:
            outcome = self.stop_results.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return ChainResult(success=True, tx_hash=f"0xstop-{strategy_id}")


@pytest.fixture
def rng():
    """Seeded random source so simulated figures are reproducible."""
    return random.Random(1234)


@pytest.fixture
def store():
    return InMemoryKVStore()


@pytest.fixture
def simulated_chain(rng):
    """
    PURPOSE: SimulatedChainClient with all latencies at zero and no random failures.

    Returns:
        SimulatedChainClient: Not yet connected.
    """
    return SimulatedChainClient(
        connect_delay=0,
        draft_delay=0,
        deploy_delay=0,
        stop_delay=0,
        failure_rate=0.0,
        rng=rng,
    )


@pytest.fixture
def chain():
    """Scripted chain backend with a wallet already connected."""
    return ScriptedChainClient()


@pytest_asyncio.fixture
async def service(store, chain, rng):
    """
    PURPOSE: StrategyService over the in-memory store and scripted chain.

    The wallet held by the chain double is adopted so creator and profile
    fields are populated the same way they are after startup.
    """
    svc = StrategyService(store, chain, rng=rng)
    await svc.restore_wallet()
    return svc


@pytest.fixture
def composer():
    return StrategyComposer()


@pytest.fixture
def grid_draft(composer) -> StrategyResult:
    return composer.compose(GRID_TEXT)


@pytest.fixture
def dca_draft(composer) -> StrategyResult:
    return composer.compose(DCA_TEXT)
