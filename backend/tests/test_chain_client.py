"""
PURPOSE: Tests for the simulated chain backend.

Tests with all latencies set to zero:
- Wallet connect/disconnect
- Draft acknowledgment without a wallet
- Deploy and stop wallet requirements
- Injected failure rate
"""

import random

import pytest

from app.bridge.chain_client import TX_FAILED, WALLET_NOT_CONNECTED, SimulatedChainClient
from app.config.constants import StrategyStatus
from app.config.settings import Settings


def _client(failure_rate: float = 0.0, seed: int = 99) -> SimulatedChainClient:
    return SimulatedChainClient(
        connect_delay=0,
        draft_delay=0,
        deploy_delay=0,
        stop_delay=0,
        failure_rate=failure_rate,
        rng=random.Random(seed),
    )


class TestWallet:
    """Test simulated wallet connection."""

    @pytest.mark.asyncio
    async def test_connect_generates_address(self):
        client = _client()
        assert not client.is_connected()
        assert await client.connect_wallet() is True
        address = await client.get_wallet_address()
        assert address.startswith("0x")
        assert len(address) == 42
        assert client.is_connected()

    @pytest.mark.asyncio
    async def test_disconnect(self):
        client = _client()
        await client.connect_wallet()
        await client.disconnect_wallet()
        assert not client.is_connected()
        assert await client.get_wallet_address() is None


class TestDeploy:
    """Test simulated deploy and stop."""

    @pytest.mark.asyncio
    async def test_draft_acknowledged_without_wallet(self, grid_draft):
        """Test a draft-status record is acknowledged locally."""
        client = _client()
        draft = grid_draft.model_copy(update={"status": StrategyStatus.DRAFT})
        result = await client.deploy_strategy(draft)
        assert result.success
        assert result.tx_hash.startswith("draft-")

    @pytest.mark.asyncio
    async def test_deploy_requires_wallet(self, grid_draft):
        client = _client()
        result = await client.deploy_strategy(grid_draft)
        assert not result.success
        assert result.error == WALLET_NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_deploy_returns_tx_hash(self, grid_draft):
        """Test a connected deploy returns a 0x-prefixed 64 digit hash."""
        client = _client()
        await client.connect_wallet()
        result = await client.deploy_strategy(grid_draft)
        assert result.success
        assert result.tx_hash.startswith("0x")
        assert len(result.tx_hash) == 66

    @pytest.mark.asyncio
    async def test_deploy_always_fails_at_full_failure_rate(self, grid_draft):
        client = _client(failure_rate=1.0)
        await client.connect_wallet()
        result = await client.deploy_strategy(grid_draft)
        assert not result.success
        assert result.error == TX_FAILED
        assert result.tx_hash is None

    @pytest.mark.asyncio
    async def test_stop_requires_wallet(self):
        client = _client()
        result = await client.stop_strategy("0xabc")
        assert not result.success
        assert result.error == WALLET_NOT_CONNECTED

    @pytest.mark.asyncio
    async def test_stop_connected(self):
        client = _client()
        await client.connect_wallet()
        result = await client.stop_strategy("0xabc")
        assert result.success
        assert len(result.tx_hash) == 66


class TestFromSettings:
    """Test construction from settings."""

    def test_delays_and_failure_rate(self):
        config = Settings(CHAIN_DEPLOY_DELAY_S=0.25, CHAIN_FAILURE_RATE=0.5)
        client = SimulatedChainClient.from_settings(config)
        assert client._deploy_delay == 0.25
        assert client._failure_rate == 0.5
