"""
Chain Deployment Backend

PURPOSE: Wallet connection and strategy deploy/stop calls against the
StrategyExecutor contract. The shipped backend is a simulation: it waits for
a configurable latency, fails at a configurable rate and returns fabricated
transaction references. A real chain client only has to honour ChainClient.

Contract:
    - deploy_strategy with a draft record is a local-save acknowledgment
      (short delay, "draft-..." reference, no chain write)
    - any other record needs a connected wallet and performs the simulated
      on-chain call
    - failures come back as ChainResult(success=False, error=...), never
      as partially applied state

CALLED BY:
    - services/strategy_service.py
"""

import asyncio
import random
from typing import Optional, Protocol

from app.config.constants import StrategyStatus
from app.config.settings import Settings
from app.schemas.strategy import ChainResult, StrategyResult
from app.utils.logger import get_logger
from app.utils.time_utils import new_record_id, random_hex

logger = get_logger("bridge.chain_client")

WALLET_NOT_CONNECTED = "Wallet not connected"
TX_FAILED = "Transaction failed - insufficient gas or network congestion"


class ChainClient(Protocol):
    """Deployment collaborator consumed by the lifecycle service."""

    async def connect_wallet(self) -> bool:
        ...

    async def disconnect_wallet(self) -> None:
        ...

    async def get_wallet_address(self) -> Optional[str]:
        ...

    def is_connected(self) -> bool:
        ...

    async def deploy_strategy(self, strategy: StrategyResult) -> ChainResult:
        ...

    async def stop_strategy(self, strategy_id: str) -> ChainResult:
        ...


class SimulatedChainClient:
    """
    PURPOSE: Stand-in for the StrategyExecutor contract on the Injective testnet.

    Attributes:
        _rpc_url: RPC endpoint the real client would use (logged only).
        _contract_address: StrategyExecutor address (logged only).
        _rng: Random source for addresses, hashes and failures.
        _failure_rate: Probability that an on-chain deploy fails.
        _address: Wallet address once connected, else None.
    """

    def __init__(
        self,
        rpc_url: str = "https://testnet.sentry.tm.injective.network:443",
        contract_address: str = "0x1234567890123456789012345678901234567890",
        connect_delay: float = 1.5,
        draft_delay: float = 0.5,
        deploy_delay: float = 2.5,
        stop_delay: float = 1.5,
        failure_rate: float = 0.05,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._contract_address = contract_address
        self._connect_delay = connect_delay
        self._draft_delay = draft_delay
        self._deploy_delay = deploy_delay
        self._stop_delay = stop_delay
        self._failure_rate = failure_rate
        self._rng = rng or random.Random()
        self._address: Optional[str] = None

    @classmethod
    def from_settings(cls, config: Settings) -> "SimulatedChainClient":
        return cls(
            rpc_url=config.CHAIN_RPC_URL,
            contract_address=config.CONTRACT_ADDRESS,
            connect_delay=config.CHAIN_CONNECT_DELAY_S,
            draft_delay=config.CHAIN_DRAFT_DELAY_S,
            deploy_delay=config.CHAIN_DEPLOY_DELAY_S,
            stop_delay=config.CHAIN_STOP_DELAY_S,
            failure_rate=config.CHAIN_FAILURE_RATE,
        )

    async def connect_wallet(self) -> bool:
        """
        Simulate a wallet connection and generate a fresh address.

        Returns:
            bool: Always True for the simulation.
        """
        logger.info("wallet_connecting", rpc_url=self._rpc_url)
        await asyncio.sleep(self._connect_delay)
        self._address = random_hex(40, self._rng)
        logger.info("wallet_connected", address=self._address)
        return True

    async def disconnect_wallet(self) -> None:
        self._address = None
        logger.info("wallet_disconnected")

    async def get_wallet_address(self) -> Optional[str]:
        return self._address

    def is_connected(self) -> bool:
        return self._address is not None

    async def deploy_strategy(self, strategy: StrategyResult) -> ChainResult:
        """
        Deploy a strategy, or acknowledge a draft save.

        Args:
            strategy: Record to deploy. status == draft means enroll only.

        Returns:
            ChainResult: tx_hash on success, error message on failure.
        """
        name = strategy.parameters.strategy_name

        if strategy.status == StrategyStatus.DRAFT:
            logger.info("draft_strategy_acknowledged", strategy_name=name)
            await asyncio.sleep(self._draft_delay)
            return ChainResult(success=True, tx_hash=new_record_id("draft"))

        if not self.is_connected():
            logger.error("deploy_strategy_failed", strategy_name=name, error=WALLET_NOT_CONNECTED)
            return ChainResult(success=False, error=WALLET_NOT_CONNECTED)

        logger.info(
            "deploy_strategy_submitted",
            strategy_name=name,
            contract=self._contract_address,
            method=strategy.contract_call.method,
        )
        tx_hash = random_hex(64, self._rng)
        await asyncio.sleep(self._deploy_delay)

        if self._rng.random() < self._failure_rate:
            logger.error("deploy_strategy_failed", strategy_name=name, error=TX_FAILED)
            return ChainResult(success=False, error=TX_FAILED)

        logger.info("deploy_strategy_confirmed", strategy_name=name, tx_hash=tx_hash)
        return ChainResult(success=True, tx_hash=tx_hash)

    async def stop_strategy(self, strategy_id: str) -> ChainResult:
        """
        Stop a deployed strategy.

        Args:
            strategy_id: Id (transaction reference) of the active strategy.

        Returns:
            ChainResult: tx_hash of the stop transaction, or the error.
        """
        if not self.is_connected():
            logger.error("stop_strategy_failed", strategy_id=strategy_id, error=WALLET_NOT_CONNECTED)
            return ChainResult(success=False, error=WALLET_NOT_CONNECTED)

        logger.info("stop_strategy_submitted", strategy_id=strategy_id)
        await asyncio.sleep(self._stop_delay)
        tx_hash = random_hex(64, self._rng)
        logger.info("stop_strategy_confirmed", strategy_id=strategy_id, tx_hash=tx_hash)
        return ChainResult(success=True, tx_hash=tx_hash)
