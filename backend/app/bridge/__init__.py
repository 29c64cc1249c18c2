"""
Chain Bridge Module

PURPOSE: Exports the deployment collaborator contract and its simulated backend.

Exports:
    - ChainClient: Protocol the lifecycle service calls for wallet, deploy and stop
    - SimulatedChainClient: Latency/failure simulation of the StrategyExecutor contract
"""

from app.bridge.chain_client import ChainClient, SimulatedChainClient

__all__ = [
    "ChainClient",
    "SimulatedChainClient",
]
