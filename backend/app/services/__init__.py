"""
Business logic layer for Strategy Forge.

PURPOSE: Services sit between the API routes and the engine, persistence and
chain backends. They apply lifecycle transitions, call collaborators and
persist the results.

CALLED BY: API routes in app.api

Services:
    - StrategyService: Strategy lifecycle, marketplace and wallet profile
"""

from app.services.strategy_service import StrategyService

__all__ = [
    "StrategyService",
]
