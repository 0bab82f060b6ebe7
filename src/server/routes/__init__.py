"""
API Routes
"""

from .world import router as world_router
from .players import router as players_router

__all__ = ['world_router', 'players_router']
