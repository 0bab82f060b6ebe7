"""
Cubefield Relay Server

FastAPI backend with Socket.IO for real-time player synchronization.
"""

from .config import RelayConfig, configure_logging
from .main import create_app, run
from .relay import RelayNamespace

__all__ = ['RelayConfig', 'configure_logging', 'create_app', 'run', 'RelayNamespace']
