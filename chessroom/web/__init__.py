"""
Web Interface Module

Provides the FastAPI server and WebSocket event channel for chess games.
"""

from .app import app
from .gateway import ConnectionGateway, build_gateway

__all__ = ['app', 'ConnectionGateway', 'build_gateway']
