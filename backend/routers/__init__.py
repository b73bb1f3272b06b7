"""Routers module - FastAPI route handlers"""

from . import config, diff, network

__all__ = ["diff", "network", "config"]
