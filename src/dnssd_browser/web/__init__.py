"""
DNS-SD Browser Web Interface Module

Status REST API served with aiohttp.
"""

from .api import APIHandler, setup_api_routes
from .server import WebServer

__all__ = ["WebServer", "APIHandler", "setup_api_routes"]
