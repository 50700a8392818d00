"""
baseclient - Base HTTP client for building API clients.

This package provides a flexible and extensible base class for creating
async HTTP clients with built-in support for proxies, shared transports
and error handling.
"""

from .client import BaseClient as Client
from .client import build_http_client

__version__ = "0.1.0"
__all__ = [
    "Client",
    "build_http_client",
]
