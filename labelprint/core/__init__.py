"""
Core infrastructure components for the label client.

This module contains the HTTP transport pool, the cache-bust counter,
logging setup, lifespan management and the exception hierarchy.
"""

from .cache_bust import CacheBust, cache_buster
from .rest_api import ClientConfig, LabelServiceTransport, TransportPool
from .logging_config import setup_logging
from .lifespan import client_lifespan

__all__ = [
    "CacheBust",
    "ClientConfig",
    "LabelServiceTransport",
    "TransportPool",
    "cache_buster",
    "client_lifespan",
    "setup_logging",
]
