"""Connections to external systems."""

from .kubernetes import get_api_client
from .redis import close_redis_connection, get_redis_client

__all__ = ["get_api_client", "get_redis_client", "close_redis_connection"]
