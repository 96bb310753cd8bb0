"""Core utilities package."""

from .exceptions import (InvalidAction, InvalidNamespaceError,
                         NamespaceNotFoundError, ResourceNotFoundError,
                         SourceFetchError, WhoCanError)
from .logging import get_logger, log_event, setup_logging

__all__ = [
    "setup_logging",
    "get_logger",
    "log_event",
    "WhoCanError",
    "InvalidAction",
    "SourceFetchError",
    "NamespaceNotFoundError",
    "InvalidNamespaceError",
    "ResourceNotFoundError",
]
