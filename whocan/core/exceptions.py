"""Exceptions raised by kubectl-who-can."""

from typing import Optional


class WhoCanError(Exception):
    """Base exception for who-can errors"""


class InvalidAction(WhoCanError):
    """Malformed or contradictory action"""


class SourceFetchError(WhoCanError):
    """RBAC objects could not be fetched from the cluster"""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        namespace: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.namespace = namespace
        self.status = status


class NamespaceNotFoundError(SourceFetchError):
    """Requested namespace does not exist"""


class InvalidNamespaceError(SourceFetchError):
    """Requested namespace exists but is not usable"""


class ResourceNotFoundError(WhoCanError):
    """Resource type could not be resolved against API discovery"""
