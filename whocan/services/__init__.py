"""Authorization resolution services."""

from .aggregator import partition
from .bindings import resolve_grants
from .matcher import matches
from .resource_resolver import ResourceResolver
from .role_index import find_matching_roles
from .who_can import WhoCan, WhoCanResult, who_can

__all__ = [
    "matches",
    "find_matching_roles",
    "resolve_grants",
    "partition",
    "who_can",
    "WhoCan",
    "WhoCanResult",
    "ResourceResolver",
]
