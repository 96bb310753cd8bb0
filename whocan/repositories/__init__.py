"""Repositories package for data access layer."""

from .discovery import APIDiscovery, APIResource
from .rbac_source import KubernetesRBACSource, RBACSource
from .snapshot_cache import CachedRBACSource, SnapshotCache

__all__ = [
    "RBACSource",
    "KubernetesRBACSource",
    "CachedRBACSource",
    "SnapshotCache",
    "APIDiscovery",
    "APIResource",
]
