"""Pytest configuration and shared fixtures for who-can tests."""

import pytest
from fakeredis import FakeStrictRedis

from whocan.core.config import get_settings
from whocan.core.exceptions import NamespaceNotFoundError
from whocan.db.redis import get_redis_client, get_redis_pool
from whocan.models.rbac import (ClusterRole, ClusterRoleBinding, PolicyRule,
                                RBACSnapshot, Role, RoleBinding, RoleKind,
                                RoleRef, Subject, SubjectKind)
from whocan.repositories.rbac_source import RBACSource

# ============================================================================
# Redis Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def fake_redis_session():
    """Single FakeRedis instance for entire test session."""
    return FakeStrictRedis(decode_responses=True)


@pytest.fixture
def fake_redis(fake_redis_session):
    """Session redis, flushed before each test."""
    fake_redis_session.flushdb()
    yield fake_redis_session


# ============================================================================
# RBAC Fixtures
# ============================================================================


class StaticRBACSource(RBACSource):
    """RBAC source serving a fixed snapshot."""

    def __init__(self, snapshot: RBACSnapshot, namespaces=("default", "foo")):
        self.snapshot = snapshot
        self.namespaces = set(namespaces)
        self.fetches = []

    def fetch(self, namespace: str = "") -> RBACSnapshot:
        self.fetches.append(namespace)
        return self.snapshot

    def validate_namespace(self, namespace: str) -> None:
        if namespace not in self.namespaces:
            raise NamespaceNotFoundError(f'namespaces "{namespace}" not found')


@pytest.fixture
def reference_snapshot():
    """RBAC objects configured by the reference integration scenario.

    * ClusterRole create-configmaps, bound in default to Rory by ClusterRole ref
    * Role default/create-configmaps, bound in default to Alice by Role ref
    * ClusterRole get-logs bound cluster-wide to Bob
    * Role default/scale-workloads bound to Group devops
    * Role foo/view-services bound to ServiceAccount bar/operator
    """
    create_configmaps = PolicyRule(
        api_groups=[""], verbs=["create"], resources=["configmaps"]
    )
    return RBACSnapshot(
        cluster_roles=[
            ClusterRole("create-configmaps", [create_configmaps]),
            ClusterRole(
                "get-logs", [PolicyRule(verbs=["get"], non_resource_urls=["/logs"])]
            ),
        ],
        cluster_role_bindings=[
            ClusterRoleBinding(
                "bob-can-get-logs",
                RoleRef(RoleKind.CLUSTER_ROLE, "get-logs"),
                [Subject(SubjectKind.USER, "Bob")],
            ),
        ],
        roles=[
            Role("default", "create-configmaps", [create_configmaps]),
            Role(
                "default",
                "scale-workloads",
                [
                    PolicyRule(
                        api_groups=[""],
                        verbs=["update"],
                        resources=["deployments/scale"],
                    )
                ],
            ),
            Role(
                "foo",
                "view-services",
                [
                    PolicyRule(
                        api_groups=[""], verbs=["get", "list"], resources=["services"]
                    ),
                    PolicyRule(
                        api_groups=[""], verbs=["get", "list"], resources=["endpoints"]
                    ),
                ],
            ),
        ],
        role_bindings=[
            RoleBinding(
                "default",
                "alice-can-create-configmaps",
                RoleRef(RoleKind.ROLE, "create-configmaps"),
                [Subject(SubjectKind.USER, "Alice")],
            ),
            RoleBinding(
                "default",
                "rory-can-create-configmaps",
                RoleRef(RoleKind.CLUSTER_ROLE, "create-configmaps"),
                [Subject(SubjectKind.USER, "Rory")],
            ),
            RoleBinding(
                "default",
                "devops-can-scale-workloads",
                RoleRef(RoleKind.ROLE, "scale-workloads"),
                [Subject(SubjectKind.GROUP, "devops")],
            ),
            RoleBinding(
                "foo",
                "operator-can-view-services",
                RoleRef(RoleKind.ROLE, "view-services"),
                [Subject(SubjectKind.SERVICE_ACCOUNT, "operator", "bar")],
            ),
        ],
    )


@pytest.fixture
def static_source_factory():
    """Class used to serve fixed snapshots."""
    return StaticRBACSource


@pytest.fixture
def static_source(reference_snapshot):
    return StaticRBACSource(reference_snapshot)


# ============================================================================
# Utility Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_lru_caches():
    """Reset LRU caches between tests."""
    get_settings.cache_clear()
    get_redis_client.cache_clear()
    get_redis_pool.cache_clear()

    yield

    get_settings.cache_clear()
    get_redis_client.cache_clear()
    get_redis_pool.cache_clear()


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "rbac: RBAC resolution tests")
    config.addinivalue_line("markers", "redis: Redis-dependent tests")
    config.addinivalue_line("markers", "cli: Command line tests")
