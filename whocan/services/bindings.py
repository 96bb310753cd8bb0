"""Resolution of role bindings into grants."""

from typing import AbstractSet, Iterable, Optional, Set

from whocan.core.logging import get_logger
from whocan.models.rbac import (ClusterRoleBinding, Grant, RoleBinding,
                                RoleKind)
from whocan.services.role_index import RoleIdentity

logger = get_logger(__name__)


def role_binding_matches(
    binding: RoleBinding,
    matched_roles: AbstractSet[RoleIdentity],
    matched_cluster_roles: AbstractSet[str],
) -> bool:
    """Check whether a RoleBinding references one of the matched roles.

    A Role reference always resolves inside the binding's own namespace.
    A reference to a missing role simply does not match.
    """
    ref = binding.role_ref
    if ref.kind == RoleKind.ROLE:
        return (binding.namespace, ref.name) in matched_roles
    return ref.name in matched_cluster_roles


def resolve_grants(
    matched_roles: AbstractSet[RoleIdentity],
    matched_cluster_roles: AbstractSet[str],
    role_bindings: Iterable[RoleBinding],
    cluster_role_bindings: Iterable[ClusterRoleBinding],
    filter_namespace: Optional[str] = None,
) -> Set[Grant]:
    """Produce one Grant per (binding, subject) reaching a matched role.

    Args:
        matched_roles: Role identities returned by the role index
        matched_cluster_roles: ClusterRole names returned by the role index
        role_bindings: RoleBindings to scan
        cluster_role_bindings: ClusterRoleBindings to scan
        filter_namespace: Only consider RoleBindings in this namespace.
            ClusterRoleBindings are never filtered.

    Returns:
        Set of grants; RoleBinding grants carry the binding's namespace,
        ClusterRoleBinding grants an empty namespace.
    """
    grants: Set[Grant] = set()

    for binding in role_bindings:
        if filter_namespace and binding.namespace != filter_namespace:
            continue
        if not role_binding_matches(binding, matched_roles, matched_cluster_roles):
            continue
        for subject in binding.subjects:
            grants.add(Grant(binding.name, binding.namespace, subject))

    for binding in cluster_role_bindings:
        if binding.role_ref.name not in matched_cluster_roles:
            continue
        for subject in binding.subjects:
            grants.add(Grant(binding.name, "", subject))

    logger.debug(f"Resolved {len(grants)} grants")
    return grants
