"""Lookup of roles whose rules authorize an action."""

from typing import Iterable, Set, Tuple

from whocan.core.logging import get_logger
from whocan.models.rbac import Action, ClusterRole, Role
from whocan.services.matcher import any_rule_matches

logger = get_logger(__name__)

RoleIdentity = Tuple[str, str]


def find_matching_roles(
    action: Action,
    roles: Iterable[Role],
    cluster_roles: Iterable[ClusterRole],
) -> Tuple[Set[RoleIdentity], Set[str]]:
    """Find every Role and ClusterRole that authorizes ``action``.

    Roles outside ``action.namespace`` are skipped when the action is
    namespace-scoped. ClusterRoles are always considered, since a RoleBinding
    can scope one down to a single namespace; whether the resulting grant is
    cluster-wide is decided by the binding, not the role.

    Returns:
        Tuple of matched Role identities ``(namespace, name)`` and matched
        ClusterRole names.
    """
    matched_roles: Set[RoleIdentity] = set()
    for role in roles:
        if action.is_namespaced and role.namespace != action.namespace:
            continue
        if any_rule_matches(role.rules, action):
            matched_roles.add(role.identity)

    matched_cluster_roles: Set[str] = set()
    for cluster_role in cluster_roles:
        if any_rule_matches(cluster_role.rules, action):
            matched_cluster_roles.add(cluster_role.name)

    logger.debug(
        f"Matched {len(matched_roles)} roles and "
        f"{len(matched_cluster_roles)} cluster roles for {action.verb} {action.target}"
    )
    return matched_roles, matched_cluster_roles
