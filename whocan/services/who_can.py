"""Resolution pipeline answering who can perform an action."""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from whocan.core.logging import get_logger, log_event
from whocan.models.output import WhoCanResponse, build_response
from whocan.models.rbac import WILDCARD, Action, Grant, RBACSnapshot, RoleKind
from whocan.repositories.rbac_source import RBACSource
from whocan.services.access_check import AccessChecker
from whocan.services.aggregator import partition
from whocan.services.bindings import resolve_grants
from whocan.services.resource_resolver import ResourceResolver
from whocan.services.role_index import find_matching_roles

logger = get_logger(__name__)


@dataclass(frozen=True)
class WhoCanResult:
    """Ordered grants for one action."""

    action: Action
    namespaced: Tuple[Grant, ...] = ()
    cluster_wide: Tuple[Grant, ...] = ()
    warnings: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.namespaced and not self.cluster_wide

    def to_response(self) -> WhoCanResponse:
        return build_response(
            self.action,
            list(self.namespaced),
            list(self.cluster_wide),
            list(self.warnings),
        )


def _log_dangling_references(snapshot: RBACSnapshot) -> None:
    roles = {role.identity for role in snapshot.roles}
    cluster_roles = {role.name for role in snapshot.cluster_roles}

    for binding in snapshot.role_bindings:
        ref = binding.role_ref
        if ref.kind == RoleKind.ROLE:
            missing = (binding.namespace, ref.name) not in roles
        else:
            missing = ref.name not in cluster_roles
        if missing:
            logger.debug(
                f"RoleBinding {binding.namespace}/{binding.name} references missing "
                f"{ref.kind.value} {ref.name}"
            )

    for binding in snapshot.cluster_role_bindings:
        if binding.role_ref.name not in cluster_roles:
            logger.debug(
                f"ClusterRoleBinding {binding.name} references missing "
                f"ClusterRole {binding.role_ref.name}"
            )


def who_can(action: Action, snapshot: RBACSnapshot) -> WhoCanResult:
    """Resolve ``action`` against a fetched RBAC snapshot.

    Non-resource URLs are cluster-level, so only ClusterRoleBindings can
    grant them and RoleBindings are not consulted for such actions.
    """
    if action.is_non_resource:
        roles, role_bindings = (), ()
    else:
        roles, role_bindings = snapshot.roles, snapshot.role_bindings

    matched_roles, matched_cluster_roles = find_matching_roles(
        action, roles, snapshot.cluster_roles
    )
    grants = resolve_grants(
        matched_roles,
        matched_cluster_roles,
        role_bindings,
        snapshot.cluster_role_bindings,
        filter_namespace=action.namespace or None,
    )
    namespaced, cluster_wide = partition(grants)

    if logger.isEnabledFor(logging.DEBUG):
        _log_dangling_references(snapshot)

    return WhoCanResult(
        action=action, namespaced=tuple(namespaced), cluster_wide=tuple(cluster_wide)
    )


class WhoCan:
    """Runs a query end to end against a cluster.

    Resolves the resource type through API discovery, validates the
    namespace, checks the caller's own RBAC read access and finally fetches
    the snapshot and resolves grants.
    """

    def __init__(
        self,
        source: RBACSource,
        resolver: Optional[ResourceResolver] = None,
        access_checker: Optional[AccessChecker] = None,
    ):
        self.source = source
        self.resolver = resolver
        self.access_checker = access_checker

    def resolve_action(self, action: Action) -> Tuple[Action, List[str]]:
        """Map the user supplied resource to its canonical name and group."""
        warnings: List[str] = []
        if action.is_non_resource or action.resource == WILDCARD or not self.resolver:
            return action, warnings

        resource = self.resolver.resolve(
            action.resource, api_group=action.api_group or None
        )
        resolved = replace(action, resource=resource.name, api_group=resource.group)

        if not ResourceResolver.supports_verb(resource, action.verb):
            warnings.append(
                f'The "{resource.name}" resource does not support the "{action.verb}" '
                f"verb, only {list(resource.verbs)}"
            )
        if action.namespace and not resource.namespaced:
            warnings.append(
                f'The "{resource.name}" resource is cluster-scoped, '
                f"namespaced grants may not apply"
            )
        return resolved, warnings

    def check(self, action: Action) -> WhoCanResult:
        action, warnings = self.resolve_action(action)

        if action.namespace:
            self.source.validate_namespace(action.namespace)

        if self.access_checker:
            missing = self.access_checker.missing_permissions(action.namespace)
            if missing:
                warnings.append(
                    "The list might not be complete due to missing permission(s): "
                    + ", ".join(missing)
                )

        snapshot = self.source.fetch(action.namespace)
        result = who_can(action, snapshot)

        log_event(
            logger,
            "info",
            "who_can_resolved",
            verb=action.verb,
            target=action.target,
            namespace=action.namespace or "*",
            namespaced=len(result.namespaced),
            cluster_wide=len(result.cluster_wide),
        )
        return replace(result, warnings=tuple(warnings))
