"""Fetching RBAC objects from a cluster."""

import hashlib
import json
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from whocan.core.exceptions import (InvalidNamespaceError,
                                    NamespaceNotFoundError, SourceFetchError)
from whocan.core.logging import get_logger
from whocan.models.rbac import (ClusterRole, ClusterRoleBinding, PolicyRule,
                                RBACSnapshot, Role, RoleBinding, RoleRef,
                                Subject)

logger = get_logger(__name__)

LIST_PAGE_SIZE = 500


class RBACSource(ABC):
    """Read access to the RBAC objects of one cluster."""

    @abstractmethod
    def fetch(self, namespace: str = "") -> RBACSnapshot:
        """Fetch every Role, ClusterRole and binding relevant to ``namespace``.

        An empty namespace fetches Roles and RoleBindings of all namespaces.

        Raises:
            SourceFetchError: any list call failed; no partial snapshot is
                ever returned
        """

    def validate_namespace(self, namespace: str) -> None:
        """Raise if ``namespace`` cannot be queried."""

    @property
    def cache_key(self) -> str:
        return type(self).__name__


# ============================================================================
# CONVERSION
# ============================================================================


def to_policy_rule(rule) -> PolicyRule:
    return PolicyRule(
        verbs=rule.verbs or [],
        api_groups=rule.api_groups or [],
        resources=rule.resources or [],
        resource_names=rule.resource_names or [],
        non_resource_urls=rule.non_resource_ur_ls or [],
    )


def to_subjects(binding) -> List[Subject]:
    subjects = []
    for subject in binding.subjects or []:
        try:
            subjects.append(
                Subject(
                    kind=subject.kind,
                    name=subject.name,
                    namespace=subject.namespace or "",
                )
            )
        except ValueError:
            logger.warning(
                f"Skipping subject {subject.name} of unknown kind {subject.kind} "
                f"in binding {binding.metadata.name}"
            )
    return subjects


def to_role(obj) -> Role:
    return Role(
        namespace=obj.metadata.namespace,
        name=obj.metadata.name,
        rules=[to_policy_rule(r) for r in obj.rules or []],
    )


def to_cluster_role(obj) -> ClusterRole:
    return ClusterRole(
        name=obj.metadata.name, rules=[to_policy_rule(r) for r in obj.rules or []]
    )


def to_role_binding(obj) -> RoleBinding:
    return RoleBinding(
        namespace=obj.metadata.namespace,
        name=obj.metadata.name,
        role_ref=RoleRef(kind=obj.role_ref.kind, name=obj.role_ref.name),
        subjects=to_subjects(obj),
    )


def to_cluster_role_binding(obj) -> Optional[ClusterRoleBinding]:
    try:
        return ClusterRoleBinding(
            name=obj.metadata.name,
            role_ref=RoleRef(kind=obj.role_ref.kind, name=obj.role_ref.name),
            subjects=to_subjects(obj),
        )
    except ValueError as e:
        logger.warning(f"Skipping ClusterRoleBinding {obj.metadata.name}: {e}")
        return None


# ============================================================================
# KUBERNETES SOURCE
# ============================================================================


class KubernetesRBACSource(RBACSource):
    """Fetches RBAC objects through the Kubernetes API.

    The four object kinds are listed concurrently on a bounded worker pool.
    In all-namespaces mode Roles and RoleBindings are listed with a single
    cluster-wide call; when that is forbidden the namespaces are listed and
    one call per namespace is issued on the same pool instead.
    """

    def __init__(
        self,
        api_client: client.ApiClient,
        workers: int = 8,
        request_timeout: float = 30.0,
    ):
        self.api_client = api_client
        self.workers = workers
        self.request_timeout = request_timeout
        self.rbac = client.RbacAuthorizationV1Api(api_client)
        self.core = client.CoreV1Api(api_client)

    @property
    def cache_key(self) -> str:
        """API server plus a fingerprint of the credentials used to read it."""
        configuration = self.api_client.configuration
        credentials = json.dumps(
            {
                "api_key": configuration.api_key,
                "username": configuration.username,
                "cert_file": configuration.cert_file,
            },
            sort_keys=True,
            default=str,
        )
        fingerprint = hashlib.sha256(credentials.encode()).hexdigest()[:16]
        return f"{configuration.host}:{fingerprint}"

    def fetch(self, namespace: str = "") -> RBACSnapshot:
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures: Dict[str, Future] = {
                "clusterroles": pool.submit(
                    self._list, "clusterroles", None, self.rbac.list_cluster_role
                ),
                "clusterrolebindings": pool.submit(
                    self._list,
                    "clusterrolebindings",
                    None,
                    self.rbac.list_cluster_role_binding,
                ),
            }
            if namespace:
                futures["roles"] = pool.submit(
                    self._list, "roles", namespace, self.rbac.list_namespaced_role, namespace
                )
                futures["rolebindings"] = pool.submit(
                    self._list,
                    "rolebindings",
                    namespace,
                    self.rbac.list_namespaced_role_binding,
                    namespace,
                )
            else:
                futures["roles"] = pool.submit(
                    self._list_all_namespaces,
                    "roles",
                    self.rbac.list_role_for_all_namespaces,
                )
                futures["rolebindings"] = pool.submit(
                    self._list_all_namespaces,
                    "rolebindings",
                    self.rbac.list_role_binding_for_all_namespaces,
                )

            results = {kind: future.result() for kind, future in futures.items()}

            forbidden = [kind for kind, items in results.items() if items is None]
            if forbidden:
                results.update(self._fetch_per_namespace(pool, forbidden))

        cluster_role_bindings = [
            crb
            for crb in (to_cluster_role_binding(o) for o in results["clusterrolebindings"])
            if crb is not None
        ]
        snapshot = RBACSnapshot(
            namespace=namespace,
            roles=[to_role(o) for o in results["roles"]],
            cluster_roles=[to_cluster_role(o) for o in results["clusterroles"]],
            role_bindings=[to_role_binding(o) for o in results["rolebindings"]],
            cluster_role_bindings=cluster_role_bindings,
        )
        logger.info(
            f"Fetched {len(snapshot.roles)} roles, {len(snapshot.cluster_roles)} "
            f"cluster roles, {len(snapshot.role_bindings)} role bindings and "
            f"{len(snapshot.cluster_role_bindings)} cluster role bindings",
            extra={"namespace": namespace or "*"},
        )
        return snapshot

    def validate_namespace(self, namespace: str) -> None:
        try:
            obj = self.core.read_namespace(namespace, _request_timeout=self.request_timeout)
        except ApiException as e:
            if e.status == 404:
                raise NamespaceNotFoundError(
                    f'namespaces "{namespace}" not found',
                    kind="namespaces",
                    namespace=namespace,
                    status=404,
                ) from e
            if e.status == 403:
                logger.warning(f"Not allowed to read namespace {namespace}, skipping check")
                return
            raise self._fetch_error("namespaces", namespace, e) from e
        except HTTPError as e:
            raise self._fetch_error("namespaces", namespace, e) from e

        phase = obj.status.phase if obj.status else None
        if phase and phase != "Active":
            raise InvalidNamespaceError(
                f"invalid namespace {namespace}: phase is {phase}",
                kind="namespaces",
                namespace=namespace,
            )

    def list_namespaces(self) -> List[str]:
        return [ns.metadata.name for ns in self._list("namespaces", None, self.core.list_namespace)]

    # ------------------------------------------------------------------------

    def _fetch_per_namespace(
        self, pool: ThreadPoolExecutor, kinds: List[str]
    ) -> Dict[str, List[Any]]:
        namespaces = self.list_namespaces()
        logger.info(
            f"Listing {', '.join(kinds)} across all namespaces is forbidden, "
            f"falling back to {len(namespaces)} per-namespace calls"
        )
        list_functions = {
            "roles": self.rbac.list_namespaced_role,
            "rolebindings": self.rbac.list_namespaced_role_binding,
        }

        futures: List[Tuple[str, Future]] = []
        for kind in kinds:
            for namespace in namespaces:
                futures.append(
                    (
                        kind,
                        pool.submit(
                            self._list, kind, namespace, list_functions[kind], namespace
                        ),
                    )
                )

        results: Dict[str, List[Any]] = {kind: [] for kind in kinds}
        for kind, future in futures:
            results[kind].extend(future.result())
        return results

    def _list_all_namespaces(self, kind: str, list_fn: Callable) -> Optional[List[Any]]:
        """List across namespaces, returning None when the call is forbidden."""
        try:
            return self._paginate(list_fn)
        except ApiException as e:
            if e.status == 403:
                return None
            raise self._fetch_error(kind, None, e) from e
        except HTTPError as e:
            raise self._fetch_error(kind, None, e) from e

    def _list(
        self, kind: str, namespace: Optional[str], list_fn: Callable, *args
    ) -> List[Any]:
        try:
            return self._paginate(list_fn, *args)
        except (ApiException, HTTPError) as e:
            raise self._fetch_error(kind, namespace, e) from e

    def _paginate(self, list_fn: Callable, *args) -> List[Any]:
        items: List[Any] = []
        continue_token = None
        while True:
            kwargs = {"limit": LIST_PAGE_SIZE, "_request_timeout": self.request_timeout}
            if continue_token:
                kwargs["_continue"] = continue_token
            response = list_fn(*args, **kwargs)
            items.extend(response.items or [])
            continue_token = response.metadata._continue if response.metadata else None
            if not continue_token:
                return items

    @staticmethod
    def _fetch_error(
        kind: str, namespace: Optional[str], error: Exception
    ) -> SourceFetchError:
        where = f" in namespace {namespace}" if namespace else ""
        if isinstance(error, ApiException):
            return SourceFetchError(
                f"Failed to list {kind}{where}: {error.status} {error.reason}",
                kind=kind,
                namespace=namespace,
                status=error.status,
            )
        return SourceFetchError(
            f"Failed to list {kind}{where}: {error}", kind=kind, namespace=namespace
        )
