"""Checks that the caller may read the RBAC objects being evaluated."""

from typing import List, NamedTuple, Optional

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from whocan.core.exceptions import SourceFetchError
from whocan.core.logging import get_logger

logger = get_logger(__name__)

RBAC_GROUP = "rbac.authorization.k8s.io"


class AccessCheck(NamedTuple):
    verb: str
    resource: str
    group: str = RBAC_GROUP
    namespaced: bool = True

    def describe(self, namespace: Optional[str]) -> str:
        if self.namespaced and namespace:
            return f"{self.verb} {self.resource} in namespace {namespace}"
        return f"{self.verb} {self.resource}"


REQUIRED_CHECKS = [
    AccessCheck("list", "roles"),
    AccessCheck("list", "rolebindings"),
    AccessCheck("list", "clusterroles", namespaced=False),
    AccessCheck("list", "clusterrolebindings", namespaced=False),
]


class AccessChecker:
    """Asks the API server, via SelfSubjectAccessReview, what the caller may list."""

    def __init__(self, api_client: client.ApiClient, request_timeout: float = 30.0):
        self.authorization = client.AuthorizationV1Api(api_client)
        self.request_timeout = request_timeout

    def is_allowed(self, check: AccessCheck, namespace: Optional[str] = None) -> bool:
        attributes = client.V1ResourceAttributes(
            verb=check.verb,
            group=check.group,
            resource=check.resource,
            namespace=(namespace or None) if check.namespaced else None,
        )
        review = client.V1SelfSubjectAccessReview(
            spec=client.V1SelfSubjectAccessReviewSpec(resource_attributes=attributes)
        )
        try:
            response = self.authorization.create_self_subject_access_review(
                review, _request_timeout=self.request_timeout
            )
        except ApiException as e:
            raise SourceFetchError(
                f"Access review for {check.describe(namespace)} failed: {e.reason}",
                kind="selfsubjectaccessreviews",
                namespace=namespace,
                status=e.status,
            ) from e
        except HTTPError as e:
            raise SourceFetchError(
                f"Access review for {check.describe(namespace)} failed: {e}",
                kind="selfsubjectaccessreviews",
                namespace=namespace,
            ) from e

        return bool(response.status and response.status.allowed)

    def missing_permissions(self, namespace: Optional[str] = None) -> List[str]:
        """Describe every required check the caller fails."""
        missing = []
        for check in REQUIRED_CHECKS:
            if not self.is_allowed(check, namespace):
                missing.append(check.describe(namespace))
        if missing:
            logger.warning(f"Missing permissions: {', '.join(missing)}")
        return missing
