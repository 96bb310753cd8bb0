"""API discovery for resolving resource type names."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Tuple

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from whocan.core.exceptions import SourceFetchError
from whocan.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class APIResource:
    """A resource type served by the API server."""

    name: str
    kind: str
    group: str = ""
    version: str = "v1"
    singular_name: str = ""
    short_names: Tuple[str, ...] = ()
    namespaced: bool = True
    verbs: Tuple[str, ...] = ()

    @property
    def group_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


def _split_group_version(group_version: str) -> Tuple[str, str]:
    if "/" in group_version:
        group, version = group_version.split("/", 1)
        return group, version
    return "", group_version


def _from_resource_list(resource_list) -> List[APIResource]:
    group, version = _split_group_version(resource_list.group_version)
    resources = []
    for item in resource_list.resources or []:
        # Subresources are requested through --subresource
        if "/" in item.name:
            continue
        resources.append(
            APIResource(
                name=item.name,
                kind=item.kind,
                group=group,
                version=version,
                singular_name=item.singular_name or "",
                short_names=tuple(item.short_names or ()),
                namespaced=bool(item.namespaced),
                verbs=tuple(item.verbs or ()),
            )
        )
    return resources


class APIDiscovery:
    """Lists the resource types served by the cluster.

    The core group is listed first, followed by every other group at its
    preferred version in the order the server reports them.
    """

    def __init__(
        self, api_client: client.ApiClient, workers: int = 8, request_timeout: float = 30.0
    ):
        self.api_client = api_client
        self.workers = workers
        self.request_timeout = request_timeout
        self.core_v1 = client.CoreV1Api(api_client)
        self.apis = client.ApisApi(api_client)

    def list_resources(self) -> List[APIResource]:
        try:
            core_resources = self.core_v1.get_api_resources(
                _request_timeout=self.request_timeout
            )
            groups = self.apis.get_api_versions(_request_timeout=self.request_timeout)
        except ApiException as e:
            raise SourceFetchError(
                f"API discovery failed: {e.reason}", kind="discovery", status=e.status
            ) from e
        except HTTPError as e:
            raise SourceFetchError(f"API discovery failed: {e}", kind="discovery") from e

        resources = _from_resource_list(core_resources)

        group_versions = [
            g.preferred_version.group_version
            for g in groups.groups or []
            if g.preferred_version is not None
        ]
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            for group_resources in pool.map(self._list_group_resources, group_versions):
                resources.extend(group_resources)

        logger.debug(
            f"Discovered {len(resources)} resource types in "
            f"{len(group_versions) + 1} API groups"
        )
        return resources

    def _list_group_resources(self, group_version: str) -> List[APIResource]:
        # Unavailable aggregated APIs are skipped
        try:
            resource_list = self.api_client.call_api(
                f"/apis/{group_version}",
                "GET",
                header_params={"Accept": "application/json"},
                response_type="V1APIResourceList",
                auth_settings=["BearerToken"],
                _return_http_data_only=True,
                _request_timeout=self.request_timeout,
            )
        except (ApiException, HTTPError) as e:
            logger.warning(f"Unable to retrieve resources of {group_version}: {e}")
            return []
        return _from_resource_list(resource_list)

