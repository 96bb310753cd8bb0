"""Translation of command line arguments into an Action."""

from typing import Optional

from whocan.core.exceptions import InvalidAction
from whocan.core.logging import get_logger
from whocan.models.rbac import WILDCARD, Action

logger = get_logger(__name__)


def split_resource(token: str):
    """Split ``TYPE[.GROUP][/NAME]`` into its parts."""
    resource, _, name = token.partition("/")
    if "/" in name:
        raise InvalidAction(f"invalid resource {token!r}, expected TYPE or TYPE/NAME")
    if not resource:
        raise InvalidAction(f"invalid resource {token!r}, resource type is missing")

    api_group = ""
    if resource != WILDCARD and "." in resource:
        resource, api_group = resource.split(".", 1)
    return resource, api_group, name


def parse_action(
    verb: str,
    target: str,
    namespace: Optional[str] = None,
    subresource: Optional[str] = None,
    all_namespaces: bool = False,
) -> Action:
    """Build an Action from ``VERB (TYPE | TYPE/NAME | NONRESOURCEURL)``.

    A target starting with ``/`` is a non-resource URL. Without a namespace
    the question covers all namespaces.

    Raises:
        InvalidAction: the arguments do not describe a valid action
    """
    if namespace and all_namespaces:
        raise InvalidAction("--namespace and --all-namespaces are mutually exclusive")
    if not target:
        raise InvalidAction("a resource type or non-resource URL is required")

    if target.startswith("/"):
        if subresource:
            raise InvalidAction("--subresource cannot be used with a non-resource URL")
        if namespace:
            logger.warning(
                f"Non-resource URLs are not namespaced, ignoring namespace {namespace}"
            )
        return Action(verb=verb, non_resource_url=target)

    resource, api_group, name = split_resource(target)
    return Action(
        verb=verb,
        resource=resource,
        api_group=api_group,
        subresource=subresource or "",
        resource_name=name,
        namespace=namespace or "",
    )
