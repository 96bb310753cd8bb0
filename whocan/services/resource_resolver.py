"""Resolution of user supplied resource type names."""

from typing import Callable, List, Optional, Sequence

from whocan.core.exceptions import ResourceNotFoundError
from whocan.core.logging import get_logger
from whocan.models.rbac import WILDCARD
from whocan.repositories.discovery import APIResource

logger = get_logger(__name__)

_MATCHERS: List[Callable[[APIResource, str], bool]] = [
    lambda r, token: r.name.lower() == token,
    lambda r, token: r.singular_name.lower() == token,
    lambda r, token: token in (s.lower() for s in r.short_names),
    lambda r, token: r.kind.lower() == token,
]


class ResourceResolver:
    """Maps names such as ``cm``, ``deployment`` or ``Deployment`` to resources.

    Matching is case-insensitive and tries, in order, the plural name, the
    singular name, the short names and the kind. When several groups serve
    a match, the first one in discovery order wins, which puts the core
    group ahead of the others.
    """

    def __init__(self, resources: Sequence[APIResource]):
        self.resources = list(resources)

    def resolve(self, token: str, api_group: Optional[str] = None) -> APIResource:
        """Resolve ``token``, optionally restricted to ``api_group``.

        Raises:
            ResourceNotFoundError: nothing served by the cluster matches
        """
        needle = token.lower()
        candidates = self.resources
        if api_group is not None:
            candidates = [r for r in candidates if r.group == api_group]

        for matcher in _MATCHERS:
            for resource in candidates:
                if matcher(resource, needle):
                    logger.debug(
                        f"Resolved {token!r} to {resource.name} "
                        f"in group {resource.group or 'core'}"
                    )
                    return resource

        qualified = f"{token}.{api_group}" if api_group else token
        raise ResourceNotFoundError(
            f'the server doesn\'t have a resource type "{qualified}"'
        )

    @staticmethod
    def supports_verb(resource: APIResource, verb: str) -> bool:
        if verb == WILDCARD or not resource.verbs:
            return True
        return verb in resource.verbs
