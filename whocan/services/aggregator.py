"""Partitioning and ordering of grants for presentation."""

from typing import Iterable, List, Tuple

from whocan.models.rbac import Grant


def _sort_key(grant: Grant) -> Tuple[str, str, str, str, str]:
    subject = grant.subject
    return (
        grant.binding_name,
        subject.kind.value,
        subject.name,
        subject.namespace,
        grant.binding_namespace,
    )


def partition(grants: Iterable[Grant]) -> Tuple[List[Grant], List[Grant]]:
    """Split grants into namespaced and cluster-wide lists, each sorted.

    Sorting is by binding name, then subject kind, name and namespace, so the
    output does not depend on the order objects were fetched in.
    """
    namespaced: List[Grant] = []
    cluster_wide: List[Grant] = []

    for grant in set(grants):
        if grant.is_cluster_scoped:
            cluster_wide.append(grant)
        else:
            namespaced.append(grant)

    namespaced.sort(key=_sort_key)
    cluster_wide.sort(key=_sort_key)
    return namespaced, cluster_wide
