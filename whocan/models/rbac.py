"""RBAC entities and the queried action.

Everything here is an immutable snapshot of cluster state. Collections are
stored as tuples so that instances are hashable and safe to share between
threads of the fetch layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Tuple

from whocan.core.exceptions import InvalidAction

WILDCARD = "*"


class RoleKind(str, Enum):
    """Kinds a RoleRef can point at."""

    ROLE = "Role"
    CLUSTER_ROLE = "ClusterRole"


class SubjectKind(str, Enum):
    """Kinds of identities that can be bound to a role."""

    USER = "User"
    GROUP = "Group"
    SERVICE_ACCOUNT = "ServiceAccount"


def _freeze(obj: Any, name: str, values: Iterable) -> None:
    object.__setattr__(obj, name, tuple(values or ()))


@dataclass(frozen=True)
class Action:
    """The access being asked about.

    Exactly one of ``resource`` and ``non_resource_url`` is set. An empty
    ``namespace`` means the question is asked across all namespaces.
    """

    verb: str
    resource: str = ""
    subresource: str = ""
    api_group: str = ""
    resource_name: str = ""
    non_resource_url: str = ""
    namespace: str = ""

    def __post_init__(self):
        if not self.verb:
            raise InvalidAction("verb must not be empty")
        if any(ch.isspace() for ch in self.verb) or "/" in self.verb:
            raise InvalidAction(f"invalid verb {self.verb!r}")

        if self.resource and self.non_resource_url:
            raise InvalidAction(
                "a resource and a non-resource URL cannot be requested together"
            )
        if not self.resource and not self.non_resource_url:
            raise InvalidAction("either a resource or a non-resource URL is required")

        if self.non_resource_url:
            if not self.non_resource_url.startswith("/"):
                raise InvalidAction(
                    f"non-resource URL {self.non_resource_url!r} must start with '/'"
                )
            for attr in ("subresource", "resource_name", "namespace", "api_group"):
                if getattr(self, attr):
                    raise InvalidAction(
                        f"{attr.replace('_', ' ')} cannot be used with a non-resource URL"
                    )
            return

        if "/" in self.resource:
            raise InvalidAction(
                f"invalid resource {self.resource!r}, use a subresource instead"
            )
        if "/" in self.subresource:
            raise InvalidAction(f"invalid subresource {self.subresource!r}")

    @property
    def is_non_resource(self) -> bool:
        return bool(self.non_resource_url)

    @property
    def is_namespaced(self) -> bool:
        return bool(self.namespace)

    @property
    def resource_token(self) -> str:
        """Resource as it appears in a PolicyRule, e.g. ``deployments/scale``."""
        if self.subresource:
            return f"{self.resource}/{self.subresource}"
        return self.resource

    @property
    def target(self) -> str:
        """Human readable description of what is being accessed."""
        if self.is_non_resource:
            return self.non_resource_url
        target = self.resource_token
        if self.api_group:
            target = f"{self.resource}.{self.api_group}"
            if self.subresource:
                target = f"{target}/{self.subresource}"
        if self.resource_name:
            target = f"{target} named {self.resource_name}"
        return target


@dataclass(frozen=True)
class PolicyRule:
    """A single grant clause of a Role or ClusterRole."""

    verbs: Tuple[str, ...] = ()
    api_groups: Tuple[str, ...] = ()
    resources: Tuple[str, ...] = ()
    resource_names: Tuple[str, ...] = ()
    non_resource_urls: Tuple[str, ...] = ()

    def __post_init__(self):
        for name in (
            "verbs",
            "api_groups",
            "resources",
            "resource_names",
            "non_resource_urls",
        ):
            _freeze(self, name, getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verbs": list(self.verbs),
            "api_groups": list(self.api_groups),
            "resources": list(self.resources),
            "resource_names": list(self.resource_names),
            "non_resource_urls": list(self.non_resource_urls),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PolicyRule":
        return cls(
            verbs=data.get("verbs", []),
            api_groups=data.get("api_groups", []),
            resources=data.get("resources", []),
            resource_names=data.get("resource_names", []),
            non_resource_urls=data.get("non_resource_urls", []),
        )


@dataclass(frozen=True)
class Role:
    """Namespaced set of policy rules."""

    namespace: str
    name: str
    rules: Tuple[PolicyRule, ...] = ()

    def __post_init__(self):
        _freeze(self, "rules", self.rules)

    @property
    def identity(self) -> Tuple[str, str]:
        return (self.namespace, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "rules": [rule.to_dict() for rule in self.rules],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Role":
        return cls(
            namespace=data["namespace"],
            name=data["name"],
            rules=[PolicyRule.from_dict(r) for r in data.get("rules", [])],
        )


@dataclass(frozen=True)
class ClusterRole:
    """Cluster-scoped set of policy rules."""

    name: str
    rules: Tuple[PolicyRule, ...] = ()

    def __post_init__(self):
        _freeze(self, "rules", self.rules)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "rules": [rule.to_dict() for rule in self.rules]}

    @classmethod
    def from_dict(cls, data: Dict) -> "ClusterRole":
        return cls(
            name=data["name"],
            rules=[PolicyRule.from_dict(r) for r in data.get("rules", [])],
        )


@dataclass(frozen=True)
class RoleRef:
    """Reference from a binding to the role it grants."""

    kind: RoleKind
    name: str

    def __post_init__(self):
        object.__setattr__(self, "kind", RoleKind(self.kind))

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict) -> "RoleRef":
        return cls(kind=data["kind"], name=data["name"])


@dataclass(frozen=True)
class Subject:
    """User, group or service account named by a binding.

    ``namespace`` is the home namespace of a ServiceAccount and is always
    empty for users and groups.
    """

    kind: SubjectKind
    name: str
    namespace: str = ""

    def __post_init__(self):
        kind = SubjectKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind != SubjectKind.SERVICE_ACCOUNT:
            object.__setattr__(self, "namespace", "")
        elif self.namespace is None:
            object.__setattr__(self, "namespace", "")

    @property
    def sort_key(self) -> Tuple[str, str, str]:
        return (self.kind.value, self.name, self.namespace)

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "name": self.name, "namespace": self.namespace}

    @classmethod
    def from_dict(cls, data: Dict) -> "Subject":
        return cls(
            kind=data["kind"], name=data["name"], namespace=data.get("namespace", "")
        )


@dataclass(frozen=True)
class RoleBinding:
    """Namespaced grant of a Role or ClusterRole to subjects."""

    namespace: str
    name: str
    role_ref: RoleRef
    subjects: Tuple[Subject, ...] = ()

    def __post_init__(self):
        _freeze(self, "subjects", self.subjects)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "role_ref": self.role_ref.to_dict(),
            "subjects": [s.to_dict() for s in self.subjects],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "RoleBinding":
        return cls(
            namespace=data["namespace"],
            name=data["name"],
            role_ref=RoleRef.from_dict(data["role_ref"]),
            subjects=[Subject.from_dict(s) for s in data.get("subjects", [])],
        )


@dataclass(frozen=True)
class ClusterRoleBinding:
    """Cluster-wide grant of a ClusterRole to subjects."""

    name: str
    role_ref: RoleRef
    subjects: Tuple[Subject, ...] = ()

    def __post_init__(self):
        _freeze(self, "subjects", self.subjects)
        if self.role_ref.kind != RoleKind.CLUSTER_ROLE:
            raise ValueError(
                f"ClusterRoleBinding {self.name} must reference a ClusterRole, "
                f"got {self.role_ref.kind.value}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role_ref": self.role_ref.to_dict(),
            "subjects": [s.to_dict() for s in self.subjects],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ClusterRoleBinding":
        return cls(
            name=data["name"],
            role_ref=RoleRef.from_dict(data["role_ref"]),
            subjects=[Subject.from_dict(s) for s in data.get("subjects", [])],
        )


@dataclass(frozen=True)
class Grant:
    """A subject authorized through one binding.

    An empty ``binding_namespace`` marks a grant made by a ClusterRoleBinding.
    """

    binding_name: str
    binding_namespace: str
    subject: Subject

    @property
    def is_cluster_scoped(self) -> bool:
        return not self.binding_namespace


@dataclass(frozen=True)
class RBACSnapshot:
    """All RBAC objects fetched for one query."""

    namespace: str = ""
    roles: Tuple[Role, ...] = ()
    cluster_roles: Tuple[ClusterRole, ...] = ()
    role_bindings: Tuple[RoleBinding, ...] = ()
    cluster_role_bindings: Tuple[ClusterRoleBinding, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        for name in ("roles", "cluster_roles", "role_bindings", "cluster_role_bindings"):
            _freeze(self, name, getattr(self, name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "roles": [r.to_dict() for r in self.roles],
            "cluster_roles": [r.to_dict() for r in self.cluster_roles],
            "role_bindings": [b.to_dict() for b in self.role_bindings],
            "cluster_role_bindings": [b.to_dict() for b in self.cluster_role_bindings],
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "RBACSnapshot":
        """Reconstruct from dictionary"""
        return cls(
            namespace=data.get("namespace", ""),
            roles=[Role.from_dict(r) for r in data.get("roles", [])],
            cluster_roles=[ClusterRole.from_dict(r) for r in data.get("cluster_roles", [])],
            role_bindings=[RoleBinding.from_dict(b) for b in data.get("role_bindings", [])],
            cluster_role_bindings=[
                ClusterRoleBinding.from_dict(b)
                for b in data.get("cluster_role_bindings", [])
            ],
            metadata=data.get("metadata", {}),
        )
