"""RBAC entities and output models."""

from .output import WhoCanResponse, build_response
from .rbac import (WILDCARD, Action, ClusterRole, ClusterRoleBinding, Grant,
                   PolicyRule, RBACSnapshot, Role, RoleBinding, RoleKind,
                   RoleRef, Subject, SubjectKind)

__all__ = [
    "WILDCARD",
    "Action",
    "PolicyRule",
    "Role",
    "ClusterRole",
    "RoleKind",
    "RoleRef",
    "Subject",
    "SubjectKind",
    "RoleBinding",
    "ClusterRoleBinding",
    "Grant",
    "RBACSnapshot",
    "WhoCanResponse",
    "build_response",
]
