"""Serializable views of a who-can answer."""

from typing import List, Optional

from pydantic import BaseModel, Field

from whocan.models.rbac import Action, Grant, SubjectKind


class ActionModel(BaseModel):
    """The action that was resolved."""

    verb: str
    resource: Optional[str] = None
    subresource: Optional[str] = None
    api_group: Optional[str] = Field(None, alias="apiGroup")
    resource_name: Optional[str] = Field(None, alias="resourceName")
    non_resource_url: Optional[str] = Field(None, alias="nonResourceURL")
    namespace: Optional[str] = None

    model_config = {"populate_by_name": True}

    @classmethod
    def from_action(cls, action: Action) -> "ActionModel":
        return cls(
            verb=action.verb,
            resource=action.resource or None,
            subresource=action.subresource or None,
            api_group=action.api_group if action.resource else None,
            resource_name=action.resource_name or None,
            non_resource_url=action.non_resource_url or None,
            namespace=action.namespace or None,
        )


class SubjectModel(BaseModel):
    kind: SubjectKind
    name: str
    namespace: Optional[str] = None


class RoleBindingGrantModel(BaseModel):
    """A subject granted access through a RoleBinding."""

    role_binding: str = Field(..., alias="roleBinding")
    namespace: str
    subject: SubjectModel

    model_config = {"populate_by_name": True}


class ClusterRoleBindingGrantModel(BaseModel):
    """A subject granted access through a ClusterRoleBinding."""

    cluster_role_binding: str = Field(..., alias="clusterRoleBinding")
    subject: SubjectModel

    model_config = {"populate_by_name": True}


class WhoCanResponse(BaseModel):
    """Complete answer to a who-can query."""

    action: ActionModel
    role_bindings: List[RoleBindingGrantModel] = Field(
        default_factory=list, alias="roleBindings"
    )
    cluster_role_bindings: List[ClusterRoleBindingGrantModel] = Field(
        default_factory=list, alias="clusterRoleBindings"
    )
    warnings: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


def _subject_model(grant: Grant) -> SubjectModel:
    subject = grant.subject
    return SubjectModel(
        kind=subject.kind,
        name=subject.name,
        namespace=subject.namespace or None,
    )


def build_response(
    action: Action,
    namespaced: List[Grant],
    cluster_wide: List[Grant],
    warnings: Optional[List[str]] = None,
) -> WhoCanResponse:
    """Build the serializable response from ordered grant lists."""
    return WhoCanResponse(
        action=ActionModel.from_action(action),
        role_bindings=[
            RoleBindingGrantModel(
                role_binding=g.binding_name,
                namespace=g.binding_namespace,
                subject=_subject_model(g),
            )
            for g in namespaced
        ],
        cluster_role_bindings=[
            ClusterRoleBindingGrantModel(
                cluster_role_binding=g.binding_name, subject=_subject_model(g)
            )
            for g in cluster_wide
        ],
        warnings=list(warnings or []),
    )
