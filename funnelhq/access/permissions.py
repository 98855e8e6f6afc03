# funnelhq/access/permissions.py
"""
Static permission tables.

Every role's capability set is spelled out as one literal list so it can be
audited at a glance. All tables are read-only after import.
"""
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from pydantic import BaseModel, Field

from funnelhq.access.roles import Role, ProjectRole


def _frozen(d: dict) -> Mapping:
    return MappingProxyType({k: MappingProxyType(v) if isinstance(v, dict) else v for k, v in d.items()})


PERMISSIONS = _frozen({
    # users and team management
    "USERS": {
        "VIEW": "users:view",
        "CREATE": "users:create",
        "UPDATE": "users:update",
        "DELETE": "users:delete",
        "INVITE": "users:invite",
        "MANAGE_ROLES": "users:manage_roles",
    },
    "ORGANIZATION": {
        "VIEW": "organization:view",
        "UPDATE": "organization:update",
        "DELETE": "organization:delete",
        "MANAGE_SETTINGS": "organization:manage_settings",
        "MANAGE_BILLING": "organization:manage_billing",
    },
    "PROJECTS": {
        "VIEW_ALL": "projects:view_all",
        "VIEW_ASSIGNED": "projects:view_assigned",
        "CREATE": "projects:create",
        "UPDATE": "projects:update",
        "DELETE": "projects:delete",
        "MANAGE_TASKS": "projects:manage_tasks",
        "MANAGE_MILESTONES": "projects:manage_milestones",
        "MANAGE_TEAM": "projects:manage_team",
        "ASSIGN_MEMBERS": "projects:assign_members",
        "REMOVE_MEMBERS": "projects:remove_members",
    },
    "CLIENTS": {
        "VIEW_ALL": "clients:view_all",
        "VIEW_ASSIGNED": "clients:view_assigned",
        "CREATE": "clients:create",
        "UPDATE": "clients:update",
        "DELETE": "clients:delete",
        "MANAGE_ACCESS": "clients:manage_access",
    },
    # documents and assets
    "DOCUMENTS": {
        "VIEW": "documents:view",
        "UPLOAD": "documents:upload",
        "DELETE": "documents:delete",
        "MANAGE": "documents:manage",
    },
    "ANALYTICS": {
        "VIEW_BASIC": "analytics:view_basic",
        "VIEW_ADVANCED": "analytics:view_advanced",
        "EXPORT": "analytics:export",
    },
    "SUPPORT": {
        "VIEW_TICKETS": "support:view_tickets",
        "CREATE_TICKETS": "support:create_tickets",
        "MANAGE_TICKETS": "support:manage_tickets",
    },
    "BILLING": {
        "VIEW": "billing:view",
        "MANAGE": "billing:manage",
    },
})

_P = PERMISSIONS

ROLE_PERMISSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    # full access to everything
    Role.admin.value: (
        _P["USERS"]["VIEW"],
        _P["USERS"]["CREATE"],
        _P["USERS"]["UPDATE"],
        _P["USERS"]["DELETE"],
        _P["USERS"]["INVITE"],
        _P["USERS"]["MANAGE_ROLES"],

        _P["ORGANIZATION"]["VIEW"],
        _P["ORGANIZATION"]["UPDATE"],
        _P["ORGANIZATION"]["DELETE"],
        _P["ORGANIZATION"]["MANAGE_SETTINGS"],
        _P["ORGANIZATION"]["MANAGE_BILLING"],

        _P["PROJECTS"]["VIEW_ALL"],
        _P["PROJECTS"]["CREATE"],
        _P["PROJECTS"]["UPDATE"],
        _P["PROJECTS"]["DELETE"],
        _P["PROJECTS"]["MANAGE_TASKS"],
        _P["PROJECTS"]["MANAGE_MILESTONES"],
        _P["PROJECTS"]["MANAGE_TEAM"],
        _P["PROJECTS"]["ASSIGN_MEMBERS"],
        _P["PROJECTS"]["REMOVE_MEMBERS"],

        _P["CLIENTS"]["VIEW_ALL"],
        _P["CLIENTS"]["CREATE"],
        _P["CLIENTS"]["UPDATE"],
        _P["CLIENTS"]["DELETE"],
        _P["CLIENTS"]["MANAGE_ACCESS"],

        _P["DOCUMENTS"]["VIEW"],
        _P["DOCUMENTS"]["UPLOAD"],
        _P["DOCUMENTS"]["DELETE"],
        _P["DOCUMENTS"]["MANAGE"],

        _P["ANALYTICS"]["VIEW_BASIC"],
        _P["ANALYTICS"]["VIEW_ADVANCED"],
        _P["ANALYTICS"]["EXPORT"],

        _P["SUPPORT"]["VIEW_TICKETS"],
        _P["SUPPORT"]["CREATE_TICKETS"],
        _P["SUPPORT"]["MANAGE_TICKETS"],

        _P["BILLING"]["VIEW"],
        _P["BILLING"]["MANAGE"],
    ),
    # assigned projects only
    Role.team_member.value: (
        _P["PROJECTS"]["VIEW_ASSIGNED"],
        _P["PROJECTS"]["UPDATE"],
        _P["PROJECTS"]["MANAGE_TASKS"],
        _P["PROJECTS"]["MANAGE_MILESTONES"],

        _P["DOCUMENTS"]["VIEW"],
        _P["DOCUMENTS"]["UPLOAD"],

        _P["BILLING"]["VIEW"],

        _P["SUPPORT"]["CREATE_TICKETS"],
        _P["SUPPORT"]["VIEW_TICKETS"],
    ),
    # own projects and own client record only
    Role.client.value: (
        _P["PROJECTS"]["VIEW_ASSIGNED"],
        _P["CLIENTS"]["VIEW_ASSIGNED"],

        _P["DOCUMENTS"]["VIEW"],
        _P["DOCUMENTS"]["UPLOAD"],

        _P["SUPPORT"]["CREATE_TICKETS"],
        _P["SUPPORT"]["VIEW_TICKETS"],

        _P["BILLING"]["VIEW"],
    ),
})


class Permission(BaseModel):
    """Grouped form carried by the auth context: one resource, many actions."""
    resource: str
    actions: list[str] = Field(default_factory=list)


def _key(value) -> str:
    return value.value if isinstance(value, (Role, ProjectRole)) else str(value)


def get_permissions_for_role(role) -> list[str]:
    return list(ROLE_PERMISSIONS.get(_key(role), ()))


def role_has_permission(role, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(_key(role), ())


def group_permissions_by_resource(permissions: Iterable[str]) -> dict[str, list[str | None]]:
    # entries without a colon land under their full text with a None action
    grouped: dict[str, list[str | None]] = {}
    for permission in permissions:
        parts = permission.split(":")
        resource = parts[0]
        action = parts[1] if len(parts) > 1 else None
        grouped.setdefault(resource, []).append(action)
    return grouped


def permissions_for_role(role) -> list[Permission]:
    return [
        Permission(resource=resource, actions=[a for a in actions if a is not None])
        for resource, actions in group_permissions_by_resource(get_permissions_for_role(role)).items()
    ]


def flatten_permissions(permissions: Iterable[Permission]) -> list[str]:
    return [f"{p.resource}:{action}" for p in permissions for action in p.actions]


# route -> permissions required to view it (any one suffices)
NAVIGATION_ACCESS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "/dashboard": (_P["PROJECTS"]["VIEW_ALL"], _P["PROJECTS"]["VIEW_ASSIGNED"]),
    "/projects": (_P["PROJECTS"]["VIEW_ALL"], _P["PROJECTS"]["VIEW_ASSIGNED"]),
    "/clients": (_P["CLIENTS"]["VIEW_ALL"],),
    "/team": (_P["USERS"]["VIEW"],),
    "/onboarding": (_P["ORGANIZATION"]["MANAGE_SETTINGS"],),
    "/assets": (_P["DOCUMENTS"]["VIEW"],),
    "/brand-kit": (_P["DOCUMENTS"]["VIEW"],),
    "/billing": (_P["BILLING"]["VIEW"],),
    "/analytics": (_P["ANALYTICS"]["VIEW_BASIC"], _P["ANALYTICS"]["VIEW_ADVANCED"]),
    "/support": (_P["SUPPORT"]["VIEW_TICKETS"], _P["SUPPORT"]["CREATE_TICKETS"]),
    "/messages": (_P["PROJECTS"]["VIEW_ALL"], _P["PROJECTS"]["VIEW_ASSIGNED"]),
    "/settings": (_P["ORGANIZATION"]["VIEW"],),
    "/admin": (_P["USERS"]["MANAGE_ROLES"], _P["ORGANIZATION"]["MANAGE_SETTINGS"]),
})

# explicitly unrestricted routes, consulted when the route policy is "closed"
PUBLIC_ROUTES: frozenset[str] = frozenset({"/", "/login", "/signup", "/profile", "/verify-email"})


def can_access_route(route: str, user_permissions: Sequence[str], fail_open: bool = True) -> bool:
    required = NAVIGATION_ACCESS.get(route)
    if required is None:
        return fail_open or route in PUBLIC_ROUTES
    return any(p in user_permissions for p in required)


PROJECT_ROLE_PERMISSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType({
    ProjectRole.project_manager.value: (
        "project:view",
        "project:update",
        "project:manage_tasks",
        "project:manage_milestones",
        "project:assign_members",
        "project:view_analytics",
        "project:manage_comments",
        "project:upload_documents",
    ),
    ProjectRole.developer.value: (
        "project:view",
        "project:manage_tasks",
        "project:upload_documents",
        "project:comment",
    ),
    ProjectRole.designer.value: (
        "project:view",
        "project:manage_tasks",
        "project:upload_documents",
        "project:comment",
        "project:manage_designs",
    ),
    ProjectRole.reviewer.value: (
        "project:view",
        "project:comment",
        "project:review",
    ),
    ProjectRole.client.value: (
        "project:view",
        "project:comment",
    ),
})


def has_project_permission(user_role, project_role, permission: str) -> bool:
    # organization admins bypass project-level restrictions
    if _key(user_role) == Role.admin.value:
        return True
    return permission in PROJECT_ROLE_PERMISSIONS.get(_key(project_role), ())
