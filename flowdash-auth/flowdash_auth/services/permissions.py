"""角色 → 权限映射

映射是静态的，每次鉴权时按角色重新计算，不做持久化。未知角色没有任何权限。
"""
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

from flowdash_auth.models.user_account import Role


class Permission(str, Enum):
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_TASKS = "view_tasks"
    CREATE_TASKS = "create_tasks"
    EDIT_TASKS = "edit_tasks"
    DELETE_TASKS = "delete_tasks"
    ASSIGN_TASKS = "assign_tasks"
    VIEW_TEAM = "view_team"
    MANAGE_TEAM = "manage_team"
    VIEW_PERFORMANCE = "view_performance"
    MANAGE_PERFORMANCE = "manage_performance"
    VIEW_ASSESSMENTS = "view_assessments"
    CREATE_ASSESSMENTS = "create_assessments"
    EDIT_ASSESSMENTS = "edit_assessments"
    VIEW_REPORTS = "view_reports"
    CREATE_REPORTS = "create_reports"
    EDIT_REPORTS = "edit_reports"
    EXPORT_REPORTS = "export_reports"
    VIEW_SETTINGS = "view_settings"
    MANAGE_SETTINGS = "manage_settings"
    VIEW_ALL_DATA = "view_all_data"
    MANAGE_ORGANIZATION = "manage_organization"


_OPERATOR = (
    Permission.VIEW_DASHBOARD,
    Permission.VIEW_TASKS,
    Permission.VIEW_PERFORMANCE,
    Permission.VIEW_ASSESSMENTS,
    Permission.VIEW_SETTINGS,
)

_MANAGER = (
    Permission.VIEW_DASHBOARD,
    Permission.VIEW_TASKS,
    Permission.CREATE_TASKS,
    Permission.EDIT_TASKS,
    Permission.ASSIGN_TASKS,
    Permission.VIEW_TEAM,
    Permission.MANAGE_TEAM,
    Permission.VIEW_PERFORMANCE,
    Permission.MANAGE_PERFORMANCE,
    Permission.VIEW_ASSESSMENTS,
    Permission.CREATE_ASSESSMENTS,
    Permission.EDIT_ASSESSMENTS,
    Permission.VIEW_REPORTS,
    Permission.CREATE_REPORTS,
    Permission.EDIT_REPORTS,
    Permission.VIEW_SETTINGS,
)

_DIRECTOR = (
    Permission.VIEW_DASHBOARD,
    Permission.VIEW_TASKS,
    Permission.CREATE_TASKS,
    Permission.EDIT_TASKS,
    Permission.DELETE_TASKS,
    Permission.ASSIGN_TASKS,
    Permission.VIEW_TEAM,
    Permission.MANAGE_TEAM,
    Permission.VIEW_PERFORMANCE,
    Permission.MANAGE_PERFORMANCE,
    Permission.VIEW_ASSESSMENTS,
    Permission.CREATE_ASSESSMENTS,
    Permission.EDIT_ASSESSMENTS,
    Permission.VIEW_REPORTS,
    Permission.CREATE_REPORTS,
    Permission.EDIT_REPORTS,
    Permission.EXPORT_REPORTS,
    Permission.VIEW_SETTINGS,
    Permission.MANAGE_SETTINGS,
    Permission.VIEW_ALL_DATA,
    Permission.MANAGE_ORGANIZATION,
)

ROLE_PERMISSIONS: Dict[Role, Tuple[Permission, ...]] = {
    Role.OPERATOR: _OPERATOR,
    Role.MANAGER: _MANAGER,
    Role.DIRECTOR: _DIRECTOR,
}


def _coerce_role(role: Union[Role, str, None]) -> Optional[Role]:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def permissions_for(role: Union[Role, str, None]) -> Tuple[Permission, ...]:
    resolved = _coerce_role(role)
    if resolved is None:
        return ()
    return ROLE_PERMISSIONS.get(resolved, ())


def has_permission(role: Union[Role, str, None], permission: Union[Permission, str]) -> bool:
    try:
        wanted = Permission(permission)
    except ValueError:
        return False
    return wanted in permissions_for(role)


def can_access_roles(role: Union[Role, str, None], allowed_roles: Iterable[Union[Role, str]]) -> bool:
    resolved = _coerce_role(role)
    if resolved is None:
        return False
    return any(_coerce_role(allowed) is resolved for allowed in allowed_roles)
