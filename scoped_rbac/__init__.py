"""Scoped RBAC Authorization - tenant/scenario/system permissions with an action hierarchy."""

__version__ = "0.1.0"

from scoped_rbac.catalog import (
    ALL_PERMISSIONS,
    ScenarioPermission,
    SystemPermission,
    TenantPermission,
    make_permission,
    permissions_for_scope,
)
from scoped_rbac.context import Permissions, PermissionResolver, UserTenantResolver
from scoped_rbac.core import RBACAuthz
from scoped_rbac.dependencies import (
    RBACPermissions,
    RBACUser,
    create_auth_dependency,
    create_authz_dependency,
    evaluate_permissions,
)
from scoped_rbac.exceptions import Forbidden, InvalidPermission
from scoped_rbac.permissions import (
    ACTION_HIERARCHY,
    RESOURCES_BY_SCOPE,
    Action,
    CheckMode,
    ParsedPermission,
    Scope,
    check_permissions,
    covers,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_valid_permission,
    parse_permission,
    validate_permission,
    validate_permissions,
)
from scoped_rbac.router import RBACRouter

__all__ = [
    "RBACAuthz",
    "RBACRouter",
    "RBACUser",
    "RBACPermissions",
    "Permissions",
    "PermissionResolver",
    "UserTenantResolver",
    "Scope",
    "Action",
    "CheckMode",
    "ParsedPermission",
    "ACTION_HIERARCHY",
    "RESOURCES_BY_SCOPE",
    "ALL_PERMISSIONS",
    "TenantPermission",
    "ScenarioPermission",
    "SystemPermission",
    "Forbidden",
    "InvalidPermission",
    "parse_permission",
    "is_valid_permission",
    "validate_permission",
    "validate_permissions",
    "make_permission",
    "permissions_for_scope",
    "covers",
    "has_permission",
    "has_all_permissions",
    "has_any_permission",
    "check_permissions",
    "create_auth_dependency",
    "create_authz_dependency",
    "evaluate_permissions",
]
