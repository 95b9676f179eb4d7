"""Named constants for every permission the dashboard knows about.

Members are plain strings, so they can be passed anywhere a permission string
is expected:

    has_permission(granted, ScenarioPermission.DEVICE_EDIT)
"""

from enum import StrEnum

from scoped_rbac.permissions import (
    ACTION_SEPARATOR,
    RESOURCES_BY_SCOPE,
    SCOPE_SEPARATOR,
    Action,
    Scope,
    validate_permission,
)


def make_permission(scope: Scope | str, resource: str, action: Action | str) -> str:
    """Build a permission string, raising InvalidPermission if it is not valid."""
    permission = f"{scope}{SCOPE_SEPARATOR}{resource}{ACTION_SEPARATOR}{action}"
    validate_permission(permission)
    return permission


def permissions_for_scope(scope: Scope | str, *, include_none: bool = False) -> list[str]:
    """List every valid permission of a scope, ordered by resource then action rank."""
    scope = Scope(scope)
    actions = [action for action in Action if include_none or action != Action.NONE]
    return [make_permission(scope, resource, action) for resource in RESOURCES_BY_SCOPE[scope] for action in actions]


class TenantPermission(StrEnum):
    SCENARIO_VIEW = "tenant:scenario-view"
    SCENARIO_EDIT = "tenant:scenario-edit"
    SCENARIO_ALL = "tenant:scenario-all"

    USER_VIEW = "tenant:user-view"
    USER_EDIT = "tenant:user-edit"
    USER_ALL = "tenant:user-all"

    ROLE_VIEW = "tenant:role-view"
    ROLE_EDIT = "tenant:role-edit"
    ROLE_ALL = "tenant:role-all"


class ScenarioPermission(StrEnum):
    DEVICE_VIEW = "scenario:device-view"
    DEVICE_EDIT = "scenario:device-edit"
    DEVICE_ALL = "scenario:device-all"

    SENSOR_RULE_VIEW = "scenario:sensor_rule-view"
    SENSOR_RULE_EDIT = "scenario:sensor_rule-edit"
    SENSOR_RULE_ALL = "scenario:sensor_rule-all"

    SPOT_VIEW = "scenario:spot-view"
    SPOT_EDIT = "scenario:spot-edit"
    SPOT_ALL = "scenario:spot-all"

    MEASUREMENT_VIEW = "scenario:measurement-view"
    MEASUREMENT_EDIT = "scenario:measurement-edit"
    MEASUREMENT_ALL = "scenario:measurement-all"

    IMAGE_GENERATION_VIEW = "scenario:image_generation-view"
    IMAGE_GENERATION_EDIT = "scenario:image_generation-edit"
    IMAGE_GENERATION_ALL = "scenario:image_generation-all"

    USER_VIEW = "scenario:user-view"
    USER_EDIT = "scenario:user-edit"
    USER_ALL = "scenario:user-all"

    ROLE_VIEW = "scenario:role-view"
    ROLE_EDIT = "scenario:role-edit"
    ROLE_ALL = "scenario:role-all"


class SystemPermission(StrEnum):
    ADMIN_VIEW = "system:admin-view"
    ADMIN_EDIT = "system:admin-edit"
    ADMIN_ALL = "system:admin-all"


ALL_PERMISSIONS: frozenset[str] = frozenset(
    str(member) for group in (TenantPermission, ScenarioPermission, SystemPermission) for member in group
)
