"""Permission grammar, action hierarchy and coverage checks.

A permission is a flat string ``scope:resource-action``, e.g. ``tenant:user-edit``.
Everything in this module is pure: malformed or unknown permissions never raise
during evaluation, they simply grant nothing and can never be satisfied.
"""

from collections.abc import Collection, Iterable
from enum import StrEnum
from functools import lru_cache
from typing import NamedTuple

from scoped_rbac.exceptions import InvalidPermission

SCOPE_SEPARATOR = ":"
ACTION_SEPARATOR = "-"


class Scope(StrEnum):
    TENANT = "tenant"
    SCENARIO = "scenario"
    SYSTEM = "system"


class Action(StrEnum):
    NONE = "none"
    VIEW = "view"
    EDIT = "edit"
    ALL = "all"


class CheckMode(StrEnum):
    """How a list of required permissions is evaluated."""

    ALL = "all"
    ANY = "any"


# Resources registered per scope. Resource names must never contain "-", the
# grammar splits on the first and only "-" to find the action. Use "_" instead.
RESOURCES_BY_SCOPE: dict[Scope, tuple[str, ...]] = {
    Scope.TENANT: ("scenario", "user", "role"),
    Scope.SCENARIO: (
        "device",
        "sensor_rule",
        "spot",
        "measurement",
        "image_generation",
        "user",
        "role",
    ),
    Scope.SYSTEM: ("admin",),
}

# Levels are strictly nested: whoever can edit can also view.
ACTION_HIERARCHY: dict[Action, frozenset[Action]] = {
    Action.NONE: frozenset({Action.NONE}),
    Action.VIEW: frozenset({Action.VIEW, Action.NONE}),
    Action.EDIT: frozenset({Action.EDIT, Action.VIEW, Action.NONE}),
    Action.ALL: frozenset({Action.ALL, Action.EDIT, Action.VIEW, Action.NONE}),
}

ACTION_RANK: dict[Action, int] = {action: rank for rank, action in enumerate(Action)}

_SCOPES = {scope.value: scope for scope in Scope}
_ACTIONS = {action.value: action for action in Action}


class ParsedPermission(NamedTuple):
    """The ``(scope, resource, action)`` triple of a valid permission string."""

    scope: Scope
    resource: str
    action: Action

    def __str__(self) -> str:
        return f"{self.scope}{SCOPE_SEPARATOR}{self.resource}{ACTION_SEPARATOR}{self.action}"


@lru_cache(maxsize=1024)
def _decompose(permission: str) -> ParsedPermission | str:
    """Parse a permission, returning either the triple or the reason it is invalid."""
    parts = permission.split(ACTION_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        return f"expected exactly one non-empty '{ACTION_SEPARATOR}' separated action"
    prefix, action_raw = parts

    prefix_parts = prefix.split(SCOPE_SEPARATOR)
    if len(prefix_parts) != 2 or not all(prefix_parts):
        return f"expected exactly one non-empty '{SCOPE_SEPARATOR}' separated scope and resource"
    scope_raw, resource = prefix_parts

    scope = _SCOPES.get(scope_raw)
    if scope is None:
        return f"unknown scope {scope_raw!r}"
    if resource not in RESOURCES_BY_SCOPE[scope]:
        return f"unknown resource {resource!r} for scope {scope_raw!r}"
    action = _ACTIONS.get(action_raw)
    if action is None:
        return f"unknown action {action_raw!r}"

    return ParsedPermission(scope, resource, action)


def parse_permission(permission: str) -> ParsedPermission | None:
    """Parse ``"tenant:user-edit"`` into its triple, or return None if it is invalid."""
    result = _decompose(permission)
    if isinstance(result, ParsedPermission):
        return result
    return None


def is_valid_permission(permission: str) -> bool:
    return parse_permission(permission) is not None


def validate_permission(permission: str) -> ParsedPermission:
    """Parse a permission, raising InvalidPermission if it does not match the grammar.

    Intended for role authoring and route registration, where a bad permission
    string should be reported eagerly instead of silently granting nothing.
    """
    result = _decompose(permission)
    if isinstance(result, str):
        raise InvalidPermission(permission, result)
    return result


def validate_permissions(permissions: Iterable[str]) -> list[str]:
    """Validate every permission, raising InvalidPermission on the first bad one."""
    validated = []
    for permission in permissions:
        validate_permission(permission)
        validated.append(permission)
    return validated


def action_rank(action: Action | str) -> int:
    return ACTION_RANK[Action(action)]


def covers(granted: str, required: str) -> bool:
    """Check if a granted permission satisfies a required permission.

    Scope and resource must match exactly; the granted action must imply the
    required one according to ACTION_HIERARCHY:

        covers("tenant:user-all", "tenant:user-view")  -> True
        covers("tenant:user-view", "tenant:user-edit") -> False
        covers("tenant:user-all", "scenario:user-view") -> False
    """
    if granted and granted == required:
        return True

    granted_parsed = parse_permission(granted)
    required_parsed = parse_permission(required)
    if granted_parsed is None or required_parsed is None:
        return False

    if granted_parsed.scope != required_parsed.scope:
        return False
    if granted_parsed.resource != required_parsed.resource:
        return False

    return required_parsed.action in ACTION_HIERARCHY[granted_parsed.action]


def has_permission(granted: Iterable[str], required: str) -> bool:
    """Check if any granted permission covers the required permission."""
    return any(covers(permission, required) for permission in granted)


def has_all_permissions(granted: Collection[str], required: Iterable[str]) -> bool:
    """Check if every required permission is covered.

    An empty ``required`` is vacuously satisfied and returns True.
    """
    return all(has_permission(granted, permission) for permission in required)


def has_any_permission(granted: Collection[str], required: Iterable[str]) -> bool:
    """Check if at least one required permission is covered.

    An empty ``required`` has nothing that could be satisfied and returns False,
    unlike has_all_permissions.
    """
    return any(has_permission(granted, permission) for permission in required)


def check_permissions(
    granted: Collection[str],
    required: str | Iterable[str],
    mode: CheckMode = CheckMode.ALL,
) -> bool:
    """Evaluate one permission or a list of them in ALL or ANY mode."""
    required_list = [required] if isinstance(required, str) else list(required)
    if CheckMode(mode) == CheckMode.ANY:
        return has_any_permission(granted, required_list)
    return has_all_permissions(granted, required_list)
