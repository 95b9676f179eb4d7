from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from scoped_rbac.catalog import SystemPermission
from scoped_rbac.permissions import (
    CheckMode,
    check_permissions,
    has_all_permissions,
    has_any_permission,
    has_permission,
)
from scoped_rbac.principal import User

UserT = TypeVar("UserT")


class PermissionResolver(ABC, Generic[UserT]):
    """Resolves the effective granted permissions of a user in a tenant/scenario context.

    The authorization functions never look up permissions themselves; a resolver
    is passed to RBACAuthz (or called directly) to assemble the granted list
    before every check.

    Example:
        class TokenClaimsResolver(PermissionResolver[Claims]):
            def resolve(self, user, tenant_id=None, scenario_id=None):
                return user.claims.get(tenant_id, [])
    """

    @abstractmethod
    def resolve(
        self,
        user: UserT,
        tenant_id: str | None = None,
        scenario_id: str | None = None,
    ) -> list[str]:
        """Return the granted permissions for this context.

        Returns:
            A list of permission strings; an empty list grants nothing.
        """
        ...


class UserTenantResolver(PermissionResolver[User]):
    """Resolve permissions from the role memberships carried on a User record.

    The result is the union of:
    - the user's direct permissions,
    - ``system:admin-all`` for system administrators,
    - the tenant role of ``tenant_id`` (of every membership when omitted),
    - the scenario role of ``scenario_id`` when given.
    """

    def resolve(
        self,
        user: User,
        tenant_id: str | None = None,
        scenario_id: str | None = None,
    ) -> list[str]:
        granted: list[str] = list(user.permissions)
        if user.system_admin:
            granted.append(SystemPermission.ADMIN_ALL.value)

        if tenant_id is not None:
            user_tenant = user.find_tenant(tenant_id)
            memberships = [user_tenant] if user_tenant is not None else []
        else:
            memberships = list(user.user_tenants)

        for membership in memberships:
            if membership.tenant_role is not None:
                granted.extend(membership.tenant_role.permissions)

        if scenario_id is not None:
            for membership in memberships:
                user_scenario = membership.find_scenario(scenario_id)
                if user_scenario is not None and user_scenario.scenario_role is not None:
                    granted.extend(user_scenario.scenario_role.permissions)

        return list(dict.fromkeys(granted))


class Permissions:
    """Immutable snapshot of one principal's granted permissions.

    Mirrors the dashboard's conditional rendering gates (Can, CanAll, CanAny,
    Cannot) for server-side code that needs the same decisions.
    """

    __slots__ = ("granted",)

    def __init__(self, granted: Iterable[str]) -> None:
        self.granted: tuple[str, ...] = tuple(dict.fromkeys(granted))

    @classmethod
    def for_user(
        cls,
        user: Any,
        resolver: PermissionResolver[Any],
        *,
        tenant_id: str | None = None,
        scenario_id: str | None = None,
    ) -> "Permissions":
        return cls(resolver.resolve(user, tenant_id=tenant_id, scenario_id=scenario_id))

    def can(self, permission: str) -> bool:
        return has_permission(self.granted, permission)

    def can_all(self, permissions: Iterable[str]) -> bool:
        return has_all_permissions(self.granted, permissions)

    def can_any(self, permissions: Iterable[str]) -> bool:
        return has_any_permission(self.granted, permissions)

    def cannot(self, permission: str) -> bool:
        return not self.can(permission)

    def check(self, required: str | Iterable[str], mode: CheckMode = CheckMode.ALL) -> bool:
        return check_permissions(self.granted, required, mode)

    def __contains__(self, permission: object) -> bool:
        return isinstance(permission, str) and self.can(permission)

    def __bool__(self) -> bool:
        return bool(self.granted)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Permissions):
            return NotImplemented
        return self.granted == other.granted

    def __hash__(self) -> int:
        return hash(self.granted)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self.granted)!r})"
