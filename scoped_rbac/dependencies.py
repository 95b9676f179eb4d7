import logging
from collections.abc import Awaitable, Callable, Coroutine, Sequence
from typing import TYPE_CHECKING, Annotated, Any, TypeVar

from fastapi import Depends, Request

from scoped_rbac.context import Permissions
from scoped_rbac.exceptions import Forbidden
from scoped_rbac.permissions import CheckMode, check_permissions

if TYPE_CHECKING:
    from scoped_rbac.core import RBACAuthz

logger = logging.getLogger(__name__)

UserT = TypeVar("UserT")


def _get_rbac(request: Request) -> "RBACAuthz[Any]":
    rbac = getattr(request.app.state, "rbac", None)
    if rbac is None:
        raise RuntimeError("RBACAuthz not configured. Make sure to create an RBACAuthz instance with your app.")
    return rbac


def _request_scope_ids(request: Request, rbac: "RBACAuthz[Any]") -> tuple[str | None, str | None]:
    """Read the tenant and scenario ids of a request from its path parameters."""
    tenant_id = request.path_params.get(rbac.tenant_param)
    scenario_id = request.path_params.get(rbac.scenario_param)
    return (
        str(tenant_id) if tenant_id is not None else None,
        str(scenario_id) if scenario_id is not None else None,
    )


def RBACUser(request: Request) -> Any:
    """Get the current authenticated user.

    This dependency reads the user from request.state.user, which is set
    by the auth dependency created via create_auth_dependency() or by the
    authorization check of an RBACRouter endpoint.

    Raises:
        Forbidden: If no user is found in request state.
    """
    user = getattr(request.state, "user", None)
    if user is None:
        raise Forbidden("User not authenticated")
    return user


async def _rbac_user_dependency_placeholder(request: Request) -> Any:
    """Placeholder dependency for user authentication.

    Replaced at runtime via FastAPI's dependency_overrides when RBACAuthz is
    initialized with a user_dependency. Otherwise falls back to reading
    request.state.user (which must be set by the application's own auth).
    """
    return getattr(request.state, "user", None)


def RBACPermissions(
    request: Request,
    user: Annotated[Any, Depends(_rbac_user_dependency_placeholder)],
) -> Permissions:
    """Get the current user's permissions for the request's tenant/scenario.

    Usage:
        @router.get("/tenants/{tenant_id}/users")
        async def list_users(perms: Annotated[Permissions, Depends(RBACPermissions)]):
            return {"can_edit": perms.can("tenant:user-edit")}

    Raises:
        Forbidden: If no user is authenticated.
    """
    if user is None:
        raise Forbidden("User not authenticated")
    rbac = _get_rbac(request)
    tenant_id, scenario_id = _request_scope_ids(request, rbac)
    return Permissions(rbac.resolve_permissions(user, tenant_id=tenant_id, scenario_id=scenario_id))


def create_auth_dependency(
    rbac: "RBACAuthz[UserT]",  # noqa: ARG001 - kept for API consistency with RBACRouter
    user_dependency: Callable[..., UserT] | Callable[..., Awaitable[UserT]],
) -> Callable[..., Coroutine[Any, Any, UserT]]:
    """Create a typed auth dependency for use in endpoints.

    Args:
        rbac: The RBACAuthz configuration instance. Currently unused but kept for
            API consistency - RBACRouter reads the configuration from app state.
        user_dependency: A FastAPI dependency that returns the authenticated user.

    Returns:
        A dependency that can be used with Depends() in endpoint signatures.
    """

    async def auth_dependency(
        request: Request,
        user: Annotated[UserT, Depends(user_dependency)],
    ) -> UserT:
        request.state.user = user
        return user

    return auth_dependency


def evaluate_permissions(
    user: Any,
    request: Request,
    rbac: "RBACAuthz[Any]",
    required_permissions: Sequence[str],
    mode: CheckMode = CheckMode.ALL,
) -> Permissions:
    """Check the user's permissions for the request's tenant/scenario.

    Args:
        user: The authenticated user object.
        request: The current HTTP request; its path parameters select the tenant
            and scenario whose roles are resolved.
        rbac: The RBACAuthz configuration instance.
        required_permissions: Permission strings required for access.
        mode: CheckMode.ALL requires every permission, CheckMode.ANY at least one.

    Returns:
        The resolved permissions, when access is granted.

    Raises:
        Forbidden: If the user does not have the required permissions.
        RuntimeError: If no permissions are specified.
    """
    if not required_permissions:
        raise RuntimeError("Endpoint must be protected with permissions")

    tenant_id, scenario_id = _request_scope_ids(request, rbac)
    permissions = Permissions(rbac.resolve_permissions(user, tenant_id=tenant_id, scenario_id=scenario_id))

    if not check_permissions(permissions.granted, required_permissions, mode):
        logger.debug(
            "Denied %s %s: requires %s of %s (tenant=%s, scenario=%s)",
            request.method,
            request.url.path,
            mode,
            sorted(required_permissions),
            tenant_id,
            scenario_id,
        )
        raise Forbidden()

    return permissions


def create_authz_dependency(
    required_permissions: Sequence[str],
    mode: CheckMode = CheckMode.ALL,
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Create an authorization dependency for an endpoint.

    The dependency:
    1. Resolves the user via the injected user_dependency (or placeholder fallback)
    2. Gets the RBAC config from app.state.rbac
    3. Resolves the granted permissions for the tenant/scenario in the path
    4. Raises Forbidden unless they cover the required permissions

    Args:
        required_permissions: Permission strings required for access.
        mode: CheckMode.ALL or CheckMode.ANY.

    Returns:
        An async dependency function for use with FastAPI's Depends().
    """
    required = tuple(required_permissions)

    async def authz_dependency(
        request: Request,
        _rbac_user_: Annotated[Any, Depends(_rbac_user_dependency_placeholder)],
    ) -> None:
        rbac = _get_rbac(request)

        user = _rbac_user_
        if user is None:
            raise Forbidden("User not authenticated")
        request.state.user = user

        request.state.permissions = evaluate_permissions(user, request, rbac, required, mode)

    return authz_dependency
