"""RBACRouter - FastAPI router with scoped RBAC authorization."""

import inspect
from collections.abc import Callable, Iterable
from functools import wraps
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from scoped_rbac.dependencies import create_authz_dependency
from scoped_rbac.permissions import CheckMode, validate_permissions


def _normalize_permissions(permissions: Iterable[str] | None) -> list[str] | None:
    """Validate permissions against the grammar and drop duplicates.

    Raises:
        InvalidPermission: If any permission is malformed or unknown.
    """
    if permissions is None:
        return None
    if isinstance(permissions, str):
        permissions = [permissions]
    return validate_permissions(dict.fromkeys(str(permission) for permission in permissions))


def _protected_route(http_method: str) -> Callable[..., Any]:
    """Build an RBACRouter verb decorator that accepts ``permissions`` and ``mode``."""

    def register(
        self: "RBACRouter",
        path: str,
        *,
        permissions: Iterable[str] | None = None,
        mode: CheckMode | None = None,
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        parent_method = getattr(super(RBACRouter, self), http_method.lower())

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            return self._add_route_with_authz(path, http_method, func, permissions, mode, parent_method, **kwargs)

        return decorator

    register.__name__ = http_method.lower()
    register.__qualname__ = f"RBACRouter.{register.__name__}"
    register.__doc__ = f"Register a {http_method} endpoint with optional permission overrides."
    return register


class RBACRouter(APIRouter):
    """FastAPI router with scoped RBAC authorization support.

    Extends APIRouter to automatically inject authorization checks into endpoints.
    The tenant and scenario whose roles are checked come from the path
    parameters configured on RBACAuthz (``tenant_id`` and ``scenario_id`` by default).

    Args:
        permissions: Default permissions required for all endpoints on this router.
        mode: Whether ALL (default) or ANY of the permissions are required.
        **kwargs: Additional arguments passed to APIRouter.

    Example:
        router = RBACRouter(
            prefix="/tenants/{tenant_id}/scenarios/{scenario_id}/devices",
            permissions=["scenario:device-view"],
        )

        @router.get("")
        async def list_devices(tenant_id: str, scenario_id: str):
            return {"devices": [...]}

        # Override permissions for specific endpoint
        @router.delete("/{device_id}", permissions=["scenario:device-all"])
        async def delete_device(tenant_id: str, scenario_id: str, device_id: str):
            return None
    """

    def __init__(
        self,
        *,
        permissions: Iterable[str] | None = None,
        mode: CheckMode = CheckMode.ALL,
        **kwargs: Any,
    ) -> None:
        default_permissions = _normalize_permissions(permissions)

        super().__init__(**kwargs)
        self.default_permissions: list[str] = default_permissions or []
        self.default_mode: CheckMode = CheckMode(mode)
        self.endpoint_metadata: dict[tuple[str, str], dict[str, Any]] = {}

    def _create_authz_dependency(self, permissions: list[str], mode: CheckMode) -> Callable[..., Any]:
        return create_authz_dependency(required_permissions=permissions, mode=mode)

    def _resolve_permissions_and_mode(
        self,
        path: str,
        method: str,
        permissions: Iterable[str] | None,
        mode: CheckMode | None,
    ) -> tuple[list[str], CheckMode]:
        """Resolve final permissions and mode for an endpoint.

        Endpoint permissions and mode override the router defaults.
        """
        endpoint_permissions = _normalize_permissions(permissions)

        final_permissions = endpoint_permissions if endpoint_permissions is not None else self.default_permissions
        final_mode = CheckMode(mode) if mode is not None else self.default_mode

        self.endpoint_metadata[(path, method)] = {
            "permissions": final_permissions,
            "mode": final_mode,
        }

        return final_permissions, final_mode

    def _wrap_endpoint_with_authz(
        self,
        endpoint: Callable[..., Any],
        authz_dep: Callable[..., Any],
    ) -> Callable[..., Any]:
        """Wrap an endpoint to add the authz check after other dependencies.

        Creates a new function signature that includes the authz dependency
        as an annotated parameter, ensuring it runs after user auth dependencies.
        """
        sig = inspect.signature(endpoint)
        params = list(sig.parameters.values())

        # Place it last so it runs after user deps
        authz_param = inspect.Parameter(
            "_rbac_authz_check_",
            inspect.Parameter.KEYWORD_ONLY,
            default=None,
            annotation=Annotated[None, Depends(authz_dep)],
        )

        new_sig = sig.replace(parameters=params + [authz_param])

        if inspect.iscoroutinefunction(endpoint):

            @wraps(endpoint)
            async def wrapped_async(
                *args: Any,
                _rbac_authz_check_: Annotated[None, Depends(authz_dep)] = None,
                **kwargs: Any,
            ) -> Any:
                return await endpoint(*args, **kwargs)

            wrapped_async.__signature__ = new_sig  # type: ignore[attr-defined]
            return wrapped_async
        else:

            @wraps(endpoint)
            def wrapped_sync(
                *args: Any,
                _rbac_authz_check_: Annotated[None, Depends(authz_dep)] = None,
                **kwargs: Any,
            ) -> Any:
                return endpoint(*args, **kwargs)

            wrapped_sync.__signature__ = new_sig  # type: ignore[attr-defined]
            return wrapped_sync

    def _add_route_with_authz(
        self,
        path: str,
        method: str,
        endpoint: Callable[..., Any],
        permissions: Iterable[str] | None,
        mode: CheckMode | None,
        parent_method: Callable[..., Any],
        **kwargs: Any,
    ) -> Callable[..., Any]:
        final_permissions, final_mode = self._resolve_permissions_and_mode(path, method, permissions, mode)

        if final_permissions:
            authz_dep = self._create_authz_dependency(final_permissions, final_mode)
            endpoint = self._wrap_endpoint_with_authz(endpoint, authz_dep)

        # Attach metadata to the endpoint so introspection works even if the
        # router was included before RBACAuthz was initialized
        endpoint._rbac_metadata_ = {  # type: ignore[attr-defined]
            "permissions": final_permissions,
            "mode": final_mode,
        }

        result: Callable[..., Any] = parent_method(path, **kwargs)(endpoint)
        return result

    get = _protected_route("GET")  # type: ignore[assignment]
    post = _protected_route("POST")  # type: ignore[assignment]
    put = _protected_route("PUT")  # type: ignore[assignment]
    patch = _protected_route("PATCH")  # type: ignore[assignment]
    delete = _protected_route("DELETE")  # type: ignore[assignment]
