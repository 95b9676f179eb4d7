from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from fastapi import APIRouter, FastAPI

from scoped_rbac.context import PermissionResolver, UserTenantResolver
from scoped_rbac.dependencies import _rbac_user_dependency_placeholder

UserT = TypeVar("UserT")


def _wrap_include_router(app: FastAPI, original_include_router: Callable[..., None]) -> Callable[..., None]:
    """Wrap FastAPI's include_router to track RBACRouters."""

    def wrapped_include_router(
        router: APIRouter,
        *,
        prefix: str = "",
        **kwargs: Any,
    ) -> None:
        # Import here to avoid circular import
        from scoped_rbac.router import RBACRouter

        if isinstance(router, RBACRouter):
            if not hasattr(app.state, "_rbac_routers_"):
                app.state._rbac_routers_ = []
            app.state._rbac_routers_.append((prefix, router))

        return original_include_router(router, prefix=prefix, **kwargs)

    return wrapped_include_router


class RBACAuthz(Generic[UserT]):
    """Scoped RBAC authorization configuration.

    Attaches to a FastAPI application and provides the permission resolution
    used by RBACRouter endpoints.

    Args:
        app: The FastAPI application instance.
        resolver: Resolves a user's granted permissions for a tenant/scenario.
            Defaults to UserTenantResolver, which reads role memberships from
            a ``scoped_rbac.principal.User``.
        user_dependency: Optional FastAPI dependency that returns the authenticated user.
            When provided, RBAC-protected endpoints will automatically run this dependency
            before authorization checks.
        tenant_param: Path parameter holding the tenant id of a request.
        scenario_param: Path parameter holding the scenario id of a request.
        ui_path: Optional path to mount the permission catalog endpoint (e.g., "/_rbac").
    """

    def __init__(
        self,
        app: FastAPI,
        resolver: PermissionResolver[UserT] | None = None,
        user_dependency: Callable[..., UserT] | Callable[..., Awaitable[UserT]] | None = None,
        tenant_param: str = "tenant_id",
        scenario_param: str = "scenario_id",
        ui_path: str | None = None,
    ) -> None:
        self.app = app
        self.resolver: PermissionResolver[Any] = resolver if resolver is not None else UserTenantResolver()
        self.user_dependency = user_dependency
        self.tenant_param = tenant_param
        self.scenario_param = scenario_param
        self.ui_path = ui_path

        if not hasattr(app.state, "_rbac_routers_"):
            app.state._rbac_routers_ = []

        app.state.rbac = self

        # Inject the user's auth dependency into every RBAC-protected endpoint
        if user_dependency is not None:
            app.dependency_overrides[_rbac_user_dependency_placeholder] = user_dependency

        self._wrap_app_include_router()

        if ui_path:
            self._mount_ui()

    @property
    def routers(self) -> list[tuple[str, Any]]:
        """RBACRouters included into the app, with their prefixes."""
        return list(getattr(self.app.state, "_rbac_routers_", []))

    def resolve_permissions(
        self,
        user: UserT,
        tenant_id: str | None = None,
        scenario_id: str | None = None,
    ) -> list[str]:
        return self.resolver.resolve(user, tenant_id=tenant_id, scenario_id=scenario_id)

    def _wrap_app_include_router(self) -> None:
        if hasattr(self.app, "_rbac_include_router_wrapped_"):
            return

        original_include_router = self.app.include_router
        self.app.include_router = _wrap_include_router(self.app, original_include_router)  # type: ignore[method-assign]
        self.app._rbac_include_router_wrapped_ = True  # type: ignore[attr-defined]

    def _mount_ui(self) -> None:
        if not self.ui_path:
            return

        # Import here to avoid circular import
        from scoped_rbac.ui.routes import create_ui_router

        ui_router = create_ui_router()
        self.app.include_router(ui_router, prefix=self.ui_path)
