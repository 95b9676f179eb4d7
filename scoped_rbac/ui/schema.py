"""Schema introspection for the RBAC permission catalog."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from scoped_rbac.catalog import permissions_for_scope
from scoped_rbac.permissions import ACTION_HIERARCHY, ACTION_RANK, RESOURCES_BY_SCOPE, Action

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.routing import BaseRoute

    from scoped_rbac.core import RBACAuthz


class ScopeSchema(BaseModel):
    """Schema for a scope and the resources registered in it."""

    name: str
    resources: list[str]
    permissions: list[str]


class ActionSchema(BaseModel):
    """Schema for an action level and the levels it implies."""

    name: str
    rank: int
    implies: list[str]


class EndpointSchema(BaseModel):
    """Schema for an endpoint with RBAC configuration."""

    path: str
    method: str
    summary: str | None
    description: str | None
    tags: list[str]
    permissions: list[str]
    mode: str  # "all" or "any"


class UISchema(BaseModel):
    """Complete schema for RBAC introspection."""

    scopes: list[ScopeSchema]
    actions: list[ActionSchema]
    endpoints: list[EndpointSchema]


def _build_scopes_schema() -> list[ScopeSchema]:
    return [
        ScopeSchema(
            name=scope.value,
            resources=list(resources),
            permissions=permissions_for_scope(scope, include_none=True),
        )
        for scope, resources in RESOURCES_BY_SCOPE.items()
    ]


def _build_actions_schema() -> list[ActionSchema]:
    return [
        ActionSchema(
            name=action.value,
            rank=ACTION_RANK[action],
            implies=[implied.value for implied in Action if implied in ACTION_HIERARCHY[action]],
        )
        for action in Action
    ]


def _get_rbac_metadata_from_route(route: BaseRoute) -> dict[str, Any] | None:
    """Extract RBAC metadata from a route's endpoint function.

    RBACRouter stores metadata in the endpoint's _rbac_metadata_ attribute.
    """
    endpoint = getattr(route, "endpoint", None)
    if endpoint is None:
        return None
    return getattr(endpoint, "_rbac_metadata_", None)


def _iter_routes(routes: Iterable[BaseRoute], prefix: str = "") -> Iterator[tuple[str, BaseRoute]]:
    """Yield ``(full_path, route)`` for every endpoint route, descending into nested routers."""
    for route in routes:
        path = getattr(route, "path", None)
        if hasattr(route, "methods") and path is not None:
            yield prefix + path, route
            continue
        nested = getattr(route, "routes", None)
        if nested:
            yield from _iter_routes(nested, prefix + (path or ""))


def _endpoint_schema(path: str, method: str, route: BaseRoute, meta: dict[str, Any]) -> EndpointSchema:
    return EndpointSchema(
        path=path,
        method=method,
        summary=getattr(route, "summary", None),
        description=getattr(route, "description", None),
        tags=list(getattr(route, "tags", []) or []),
        permissions=list(meta["permissions"]),
        mode=str(meta.get("mode", "all")),
    )


def _build_endpoints_schema(app: FastAPI, rbac: RBACAuthz[Any]) -> list[EndpointSchema]:
    endpoints: list[EndpointSchema] = []
    seen_endpoints: set[tuple[str, str]] = set()

    # Tracked routers first: their own routes carry the metadata regardless of
    # how the application flattens or nests included routers
    tracked = ((prefix, router.routes) for prefix, router in rbac.routers)
    untracked = [("", getattr(app, "routes", []))]

    for prefix, routes in [*tracked, *untracked]:
        for route_path, route in _iter_routes(routes, prefix):
            meta = _get_rbac_metadata_from_route(route) or {}
            # Skip non-RBAC endpoints
            if not meta.get("permissions"):
                continue

            for method in sorted(getattr(route, "methods", None) or {"GET"}):
                if method == "HEAD":
                    continue

                key = (route_path, method)
                if key in seen_endpoints:
                    continue
                seen_endpoints.add(key)

                endpoints.append(_endpoint_schema(route_path, method, route, meta))

    return endpoints


def build_ui_schema(app: FastAPI, rbac: RBACAuthz[Any]) -> UISchema:
    """Build the complete schema for RBAC introspection.

    Args:
        app: The FastAPI application instance.
        rbac: The RBACAuthz configuration.

    Returns:
        UISchema containing scopes, actions and protected endpoints.
    """
    return UISchema(
        scopes=_build_scopes_schema(),
        actions=_build_actions_schema(),
        endpoints=_build_endpoints_schema(app, rbac),
    )
