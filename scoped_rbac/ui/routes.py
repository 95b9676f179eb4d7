"""Routes for RBAC introspection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request

from scoped_rbac.ui.schema import UISchema, build_ui_schema

if TYPE_CHECKING:
    from scoped_rbac.core import RBACAuthz


def create_ui_router() -> APIRouter:
    """Create a router exposing the RBAC schema as JSON.

    Returns:
        An APIRouter serving ``/schema`` relative to its mount prefix.
    """
    router = APIRouter(tags=["rbac-ui"])

    @router.get(
        "/schema",
        response_model=UISchema,
        summary="RBAC Schema",
        description="JSON schema of scopes, resources, actions, permissions and protected endpoints.",
        include_in_schema=False,
    )
    async def get_schema(request: Request) -> UISchema:
        rbac: RBACAuthz[Any] = request.app.state.rbac
        return build_ui_schema(request.app, rbac)

    return router
