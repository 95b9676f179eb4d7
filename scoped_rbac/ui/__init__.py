"""Introspection endpoint for the permission catalog and protected routes."""

from scoped_rbac.ui.routes import create_ui_router
from scoped_rbac.ui.schema import build_ui_schema

__all__ = [
    "create_ui_router",
    "build_ui_schema",
]
