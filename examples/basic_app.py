"""
Basic example demonstrating fastapi-scoped-rbac usage for an IoT dashboard.

Run with:
    uvicorn examples.basic_app:app --reload

Then visit:
    - http://localhost:18000/docs - OpenAPI documentation
    - http://localhost:18000/_rbac/schema - Permission catalog and protected endpoints
"""

from typing import Annotated

import uvicorn
from fastapi import Depends, FastAPI, Header, HTTPException

from scoped_rbac import (
    CheckMode,
    Permissions,
    RBACAuthz,
    RBACPermissions,
    RBACRouter,
    ScenarioPermission,
    SystemPermission,
    TenantPermission,
)
from scoped_rbac.principal import User

# =============================================================================
# Users (as returned by the backend's /auth/me)
# =============================================================================
USERS = {
    "manager-token": User.model_validate(
        {
            "id": "user-1",
            "email": "manager@example.com",
            "username": "manager",
            "userTenants": [
                {
                    "id": "ut-1",
                    "tenantId": "acme",
                    "TenantRole": {
                        "id": "tenant-manager",
                        "name": "Manager",
                        "permissions": ["tenant:scenario-all", "tenant:user-edit"],
                    },
                    "UserScenarios": [
                        {
                            "id": "us-1",
                            "Scenario": {"id": "farm", "name": "Farm"},
                            "ScenarioRole": {
                                "id": "scenario-technician",
                                "name": "Technician",
                                "permissions": ["scenario:device-edit", "scenario:spot-view"],
                            },
                        }
                    ],
                }
            ],
        }
    ),
    "admin-token": User(id="admin-1", email="admin@example.com", username="admin", system_admin=True),
}

# Fake device database (scenario_id -> device ids)
DEVICES = {"farm": ["soil-probe-1", "weather-station"]}


# =============================================================================
# Authentication Dependency
# =============================================================================
async def get_current_user(x_token: Annotated[str, Header()]) -> User:
    """Simulate authentication via X-Token header."""
    user = USERS.get(x_token)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


# =============================================================================
# Application Setup
# =============================================================================
app = FastAPI(
    title="IoT Dashboard RBAC Example",
    description="Example app demonstrating fastapi-scoped-rbac",
)

RBACAuthz(
    app,
    user_dependency=get_current_user,
    ui_path="/_rbac",
)


# =============================================================================
# Routes
# =============================================================================
tenant_router = RBACRouter(
    prefix="/tenants/{tenant_id}",
    tags=["Tenant"],
)


@tenant_router.get("/scenarios", permissions=[TenantPermission.SCENARIO_VIEW])
async def list_scenarios(tenant_id: str):
    """List scenarios. Requires tenant:scenario-view (or higher) in this tenant."""
    return [{"id": scenario_id} for scenario_id in DEVICES]


@tenant_router.get(
    "/members",
    permissions=[TenantPermission.USER_VIEW, TenantPermission.ROLE_VIEW],
    mode=CheckMode.ANY,
)
async def list_members(tenant_id: str):
    """List members. Requires either tenant:user-view or tenant:role-view."""
    return [{"username": user.username} for user in USERS.values()]


device_router = RBACRouter(
    prefix="/tenants/{tenant_id}/scenarios/{scenario_id}/devices",
    tags=["Devices"],
    permissions=[ScenarioPermission.DEVICE_VIEW],
)


@device_router.get("")
async def list_devices(
    tenant_id: str,
    scenario_id: str,
    perms: Annotated[Permissions, Depends(RBACPermissions)],
):
    """List devices, with the actions the current user may take on them."""
    return {
        "devices": DEVICES.get(scenario_id, []),
        "can_create": perms.can(ScenarioPermission.DEVICE_EDIT),
        "can_delete": perms.can(ScenarioPermission.DEVICE_ALL),
    }


@device_router.post("", permissions=[ScenarioPermission.DEVICE_EDIT])
async def create_device(tenant_id: str, scenario_id: str, device_id: str):
    """Register a device. Requires scenario:device-edit."""
    DEVICES.setdefault(scenario_id, []).append(device_id)
    return {"id": device_id}


@device_router.delete("/{device_id}", permissions=[ScenarioPermission.DEVICE_ALL])
async def delete_device(tenant_id: str, scenario_id: str, device_id: str):
    """Remove a device. Requires scenario:device-all."""
    devices = DEVICES.get(scenario_id, [])
    if device_id not in devices:
        raise HTTPException(status_code=404, detail="Device not found")
    devices.remove(device_id)
    return {"deleted": device_id}


admin_router = RBACRouter(
    prefix="/admin",
    tags=["Admin"],
    permissions=[SystemPermission.ADMIN_VIEW],
)


@admin_router.get("/tenants")
async def list_tenants():
    """Platform-wide tenant list. Requires system:admin-view."""
    return [{"id": "acme"}]


app.include_router(tenant_router)
app.include_router(device_router)
app.include_router(admin_router)


# =============================================================================
# Health Check (no auth required)
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, port=18_000)
