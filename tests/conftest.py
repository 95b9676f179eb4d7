from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scoped_rbac.principal import User


@pytest.fixture
def app() -> FastAPI:
    return FastAPI()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def make_user_payload() -> dict[str, Any]:
    """A user as returned by the dashboard backend's /auth/me endpoint."""
    return {
        "id": "user-1",
        "email": "operator@example.com",
        "username": "operator",
        "systemAdmin": False,
        "userTenants": [
            {
                "id": "ut-1",
                "userId": "user-1",
                "tenantId": "acme",
                "tenantRoleId": "role-manager",
                "Tenant": {"id": "acme", "name": "Acme", "slug": "acme"},
                "TenantRole": {
                    "id": "role-manager",
                    "name": "Manager",
                    "description": "Manages scenarios",
                    "permissions": ["tenant:scenario-view", "tenant:user-all"],
                },
                "UserScenarios": [
                    {
                        "id": "us-1",
                        "Scenario": {"id": "farm", "name": "Farm", "slug": "farm", "tenantId": "acme"},
                        "ScenarioRole": {
                            "id": "role-technician",
                            "name": "Technician",
                            "description": "",
                            "permissions": ["scenario:device-edit", "scenario:spot-view"],
                        },
                    },
                    {
                        "id": "us-2",
                        "Scenario": {"id": "greenhouse", "name": "Greenhouse", "slug": "greenhouse"},
                        "ScenarioRole": {
                            "id": "role-viewer",
                            "name": "Viewer",
                            "description": "",
                            "permissions": ["scenario:measurement-view"],
                        },
                    },
                ],
            },
            {
                "id": "ut-2",
                "userId": "user-1",
                "tenantId": "globex",
                "tenantRoleId": "role-auditor",
                "TenantRole": {
                    "id": "role-auditor",
                    "name": "Auditor",
                    "description": "",
                    "permissions": ["tenant:role-view"],
                },
                "UserScenarios": [],
            },
        ],
    }


@pytest.fixture
def user() -> User:
    return User.model_validate(make_user_payload())


@pytest.fixture
def admin_user() -> User:
    return User(id="admin-1", email="admin@example.com", username="admin", system_admin=True)


@pytest.fixture
def user_payload() -> dict[str, Any]:
    return make_user_payload()
