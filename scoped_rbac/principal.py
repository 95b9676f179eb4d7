"""Role and membership records as returned by the dashboard backend.

The backend serializes memberships with camelCase keys and nested relations
with PascalCase keys (``TenantRole``, ``UserScenarios``); the models accept
either those aliases or the snake_case field names.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scoped_rbac.permissions import validate_permissions


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Role(_Record):
    """A tenant or scenario role as stored by the backend.

    Permissions are kept verbatim; malformed entries are tolerated here and
    simply grant nothing at check time.
    """

    id: str
    name: str
    description: str = ""
    permissions: list[str] = Field(default_factory=list)


class RoleDefinition(_Record):
    """Payload for creating or editing a role.

    Every permission must match the ``scope:resource-action`` grammar.
    """

    name: str = Field(min_length=1)
    description: str = ""
    permissions: list[str] = Field(default_factory=list)

    @field_validator("permissions")
    @classmethod
    def _validate_permissions(cls, value: list[str]) -> list[str]:
        # InvalidPermission is a ValueError, so pydantic reports it as a ValidationError
        unique = list(dict.fromkeys(value))
        return validate_permissions(unique)


class Tenant(_Record):
    id: str
    name: str
    slug: str = ""
    description: str | None = None


class Scenario(_Record):
    id: str
    name: str
    slug: str = ""
    tenant_id: str | None = Field(default=None, alias="tenantId")


class UserScenario(_Record):
    id: str
    scenario: Scenario = Field(alias="Scenario")
    scenario_role: Role | None = Field(default=None, alias="ScenarioRole")


class UserTenant(_Record):
    id: str
    tenant_id: str = Field(alias="tenantId")
    tenant: Tenant | None = Field(default=None, alias="Tenant")
    tenant_role: Role | None = Field(default=None, alias="TenantRole")
    user_scenarios: list[UserScenario] = Field(default_factory=list, alias="UserScenarios")

    def find_scenario(self, scenario_id: str) -> UserScenario | None:
        for user_scenario in self.user_scenarios:
            if user_scenario.scenario.id == scenario_id:
                return user_scenario
        return None


class User(_Record):
    """An authenticated principal with its tenant and scenario memberships."""

    id: str | None = None
    email: str
    username: str
    name: str | None = None
    system_admin: bool = Field(default=False, alias="systemAdmin")
    permissions: list[str] = Field(default_factory=list)
    user_tenants: list[UserTenant] = Field(default_factory=list, alias="userTenants")

    def find_tenant(self, tenant_id: str) -> UserTenant | None:
        for user_tenant in self.user_tenants:
            if user_tenant.tenant_id == tenant_id:
                return user_tenant
        return None
