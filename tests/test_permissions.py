import itertools

import pytest

from scoped_rbac.exceptions import InvalidPermission
from scoped_rbac.permissions import (
    ACTION_HIERARCHY,
    RESOURCES_BY_SCOPE,
    Action,
    CheckMode,
    ParsedPermission,
    Scope,
    action_rank,
    check_permissions,
    covers,
    has_all_permissions,
    has_any_permission,
    has_permission,
    is_valid_permission,
    parse_permission,
    validate_permission,
    validate_permissions,
)

SCOPED_RESOURCES = [(scope, resource) for scope, resources in RESOURCES_BY_SCOPE.items() for resource in resources]


class TestParsePermission:
    def test_parses_valid_permission(self) -> None:
        parsed = parse_permission("tenant:user-edit")
        assert parsed == ParsedPermission(Scope.TENANT, "user", Action.EDIT)

    def test_parses_resource_with_underscore(self) -> None:
        parsed = parse_permission("scenario:image_generation-all")
        assert parsed is not None
        assert parsed.scope == Scope.SCENARIO
        assert parsed.resource == "image_generation"
        assert parsed.action == Action.ALL

    def test_str_round_trips_to_permission_string(self) -> None:
        parsed = parse_permission("scenario:sensor_rule-view")
        assert parsed is not None
        assert str(parsed) == "scenario:sensor_rule-view"

    @pytest.mark.parametrize(
        "permission",
        [
            "",
            "garbage",
            "tenant:user",
            "tenant-user-edit",
            "tenant:user-edit-all",
            "tenant:user-",
            "-edit",
            ":user-edit",
            "tenant:-edit",
            "tenant:user:role-edit",
            "tenant::user-edit",
        ],
    )
    def test_rejects_malformed_permission(self, permission: str) -> None:
        assert parse_permission(permission) is None

    def test_rejects_unknown_scope(self) -> None:
        assert parse_permission("notascope:user-view") is None

    def test_rejects_resource_outside_its_scope(self) -> None:
        assert parse_permission("tenant:device-view") is None
        assert parse_permission("system:user-view") is None
        assert parse_permission("scenario:admin-all") is None

    def test_rejects_unknown_action(self) -> None:
        assert parse_permission("tenant:user-delete") is None

    def test_hyphenated_resource_breaks_the_grammar(self) -> None:
        assert parse_permission("scenario:image-generation-view") is None

    def test_rejects_uppercase(self) -> None:
        assert parse_permission("Tenant:user-view") is None

    def test_repeated_parses_are_structurally_equal(self) -> None:
        assert parse_permission("scenario:spot-view") == parse_permission("scenario:spot-view")

    def test_is_valid_permission(self) -> None:
        assert is_valid_permission("system:admin-view") is True
        assert is_valid_permission("system:admin") is False


class TestValidatePermission:
    def test_returns_parsed_permission(self) -> None:
        assert validate_permission("tenant:role-all") == ParsedPermission(Scope.TENANT, "role", Action.ALL)

    def test_raises_with_reason_for_unknown_resource(self) -> None:
        with pytest.raises(InvalidPermission) as exc_info:
            validate_permission("tenant:device-view")
        assert exc_info.value.permission == "tenant:device-view"
        assert "unknown resource 'device'" in str(exc_info.value)

    def test_raises_for_missing_separator(self) -> None:
        with pytest.raises(InvalidPermission, match="'-'"):
            validate_permission("tenant:user")

    def test_invalid_permission_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_permission("garbage")

    def test_validate_permissions_returns_list(self) -> None:
        assert validate_permissions(["tenant:user-view", "scenario:spot-edit"]) == [
            "tenant:user-view",
            "scenario:spot-edit",
        ]

    def test_validate_permissions_raises_on_first_invalid(self) -> None:
        with pytest.raises(InvalidPermission) as exc_info:
            validate_permissions(["tenant:user-view", "tenant:nope-view", "bad"])
        assert exc_info.value.permission == "tenant:nope-view"


class TestActionHierarchy:
    def test_ranks_are_ordered(self) -> None:
        assert [action_rank(a) for a in ("none", "view", "edit", "all")] == [0, 1, 2, 3]

    def test_every_action_implies_itself(self) -> None:
        for action, implied in ACTION_HIERARCHY.items():
            assert action in implied

    def test_table_matches_ranks(self) -> None:
        for granted, required in itertools.product(Action, Action):
            expected = action_rank(granted) >= action_rank(required)
            assert (required in ACTION_HIERARCHY[granted]) is expected


class TestCovers:
    def test_exact_match(self) -> None:
        assert covers("tenant:user-edit", "tenant:user-edit") is True

    def test_higher_action_covers_lower(self) -> None:
        assert covers("tenant:user-all", "tenant:user-view") is True
        assert covers("tenant:user-edit", "tenant:user-view") is True
        assert covers("tenant:user-view", "tenant:user-none") is True

    def test_lower_action_does_not_cover_higher(self) -> None:
        assert covers("tenant:user-view", "tenant:user-edit") is False
        assert covers("tenant:user-edit", "tenant:user-all") is False
        assert covers("tenant:user-none", "tenant:user-view") is False

    def test_reflexive_for_every_valid_permission(self) -> None:
        for (scope, resource), action in itertools.product(SCOPED_RESOURCES, Action):
            permission = f"{scope}:{resource}-{action}"
            assert covers(permission, permission) is True

    def test_hierarchy_monotonicity(self) -> None:
        for (scope, resource), granted, required in itertools.product(SCOPED_RESOURCES, Action, Action):
            result = covers(f"{scope}:{resource}-{granted}", f"{scope}:{resource}-{required}")
            assert result is (action_rank(granted) >= action_rank(required))

    @pytest.mark.parametrize("resource", ["user", "role"])
    def test_scope_isolation(self, resource: str) -> None:
        assert covers(f"tenant:{resource}-all", f"scenario:{resource}-view") is False
        assert covers(f"scenario:{resource}-all", f"tenant:{resource}-view") is False

    def test_resource_isolation(self) -> None:
        assert covers("tenant:user-all", "tenant:role-view") is False
        assert covers("scenario:device-all", "scenario:spot-none") is False

    @pytest.mark.parametrize(
        ("granted", "required"),
        [
            ("garbage", "tenant:user-view"),
            ("", ""),
            ("tenant:user-edit", "notascope:x-y"),
            ("tenant:user-all", "tenant:user-delete"),
            ("tenant:user-delete", "tenant:user-view"),
            ("scenario:image-generation-all", "scenario:image_generation-view"),
        ],
    )
    def test_malformed_never_covers(self, granted: str, required: str) -> None:
        assert covers(granted, required) is False

    def test_exact_match_short_circuits_parsing(self) -> None:
        # Equal strings match even when the action is outside the hierarchy
        assert covers("tenant:user-delete", "tenant:user-delete") is True

    def test_empty_strings_never_match(self) -> None:
        assert covers("", "") is False
        assert has_permission([""], "") is False
        assert has_all_permissions([""], [""]) is False
        assert has_any_permission([""], [""]) is False

    def test_repeated_calls_are_stable(self) -> None:
        results = {covers("tenant:scenario-edit", "tenant:scenario-view") for _ in range(5)}
        assert results == {True}


class TestHasPermission:
    def test_any_grant_covers(self) -> None:
        granted = ["tenant:scenario-view", "tenant:user-all"]
        assert has_permission(granted, "tenant:user-edit") is True

    def test_no_grant_covers(self) -> None:
        assert has_permission(["tenant:scenario-view"], "tenant:scenario-edit") is False

    def test_empty_granted_list_is_false(self) -> None:
        assert has_permission([], "tenant:user-view") is False
        assert has_permission([], "tenant:user-none") is False

    def test_malformed_grant_is_ignored(self) -> None:
        assert has_permission(["bad", "tenant:user-edit"], "tenant:user-view") is True
        assert has_permission(["bad"], "tenant:user-view") is False

    def test_does_not_mutate_granted(self) -> None:
        granted = ["tenant:user-view"]
        has_permission(granted, "tenant:user-view")
        assert granted == ["tenant:user-view"]

    def test_device_and_spot_role(self) -> None:
        granted = ["scenario:device-edit", "scenario:spot-view"]
        assert has_permission(granted, "scenario:device-edit") is True
        assert has_permission(granted, "scenario:device-all") is False
        assert has_permission(granted, "scenario:spot-view") is True
        assert has_permission(granted, "scenario:spot-edit") is False


class TestAggregatePermissions:
    def test_all_requires_every_permission(self) -> None:
        granted = ["tenant:scenario-view", "tenant:user-all"]
        assert has_all_permissions(granted, ["tenant:scenario-view", "tenant:user-edit"]) is True
        assert has_all_permissions(granted, ["tenant:scenario-edit"]) is False
        assert has_all_permissions(granted, ["tenant:user-edit", "tenant:role-view"]) is False

    def test_any_requires_one_permission(self) -> None:
        granted = ["tenant:scenario-view"]
        assert has_any_permission(granted, ["tenant:user-view", "tenant:scenario-view"]) is True
        assert has_any_permission(granted, ["tenant:user-view", "tenant:role-view"]) is False

    def test_all_with_empty_required_is_true(self) -> None:
        assert has_all_permissions(["tenant:user-view"], []) is True
        assert has_all_permissions([], []) is True

    def test_any_with_empty_required_is_false(self) -> None:
        assert has_any_permission(["tenant:user-view"], []) is False
        assert has_any_permission([], []) is False

    def test_empty_granted_denies_non_empty_required(self) -> None:
        assert has_all_permissions([], ["tenant:user-view"]) is False
        assert has_any_permission([], ["tenant:user-view"]) is False

    def test_accepts_tuples_and_sets(self) -> None:
        granted = ("scenario:device-all",)
        assert has_all_permissions(granted, {"scenario:device-view", "scenario:device-edit"}) is True


class TestCheckPermissions:
    def test_single_string_is_one_requirement(self) -> None:
        assert check_permissions(["tenant:user-edit"], "tenant:user-view") is True
        assert check_permissions(["tenant:user-edit"], "tenant:user-all") is False

    def test_all_mode_is_default(self) -> None:
        granted = ["tenant:user-edit"]
        assert check_permissions(granted, ["tenant:user-view", "tenant:role-view"]) is False

    def test_any_mode(self) -> None:
        granted = ["tenant:user-edit"]
        assert check_permissions(granted, ["tenant:user-view", "tenant:role-view"], CheckMode.ANY) is True

    def test_mode_accepts_plain_strings(self) -> None:
        assert check_permissions(["tenant:user-edit"], ["tenant:role-view", "tenant:user-view"], "any") is True  # type: ignore[arg-type]

    def test_empty_required_keeps_asymmetry(self) -> None:
        assert check_permissions(["tenant:user-view"], [], CheckMode.ALL) is True
        assert check_permissions(["tenant:user-view"], [], CheckMode.ANY) is False

    def test_unknown_mode_raises(self) -> None:
        with pytest.raises(ValueError):
            check_permissions([], [], "some")  # type: ignore[arg-type]
