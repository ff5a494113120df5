import pytest

from app.core.rbac import OperationKind, authorize, permission_matrix, requires_ownership_check
from app.modules.models.schemas import parse_model_definition


def make_model(rbac=None, owner_field=None):
    raw = {"name": "Doc", "fields": [{"name": "title"}, {"name": "createdBy"}]}
    if rbac is not None:
        raw["rbac"] = rbac
    if owner_field is not None:
        raw["ownerField"] = owner_field
    return parse_model_definition(raw)


@pytest.mark.parametrize("operation", list(OperationKind))
@pytest.mark.parametrize("role", ["Admin", "Manager", "Viewer", "Nobody"])
def test_model_without_rbac_denies_everything(operation, role):
    decision = authorize(make_model(), operation, role, "u1")
    assert not decision.allowed
    assert "No permissions defined" in decision.reason


def test_unlisted_role_is_denied():
    model = make_model(rbac={"Manager": ["read"]})
    assert not authorize(model, OperationKind.READ, "Viewer", "u1")


def test_all_sentinel_grants_every_operation():
    model = make_model(rbac={"Admin": ["all"]}, owner_field="createdBy")
    for operation in OperationKind:
        assert authorize(model, operation, "Admin", "someone", {"createdBy": "other"}).allowed


def test_specific_operation_grant():
    model = make_model(rbac={"Viewer": ["read"], "Manager": ["create", "read"]})
    assert authorize(model, "read", "Viewer", "u1").allowed
    assert not authorize(model, "create", "Viewer", "u1").allowed
    assert authorize(model, "create", "Manager", "u1").allowed
    assert not authorize(model, "delete", "Manager", "u1").allowed


def test_roles_are_matched_exactly():
    model = make_model(rbac={"Manager": ["read"]})
    assert not authorize(model, "read", "manager", "u1").allowed


def test_ownership_refinement_on_update():
    model = make_model(rbac={"Manager": ["update"]}, owner_field="createdBy")
    target = {"id": 1, "createdBy": "u1"}
    denied = authorize(model, OperationKind.UPDATE, "Manager", "u2", target)
    assert not denied.allowed
    assert "owner" in denied.reason
    assert authorize(model, OperationKind.UPDATE, "Manager", "u1", target).allowed


def test_ownership_refinement_on_delete_with_missing_owner():
    model = make_model(rbac={"Manager": ["delete"]}, owner_field="createdBy")
    assert not authorize(model, OperationKind.DELETE, "Manager", "u1", {"id": 1, "createdBy": None}).allowed


def test_ownership_does_not_apply_to_read_or_create():
    model = make_model(rbac={"Manager": ["read", "create"]}, owner_field="createdBy")
    target = {"id": 1, "createdBy": "u1"}
    assert authorize(model, OperationKind.READ, "Manager", "u2", target).allowed
    assert authorize(model, OperationKind.CREATE, "Manager", "u2", target).allowed


def test_role_level_decision_without_target():
    model = make_model(rbac={"Manager": ["update"]}, owner_field="createdBy")
    assert authorize(model, OperationKind.UPDATE, "Manager", "u2").allowed


def test_requires_ownership_check():
    model = make_model(rbac={"Manager": ["update", "read"], "Admin": ["all"]}, owner_field="createdBy")
    assert requires_ownership_check(model, OperationKind.UPDATE, "Manager")
    assert not requires_ownership_check(model, OperationKind.READ, "Manager")
    assert not requires_ownership_check(model, OperationKind.UPDATE, "Admin")
    assert not requires_ownership_check(model, OperationKind.DELETE, "Manager")
    assert not requires_ownership_check(make_model(rbac={"Manager": ["update"]}), "update", "Manager")


def test_unknown_operation_is_rejected():
    with pytest.raises(ValueError):
        authorize(make_model(rbac={"Admin": ["all"]}), "truncate", "Admin", "u1")


def test_permission_matrix():
    model = make_model(rbac={"Viewer": ["read"], "Admin": ["all"]}, owner_field="createdBy")
    matrix = permission_matrix(model)
    assert matrix["roles"]["Viewer"] == {"read": True, "create": False, "update": False, "delete": False}
    assert all(matrix["roles"]["Admin"].values())
    assert matrix["ownership_operations"] == ["update", "delete"]
    assert [op["name"] for op in matrix["operations"]] == ["read", "create", "update", "delete"]


def test_permission_matrix_without_rbac_is_empty():
    assert permission_matrix(make_model())["roles"] == {}
