import pytest

VIEWER = {"X-User-Role": "Viewer", "X-User-Id": "v1"}
MANAGER = {"X-User-Role": "Manager", "X-User-Id": "u1"}
OTHER_MANAGER = {"X-User-Role": "Manager", "X-User-Id": "u2"}
ADMIN = {"X-User-Role": "Admin", "X-User-Id": "root"}


@pytest.fixture()
def employees(client, employee_raw):
    r = client.post("/admin/api/models/publish", json=employee_raw)
    assert r.status_code == 201
    return client


@pytest.fixture()
def tasks(client, task_raw):
    r = client.post("/admin/api/models/publish", json=task_raw)
    assert r.status_code == 201
    return client


def test_employee_scenario(employees):
    c = employees

    r = c.get("/api/employee", headers=VIEWER)
    assert r.status_code == 200
    assert r.json() == []

    r = c.post("/api/employee", json={"name": "Jane", "age": 30}, headers=VIEWER)
    assert r.status_code == 403

    r = c.post("/api/employee", json={"name": "Jane", "age": 30}, headers=MANAGER)
    assert r.status_code == 201
    assert r.json() == {"id": 1, "name": "Jane", "age": 30}

    r = c.get("/api/employee", headers=VIEWER)
    assert r.status_code == 200
    assert r.json() == [{"id": 1, "name": "Jane", "age": 30}]


def test_model_name_is_case_insensitive(employees):
    assert employees.get("/api/EMPLOYEE", headers=VIEWER).status_code == 200


def test_default_role_is_viewer(employees):
    assert employees.get("/api/employee").status_code == 200
    assert employees.post("/api/employee", json={"name": "Jane"}).status_code == 403


def test_unknown_model_is_not_found(client):
    r = client.get("/api/ghost", headers=VIEWER)
    assert r.status_code == 404
    assert "ghost" in r.json()["detail"]


def test_missing_record_is_not_found_not_denied(employees):
    r = employees.get("/api/employee/7", headers=VIEWER)
    assert r.status_code == 404


def test_denied_operation_is_forbidden(employees):
    r = employees.delete("/api/employee/1", headers=MANAGER)
    assert r.status_code == 403
    assert r.json()["detail"].startswith("Forbidden")


def test_model_without_rbac_denies_every_role(client):
    client.post("/admin/api/models/publish", json={"name": "Secret", "fields": [{"name": "value"}]})
    for headers in (VIEWER, MANAGER, ADMIN):
        assert client.get("/api/secret", headers=headers).status_code == 403
        assert client.post("/api/secret", json={"value": "x"}, headers=headers).status_code == 403


def test_create_fills_owner_from_actor(tasks):
    r = tasks.post("/api/task", json={"title": "Write docs"}, headers=MANAGER)
    assert r.status_code == 201
    assert r.json() == {"id": 1, "title": "Write docs", "done": None, "createdBy": "u1"}


def test_update_requires_ownership(tasks):
    tasks.post("/api/task", json={"title": "Write docs"}, headers=MANAGER)

    r = tasks.put("/api/task/1", json={"title": "Hijacked"}, headers=OTHER_MANAGER)
    assert r.status_code == 403

    r = tasks.put("/api/task/1", json={"title": "Write better docs", "done": True}, headers=MANAGER)
    assert r.status_code == 200
    assert r.json() == {"id": 1, "title": "Write better docs", "done": True, "createdBy": "u1"}


def test_delete_requires_ownership(tasks):
    tasks.post("/api/task", json={"title": "Write docs"}, headers=MANAGER)

    assert tasks.delete("/api/task/1", headers=OTHER_MANAGER).status_code == 403
    assert tasks.get("/api/task/1", headers=VIEWER).status_code == 200

    r = tasks.delete("/api/task/1", headers=MANAGER)
    assert r.status_code == 200
    assert r.json() == {"message": "Record deleted successfully"}
    assert tasks.get("/api/task/1", headers=VIEWER).status_code == 404


def test_all_permission_bypasses_ownership(tasks):
    tasks.post("/api/task", json={"title": "Write docs"}, headers=MANAGER)
    r = tasks.put("/api/task/1", json={"title": "Reassigned", "createdBy": "u2"}, headers=ADMIN)
    assert r.status_code == 200
    assert r.json()["createdBy"] == "u2"
    assert tasks.delete("/api/task/1", headers=ADMIN).status_code == 200


def test_ownership_check_on_missing_record(tasks):
    assert tasks.put("/api/task/5", json={"title": "x"}, headers=MANAGER).status_code == 404
    assert tasks.delete("/api/task/5", headers=MANAGER).status_code == 404


def test_delete_never_created_record_without_owner_field(client):
    client.post("/admin/api/models/publish", json={
        "name": "Note",
        "fields": [{"name": "body", "type": "text"}],
        "rbac": {"Editor": ["all"]},
    })
    r = client.delete("/api/note/1", headers={"X-User-Role": "Editor"})
    assert r.status_code == 404
    r = client.put("/api/note/1", json={"body": "x"}, headers={"X-User-Role": "Editor"})
    assert r.status_code == 404


def test_constraint_violation_is_conflict(employees):
    r = employees.post("/api/employee", json={"age": 30}, headers=MANAGER)
    assert r.status_code == 409


def test_non_integer_id_is_rejected(employees):
    assert employees.get("/api/employee/abc", headers=VIEWER).status_code == 422


def test_security_headers(employees):
    r = employees.get("/api/employee", headers=VIEWER)
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"


def test_id_beyond_key_range_is_not_found(tasks):
    huge = "/api/task/99999999999999999999"
    assert tasks.get(huge, headers=VIEWER).status_code == 404
    assert tasks.put(huge, json={"title": "x"}, headers=MANAGER).status_code == 404
    assert tasks.delete(huge, headers=MANAGER).status_code == 404
    assert tasks.put(huge, json={"title": "x"}, headers=ADMIN).status_code == 404
    assert tasks.delete(huge, headers=ADMIN).status_code == 404


def test_non_boolean_value_is_rejected(tasks):
    r = tasks.post("/api/task", json={"title": "x", "done": "false"}, headers=MANAGER)
    assert r.status_code == 400
    assert "'done'" in r.json()["detail"]
    assert tasks.get("/api/task", headers=VIEWER).json() == []


def test_create_replaces_empty_owner_with_actor(tasks):
    r = tasks.post("/api/task", json={"title": "x", "createdBy": ""}, headers=MANAGER)
    assert r.status_code == 201
    assert r.json()["createdBy"] == "u1"


def test_update_with_empty_owner_keeps_current_owner(tasks):
    tasks.post("/api/task", json={"title": "x"}, headers=MANAGER)
    r = tasks.put("/api/task/1", json={"title": "y", "createdBy": ""}, headers=MANAGER)
    assert r.status_code == 200
    assert r.json()["createdBy"] == "u1"


def test_owner_field_differing_only_in_case_is_usable(client, task_raw):
    task_raw["ownerField"] = "CreatedBy"
    r = client.post("/admin/api/models/publish", json=task_raw)
    assert r.status_code == 201
    assert r.json()["synchronization"][0]["ok"] is True
    assert r.json()["model"]["ownerField"] == "createdBy"

    r = client.post("/api/task", json={"title": "x"}, headers=MANAGER)
    assert r.status_code == 201
    assert r.json() == {"id": 1, "title": "x", "done": None, "createdBy": "u1"}
    assert client.delete("/api/task/1", headers=OTHER_MANAGER).status_code == 403
