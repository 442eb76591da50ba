"""
API contract tests for the user endpoints, health check and error envelopes.
"""
import pytest
from fastapi.testclient import TestClient

from userhub.app import create_app
from userhub.modules.config import Settings
from userhub.modules.security import SECURITY_HEADERS
from userhub.modules.users.api.user_endpoints import submitted_fields
from userhub.modules.users.repositories.user_repository import UserRepository

USERS = "/api/v1/users"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "healthy"
    assert body["version"] == "v1"
    assert body["uptime"] >= 0
    assert body["timestamp"].endswith("Z")


def test_list_users_returns_seed(client):
    body = client.get(USERS).json()
    assert body["success"] is True
    assert [u["id"] for u in body["data"]] == [1, 2]
    assert body["total"] == 2
    assert body["returned"] == 2


@pytest.mark.parametrize("role", ["user", "admin"])
def test_role_filter(client, role):
    client.post(USERS, json={"name": "Ann Lee", "email": "ann@example.com", "role": role})
    body = client.get(USERS, params={"role": role}).json()
    assert body["data"]
    assert all(user["role"] == role for user in body["data"])
    assert body["total"] == len(body["data"])


def test_limit_truncates_but_total_counts_all(client):
    body = client.get(USERS, params={"limit": 1}).json()
    assert body["returned"] == 1
    assert body["total"] == 2


@pytest.mark.parametrize("limit", ["abc", "0", "-3", "1_0", " 5"])
def test_invalid_limit(client, limit):
    response = client.get(USERS, params={"limit": limit})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid limit parameter"}


def test_get_user_by_id(client):
    response = client.get(f"{USERS}/1")
    assert response.status_code == 200
    assert response.json()["data"]["email"] == "admin@example.com"


def test_malformed_id_is_400(client):
    for method in ("get", "put", "delete"):
        response = client.request(method.upper(), f"{USERS}/abc", json={"name": "Fine Name"})
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid user ID format"}


@pytest.mark.parametrize("raw_id", ["1_0", "+1", "%201%20", "%D9%A1", "12abc", "1.0"])
def test_only_plain_decimal_ids_are_accepted(client, raw_id):
    response = client.get(f"{USERS}/{raw_id}")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid user ID format"


def test_unknown_id_is_404(client):
    response = client.get(f"{USERS}/999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "User not found"}


def test_create_round_trip(client):
    response = client.post(USERS, json={"name": "Ann Lee", "email": "ann@example.com"})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    created = body["data"]
    assert created["role"] == "user"
    assert "createdAt" in created
    assert "updatedAt" not in created

    fetched = client.get(f"{USERS}/{created['id']}").json()["data"]
    assert fetched == created


def test_created_ids_are_monotonic_and_listed_once(client):
    seen = []
    for i in range(5):
        response = client.post(USERS, json={"name": f"User {i}", "email": f"u{i}@example.com"})
        seen.append(response.json()["data"]["id"])
        if i % 2:
            client.delete(f"{USERS}/{seen[-1]}")
    assert all(later > earlier for earlier, later in zip(seen, seen[1:]))
    assert seen[0] > 2
    assert len(set(seen)) == len(seen)

    survivors = [u["id"] for u in client.get(USERS).json()["data"]]
    for uid in (seen[0], seen[2], seen[4]):
        assert survivors.count(uid) == 1


def test_create_validation_failure(client):
    response = client.post(USERS, json={})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    assert body["details"] == [{"field": "name", "message": "Name is required"}]


@pytest.mark.parametrize("length, status", [(1, 400), (2, 201), (50, 201), (51, 400)])
def test_name_boundaries(client, length, status):
    response = client.post(USERS, json={"name": "n" * length, "email": f"len{length}@example.com"})
    assert response.status_code == status


def test_duplicate_email_leaves_store_unchanged(client, repository):
    before = repository.count()
    response = client.post(USERS, json={"name": "Copy Cat", "email": "Test@Example.com"})
    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "Email already exists"}
    assert repository.count() == before


def test_update_to_existing_email_conflicts(client, repository):
    response = client.put(f"{USERS}/2", json={"email": "admin@example.com"})
    assert response.status_code == 409
    assert repository.get_by_id(2).email == "test@example.com"


def test_update_merges_fields(client):
    response = client.put(f"{USERS}/2", json={"role": "admin"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "User updated successfully"
    assert body["data"]["role"] == "admin"
    assert body["data"]["name"] == "Test User"
    assert "updatedAt" in body["data"]


def test_update_missing_user_is_404(client):
    response = client.put(f"{USERS}/404", json={"name": "Valid Name"})
    assert response.status_code == 404


def test_update_validation_comes_before_existence(client):
    response = client.put(f"{USERS}/404", json={"name": "A"})
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "name"


def test_delete_is_not_idempotent(client):
    first = client.delete(f"{USERS}/2")
    assert first.status_code == 200
    assert first.json()["data"]["id"] == 2
    assert first.json()["message"] == "User deleted successfully"

    second = client.delete(f"{USERS}/2")
    assert second.status_code == 404


def test_ann_lee_scenario(client):
    created = client.post(USERS, json={"name": "Ann Lee", "email": "ann@example.com"})
    assert created.status_code == 201
    user = created.json()["data"]
    assert user["role"] == "user"
    assert "id" in user

    duplicate = client.post(USERS, json={"name": "Ann Lee", "email": "ann@example.com"})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Email already exists"

    rename = client.put(f"{USERS}/{user['id']}", json={"name": "A"})
    assert rename.status_code == 400
    assert rename.json()["details"][0]["field"] == "name"

    assert client.delete(f"{USERS}/{user['id']}").status_code == 200
    assert client.get(f"{USERS}/{user['id']}").status_code == 404


def test_malformed_json_body(client):
    response = client.post(USERS, content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON body"}


def test_non_object_body(client):
    response = client.post(USERS, json=["Ann Lee"])
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "body"


def test_submitted_fields_keeps_only_sent_user_fields():
    assert submitted_fields({"name": "Ann Lee", "id": 99, "createdAt": "x"}) == {"name": "Ann Lee"}
    assert submitted_fields({"name": None}) == {"name": None}
    assert submitted_fields(["Ann Lee"]) == ["Ann Lee"]


def test_unknown_body_fields_are_ignored(client):
    response = client.post(USERS, json={"name": "Ann Lee", "email": "ann@example.com", "id": 99, "role": "admin", "isActive": False})
    assert response.status_code == 201
    created = response.json()["data"]
    assert created["id"] == 3
    assert created["role"] == "admin"
    assert "isActive" not in created


def test_explicit_null_name_is_rejected(client):
    create = client.post(USERS, json={"name": None, "email": "ann@example.com"})
    assert create.json()["details"] == [{"field": "name", "message": "Name is required"}]

    update = client.put(f"{USERS}/2", json={"name": None})
    assert update.status_code == 400
    assert update.json()["details"][0]["field"] == "name"


def test_unknown_endpoint(client):
    response = client.get("/api/v1/nothing?x=1")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Endpoint not found", "path": "/api/v1/nothing?x=1"}


def test_unsupported_method_is_endpoint_not_found(client):
    response = client.patch(f"{USERS}/1", json={"name": "Patchy"})
    assert response.status_code == 404
    assert response.json()["error"] == "Endpoint not found"


def _broken_app(environment, monkeypatch):
    repo = UserRepository()

    def boom(*args, **kwargs):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(repo, "list", boom)
    return create_app(Settings(environment=environment), repo)


def test_unhandled_error_in_development_exposes_message(monkeypatch):
    with TestClient(_broken_app("development", monkeypatch), raise_server_exceptions=False) as client:
        response = client.get(USERS, headers={"Origin": "http://localhost:3000"})
    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Internal server error",
        "message": "store exploded",
    }


def test_unhandled_error_in_production_hides_message(monkeypatch):
    with TestClient(_broken_app("production", monkeypatch), raise_server_exceptions=False) as client:
        response = client.get(USERS)
    assert response.status_code == 500
    assert response.json()["message"] == "Something went wrong"


def test_unhandled_error_keeps_security_and_cors_headers(monkeypatch):
    with TestClient(_broken_app("production", monkeypatch), raise_server_exceptions=False) as client:
        response = client.get(USERS, headers={"Origin": "http://localhost:3000"})
    assert response.status_code == 500
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
