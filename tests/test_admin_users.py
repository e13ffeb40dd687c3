import pytest

from app.database import session_scope
from app.models.profile import ProfileEntry

ADMIN_ROUTES = [
    ("post", "/api/admin/users", {"name": "New", "email": "new@inkwell.io", "role": "writer"}),
    ("get", "/api/admin/users", None),
    ("put", "/api/admin/users/some-id", {"name": "Renamed"}),
    ("delete", "/api/admin/users/some-id", None),
]


@pytest.mark.parametrize("method,path,body", ADMIN_ROUTES)
def test_admin_routes_forbid_non_admins(client, editor_headers, method, path, body):
    kwargs = {"headers": editor_headers}
    if body is not None:
        kwargs["json"] = body

    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Forbidden"}


@pytest.mark.parametrize("method,path,body", ADMIN_ROUTES)
def test_admin_routes_require_token(client, method, path, body):
    kwargs = {"json": body} if body is not None else {}

    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized: Missing token"


def test_invalid_token_is_unauthorized(client):
    response = client.get(
        "/api/admin/users", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Unauthorized: Invalid or expired token"


def test_demoted_admin_loses_access(client, admin, admin_headers, editor):
    with session_scope() as session:
        session.get(ProfileEntry, admin.id).role = "writer"

    response = client.get("/api/admin/users", headers=admin_headers)

    assert response.status_code == 403


def test_create_and_list_users(client, admin, admin_headers):
    response = client.post(
        "/api/admin/users",
        json={"name": "  Wren Writer ", "email": "Wren@Inkwell.io", "role": "writer"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["name"] == "Wren Writer"
    assert user["email"] == "wren@inkwell.io"
    assert user["role"] == "writer"

    listing = client.get("/api/admin/users", headers=admin_headers).json()
    assert listing["success"] is True
    assert [item["email"] for item in listing["users"]] == [
        "wren@inkwell.io",
        "ada@inkwell.io",
    ]


def test_create_duplicate_user(client, admin, admin_headers, editor):
    response = client.post(
        "/api/admin/users",
        json={"name": "Again", "email": "eddie@inkwell.io", "role": "writer"},
        headers=admin_headers,
    )

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "User already exists"}


def test_create_user_rejects_unknown_role(client, admin, admin_headers):
    response = client.post(
        "/api/admin/users",
        json={"name": "Guest", "email": "guest@inkwell.io", "role": "reader"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "role"


def test_update_user(client, admin_headers, editor):
    response = client.put(
        f"/api/admin/users/{editor.id}",
        json={"name": "Edith", "role": "writer"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Edith"
    assert response.json()["user"]["role"] == "writer"


def test_update_user_requires_changes(client, admin_headers, editor):
    response = client.put(
        f"/api/admin/users/{editor.id}", json={}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Validation error"


def test_update_user_cannot_grant_admin(client, admin_headers, editor):
    response = client.put(
        f"/api/admin/users/{editor.id}", json={"role": "admin"}, headers=admin_headers
    )

    assert response.status_code == 400


def test_update_missing_user(client, admin_headers):
    response = client.put(
        "/api/admin/users/missing", json={"name": "Ghost"}, headers=admin_headers
    )

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "User not found"}


def test_delete_user(client, admin_headers, editor):
    response = client.delete(f"/api/admin/users/{editor.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "User deleted"}
    assert client.delete(
        f"/api/admin/users/{editor.id}", headers=admin_headers
    ).status_code == 404


def test_admin_cannot_delete_self(client, admin, admin_headers):
    response = client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Admin cannot delete himself"
