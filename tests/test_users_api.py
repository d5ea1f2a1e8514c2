from .conftest import auth_header


def test_admin_lists_users(client, admin_headers, register):
    register("ama")
    response = client.get("/api/users", headers=admin_headers)
    assert response.status_code == 200
    assert {user["username"] for user in response.json()} == {"admin", "ama"}


def test_user_cannot_list_users(client, user_headers):
    response = client.get("/api/users", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "Admin required"


def test_user_edits_own_profile(client, register):
    token = register("ama")
    user_id = token["user"]["id"]
    response = client.patch(
        f"/api/users/{user_id}", json={"department": "Compliance"}, headers=auth_header(token)
    )
    assert response.status_code == 200
    assert response.json()["department"] == "Compliance"


def test_blank_username_rejected(client, register):
    token = register("ama")
    user_id = token["user"]["id"]
    response = client.patch(
        f"/api/users/{user_id}", json={"username": "   "}, headers=auth_header(token)
    )
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "username"}

    me = client.get("/api/user", headers=auth_header(token))
    assert me.json()["username"] == "ama"


def test_rename_to_taken_username(client, register):
    register("kofi")
    token = register("ama")
    response = client.patch(
        f"/api/users/{token['user']['id']}", json={"username": " kofi "}, headers=auth_header(token)
    )
    assert response.status_code == 409


def test_user_cannot_edit_someone_else(client, register):
    ama = register("ama")
    kofi = register("kofi")
    response = client.patch(
        f"/api/users/{kofi['user']['id']}", json={"fullName": "X"}, headers=auth_header(ama)
    )
    assert response.status_code == 403


def test_user_cannot_promote_self(client, register):
    token = register("ama")
    response = client.patch(
        f"/api/users/{token['user']['id']}", json={"role": "admin"}, headers=auth_header(token)
    )
    assert response.status_code == 403


def test_admin_changes_role(client, admin_headers, register):
    user_id = register("ama")["user"]["id"]
    response = client.patch(f"/api/users/{user_id}", json={"role": "guest"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["role"] == "guest"


def test_admin_rejects_unknown_role(client, admin_headers, register):
    user_id = register("ama")["user"]["id"]
    response = client.patch(f"/api/users/{user_id}", json={"role": "root"}, headers=admin_headers)
    assert response.status_code == 400


def test_edit_missing_user(client, admin_headers):
    response = client.patch("/api/users/999", json={"fullName": "Nobody"}, headers=admin_headers)
    assert response.status_code == 404


def test_suspended_user_is_locked_out(client, admin_headers, register):
    token = register("ama", "password1")
    user_id = token["user"]["id"]

    response = client.patch(
        f"/api/users/{user_id}/status", json={"status": "suspended"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"

    assert client.get("/api/user", headers=auth_header(token)).status_code == 403
    login = client.post("/api/login", json={"username": "ama", "password": "password1"})
    assert login.status_code == 403


def test_invalid_status(client, admin_headers, register):
    user_id = register("ama")["user"]["id"]
    response = client.patch(
        f"/api/users/{user_id}/status", json={"status": "banned"}, headers=admin_headers
    )
    assert response.status_code == 400
